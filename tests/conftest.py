"""Pytest configuration and fixtures"""
import os

import pytest
import pytest_asyncio

# Set test environment variables
os.environ.setdefault("UPSTASH_REDIS_REST_URL", "https://test.upstash.io")
os.environ.setdefault("UPSTASH_REDIS_REST_TOKEN", "test_token")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from storefront.cart import CartStore  # noqa: E402
from storefront.db import MemoryBackend, StorageKeys  # noqa: E402
from storefront.session import Storefront  # noqa: E402
from storefront.storage import KeyValueStore  # noqa: E402
from storefront.users import UserDirectory  # noqa: E402


@pytest.fixture
def backend():
    """Empty in-memory device storage"""
    return MemoryBackend()


@pytest.fixture
def keys():
    return StorageKeys(prefix="test")


@pytest.fixture
def kv_store(backend):
    return KeyValueStore(backend)


@pytest.fixture
def cart_store(kv_store, keys):
    """Cart store without a mutation hook"""
    return CartStore(kv_store, keys)


@pytest.fixture
def directory(kv_store, keys):
    return UserDirectory(kv_store, keys)


@pytest_asyncio.fixture
async def shop(kv_store, keys):
    """Started storefront over empty memory storage"""
    storefront = Storefront(kv_store, keys)
    await storefront.start()
    yield storefront
    await storefront.shutdown()


@pytest.fixture
def shoe():
    """Sample catalog product"""
    return {
        "title": "Shoe",
        "image_ref": "https://cdn.example.com/shoe.png",
        "category": "footwear",
        "unit_price": 50,
    }


@pytest.fixture
def jacket():
    return {
        "title": "Jacket",
        "image_ref": "https://cdn.example.com/jacket.png",
        "category": "outerwear",
        "unit_price": "129.99",
    }
