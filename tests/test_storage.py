"""Tests for the persistent key-value store"""
import logging

import pytest
from unittest.mock import AsyncMock

from upstash_redis.asyncio import Redis as AsyncRedis

from storefront import config, db
from storefront.db import MemoryBackend, StorageKeys
from storefront.logging import get_logger, sanitize_id_for_logging, sanitize_string_for_logging
from storefront.session import Storefront
from storefront.storage import KeyValueStore


@pytest.mark.asyncio
async def test_set_then_get(kv_store):
    """Values come back as the JSON they were stored as"""
    await kv_store.set("k", {"a": [1, 2], "b": "x"})

    assert await kv_store.get("k") == {"a": [1, 2], "b": "x"}


@pytest.mark.asyncio
async def test_get_missing_returns_default(kv_store):
    assert await kv_store.get("missing") is None
    assert await kv_store.get("missing", []) == []


@pytest.mark.asyncio
async def test_remove(kv_store):
    await kv_store.set("k", 1)
    await kv_store.remove("k")

    assert await kv_store.get("k") is None
    # removing twice is fine
    await kv_store.remove("k")


@pytest.mark.asyncio
async def test_malformed_json_treated_as_absent(backend, kv_store):
    """Corrupted record is reset and reported as missing"""
    await backend.set("k", "{not json")

    assert await kv_store.get("k", "fallback") == "fallback"
    assert await backend.get("k") is None


@pytest.mark.asyncio
async def test_get_list_resets_non_list(backend, kv_store):
    await backend.set("k", '{"a": 1}')

    assert await kv_store.get_list("k") == []
    assert await backend.get("k") is None


@pytest.mark.asyncio
async def test_get_str_resets_non_string(backend, kv_store):
    await backend.set("k", "[1, 2]")

    assert await kv_store.get_str("k") is None
    assert await backend.get("k") is None


@pytest.mark.asyncio
async def test_snapshot_survives_restart(backend):
    """A new store over a snapshot sees the same data"""
    await KeyValueStore(backend).set("k", ["x"])

    restarted = KeyValueStore(MemoryBackend(backend.snapshot()))

    assert await restarted.get("k") == ["x"]


@pytest.mark.asyncio
async def test_init_and_teardown_use_backend_hooks():
    """Redis-style backends are pinged on init and closed on teardown"""
    backend = AsyncMock()
    store = KeyValueStore(backend)

    await store.init()
    await store.teardown()

    backend.ping.assert_awaited_once()
    backend.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_init_and_teardown_memory_backend(kv_store):
    await kv_store.init()
    await kv_store.teardown()


class TestStorageKeys:
    """Record keys never collide"""

    def test_keys_are_distinct(self):
        keys = StorageKeys(prefix="shop")

        assert len({keys.users, keys.cart_items, keys.current_user}) == 3

    def test_prefix(self):
        keys = StorageKeys(prefix="shop")

        assert keys.users == "shop:users"
        assert keys.cart_items == "shop:cart_items"
        assert keys.current_user == "shop:current_user"

    def test_empty_prefix(self):
        assert StorageKeys(prefix="").users == "users"


class TestLogSanitizing:
    def test_id_truncated(self):
        assert sanitize_id_for_logging("0123456789abcdef") == "01234567"
        assert sanitize_id_for_logging(None) == "N/A"

    def test_newlines_escaped(self):
        assert sanitize_string_for_logging("a@x.com\nFAKE") == "a@x.com\\nFAKE"
        assert sanitize_string_for_logging("x" * 60).endswith("...")

    def test_module_loggers_nest_under_package(self):
        assert get_logger("storefront.cart.service").name == "storefront.cart.service"
        assert get_logger("checkout_ui").name == "storefront.checkout_ui"
        assert get_logger("checkout_ui").parent is logging.getLogger("storefront")


class TestRedisClient:
    """Upstash client construction from environment config."""

    @pytest.fixture(autouse=True)
    def reset_client(self, monkeypatch):
        monkeypatch.setattr(db, "_redis_client", None)

    def test_missing_credentials(self, monkeypatch):
        monkeypatch.setattr(config, "UPSTASH_REDIS_REST_URL", "")
        monkeypatch.setattr(config, "UPSTASH_REDIS_REST_TOKEN", "")

        with pytest.raises(ValueError, match="UPSTASH_REDIS_REST_URL"):
            db.get_redis()
        with pytest.raises(ValueError):
            Storefront.from_env()

    def test_client_is_singleton(self, monkeypatch):
        monkeypatch.setattr(config, "UPSTASH_REDIS_REST_URL", "https://test.upstash.io")
        monkeypatch.setattr(config, "UPSTASH_REDIS_REST_TOKEN", "test_token")

        client = db.get_redis()

        assert isinstance(client, AsyncRedis)
        assert db.get_redis() is client
        assert Storefront.from_env().store.backend is client
