"""
Storage Backends - Upstash Redis and in-process memory

Provides:
- Async Upstash Redis client singleton (production device storage)
- MemoryBackend, a dict-backed stand-in with the same async surface
- StorageKeys, the registry of record keys and which component owns them
"""

from typing import Dict, Optional, Protocol

from upstash_redis.asyncio import Redis as AsyncRedis

from storefront import config

# Singleton instance
_redis_client: Optional[AsyncRedis] = None


class StorageBackend(Protocol):
    """Async string store. Upstash Redis and MemoryBackend both satisfy it."""

    async def get(self, key: str) -> Optional[str]: ...

    async def set(self, key: str, value: str) -> object: ...

    async def delete(self, *keys: str) -> int: ...


def get_redis() -> AsyncRedis:
    """
    Get async Upstash Redis client (singleton).

    Uses standard Upstash env var names:
    - UPSTASH_REDIS_REST_URL
    - UPSTASH_REDIS_REST_TOKEN
    """
    global _redis_client

    if _redis_client is None:
        if not config.UPSTASH_REDIS_REST_URL or not config.UPSTASH_REDIS_REST_TOKEN:
            raise ValueError("UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN must be set")
        _redis_client = AsyncRedis(
            url=config.UPSTASH_REDIS_REST_URL,
            token=config.UPSTASH_REDIS_REST_TOKEN,
        )

    return _redis_client


class MemoryBackend:
    """
    In-process string store with the Redis subset the key-value store uses.

    snapshot() returns a copy of the raw stored strings; passing it back to
    the constructor simulates the device storage surviving an app restart.
    """

    def __init__(self, data: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(data or {})

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> bool:
        self._data[key] = value
        return True

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self._data.pop(key, None) is not None:
                removed += 1
        return removed

    def snapshot(self) -> Dict[str, str]:
        return dict(self._data)


class StorageKeys:
    """
    Record keys for the storefront core.

    Ownership:
    - UserDirectory: USERS, CURRENT_USER
    - CartStore: CART_ITEMS
    """

    USERS = "users"  # list of identities with nested saved carts
    CART_ITEMS = "cart_items"  # device-local working set of cart lines
    CURRENT_USER = "current_user"  # current session identity id

    def __init__(self, prefix: str | None = None) -> None:
        self.prefix = config.STOREFRONT_KEY_PREFIX if prefix is None else prefix

    def _key(self, name: str) -> str:
        return f"{self.prefix}:{name}" if self.prefix else name

    @property
    def users(self) -> str:
        return self._key(self.USERS)

    @property
    def cart_items(self) -> str:
        return self._key(self.CART_ITEMS)

    @property
    def current_user(self) -> str:
        return self._key(self.CURRENT_USER)
