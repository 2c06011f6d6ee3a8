"""Persistent key-value store over a Redis-style string backend."""
import json
from typing import Any, Optional

from storefront.db import StorageBackend
from storefront.errors import StorageCorruptError
from storefront.logging import get_logger

logger = get_logger(__name__)


class KeyValueStore:
    """
    Maps string keys to JSON-serializable values.

    Malformed stored JSON is treated as absent: the error is logged, the
    record is reset and the caller gets the default. Nothing here raises
    StorageCorruptError to callers.
    """

    def __init__(self, backend: StorageBackend) -> None:
        self.backend = backend

    async def init(self) -> None:
        """Check the backend is reachable when it supports ping."""
        ping = getattr(self.backend, "ping", None)
        if ping is not None:
            await ping()
        logger.info(f"Key-value store ready ({type(self.backend).__name__})")

    async def teardown(self) -> None:
        """Release the backend client when it holds a connection."""
        close = getattr(self.backend, "close", None)
        if close is not None:
            await close()
        logger.info("Key-value store closed")

    async def get(self, key: str, default: Any = None) -> Any:
        raw = await self.backend.get(key)
        if raw is None:
            return default

        try:
            return json.loads(raw)
        except (json.JSONDecodeError, TypeError) as e:
            error = StorageCorruptError(key, e)
            logger.warning(f"{error.message} ({e}), resetting record")
            await self.backend.delete(key)
            return default

    async def set(self, key: str, value: Any) -> None:
        await self.backend.set(key, json.dumps(value))

    async def remove(self, key: str) -> None:
        await self.backend.delete(key)

    async def get_list(self, key: str) -> list:
        """Read a record that must hold a JSON array; anything else is corrupt."""
        value = await self.get(key, [])
        if isinstance(value, list):
            return value

        logger.warning(f"{StorageCorruptError(key).message} (expected list), resetting record")
        await self.backend.delete(key)
        return []

    async def get_str(self, key: str) -> Optional[str]:
        value = await self.get(key)
        if value is None or isinstance(value, str):
            return value

        logger.warning(f"{StorageCorruptError(key).message} (expected string), resetting record")
        await self.backend.delete(key)
        return None
