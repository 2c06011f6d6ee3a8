"""Key-value access for the cart store."""
from storefront.db import StorageKeys
from storefront.storage import KeyValueStore

__all__ = ["KeyValueStore", "StorageKeys"]
