"""
Storefront Core

Cart and session consistency engine for the client-side shop:
- storage: persistent key-value store (Upstash Redis or memory)
- users: identities, credentials, current session pointer
- cart: device-local cart lines tagged by owner
- session: reconciliation between the two plus the Storefront facade

Note: Imports are lazy so importing a submodule does not pull in the rest.
"""

__all__ = [
    "Storefront",
    "SessionReconciler",
    "KeyValueStore",
    "get_redis",
]


def __getattr__(name):
    """Lazy attribute access."""
    if name == "Storefront":
        from storefront.session import Storefront
        return Storefront
    elif name == "SessionReconciler":
        from storefront.session import SessionReconciler
        return SessionReconciler
    elif name == "KeyValueStore":
        from storefront.storage import KeyValueStore
        return KeyValueStore
    elif name == "get_redis":
        from storefront.db import get_redis
        return get_redis
    raise AttributeError(f"module 'storefront' has no attribute '{name}'")
