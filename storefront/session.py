"""
Session Reconciliation

Keeps the cart store and the user directory consistent for whoever is signed
in, across app start, signup, login, logout and every cart mutation. The
Storefront facade is the surface the auth, catalog and checkout UI call.
"""

import asyncio
from typing import Any, Dict, List, Mapping, Optional

from storefront.cart import CartLine, CartStore, CartView
from storefront.db import MemoryBackend, StorageKeys, get_redis
from storefront.errors import ERROR_EMPTY_CART, UnauthenticatedError, ValidationError
from storefront.logging import get_logger, sanitize_id_for_logging
from storefront.schemas import ProductSnapshot
from storefront.storage import KeyValueStore
from storefront.users import Identity, UserDirectory

logger = get_logger(__name__)


class SessionReconciler:
    """
    Glue between UserDirectory and CartStore.

    The saved cart of an identity is written only from on_cart_mutation.
    """

    def __init__(self, directory: UserDirectory, cart_store: CartStore) -> None:
        self.directory = directory
        self.cart_store = cart_store
        self.cart_store.on_mutation = self.on_cart_mutation

    async def on_app_start(self) -> Optional[Identity]:
        """Restore the persisted session and load its cart, or empty the working set."""
        identity = await self.directory.restore_session()
        if identity is None:
            await self.cart_store.clear_all()
            return None

        await self.cart_store.sync_with_owner(identity.id, identity.saved_cart)
        return identity

    async def on_login_or_signup_success(self, identity: Identity) -> CartView:
        """Make the identity's saved cart the active view, dropping any other owner's lines."""
        if self.directory.current_identity_id != identity.id:
            logger.warning(
                f"Session points at {sanitize_id_for_logging(self.directory.current_identity_id)}, "
                f"expected {sanitize_id_for_logging(identity.id)}"
            )
        return await self.cart_store.sync_with_owner(identity.id, identity.saved_cart)

    async def on_cart_mutation(self, owner_id: str, lines: List[CartLine]) -> None:
        """Mirror the owner's lines into their saved cart when they are the signed-in user."""
        if owner_id != self.directory.current_identity_id:
            return
        await self.directory.update_saved_cart(owner_id, lines)

    async def on_logout(self) -> None:
        """End the session and empty the device cart; the saved cart stays for next login."""
        await self.directory.logout()
        await self.cart_store.clear_all()


class Storefront:
    """
    One store, one directory, one cart store, wired together.

    Session changes (start, signup, login, logout) and cart operations share
    one lock, so the owner a cart operation reads is still the signed-in
    identity when its mutation hook runs.

    Usage:
        async with Storefront.in_memory() as shop:
            await shop.signup("a@x.com", "secret1", "Ann")
            await shop.add_to_cart({"title": "Shoe", "unit_price": 50})
    """

    def __init__(self, store: KeyValueStore, keys: Optional[StorageKeys] = None) -> None:
        self.store = store
        self.keys = keys or StorageKeys()
        self.directory = UserDirectory(store, self.keys)
        self.cart_store = CartStore(store, self.keys)
        self.reconciler = SessionReconciler(self.directory, self.cart_store)
        self._session_lock = asyncio.Lock()

    @classmethod
    def from_env(cls) -> "Storefront":
        """Storefront backed by Upstash Redis (UPSTASH_REDIS_REST_URL / _TOKEN)."""
        return cls(KeyValueStore(get_redis()))

    @classmethod
    def in_memory(cls, snapshot: Optional[Dict[str, str]] = None) -> "Storefront":
        """Storefront backed by process memory, optionally seeded from a MemoryBackend snapshot."""
        return cls(KeyValueStore(MemoryBackend(snapshot)))

    # =====================================================
    # LIFECYCLE
    # =====================================================
    async def start(self) -> Optional[Identity]:
        """Call once at boot before rendering anything cart-dependent."""
        await self.store.init()
        async with self._session_lock:
            return await self.reconciler.on_app_start()

    async def shutdown(self) -> None:
        await self.store.teardown()

    async def __aenter__(self) -> "Storefront":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.shutdown()

    # =====================================================
    # SESSION
    # =====================================================
    @property
    def current_owner_id(self) -> Optional[str]:
        return self.directory.current_identity_id

    @property
    def is_authenticated(self) -> bool:
        return self.directory.is_authenticated

    async def current_identity(self) -> Optional[Identity]:
        return await self.directory.current_identity()

    async def signup(self, email: str, password: str, display_name: str) -> Identity:
        async with self._session_lock:
            identity = await self.directory.signup(email, password, display_name)
            await self.reconciler.on_login_or_signup_success(identity)
        return identity

    async def login(self, email: str, password: str) -> Identity:
        async with self._session_lock:
            identity = await self.directory.login(email, password)
            await self.reconciler.on_login_or_signup_success(identity)
        return identity

    async def logout(self) -> None:
        async with self._session_lock:
            await self.reconciler.on_logout()

    # =====================================================
    # CART
    # =====================================================
    def _owner(self) -> str:
        owner_id = self.current_owner_id
        if not owner_id:
            raise UnauthenticatedError()
        return owner_id

    async def add_to_cart(self, product: ProductSnapshot | Mapping[str, Any]) -> CartLine:
        async with self._session_lock:
            return await self.cart_store.add_item(self._owner(), product)

    async def remove_from_cart(self, line_id: str) -> None:
        async with self._session_lock:
            await self.cart_store.remove_line(self._owner(), line_id)

    async def update_quantity(self, line_id: str, quantity: int) -> CartLine:
        async with self._session_lock:
            return await self.cart_store.update_quantity(self._owner(), line_id, quantity)

    async def clear_cart(self) -> None:
        async with self._session_lock:
            await self.cart_store.clear(self._owner())

    async def cart(self) -> CartView:
        async with self._session_lock:
            return await self.cart_store.view_for(self._owner())

    async def item_count(self) -> int:
        """Cart badge count; zero while signed out."""
        async with self._session_lock:
            if not self.is_authenticated:
                return 0
            return await self.cart_store.item_count(self._owner())

    async def is_in_cart(self, title: str, unit_price: Any) -> bool:
        async with self._session_lock:
            if not self.is_authenticated:
                return False
            return await self.cart_store.contains(self._owner(), title, unit_price)

    async def checkout(self) -> CartView:
        """Confirm a (simulated) order: returns what was ordered and empties the cart."""
        async with self._session_lock:
            owner_id = self._owner()
            view = await self.cart_store.view_for(owner_id)
            if view.is_empty:
                raise ValidationError(ERROR_EMPTY_CART)
            await self.cart_store.clear(owner_id)

        logger.info(
            f"Order placed for {sanitize_id_for_logging(owner_id)}: "
            f"{view.item_count} item(s), total {view.total_amount}"
        )
        return view
