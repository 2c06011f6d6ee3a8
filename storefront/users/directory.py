"""User directory: registered identities and the current session pointer."""
import asyncio
import uuid
from typing import List, Optional

from storefront.cart.models import CartLine
from storefront.db import StorageKeys
from storefront.errors import (
    ERROR_IDENTITY_NOT_FOUND,
    DuplicateEmailError,
    InvalidCredentialsError,
    NotFoundError,
)
from storefront.logging import get_logger, sanitize_id_for_logging, sanitize_string_for_logging
from storefront.schemas import LoginRequest, SignupRequest, normalize_email, parse_input
from storefront.storage import KeyValueStore
from .models import Identity

logger = get_logger(__name__)


class UserDirectory:
    """
    Owns the users and current_user records.

    Authoritative for who is signed in and which saved cart belongs to whom.
    Writes to the identity set go through a single lock.
    """

    def __init__(self, store: KeyValueStore, keys: Optional[StorageKeys] = None) -> None:
        self.store = store
        self.keys = keys or StorageKeys()
        self._current_identity_id: Optional[str] = None
        self._lock = asyncio.Lock()

    # =====================================================
    # STORAGE
    # =====================================================
    async def _load(self) -> List[Identity]:
        records = await self.store.get_list(self.keys.users)
        try:
            return [Identity.from_dict(record) for record in records]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Corrupted identities in {self.keys.users}: {e}, resetting record")
            await self.store.remove(self.keys.users)
            return []

    async def _save(self, identities: List[Identity]) -> None:
        await self.store.set(self.keys.users, [identity.to_dict() for identity in identities])

    async def _set_current(self, identity: Identity) -> None:
        await self.store.set(self.keys.current_user, identity.id)
        self._current_identity_id = identity.id

    # =====================================================
    # SESSION
    # =====================================================
    @property
    def current_identity_id(self) -> Optional[str]:
        return self._current_identity_id

    @property
    def is_authenticated(self) -> bool:
        return self._current_identity_id is not None

    async def current_identity(self) -> Optional[Identity]:
        if self._current_identity_id is None:
            return None
        return await self.get(self._current_identity_id)

    async def restore_session(self) -> Optional[Identity]:
        """Resume the persisted session; a pointer to an unknown identity is cleared."""
        identity_id = await self.store.get_str(self.keys.current_user)
        if not identity_id:
            self._current_identity_id = None
            return None

        identity = await self.get(identity_id)
        if identity is None:
            logger.warning(f"Stale session pointer {sanitize_id_for_logging(identity_id)}, clearing")
            await self.store.remove(self.keys.current_user)
            self._current_identity_id = None
            return None

        self._current_identity_id = identity.id
        logger.info(f"Restored session for {sanitize_id_for_logging(identity.id)}")
        return identity

    # =====================================================
    # QUERY
    # =====================================================
    async def get(self, identity_id: str) -> Optional[Identity]:
        identities = await self._load()
        return next((i for i in identities if i.id == identity_id), None)

    async def find_by_email(self, email: str) -> Optional[Identity]:
        email = normalize_email(email)
        identities = await self._load()
        return next((i for i in identities if normalize_email(i.email) == email), None)

    # =====================================================
    # COMMANDS
    # =====================================================
    async def signup(self, email: str, password: str, display_name: str) -> Identity:
        """
        Register a new identity and make it the current session.

        Raises:
            ValidationError: empty field, malformed email or short password
            DuplicateEmailError: email already registered (case-insensitive)
        """
        request = parse_input(
            SignupRequest,
            {"email": email, "password": password, "display_name": display_name},
        )

        async with self._lock:
            identities = await self._load()
            if any(normalize_email(i.email) == request.email for i in identities):
                logger.info(f"Signup rejected, email taken: {sanitize_string_for_logging(request.email)}")
                raise DuplicateEmailError()

            identity = Identity(
                id=uuid.uuid4().hex,
                email=request.email,
                password_secret=request.password,
                display_name=request.display_name,
                saved_cart=[],
            )
            await self._save(identities + [identity])
            await self._set_current(identity)

        logger.info(f"Signed up {sanitize_string_for_logging(identity.email)} as {sanitize_id_for_logging(identity.id)}")
        return identity

    async def login(self, email: str, password: str) -> Identity:
        """
        Sign in by email and exact password match.

        Raises:
            InvalidCredentialsError: for any mismatch, without saying which field
        """
        request = parse_input(LoginRequest, {"email": email or "", "password": password or ""})
        if not request.email or not request.password:
            raise InvalidCredentialsError()

        identities = await self._load()
        identity = next(
            (
                i for i in identities
                if normalize_email(i.email) == request.email and i.password_secret == request.password
            ),
            None,
        )
        if identity is None:
            logger.info(f"Login failed for {sanitize_string_for_logging(request.email)}")
            raise InvalidCredentialsError()

        await self._set_current(identity)
        logger.info(f"Logged in {sanitize_id_for_logging(identity.id)}")
        return identity

    async def logout(self) -> None:
        """Clear the session pointer. Saved carts are left as they are."""
        await self.store.remove(self.keys.current_user)
        if self._current_identity_id:
            logger.info(f"Logged out {sanitize_id_for_logging(self._current_identity_id)}")
        self._current_identity_id = None

    async def update_saved_cart(self, identity_id: str, cart: List[CartLine]) -> Identity:
        """Replace the identity's saved cart wholesale and persist the identity set."""
        async with self._lock:
            identities = await self._load()
            identity = next((i for i in identities if i.id == identity_id), None)
            if identity is None:
                raise NotFoundError(ERROR_IDENTITY_NOT_FOUND, details={"identity_id": identity_id})

            identity.saved_cart = list(cart)
            await self._save(identities)

        return identity
