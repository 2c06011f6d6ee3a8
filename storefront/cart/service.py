"""Cart store: the device-local working set of cart lines."""
import asyncio
import uuid
from dataclasses import replace
from typing import Any, Awaitable, Callable, List, Mapping, Optional

from storefront import config
from storefront.errors import (
    ERROR_INVALID_QUANTITY,
    ERROR_LINE_NOT_FOUND,
    NotFoundError,
    UnauthenticatedError,
    ValidationError,
)
from storefront.logging import get_logger, sanitize_id_for_logging, sanitize_string_for_logging
from storefront.money import to_decimal
from storefront.schemas import ProductSnapshot, parse_input
from .models import CartLine, CartView
from .storage import KeyValueStore, StorageKeys

logger = get_logger(__name__)

# Called with (owner_id, lines_for_owner) after every owner-scoped mutation
MutationHook = Callable[[str, List[CartLine]], Awaitable[None]]


def clamp_quantity(quantity: int) -> int:
    """Clamp into the allowed per-line range."""
    return max(config.MIN_QUANTITY, min(config.MAX_QUANTITY, quantity))


class CartStore:
    """
    Owns the cart_items record: every line on this device, tagged by owner.

    Features:
    - Lines merge on (title, unit_price) within one owner, never across owners
    - Quantities clamped to 1..10
    - Mutation hook runs inside the write critical section; if it fails the
      record is rolled back and the error propagates
    """

    def __init__(
        self,
        store: KeyValueStore,
        keys: Optional[StorageKeys] = None,
        on_mutation: Optional[MutationHook] = None,
    ):
        self.store = store
        self.keys = keys or StorageKeys()
        self.on_mutation = on_mutation
        # single writer over the whole record, all owners share it
        self._lock = asyncio.Lock()

    # =====================================================
    # STORAGE
    # =====================================================
    async def _load(self) -> List[CartLine]:
        records = await self.store.get_list(self.keys.cart_items)
        try:
            return [CartLine.from_dict(record) for record in records]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Corrupted cart lines in {self.keys.cart_items}: {e}, resetting record")
            await self.store.remove(self.keys.cart_items)
            return []

    async def _save(self, lines: List[CartLine]) -> None:
        await self.store.set(self.keys.cart_items, [line.to_dict() for line in lines])

    async def _commit(self, owner_id: str, before: List[CartLine], after: List[CartLine]) -> None:
        await self._save(after)
        if self.on_mutation is None:
            return
        try:
            await self.on_mutation(owner_id, _owned(after, owner_id))
        except Exception as e:
            logger.error(
                f"Cart mutation hook failed for {sanitize_id_for_logging(owner_id)}: {e}, rolling back"
            )
            await self._save(before)
            raise

    @staticmethod
    def _require_owner(owner_id: Optional[str]) -> str:
        if not owner_id:
            raise UnauthenticatedError()
        return owner_id

    # =====================================================
    # QUERY
    # =====================================================
    async def view_for(self, owner_id: Optional[str]) -> CartView:
        owner_id = self._require_owner(owner_id)
        lines = await self._load()
        return CartView(owner_id=owner_id, lines=_owned(lines, owner_id))

    async def item_count(self, owner_id: Optional[str]) -> int:
        return (await self.view_for(owner_id)).item_count

    async def contains(self, owner_id: Optional[str], title: str, unit_price: Any) -> bool:
        """True when the owner already has this product (title + price) in the cart."""
        view = await self.view_for(owner_id)
        price = to_decimal(unit_price)
        return any(line.is_same_product(title, price) for line in view.lines)

    async def lines(self) -> List[CartLine]:
        """Every line on the device regardless of owner."""
        return await self._load()

    # =====================================================
    # COMMANDS
    # =====================================================
    async def add_item(
        self,
        owner_id: Optional[str],
        product: ProductSnapshot | Mapping[str, Any],
    ) -> CartLine:
        """Add one unit; merges into an existing line with the same title and price."""
        owner_id = self._require_owner(owner_id)
        snapshot = parse_input(ProductSnapshot, product)

        async with self._lock:
            before = await self._load()
            after = list(before)

            index = next(
                (
                    i for i, line in enumerate(after)
                    if line.owner_id == owner_id and line.is_same_product(snapshot.title, snapshot.unit_price)
                ),
                None,
            )

            if index is not None:
                existing = after[index]
                if existing.quantity >= config.MAX_QUANTITY:
                    logger.info(
                        f"Line {sanitize_id_for_logging(existing.line_id)} already at "
                        f"{config.MAX_QUANTITY}, nothing to add"
                    )
                    return existing
                line = replace(existing, quantity=existing.quantity + 1)
                after[index] = line
            else:
                line = CartLine(
                    line_id=uuid.uuid4().hex,
                    owner_id=owner_id,
                    title=snapshot.title,
                    image_ref=snapshot.image_ref,
                    category=snapshot.category,
                    unit_price=snapshot.unit_price,
                    quantity=1,
                )
                after.append(line)

            await self._commit(owner_id, before, after)

        logger.info(
            f"Added '{sanitize_string_for_logging(line.title)}' for {sanitize_id_for_logging(owner_id)}, "
            f"quantity now {line.quantity}"
        )
        return line

    async def remove_line(self, owner_id: Optional[str], line_id: str) -> None:
        """Remove the line if the owner has it; absent lines are a no-op."""
        owner_id = self._require_owner(owner_id)

        async with self._lock:
            before = await self._load()
            after = [
                line for line in before
                if not (line.owner_id == owner_id and line.line_id == line_id)
            ]
            if len(after) == len(before):
                return
            await self._commit(owner_id, before, after)

        logger.info(f"Removed line {sanitize_id_for_logging(line_id)} for {sanitize_id_for_logging(owner_id)}")

    async def update_quantity(self, owner_id: Optional[str], line_id: str, quantity: int) -> CartLine:
        """
        Set the quantity of one of the owner's lines, clamped to 1..10.

        Accepts ints and integral floats (3.0). Strings, bools and fractional
        or non-finite floats raise ValidationError.
        """
        owner_id = self._require_owner(owner_id)
        requested = _whole_number(quantity)
        new_quantity = clamp_quantity(requested)

        async with self._lock:
            before = await self._load()
            index = next(
                (i for i, line in enumerate(before) if line.owner_id == owner_id and line.line_id == line_id),
                None,
            )
            if index is None:
                raise NotFoundError(ERROR_LINE_NOT_FOUND, details={"line_id": line_id})

            line = before[index]
            if line.quantity == new_quantity:
                return line

            line = replace(line, quantity=new_quantity)
            after = list(before)
            after[index] = line
            await self._commit(owner_id, before, after)

        if new_quantity != requested:
            logger.info(f"Quantity {requested} clamped to {new_quantity}")
        return line

    async def clear(self, owner_id: Optional[str]) -> None:
        """Remove every line of this owner; other owners are untouched."""
        owner_id = self._require_owner(owner_id)

        async with self._lock:
            before = await self._load()
            after = [line for line in before if line.owner_id != owner_id]
            if len(after) == len(before):
                return
            await self._commit(owner_id, before, after)

        logger.info(f"Cleared cart for {sanitize_id_for_logging(owner_id)}")

    # =====================================================
    # RECONCILIATION (no mutation hook)
    # =====================================================
    async def sync_with_owner(self, owner_id: Optional[str], saved_cart: List[CartLine]) -> CartView:
        """
        Make the working set exactly this owner's cart.

        The persisted lines for the owner are kept when they already match the
        saved snapshot; when empty or stale they are replaced by it. Lines of
        any other owner are discarded from the device.
        """
        owner_id = self._require_owner(owner_id)
        snapshot = [replace(line, owner_id=owner_id) for line in saved_cart]

        async with self._lock:
            current = _owned(await self._load(), owner_id)
            if current and current != snapshot:
                logger.info(f"Working cart for {sanitize_id_for_logging(owner_id)} is stale, reloading snapshot")
            lines = snapshot
            await self._save(lines)

        logger.info(f"Synced cart for {sanitize_id_for_logging(owner_id)}: {len(lines)} line(s)")
        return CartView(owner_id=owner_id, lines=list(lines))

    async def clear_all(self) -> None:
        """Empty the device working set. Saved carts are not touched."""
        async with self._lock:
            await self.store.remove(self.keys.cart_items)
        logger.info("Cleared cart working set")


def _whole_number(quantity: Any) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, (int, float)):
        raise ValidationError(ERROR_INVALID_QUANTITY, details={"quantity": repr(quantity)})
    if isinstance(quantity, float) and not quantity.is_integer():
        raise ValidationError(ERROR_INVALID_QUANTITY, details={"quantity": repr(quantity)})
    return int(quantity)


def _owned(lines: List[CartLine], owner_id: str) -> List[CartLine]:
    return [line for line in lines if line.owner_id == owner_id]


__all__ = ["CartStore", "MutationHook", "clamp_quantity"]
