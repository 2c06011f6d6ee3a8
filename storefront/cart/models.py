"""Cart models with Decimal-based pricing."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import List

from storefront.money import to_decimal, round_money, multiply


@dataclass
class CartLine:
    """One product-quantity entry, owned by exactly one identity."""
    line_id: str
    owner_id: str
    title: str
    unit_price: Decimal
    quantity: int = 1
    image_ref: str = ""
    category: str = ""
    added_at: str = ""

    def __post_init__(self):
        if not self.added_at:
            self.added_at = datetime.now(timezone.utc).isoformat()
        self.unit_price = to_decimal(self.unit_price)
        self.quantity = int(self.quantity)

    @property
    def line_total(self) -> Decimal:
        """Price for all units of this line."""
        return round_money(multiply(self.unit_price, self.quantity))

    def is_same_product(self, title: str, unit_price: Decimal) -> bool:
        """Lines merge on equal title and unit price."""
        return self.title == title and self.unit_price == to_decimal(unit_price)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "line_id": self.line_id,
            "owner_id": self.owner_id,
            "title": self.title,
            "image_ref": self.image_ref,
            "category": self.category,
            "unit_price": str(self.unit_price),
            "quantity": self.quantity,
            "added_at": self.added_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CartLine":
        """Create from dictionary."""
        return cls(
            line_id=data["line_id"],
            owner_id=data["owner_id"],
            title=data["title"],
            image_ref=data.get("image_ref", ""),
            category=data.get("category", ""),
            unit_price=to_decimal(data["unit_price"]),
            quantity=int(data["quantity"]),
            added_at=data.get("added_at", ""),
        )


@dataclass
class CartView:
    """Read-only projection of one owner's active lines."""
    owner_id: str | None
    lines: List[CartLine] = field(default_factory=list)

    @property
    def total_amount(self) -> Decimal:
        """Sum of unit price times quantity over the view."""
        return round_money(sum((line.line_total for line in self.lines), Decimal("0")))

    @property
    def item_count(self) -> int:
        """Total units, shown on the cart badge."""
        return sum(line.quantity for line in self.lines)

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def to_dict(self) -> dict:
        return {
            "owner_id": self.owner_id,
            "lines": [line.to_dict() for line in self.lines],
            "total_amount": str(self.total_amount),
            "item_count": self.item_count,
        }
