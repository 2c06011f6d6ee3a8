"""Identity model: a registered user and the last-known cart they own."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List

from storefront.cart.models import CartLine


@dataclass
class Identity:
    """Registered user record."""
    id: str
    email: str
    password_secret: str  # stored and compared verbatim, see DESIGN.md
    display_name: str
    saved_cart: List[CartLine] = field(default_factory=list)
    created_at: str = ""

    def __post_init__(self):
        if not self.created_at:
            self.created_at = datetime.now(timezone.utc).isoformat()

    def to_dict(self) -> dict:
        """Convert to dictionary for storage."""
        return {
            "id": self.id,
            "email": self.email,
            "password_secret": self.password_secret,
            "display_name": self.display_name,
            "saved_cart": [line.to_dict() for line in self.saved_cart],
            "created_at": self.created_at,
        }

    def to_public_dict(self) -> dict:
        """Same as to_dict without the password, for handing to the UI."""
        data = self.to_dict()
        data.pop("password_secret")
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Identity":
        """Create from dictionary."""
        return cls(
            id=data["id"],
            email=data["email"],
            password_secret=data["password_secret"],
            display_name=data["display_name"],
            saved_cart=[CartLine.from_dict(line) for line in data.get("saved_cart", [])],
            created_at=data.get("created_at", ""),
        )
