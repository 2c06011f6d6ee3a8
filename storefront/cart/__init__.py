"""Cart package: models, storage, and cart store."""
from .models import CartLine, CartView
from .service import CartStore, MutationHook, clamp_quantity

__all__ = [
    "CartLine",
    "CartView",
    "CartStore",
    "MutationHook",
    "clamp_quantity",
]
