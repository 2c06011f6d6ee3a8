"""Users package: identity model and user directory."""
from .models import Identity
from .directory import UserDirectory

__all__ = [
    "Identity",
    "UserDirectory",
]
