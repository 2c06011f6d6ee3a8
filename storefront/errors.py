"""
Storefront Errors

Message constants shared by the directory, cart store and facade, plus the
typed failures every operation reports to its caller.
"""

from typing import Any

# Validation errors
ERROR_FIELDS_REQUIRED = "All fields are required"
ERROR_INVALID_EMAIL = "Email must look like name@domain"
ERROR_PASSWORD_TOO_SHORT = "Password must be at least {min_length} characters"
ERROR_INVALID_PRODUCT = "Product title is required and price must be non-negative"
ERROR_EMPTY_CART = "Cart is empty"
ERROR_INVALID_QUANTITY = "Quantity must be a whole number"

# Auth errors
ERROR_DUPLICATE_EMAIL = "Email already exists"
ERROR_INVALID_CREDENTIALS = "Invalid email or password"
ERROR_UNAUTHENTICATED = "Please login to continue"

# Lookup errors
ERROR_IDENTITY_NOT_FOUND = "User not found"
ERROR_LINE_NOT_FOUND = "Cart item not found"

# Storage errors
ERROR_STORAGE_CORRUPT = "Stored data is corrupted"


class StorefrontError(Exception):
    """Base class for failures surfaced by the storefront core."""

    code = "STOREFRONT_ERROR"

    def __init__(self, message: str, code: str | None = None, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.details = details


class ValidationError(StorefrontError):
    """Malformed signup, product or checkout input."""

    code = "VALIDATION_ERROR"


class DuplicateEmailError(StorefrontError):
    """Signup with an email that is already registered."""

    code = "DUPLICATE_EMAIL"

    def __init__(self, message: str = ERROR_DUPLICATE_EMAIL) -> None:
        super().__init__(message)


class InvalidCredentialsError(StorefrontError):
    """Login mismatch. Never says whether the email or the password was wrong."""

    code = "INVALID_CREDENTIALS"

    def __init__(self, message: str = ERROR_INVALID_CREDENTIALS) -> None:
        super().__init__(message)


class UnauthenticatedError(StorefrontError):
    """Cart operation without a signed-in owner."""

    code = "UNAUTHENTICATED"

    def __init__(self, message: str = ERROR_UNAUTHENTICATED) -> None:
        super().__init__(message)


class NotFoundError(StorefrontError):
    """Referenced identity or cart line does not exist for the given owner."""

    code = "NOT_FOUND"


class StorageCorruptError(StorefrontError):
    """Malformed persisted JSON. Logged by the key-value store, never raised to callers."""

    code = "STORAGE_CORRUPT"

    def __init__(self, key: str, raw_error: Exception | None = None) -> None:
        super().__init__(f"{ERROR_STORAGE_CORRUPT}: {key}", details=raw_error)
        self.key = key
