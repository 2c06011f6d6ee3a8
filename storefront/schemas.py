"""
Storefront Input Models

Pydantic models for everything the auth and catalog UI hand to the core.
Validation failures are translated into storefront.errors.ValidationError.
"""
from decimal import Decimal
from typing import Any, Mapping, Type, TypeVar

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic import ValidationError as PydanticValidationError

from storefront import config
from storefront.errors import (
    ERROR_FIELDS_REQUIRED,
    ERROR_INVALID_EMAIL,
    ERROR_INVALID_PRODUCT,
    ERROR_PASSWORD_TOO_SHORT,
    ValidationError,
)
from storefront.money import to_decimal

ModelT = TypeVar("ModelT", bound=BaseModel)


def normalize_email(email: str | None) -> str:
    """Trim and lowercase; the directory's uniqueness key."""
    return str(email or "").strip().lower()


# ==================== AUTH MODELS ====================

class SignupRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    email: str
    password: str
    display_name: str

    @field_validator("email", "password", "display_name", mode="before")
    @classmethod
    def require_value(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            raise ValueError(ERROR_FIELDS_REQUIRED)
        return v

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        email = normalize_email(v)
        local, sep, domain = email.rpartition("@")
        if not sep or not local or not domain:
            raise ValueError(ERROR_INVALID_EMAIL)
        return email

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        if len(v) < config.MIN_PASSWORD_LENGTH:
            raise ValueError(ERROR_PASSWORD_TOO_SHORT.format(min_length=config.MIN_PASSWORD_LENGTH))
        return v

    @field_validator("display_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()


class LoginRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    email: str = ""
    password: str = ""

    @field_validator("email", mode="before")
    @classmethod
    def normalize(cls, v: Any) -> str:
        return normalize_email(v)


# ==================== CATALOG MODELS ====================

class ProductSnapshot(BaseModel):
    """Catalog item data copied into a cart line at add time."""
    model_config = ConfigDict(extra="ignore")

    title: str
    image_ref: str = ""
    category: str = ""
    unit_price: Decimal

    @field_validator("title")
    @classmethod
    def require_title(cls, v: str) -> str:
        if not v.strip():
            raise ValueError(ERROR_INVALID_PRODUCT)
        return v

    @field_validator("unit_price", mode="before")
    @classmethod
    def convert_to_decimal(cls, v: Any) -> Any:
        if v is None or isinstance(v, bool):
            raise ValueError(ERROR_INVALID_PRODUCT)
        # floats go through str so 19.99 stays 19.99; strings are parsed by pydantic
        if isinstance(v, (int, float)):
            return to_decimal(v)
        return v

    @field_validator("unit_price")
    @classmethod
    def non_negative(cls, v: Decimal) -> Decimal:
        if not v.is_finite() or v < 0:
            raise ValueError(ERROR_INVALID_PRODUCT)
        return v


def _first_message(exc: PydanticValidationError) -> str:
    error = exc.errors()[0]
    ctx_error = (error.get("ctx") or {}).get("error")
    if ctx_error:
        return str(ctx_error)
    if error.get("type") == "missing":
        return ERROR_FIELDS_REQUIRED
    return error.get("msg", ERROR_FIELDS_REQUIRED)


def parse_input(model: Type[ModelT], data: ModelT | Mapping[str, Any]) -> ModelT:
    """Validate UI input into `model`, raising the storefront ValidationError."""
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(dict(data))
    except PydanticValidationError as e:
        raise ValidationError(_first_message(e), details=e.errors()) from e
