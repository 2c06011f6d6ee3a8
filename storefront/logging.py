"""
Logging for the storefront core.

Records go to the "storefront" logger tree. A handler is attached there only
when neither it nor the root logger has one, so a hosting app that configures
logging itself keeps full control.

Usage:
    from storefront.logging import get_logger
    logger = get_logger(__name__)

    logger.info("Cart synced")
    logger.error("Failed to persist identities", exc_info=True)
"""

import logging
import sys
from functools import cache

from storefront import config

PACKAGE_LOGGER = "storefront"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FORMAT_SIMPLE = "%(levelname)s - %(name)s - %(message)s"


def _get_log_level() -> int:
    """LOG_LEVEL name, INFO when unset or unknown."""
    return getattr(logging, config.LOG_LEVEL, logging.INFO)


def _configure_package_logger() -> None:
    package = logging.getLogger(PACKAGE_LOGGER)
    package.setLevel(_get_log_level())

    if package.handlers or logging.getLogger().handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    # timestamps come from the platform log collector in production
    is_production = config.STOREFRONT_ENV == "production"
    handler.setFormatter(logging.Formatter(LOG_FORMAT_SIMPLE if is_production else LOG_FORMAT))
    package.addHandler(handler)


_configure_package_logger()


@cache
def get_logger(name: str) -> logging.Logger:
    """
    Logger for a storefront module.

    Names outside the package are nested under it so they share its level
    and handler.
    """
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)


def _escape_log_injection(value: str) -> str:
    """
    Escape characters that could be used for log injection (CWE-117).

    Emails and display names come straight from the auth form, so newlines
    and control characters are neutralized before they reach a log line.
    """
    return (
        value.replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
        .replace("\x00", "")
    )


def sanitize_id_for_logging(id_value: str | None) -> str:
    """
    Sanitize an identity or line id for logging (first 8 chars, escaped).

    Args:
        id_value: ID value to sanitize (can be None)

    Returns:
        Sanitized ID string (first 8 chars) or "N/A" if None
    """
    if not id_value:
        return "N/A"
    safe_value = _escape_log_injection(str(id_value))
    return safe_value[:8] if len(safe_value) > 8 else safe_value


def sanitize_string_for_logging(value: str | None, max_length: int = 50) -> str:
    """
    Sanitize a user-supplied string for logging (truncated, escaped).

    Args:
        value: String value to sanitize (can be None)
        max_length: Maximum length to keep (default: 50)

    Returns:
        Sanitized string or "N/A" if None
    """
    if not value:
        return "N/A"
    safe_value = _escape_log_injection(str(value))
    if len(safe_value) <= max_length:
        return safe_value
    return safe_value[:max_length] + "..."


__all__ = [
    "PACKAGE_LOGGER",
    "LOG_FORMAT",
    "LOG_FORMAT_SIMPLE",
    "get_logger",
    "sanitize_id_for_logging",
    "sanitize_string_for_logging",
]
