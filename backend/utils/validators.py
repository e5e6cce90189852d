"""
Input validation utilities for the Poultry Market API.

Provides reusable validators for phone numbers and slugs. Pydantic request
models call these from field validators, so a ValueError surfaces as a 400.
"""
import re

_PHONE_STRIP = re.compile(r"[\s\-()]")
_PHONE_PATTERN = re.compile(r"^\+?\d{7,15}$")
_SLUG_INVALID = re.compile(r"[^a-z0-9]")
_SLUG_DASHES = re.compile(r"-+")


def validate_phone_number(phone: str) -> str:
    """
    Validate a mobile-money phone number.

    Spaces, dashes and parentheses are stripped; what remains must be 7-15
    digits with an optional leading '+'.

    Returns:
        The normalized phone number

    Raises:
        ValueError if the number is malformed
    """
    if not phone:
        raise ValueError("Phone number is required")

    normalized = _PHONE_STRIP.sub("", phone)
    if not _PHONE_PATTERN.match(normalized):
        raise ValueError(f"Invalid phone number: {phone}")

    return normalized


def slugify(name: str) -> str:
    """'Farm Fresh Seller' -> 'farm-fresh-seller'."""
    slug = _SLUG_INVALID.sub("-", name.lower())
    return _SLUG_DASHES.sub("-", slug).strip("-") or "store"
