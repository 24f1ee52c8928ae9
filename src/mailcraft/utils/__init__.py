"""Utility helpers shared across mailcraft."""

from mailcraft.utils.text import nl2br, strip_tags
from mailcraft.utils.validators import (
    EmailAddress,
    ValidationError,
    is_email,
    parse_email_address,
)

__all__ = [
    "EmailAddress",
    "ValidationError",
    "is_email",
    "nl2br",
    "parse_email_address",
    "strip_tags",
]
