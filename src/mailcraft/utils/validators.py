"""Email address validation helpers."""

from __future__ import annotations

import re
from dataclasses import dataclass
from email.utils import parseaddr

from mailcraft.config.exceptions import MailcraftError

MAX_LOCAL_PART_LENGTH = 64
MAX_DOMAIN_LENGTH = 255

_LOCAL_PART_PATTERN = re.compile(r"^[A-Za-z0-9!#$%&'*+/=?^_`{|}~.-]+$")
_DOMAIN_LABEL_PATTERN = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?$")


class ValidationError(MailcraftError, ValueError):
    """Raised when an email address cannot be parsed or is malformed."""


@dataclass(frozen=True, slots=True)
class EmailAddress:
    """Parsed email address with an optional display name.

    Attributes:
        name: Display name, possibly empty.
        address: Bare ``local@domain`` mailbox.
    """

    name: str
    address: str


def _check_mailbox(address: str) -> None:
    if address.count("@") != 1:
        raise ValidationError(f"Invalid email address: {address!r}")
    local, domain = address.split("@")
    if not local or len(local) > MAX_LOCAL_PART_LENGTH:
        raise ValidationError(f"Invalid local part in {address!r}")
    if local.startswith(".") or local.endswith(".") or ".." in local or not _LOCAL_PART_PATTERN.match(local):
        raise ValidationError(f"Invalid local part in {address!r}")
    if not domain or len(domain) > MAX_DOMAIN_LENGTH:
        raise ValidationError(f"Invalid domain in {address!r}")
    labels = domain.split(".")
    if len(labels) < 2 or any(not _DOMAIN_LABEL_PATTERN.match(label) for label in labels):
        raise ValidationError(f"Invalid domain in {address!r}")
    if len(labels[-1]) < 2:
        raise ValidationError(f"Top-level domain too short in {address!r}")


def parse_email_address(value: str) -> EmailAddress:
    """Parse ``value`` into an :class:`EmailAddress`.

    Args:
        value: ``user@example.com`` or ``Display Name <user@example.com>``.

    Returns:
        The parsed address.

    Raises:
        ValidationError: If the value is empty or malformed.

    Examples:
        >>> parse_email_address("Grace Hopper <grace@example.org>").address
        'grace@example.org'
    """
    if not value or not value.strip():
        raise ValidationError("Email address cannot be empty")
    name, address = parseaddr(value)
    if not address or " " in address:
        raise ValidationError(f"Invalid email address: {value!r}")
    if "<" not in value and value.strip() != address:
        raise ValidationError(f"Invalid email address: {value!r}")
    _check_mailbox(address)
    return EmailAddress(name=name, address=address)


def is_email(value: object) -> bool:
    """Return True when *value* is a bare, well-formed email address."""
    if not isinstance(value, str):
        return False
    try:
        parsed = parse_email_address(value)
    except ValidationError:
        return False
    return parsed.address == value.strip()


__all__ = [
    "EmailAddress",
    "ValidationError",
    "is_email",
    "parse_email_address",
]
