"""Recipient resolution for send operations.

A send accepts either a single address or a collection whose entries are
addresses or mappings carrying the address under ``mail`` or ``email``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from mailcraft.mail.exceptions import InvalidRecipientError
from mailcraft.utils.validators import is_email

log = logging.getLogger(__name__)

#: Mapping keys searched, in order, for an address.
RECIPIENT_KEYS = ("mail", "email")

AddressValidator = Callable[[str], bool]
Recipients = str | Mapping[str, Any] | Iterable[str | Mapping[str, Any]]


@dataclass(slots=True)
class ResolvedRecipients:
    """Outcome of recipient resolution.

    Attributes:
        addresses: Unique valid addresses in first-seen order.
        rejected: Textual form of entries that did not yield an address.
    """

    addresses: list[str] = field(default_factory=list)
    rejected: list[str] = field(default_factory=list)


def _extract_address(entry: object, validator: AddressValidator) -> str | None:
    if isinstance(entry, str):
        return entry if validator(entry) else None
    if isinstance(entry, Mapping):
        for key in RECIPIENT_KEYS:
            value = entry.get(key)
            if isinstance(value, str) and value and validator(value):
                return value
    return None


def resolve_recipients(recipients: Recipients, validator: AddressValidator = is_email) -> ResolvedRecipients:
    """Resolve *recipients* into unique, validated addresses.

    Args:
        recipients: One address, one mapping, or an iterable of both.
        validator: Predicate accepting well-formed addresses.

    Returns:
        Valid addresses plus the rejected entries.

    Raises:
        InvalidRecipientError: If no usable address remains, or a single
            address is empty or invalid.

    Examples:
        >>> resolve_recipients(["a@example.com", {"mail": "b@example.com"}, "a@example.com"]).addresses
        ['a@example.com', 'b@example.com']
    """
    if not recipients:
        raise InvalidRecipientError("No recipient address supplied")

    if isinstance(recipients, str):
        if not validator(recipients):
            raise InvalidRecipientError(f"Invalid recipient address: {recipients!r}")
        return ResolvedRecipients(addresses=[recipients])

    entries: Iterable[Any] = [recipients] if isinstance(recipients, Mapping) else recipients
    resolved = ResolvedRecipients()
    seen: set[str] = set()
    for entry in entries:
        address = _extract_address(entry, validator)
        if address is None:
            log.debug("Skipping unusable recipient entry %r", entry)
            resolved.rejected.append(str(entry))
            continue
        if address in seen:
            continue
        seen.add(address)
        resolved.addresses.append(address)

    if not resolved.addresses:
        raise InvalidRecipientError("No usable recipient address supplied")
    return resolved


__all__ = [
    "RECIPIENT_KEYS",
    "AddressValidator",
    "ResolvedRecipients",
    "resolve_recipients",
]
