"""Delivery transport interface.

A transport receives one already-serialized message per recipient and
reports whether it was accepted. Protocol errors may also be raised as
:class:`~mailcraft.mail.exceptions.MailTransportError`; the dispatcher
records both forms as a failed delivery.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass

log = logging.getLogger(__name__)


class MailTransport(ABC):
    """Abstract delivery backend."""

    @abstractmethod
    def dispatch(self, recipient: str, subject: str, body: bytes, header_block: str) -> bool:
        """Deliver one message to one recipient.

        Args:
            recipient: Bare recipient address.
            subject: Escaped subject line.
            body: Wire-format body.
            header_block: Rendered envelope headers, ending with a blank line.

        Returns:
            True when the message was accepted.
        """


@dataclass(frozen=True, slots=True)
class DispatchedMail:
    """A message recorded by :class:`MemoryTransport`."""

    recipient: str
    subject: str
    body: bytes
    header_block: str


class MemoryTransport(MailTransport):
    """Transport that keeps messages in memory.

    Useful for dry runs and tests.

    Args:
        failing: Recipients for which ``dispatch`` reports failure.

    Examples:
        >>> transport = MemoryTransport()
        >>> transport.dispatch("user@example.com", "Hi", b"body", "\\r\\n")
        True
        >>> len(transport.sent)
        1
    """

    def __init__(self, *, failing: Iterable[str] = ()) -> None:
        self.sent: list[DispatchedMail] = []
        self.failing = set(failing)

    def dispatch(self, recipient: str, subject: str, body: bytes, header_block: str) -> bool:
        """Record the message unless *recipient* is configured to fail."""
        if recipient in self.failing:
            log.debug("MemoryTransport rejecting %s", recipient)
            return False
        self.sent.append(DispatchedMail(recipient, subject, body, header_block))
        return True


__all__ = ["DispatchedMail", "MailTransport", "MemoryTransport"]
