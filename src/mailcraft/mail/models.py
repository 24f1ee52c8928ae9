"""Data models for the mailcraft.mail module.

- SenderSettings: Frozen sender configuration injected into messages
- MimeStructure: Enum for the shape of the rendered MIME tree
- RenderedMessage: Wire-ready subject, header block and body
- DeliveryPolicy: Enum for multi-recipient failure handling
- DeliveryStatus: Enum for a single recipient outcome
- DeliveryOutcome: Result of one dispatch attempt
- DeliveryReport: Aggregate result of a send operation
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from mailcraft.mail.exceptions import DeliveryFailedError, MailConfigurationError


@dataclass(frozen=True, slots=True)
class SenderSettings:
    """Default sender applied to every new message.

    Attributes:
        address: Sender mailbox. ``None`` leaves the sender headers empty.
        name: Display name shown in ``From``.
        allow_reply: Also use the address for ``Reply-To``/``Return-Path``.
            Disable for no-reply senders.

    Examples:
        >>> settings = SenderSettings(address="robot@example.com", name="Robot")
        >>> settings.allow_reply
        True
    """

    address: str | None = None
    name: str | None = None
    allow_reply: bool = True

    def __post_init__(self) -> None:
        """Reject header injection through the configured values."""
        for value in (self.address, self.name):
            if value is not None and ("\r" in value or "\n" in value):
                raise MailConfigurationError("Sender settings must not contain line breaks")

    @classmethod
    def from_config(cls, config: Mapping[str, Any] | None) -> SenderSettings:
        """Build settings from the ``mail.sender`` section of a configuration.

        Args:
            config: Full configuration mapping (``Box`` or ``dict``).

        Returns:
            Sender settings; empty when the section is missing.
        """
        mail_section = (config or {}).get("mail") or {}
        section = mail_section.get("sender") or {}
        return cls(
            address=section.get("address") or None,
            name=section.get("name") or None,
            allow_reply=bool(section.get("allow_reply", True)),
        )


class MimeStructure(str, Enum):
    """Shape of a built message.

    Attributes:
        SINGLE: One text or HTML body, no boundary.
        ALTERNATIVE: Flat ``multipart/alternative`` of body variants.
        MIXED: ``multipart/mixed`` with a nested alternative block and attachments.
    """

    SINGLE = "single"
    ALTERNATIVE = "alternative"
    MIXED = "mixed"


@dataclass(frozen=True, slots=True)
class RenderedMessage:
    """A message serialized for delivery.

    Attributes:
        subject: Escaped subject line.
        body: Wire-format body bytes.
        header_block: CRLF-terminated header lines plus the blank separator line.
        headers: Envelope headers that were rendered, in order.
    """

    subject: str
    body: bytes
    header_block: str
    headers: dict[str, str] = field(default_factory=dict)


class DeliveryPolicy(str, Enum):
    """How a multi-recipient send reacts to a failed dispatch.

    Attributes:
        ABORT: Stop at the first failure and raise ``DeliveryFailedError``.
        CONTINUE: Attempt every recipient and report failures in the result.
    """

    ABORT = "abort"
    CONTINUE = "continue"


class DeliveryStatus(str, Enum):
    """Outcome of delivering to one recipient.

    Attributes:
        SENT: The transport accepted the message.
        FAILED: The transport reported a failure.
        SKIPPED: Not attempted (invalid address or aborted batch).
    """

    SENT = "sent"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True, slots=True)
class DeliveryOutcome:
    """Result of one recipient delivery.

    Attributes:
        recipient: Address, or the textual form of an unusable entry.
        status: Delivery status.
        error: Failure or skip reason.
    """

    recipient: str
    status: DeliveryStatus
    error: str | None = None


@dataclass(slots=True)
class DeliveryReport:
    """Aggregate result of a send operation.

    Attributes:
        outcomes: Per-recipient outcomes in dispatch order.
        skipped_attachments: Attachment paths dropped because they were unreadable or empty.

    Examples:
        >>> report = DeliveryReport()
        >>> report.success
        True
    """

    outcomes: list[DeliveryOutcome] = field(default_factory=list)
    skipped_attachments: tuple[str, ...] = ()

    @property
    def success(self) -> bool:
        """Whether no recipient failed."""
        return not self.failed

    @property
    def sent(self) -> list[DeliveryOutcome]:
        """Outcomes with SENT status."""
        return [o for o in self.outcomes if o.status == DeliveryStatus.SENT]

    @property
    def failed(self) -> list[DeliveryOutcome]:
        """Outcomes with FAILED status."""
        return [o for o in self.outcomes if o.status == DeliveryStatus.FAILED]

    @property
    def skipped(self) -> list[DeliveryOutcome]:
        """Outcomes with SKIPPED status."""
        return [o for o in self.outcomes if o.status == DeliveryStatus.SKIPPED]

    def raise_for_failure(self) -> None:
        """Raise ``DeliveryFailedError`` for the first failed recipient, if any."""
        failed = self.failed
        if failed:
            first = failed[0]
            raise DeliveryFailedError(first.recipient, first.error or "dispatch failed", self)


__all__ = [
    "DeliveryOutcome",
    "DeliveryPolicy",
    "DeliveryReport",
    "DeliveryStatus",
    "MimeStructure",
    "RenderedMessage",
    "SenderSettings",
]
