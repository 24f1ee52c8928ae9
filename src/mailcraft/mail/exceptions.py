"""Specialized exceptions raised by the mailcraft.mail module.

Exception hierarchy::

    MailcraftError
        MailError (base for all mail errors)
            MailConfigurationError (invalid transport/sender setup, also ValueError)
            MailValidationError (caller supplied invalid input, also ValueError)
                InvalidRecipientError (no usable recipient address)
                DuplicateAttachmentError (file already attached)
                AttachmentNotFoundError (file not in the attachment list)
            MessageBuildError (MIME tree could not be produced)
                EmptyMessageBodyError (nothing renderable)
                ContentRequiresHeadersError (part without headers)
                ContentRequiresBodyError (part without body)
            MailTransportError (delivery backend failure)
                DeliveryFailedError (a recipient could not be delivered)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from mailcraft.config.exceptions import MailcraftError

if TYPE_CHECKING:
    from mailcraft.mail.models import DeliveryReport


class MailError(MailcraftError):
    """Base exception for all mail module errors."""


class MailConfigurationError(MailError, ValueError):
    """Mail transport or sender configuration is invalid."""


class MailValidationError(MailError, ValueError):
    """Input supplied to the message model is invalid."""


class InvalidRecipientError(MailValidationError):
    """No usable recipient address was supplied."""


class DuplicateAttachmentError(MailValidationError):
    """A file path was attached twice.

    Attributes:
        path: The duplicated attachment path.
    """

    def __init__(self, path: str) -> None:
        """Initialize DuplicateAttachmentError.

        Args:
            path: The duplicated attachment path.
        """
        super().__init__(f"File already attached: {path}")
        self.path = path


class AttachmentNotFoundError(MailValidationError):
    """A file path was removed without being attached.

    Attributes:
        path: The attachment path that is not in the list.
    """

    def __init__(self, path: str) -> None:
        """Initialize AttachmentNotFoundError.

        Args:
            path: The attachment path that is not in the list.
        """
        super().__init__(f"File not attached: {path}")
        self.path = path


class MessageBuildError(MailError):
    """The MIME structure of a message could not be produced."""


class EmptyMessageBodyError(MessageBuildError):
    """The message has no renderable content."""


class ContentRequiresHeadersError(MessageBuildError):
    """A content part reached serialization without headers."""


class ContentRequiresBodyError(MessageBuildError):
    """A content part reached serialization without a body."""


class MailTransportError(MailError):
    """The delivery backend failed."""


class DeliveryFailedError(MailTransportError):
    """Delivery to a recipient failed.

    Attributes:
        recipient: Address whose delivery failed.
        reason: Description of the failure.
        report: Per-recipient outcomes collected up to the failure.
    """

    def __init__(self, recipient: str, reason: str, report: DeliveryReport | None = None) -> None:
        """Initialize DeliveryFailedError.

        Args:
            recipient: Address whose delivery failed.
            reason: Description of the failure.
            report: Per-recipient outcomes collected up to the failure.
        """
        super().__init__(f"Delivery to '{recipient}' failed: {reason}")
        self.recipient = recipient
        self.reason = reason
        self.report = report


__all__ = [
    "AttachmentNotFoundError",
    "ContentRequiresBodyError",
    "ContentRequiresHeadersError",
    "DeliveryFailedError",
    "DuplicateAttachmentError",
    "EmptyMessageBodyError",
    "InvalidRecipientError",
    "MailConfigurationError",
    "MailError",
    "MailTransportError",
    "MailValidationError",
    "MessageBuildError",
]
