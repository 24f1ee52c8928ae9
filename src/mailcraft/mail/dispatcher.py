"""Send operation: render once, dispatch per recipient.

``MailDispatcher`` resolves recipients and renders the message before
touching any transport, so errors such as ``InvalidRecipientError`` or
``EmptyMessageBodyError`` surface before the first delivery attempt.
Recipients are then dispatched one at a time. With the default
``DeliveryPolicy.ABORT`` the first failure stops the loop and raises
``DeliveryFailedError`` carrying the partial report;
``DeliveryPolicy.CONTINUE`` attempts everyone and returns the report.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from mailcraft.mail.exceptions import DeliveryFailedError, MailTransportError
from mailcraft.mail.models import DeliveryOutcome, DeliveryPolicy, DeliveryReport, DeliveryStatus
from mailcraft.mail.recipients import AddressValidator, Recipients, resolve_recipients
from mailcraft.utils.validators import is_email

if TYPE_CHECKING:
    from mailcraft.mail.message import MailMessage
    from mailcraft.mail.models import RenderedMessage
    from mailcraft.mail.transport import MailTransport

logger = logging.getLogger(__name__)

_ABORTED = "not attempted after an earlier delivery failure"


class MailDispatcher:
    """Deliver rendered messages through a transport.

    Args:
        transport: Delivery backend.
        validator: Predicate accepting well-formed recipient addresses.
        policy: Reaction to a failed dispatch.

    Examples:
        >>> from mailcraft.mail import MailMessage, MemoryTransport
        >>> dispatcher = MailDispatcher(MemoryTransport())
        >>> report = dispatcher.send(MailMessage("Hi", "Hello"), "user@example.com")  # doctest: +SKIP
        >>> report.success  # doctest: +SKIP
        True
    """

    def __init__(
        self,
        transport: MailTransport,
        *,
        validator: AddressValidator = is_email,
        policy: DeliveryPolicy = DeliveryPolicy.ABORT,
    ) -> None:
        self._transport = transport
        self._validator = validator
        self._policy = policy

    @property
    def transport(self) -> MailTransport:
        """Return the delivery backend."""
        return self._transport

    @property
    def policy(self) -> DeliveryPolicy:
        """Return the failure policy."""
        return self._policy

    def send(
        self,
        message: MailMessage,
        recipients: Recipients,
        *,
        policy: DeliveryPolicy | None = None,
    ) -> DeliveryReport:
        """Render *message* and deliver it to every resolved recipient.

        Args:
            message: Message to send.
            recipients: One address, or a collection of addresses and
                ``{"mail": ...}`` / ``{"email": ...}`` mappings.
            policy: Overrides the dispatcher policy for this call.

        Returns:
            Per-recipient outcomes.

        Raises:
            EmptyMessageBodyError: If the message has nothing to render.
            InvalidRecipientError: If no usable address is supplied.
            DeliveryFailedError: On the first failure under ``ABORT``.
        """
        effective = policy or self._policy
        resolved = resolve_recipients(recipients, self._validator)
        rendered = message.render()

        report = DeliveryReport(skipped_attachments=message.build().skipped_attachments)
        for entry in resolved.rejected:
            report.outcomes.append(DeliveryOutcome(entry, DeliveryStatus.SKIPPED, "invalid address"))

        for index, address in enumerate(resolved.addresses):
            outcome = self._dispatch_one(address, rendered)
            report.outcomes.append(outcome)
            if outcome.status == DeliveryStatus.FAILED and effective == DeliveryPolicy.ABORT:
                for pending in resolved.addresses[index + 1 :]:
                    report.outcomes.append(DeliveryOutcome(pending, DeliveryStatus.SKIPPED, _ABORTED))
                logger.warning("Delivery aborted after failure for %s", address)
                raise DeliveryFailedError(address, outcome.error or "dispatch failed", report)

        logger.info(
            "Delivery finished: %d sent, %d failed, %d skipped",
            len(report.sent),
            len(report.failed),
            len(report.skipped),
        )
        return report

    def _dispatch_one(self, address: str, rendered: RenderedMessage) -> DeliveryOutcome:
        logger.debug("Dispatching message to %s", address)
        try:
            accepted = self._transport.dispatch(address, rendered.subject, rendered.body, rendered.header_block)
        except MailTransportError as exc:
            logger.warning("Transport error for %s: %s", address, exc)
            return DeliveryOutcome(address, DeliveryStatus.FAILED, str(exc))
        if not accepted:
            logger.warning("Transport rejected message for %s", address)
            return DeliveryOutcome(address, DeliveryStatus.FAILED, "transport reported failure")
        return DeliveryOutcome(address, DeliveryStatus.SENT)


__all__ = ["MailDispatcher"]
