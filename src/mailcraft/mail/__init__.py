"""Email composition, MIME serialization and delivery for mailcraft.

A :class:`MailMessage` collects headers, bodies and attachments. Building
it classifies the content into a single part, a flat
``multipart/alternative`` or a ``multipart/mixed`` tree; rendering turns
that tree into the wire body and the header block; sending hands the
result to a :class:`MailTransport` once per recipient.

Examples:
    Render and deliver through the in-memory transport:

    >>> from mailcraft.mail import MailMessage, MemoryTransport, SenderSettings
    >>> message = MailMessage(
    ...     "Status",
    ...     settings=SenderSettings(address="robot@example.com"),
    ... )
    >>> message.set_text_body("All green").set_html_body("<p>All green</p>")  # doctest: +ELLIPSIS
    MailMessage(...)
    >>> transport = MemoryTransport()
    >>> report = message.send(["ops@example.com"], transport)
    >>> report.success
    True

    SMTP delivery:

    >>> from mailcraft.mail.transports import SMTPCredentials, SMTPTransport
    >>> smtp = SMTPTransport("smtp.example.com", credentials=SMTPCredentials("robot", "secret"))
    >>> message.send("ops@example.com", smtp)  # doctest: +SKIP
"""

from mailcraft.mail.boundary import DEFAULT_BOUNDARY_PREFIX, BoundaryAllocator
from mailcraft.mail.dispatcher import MailDispatcher
from mailcraft.mail.encoding import (
    encode_base64_chunks,
    encode_quoted_printable,
    ensure_utf8,
    escape_header_word,
    is_utf8,
)
from mailcraft.mail.exceptions import (
    AttachmentNotFoundError,
    ContentRequiresBodyError,
    ContentRequiresHeadersError,
    DeliveryFailedError,
    DuplicateAttachmentError,
    EmptyMessageBodyError,
    InvalidRecipientError,
    MailConfigurationError,
    MailError,
    MailTransportError,
    MailValidationError,
    MessageBuildError,
)
from mailcraft.mail.message import MailMessage
from mailcraft.mail.mime import AttachmentFile, ContentPart, MessageContent, MimeTree, MimeTreeBuilder
from mailcraft.mail.models import (
    DeliveryOutcome,
    DeliveryPolicy,
    DeliveryReport,
    DeliveryStatus,
    MimeStructure,
    RenderedMessage,
    SenderSettings,
)
from mailcraft.mail.recipients import ResolvedRecipients, resolve_recipients
from mailcraft.mail.serializer import render_header_block, serialize_parts, serialize_tree
from mailcraft.mail.transport import DispatchedMail, MailTransport, MemoryTransport

__all__ = [
    "DEFAULT_BOUNDARY_PREFIX",
    "AttachmentFile",
    "AttachmentNotFoundError",
    "BoundaryAllocator",
    "ContentPart",
    "ContentRequiresBodyError",
    "ContentRequiresHeadersError",
    "DeliveryFailedError",
    "DeliveryOutcome",
    "DeliveryPolicy",
    "DeliveryReport",
    "DeliveryStatus",
    "DispatchedMail",
    "DuplicateAttachmentError",
    "EmptyMessageBodyError",
    "InvalidRecipientError",
    "MailConfigurationError",
    "MailDispatcher",
    "MailError",
    "MailMessage",
    "MailTransport",
    "MailTransportError",
    "MailValidationError",
    "MemoryTransport",
    "MessageBuildError",
    "MessageContent",
    "MimeStructure",
    "MimeTree",
    "MimeTreeBuilder",
    "RenderedMessage",
    "ResolvedRecipients",
    "SenderSettings",
    "encode_base64_chunks",
    "encode_quoted_printable",
    "ensure_utf8",
    "escape_header_word",
    "is_utf8",
    "render_header_block",
    "resolve_recipients",
    "serialize_parts",
    "serialize_tree",
]
