"""Mutable message model with a fluent setter API.

``MailMessage`` holds the envelope headers, the escaped subject, the three
body variants and the attached file paths. Building produces a
:class:`~mailcraft.mail.mime.MimeTree` that is cached until the content
changes; boundary tokens are cached for the lifetime of the instance so
repeated renders are byte-identical.

Examples:
    >>> from mailcraft.mail import MailMessage, SenderSettings
    >>> message = MailMessage(
    ...     "Weekly report",
    ...     settings=SenderSettings(address="robot@example.com", name="Reports"),
    ... )
    >>> message.set_text_body("Hello").set_html_body("<b>Hello</b>").is_multi_content()
    True
"""

from __future__ import annotations

import logging
import os
from email.utils import formatdate
from typing import TYPE_CHECKING

from mailcraft.mail.boundary import DEFAULT_BOUNDARY_PREFIX, BoundaryAllocator
from mailcraft.mail.encoding import escape_header_word
from mailcraft.mail.exceptions import (
    AttachmentNotFoundError,
    DuplicateAttachmentError,
    MailValidationError,
)
from mailcraft.mail.mime import MessageContent, MimeTree, MimeTreeBuilder
from mailcraft.mail.models import DeliveryPolicy, RenderedMessage, SenderSettings
from mailcraft.mail.serializer import merge_headers, render_header_block, serialize_tree
from mailcraft.utils.text import nl2br, strip_tags

if TYPE_CHECKING:
    from mailcraft.mail.models import DeliveryReport
    from mailcraft.mail.recipients import AddressValidator, Recipients
    from mailcraft.mail.transport import MailTransport

log = logging.getLogger(__name__)

#: Envelope headers every message starts with, in rendering order.
DEFAULT_HEADERS: tuple[str, ...] = (
    "MIME-Version",
    "Content-Type",
    "Content-Transfer-Encoding",
    "Date",
    "From",
    "Sender",
    "X-Sender",
    "Reply-To",
    "Return-Path",
    "Organization",
    "Bcc",
)


def _require_str(value: object, what: str) -> str:
    if not isinstance(value, str):
        raise MailValidationError(f"{what} must be a string, got {type(value).__name__}")
    return value


def _check_header_value(name: str, value: str) -> None:
    if "\r" in value or "\n" in value:
        raise MailValidationError(f"Header {name!r} must not contain line breaks")


class MailMessage:
    """An email message under construction.

    Args:
        subject: Subject line, stored base64 escaped.
        text: Content used for both the text body (tags stripped) and the
            HTML body (line breaks kept as ``<br />``).
        settings: Default sender. When omitted the ``mail.sender`` section
            of the loaded configuration is used.
        boundaries: Boundary allocator, mostly useful in tests.
    """

    def __init__(
        self,
        subject: str = "",
        text: str = "",
        *,
        settings: SenderSettings | None = None,
        boundaries: BoundaryAllocator | None = None,
    ) -> None:
        if settings is None:
            from mailcraft.config import get_config  # pylint: disable=import-outside-toplevel

            config = get_config()
            settings = SenderSettings.from_config(config)
            if boundaries is None:
                prefix = (config.get("mail") or {}).get("boundary_prefix") or DEFAULT_BOUNDARY_PREFIX
                boundaries = BoundaryAllocator(prefix=prefix)

        self._headers: dict[str, str] = dict.fromkeys(DEFAULT_HEADERS, "")
        self._subject = ""
        self._text_body: str | None = None
        self._html_body: str | None = None
        self._alt_body: str | None = None
        self._attachments: list[str] = []
        self._boundaries = boundaries or BoundaryAllocator()
        self._builder = MimeTreeBuilder(self._boundaries)
        self._tree: MimeTree | None = None

        self._headers["Date"] = formatdate(localtime=True)
        if settings.address:
            self.set_sender(settings.address, settings.name, allow_reply=settings.allow_reply)
        self.set_subject(subject)
        self.set_text(text)

    # ------------------------------------------------------------------
    # Headers
    # ------------------------------------------------------------------

    @property
    def headers(self) -> dict[str, str]:
        """Return a copy of the envelope headers."""
        return dict(self._headers)

    @property
    def subject(self) -> str:
        """Return the escaped subject."""
        return self._subject

    def set_header(self, name: str, value: str) -> MailMessage:
        """Set an envelope header. Empty values are left out when rendering."""
        _require_str(value, f"Header {name!r}")
        _check_header_value(name, value)
        self._headers[name] = value
        return self

    def set_sender(self, address: str, name: str | None = None, *, allow_reply: bool = True) -> MailMessage:
        """Set ``From`` and ``Sender``.

        With a display name, ``From`` becomes ``=?UTF-8?B?...?= <address>``.
        When *allow_reply* is set and no ``Return-Path`` exists yet, the
        address is also used as reply address.
        """
        self.set_header("From", address if name is None else f"{escape_header_word(name)} <{address}>")
        self.set_header("Sender", address)
        if allow_reply and not self._headers.get("Return-Path"):
            self.set_reply_to(address)
        return self

    def set_reply_to(self, address: str) -> MailMessage:
        """Set ``Reply-To`` and ``Return-Path``."""
        self.set_header("Return-Path", address)
        self.set_header("Reply-To", address)
        return self

    def set_subject(self, subject: str) -> MailMessage:
        """Store *subject* as a base64 encoded-word."""
        self._subject = escape_header_word(_require_str(subject, "Subject"))
        return self

    # ------------------------------------------------------------------
    # Bodies
    # ------------------------------------------------------------------

    @property
    def text_body(self) -> str | None:
        """Return the plain text body."""
        return self._text_body

    @property
    def html_body(self) -> str | None:
        """Return the HTML body, wrapper included."""
        return self._html_body

    @property
    def alt_body(self) -> str | None:
        """Return the alternative body."""
        return self._alt_body

    def set_text(self, text: str) -> MailMessage:
        """Fill both the text and the HTML body from *text*."""
        _require_str(text, "Text")
        self.set_text_body(strip_tags(text))
        self.set_html_body(nl2br(text))
        return self

    def set_text_body(self, body: str) -> MailMessage:
        """Set the plain text body."""
        self._text_body = _require_str(body, "Text body")
        self._invalidate()
        return self

    def set_html_body(self, body: str) -> MailMessage:
        """Set the HTML body, wrapped in a left-to-right ``div`` on a single line.

        An empty *body* clears the HTML body.
        """
        _require_str(body, "HTML body")
        if body:
            body = '<div dir="ltr">' + body.replace("\r", "").replace("\n", "") + "</div>"
        self._html_body = body
        self._invalidate()
        return self

    def set_alt_body(self, body: str) -> MailMessage:
        """Set the alternative body, sent as prepared markup."""
        self._alt_body = _require_str(body, "Alternative body")
        self._invalidate()
        return self

    # ------------------------------------------------------------------
    # Attachments
    # ------------------------------------------------------------------

    @property
    def attachments(self) -> tuple[str, ...]:
        """Return the attached file paths in insertion order."""
        return tuple(self._attachments)

    def add_file(self, path: str | os.PathLike[str]) -> MailMessage:
        """Attach *path*.

        The file is read when the message is built. Unreadable or empty
        files are left out with a warning and listed in
        ``MimeTree.skipped_attachments``.

        Raises:
            DuplicateAttachmentError: If the path is already attached.
        """
        file_path = os.fspath(path)
        if self.contains_file(file_path):
            raise DuplicateAttachmentError(file_path)
        self._attachments.append(file_path)
        self._invalidate()
        return self

    def contains_file(self, path: str | os.PathLike[str]) -> bool:
        """Whether *path* is attached."""
        return os.fspath(path) in self._attachments

    def remove_file(self, path: str | os.PathLike[str]) -> MailMessage:
        """Detach *path*.

        Raises:
            AttachmentNotFoundError: If the path is not attached.
        """
        file_path = os.fspath(path)
        if not self.contains_file(file_path):
            raise AttachmentNotFoundError(file_path)
        self._attachments.remove(file_path)
        self._invalidate()
        return self

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def is_html(self) -> bool:
        """Whether an HTML body is set."""
        return bool(self._html_body)

    def is_text(self) -> bool:
        """Whether a text body is set."""
        return bool(self._text_body)

    def is_alternative(self) -> bool:
        """Whether an alternative body is set."""
        return bool(self._alt_body)

    def contains_files(self) -> bool:
        """Whether any file is attached."""
        return bool(self._attachments)

    def is_multi_content(self) -> bool:
        """Whether more than one of text, HTML and attachments is present."""
        return (self.is_html() + self.is_text() + self.contains_files()) > 1

    def boundary(self, index: int = 0) -> str:
        """Return the boundary for nesting level *index*."""
        return self._boundaries.get(index)

    # ------------------------------------------------------------------
    # Building and sending
    # ------------------------------------------------------------------

    def content(self) -> MessageContent:
        """Return a snapshot of the current content."""
        return MessageContent(
            text_body=self._text_body,
            html_body=self._html_body,
            alt_body=self._alt_body,
            attachments=tuple(self._attachments),
        )

    def build(self) -> MimeTree:
        """Return the MIME tree, building it on first use.

        Raises:
            EmptyMessageBodyError: If nothing renderable is set.
        """
        if self._tree is None:
            self._tree = self._builder.build(self.content())
            if self._tree.skipped_attachments:
                log.warning("%d attachment(s) left out of the message", len(self._tree.skipped_attachments))
        return self._tree

    def render(self) -> RenderedMessage:
        """Serialize the message for delivery.

        Raises:
            EmptyMessageBodyError: If nothing renderable is set.
            ContentRequiresHeadersError: If a part lacks headers.
            ContentRequiresBodyError: If a part lacks a body.
        """
        tree = self.build()
        body = serialize_tree(tree)
        headers = merge_headers(self._headers, tree)
        return RenderedMessage(
            subject=self._subject,
            body=body,
            header_block=render_header_block(headers),
            headers={name: value for name, value in headers.items() if value},
        )

    def send(
        self,
        recipients: Recipients,
        transport: MailTransport,
        *,
        policy: DeliveryPolicy = DeliveryPolicy.ABORT,
        validator: AddressValidator | None = None,
    ) -> DeliveryReport:
        """Render and deliver this message.

        See :meth:`mailcraft.mail.dispatcher.MailDispatcher.send`.
        """
        from mailcraft.mail.dispatcher import MailDispatcher  # pylint: disable=import-outside-toplevel

        if validator is None:
            dispatcher = MailDispatcher(transport, policy=policy)
        else:
            dispatcher = MailDispatcher(transport, validator=validator, policy=policy)
        return dispatcher.send(self, recipients)

    def _invalidate(self) -> None:
        self._tree = None

    def __repr__(self) -> str:
        return (
            f"MailMessage(from={self._headers.get('From')!r}, text={self.is_text()}, "
            f"html={self.is_html()}, attachments={len(self._attachments)})"
        )


__all__ = ["DEFAULT_HEADERS", "MailMessage"]
