"""MIME tree construction.

``MimeTreeBuilder`` classifies the content of a message and materializes
one of three shapes:

- a single text or HTML part (no boundary),
- a flat ``multipart/alternative`` holding the body variants,
- a ``multipart/mixed`` holding a nested ``multipart/alternative`` block
  followed by one base64 part per readable attachment.

Inside an alternative block parts are always ordered alternative body,
plain text, HTML, so that clients rendering the last part they support
show the richest variant.
"""

from __future__ import annotations

import logging
import mimetypes
import os
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from mailcraft.mail.boundary import BoundaryAllocator
from mailcraft.mail.encoding import encode_base64_chunks, encode_quoted_printable, ensure_utf8
from mailcraft.mail.exceptions import EmptyMessageBodyError
from mailcraft.mail.models import MimeStructure

log = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"

TEXT_CONTENT_TYPE = 'text/plain; charset="UTF-8"'
HTML_CONTENT_TYPE = 'text/html; charset="UTF-8"'
ALTERNATIVE_CONTENT_TYPE = "multipart/alternative"
QUOTED_PRINTABLE = "quoted-printable"


@dataclass(frozen=True, slots=True)
class ContentPart:
    """One block of a multipart message.

    A leaf part carries an encoded ``body``. A nested multipart part
    carries child ``parts`` and its own ``boundary``; its body is produced
    by the serializer.

    Attributes:
        headers: Part headers in rendering order.
        body: Encoded body of a leaf part.
        parts: Children of a nested multipart part.
        boundary: Boundary separating the children.
    """

    headers: dict[str, str]
    body: bytes = b""
    parts: tuple[ContentPart, ...] = ()
    boundary: str | None = None

    @property
    def is_multipart(self) -> bool:
        """Whether this part nests other parts."""
        return self.boundary is not None


@dataclass(frozen=True, slots=True)
class AttachmentFile:
    """Read-only view of an attached file.

    Attributes:
        path: Path as it was attached.
        filename: Base name advertised to the recipient.
        mime_type: Type guessed from the file name.
        content: Raw file bytes.
    """

    path: str
    filename: str
    mime_type: str
    content: bytes

    @classmethod
    def load(cls, path: str | os.PathLike[str]) -> AttachmentFile | None:
        """Read *path*, returning None when the file is not readable."""
        file_path = Path(path)
        if not file_path.is_file() or not os.access(file_path, os.R_OK):
            return None
        try:
            content = file_path.read_bytes()
        except OSError as exc:
            log.debug("Reading attachment %s failed: %s", file_path, exc)
            return None
        mime_type, _ = mimetypes.guess_type(file_path.name)
        return cls(
            path=os.fspath(path),
            filename=file_path.name,
            mime_type=mime_type or DEFAULT_MIME_TYPE,
            content=content,
        )

    def to_part(self) -> ContentPart:
        """Return the base64 attachment part for this file."""
        name = _quote_filename(self.filename)
        return ContentPart(
            headers={
                "Content-Type": f'{self.mime_type}; name="{name}"',
                "Content-Transfer-Encoding": "base64",
                "Content-Disposition": f'attachment; filename="{name}"',
            },
            body=encode_base64_chunks(self.content).encode("ascii"),
        )


def _quote_filename(filename: str) -> str:
    return filename.replace("\\", "\\\\").replace('"', '\\"').replace("\r", "").replace("\n", "")


@dataclass(frozen=True, slots=True)
class MessageContent:
    """Snapshot of the content of a message at build time.

    Attributes:
        text_body: Plain text body.
        html_body: HTML body.
        alt_body: Prepared alternative markup, sent without transfer encoding.
        attachments: Attached file paths in insertion order.
    """

    text_body: str | None = None
    html_body: str | None = None
    alt_body: str | None = None
    attachments: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class MimeTree:
    """Classified and materialized message structure.

    Attributes:
        structure: Shape of the message.
        headers: Content headers to merge into the envelope.
        parts: Top-level parts of a multipart message.
        boundary: Outer boundary of a multipart message.
        body: Encoded body of a single-part message.
        attachments: Attachments included in the message.
        skipped_attachments: Attached paths left out because they were unreadable or empty.
    """

    structure: MimeStructure
    headers: dict[str, str]
    parts: tuple[ContentPart, ...] = ()
    boundary: str | None = None
    body: bytes = b""
    attachments: tuple[AttachmentFile, ...] = ()
    skipped_attachments: tuple[str, ...] = ()

    @property
    def is_multipart(self) -> bool:
        """Whether the message uses boundaries."""
        return self.structure != MimeStructure.SINGLE


class MimeTreeBuilder:
    """Turn a :class:`MessageContent` snapshot into a :class:`MimeTree`.

    Args:
        boundaries: Allocator shared with the message so that rebuilding
            reuses the same boundary tokens.

    Examples:
        >>> builder = MimeTreeBuilder(BoundaryAllocator())
        >>> tree = builder.build(MessageContent(text_body="Hello"))
        >>> tree.structure
        <MimeStructure.SINGLE: 'single'>
    """

    def __init__(self, boundaries: BoundaryAllocator | None = None) -> None:
        self._boundaries = boundaries or BoundaryAllocator()

    def build(self, content: MessageContent) -> MimeTree:
        """Classify *content* and build its MIME tree.

        Raises:
            EmptyMessageBodyError: If nothing renderable remains.
        """
        attachments, skipped = self._load_attachments(content.attachments)
        has_text = bool(content.text_body)
        has_html = bool(content.html_body)
        has_files = bool(attachments)
        multi = (has_html + has_text + has_files) > 1
        log.debug(
            "Classifying message: text=%s html=%s files=%d alternative=%s multi=%s",
            has_text,
            has_html,
            len(attachments),
            bool(content.alt_body),
            multi,
        )

        if not multi:
            return self._build_single(content, skipped)

        alternatives = self._alternative_parts(content)
        if not has_files:
            parts = tuple(alternatives)
            structure = MimeStructure.ALTERNATIVE
            content_type = ALTERNATIVE_CONTENT_TYPE
        else:
            parts = self._mixed_parts(alternatives, attachments)
            structure = MimeStructure.MIXED
            content_type = "multipart/mixed"

        if not parts:
            raise EmptyMessageBodyError("Message has no content parts")

        boundary = self._boundaries.get(0, avoid=_leaf_bodies(parts))
        return MimeTree(
            structure=structure,
            headers={
                "MIME-Version": "1.0",
                "Content-Type": f'{content_type}; boundary="{boundary}"',
            },
            parts=parts,
            boundary=boundary,
            attachments=attachments,
            skipped_attachments=skipped,
        )

    def _build_single(self, content: MessageContent, skipped: tuple[str, ...]) -> MimeTree:
        if content.html_body:
            content_type, body = HTML_CONTENT_TYPE, content.html_body
        elif content.text_body:
            content_type, body = TEXT_CONTENT_TYPE, content.text_body
        else:
            reason = "attachments need a text or HTML body" if content.attachments else "no text or HTML body"
            raise EmptyMessageBodyError(f"Message body is empty: {reason}")
        return MimeTree(
            structure=MimeStructure.SINGLE,
            headers={
                "MIME-Version": "1.0",
                "Content-Type": content_type,
                "Content-Transfer-Encoding": QUOTED_PRINTABLE,
            },
            body=encode_quoted_printable(body),
            skipped_attachments=skipped,
        )

    @staticmethod
    def _alternative_parts(content: MessageContent) -> list[ContentPart]:
        parts: list[ContentPart] = []
        if content.alt_body:
            parts.append(
                ContentPart(
                    headers={"Content-Type": ALTERNATIVE_CONTENT_TYPE},
                    body=ensure_utf8(content.alt_body),
                )
            )
        if content.text_body:
            parts.append(
                ContentPart(
                    headers={"Content-Type": TEXT_CONTENT_TYPE, "Content-Transfer-Encoding": QUOTED_PRINTABLE},
                    body=encode_quoted_printable(content.text_body),
                )
            )
        if content.html_body:
            parts.append(
                ContentPart(
                    headers={"Content-Type": HTML_CONTENT_TYPE, "Content-Transfer-Encoding": QUOTED_PRINTABLE},
                    body=encode_quoted_printable(content.html_body),
                )
            )
        return parts

    def _mixed_parts(
        self,
        alternatives: list[ContentPart],
        attachments: tuple[AttachmentFile, ...],
    ) -> tuple[ContentPart, ...]:
        parts: list[ContentPart] = []
        if alternatives:
            flowed = tuple(
                ContentPart(
                    headers={**part.headers, "Content-Type": f"{part.headers['Content-Type']}; format=flowed"},
                    body=part.body,
                )
                for part in alternatives
            )
            inner = self._boundaries.get(1, avoid=(part.body for part in flowed))
            parts.append(
                ContentPart(
                    headers={"Content-Type": f'{ALTERNATIVE_CONTENT_TYPE}; boundary="{inner}"'},
                    parts=flowed,
                    boundary=inner,
                )
            )
        parts.extend(attachment.to_part() for attachment in attachments)
        return tuple(parts)

    @staticmethod
    def _load_attachments(paths: Iterable[str]) -> tuple[tuple[AttachmentFile, ...], tuple[str, ...]]:
        loaded: list[AttachmentFile] = []
        skipped: list[str] = []
        for path in paths:
            attachment = AttachmentFile.load(path)
            if attachment is None:
                log.warning("Attachment %s is not readable, leaving it out of the message", path)
                skipped.append(path)
                continue
            if not attachment.content:
                log.warning("Attachment %s is empty, leaving it out of the message", path)
                skipped.append(path)
                continue
            loaded.append(attachment)
        return tuple(loaded), tuple(skipped)


def _leaf_bodies(parts: Iterable[ContentPart]) -> list[bytes]:
    bodies: list[bytes] = []
    for part in parts:
        if part.is_multipart:
            bodies.extend(_leaf_bodies(part.parts))
        else:
            bodies.append(part.body)
    return bodies


__all__ = [
    "DEFAULT_MIME_TYPE",
    "AttachmentFile",
    "ContentPart",
    "MessageContent",
    "MimeTree",
    "MimeTreeBuilder",
]
