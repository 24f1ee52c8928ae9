"""Wire-format serialization of MIME trees.

Each part of a multipart sequence is rendered as::

    --<boundary>\\r\\n
    Name: value\\r\\n   (one line per header)
    \\r\\n
    <body>\\r\\n\\r\\n

and the sequence ends with ``--<boundary>--``. Nested multipart parts are
serialized first with their own boundary and then treated as an opaque
body by the outer pass.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from mailcraft.mail.exceptions import ContentRequiresBodyError, ContentRequiresHeadersError, MessageBuildError
from mailcraft.mail.mime import ContentPart, MimeTree

CRLF = "\r\n"


def render_header_lines(headers: Mapping[str, str]) -> str:
    """Render every header as a CRLF-terminated ``Name: value`` line."""
    return "".join(f"{name}: {value}{CRLF}" for name, value in headers.items())


def render_header_block(headers: Mapping[str, str]) -> str:
    """Render envelope headers, skipping empty values, plus the blank separator line.

    Examples:
        >>> render_header_block({"From": "a@example.com", "Bcc": ""})
        'From: a@example.com\\r\\n\\r\\n'
    """
    return render_header_lines({name: value for name, value in headers.items() if value}) + CRLF


def part_body(part: ContentPart) -> bytes:
    """Return the body of *part*, serializing nested parts when needed.

    Raises:
        ContentRequiresHeadersError: If the part has no headers.
        ContentRequiresBodyError: If the part has no body or no children.
    """
    if not part.headers:
        raise ContentRequiresHeadersError("Content part requires headers")
    if part.boundary is not None:
        if not part.parts:
            raise ContentRequiresBodyError("Multipart content part requires child parts")
        return serialize_parts(part.boundary, part.parts)
    if not part.body:
        raise ContentRequiresBodyError("Content part requires a body")
    return part.body


def serialize_parts(boundary: str, parts: Iterable[ContentPart]) -> bytes:
    """Serialize *parts* separated by *boundary*.

    Every part is validated individually before it is written.
    """
    opener = f"--{boundary}{CRLF}".encode("ascii")
    chunks: list[bytes] = []
    for part in parts:
        body = part_body(part)
        chunks.append(opener)
        chunks.append(render_header_lines(part.headers).encode("utf-8"))
        chunks.append(CRLF.encode("ascii"))
        chunks.append(body)
        chunks.append(f"{CRLF}{CRLF}".encode("ascii"))
    chunks.append(f"--{boundary}--".encode("ascii"))
    return b"".join(chunks)


def serialize_tree(tree: MimeTree) -> bytes:
    """Return the wire body of a built message.

    Raises:
        ContentRequiresBodyError: If a single-part message has no body.
        MessageBuildError: If a multipart message has no boundary.
    """
    if not tree.is_multipart:
        if not tree.body:
            raise ContentRequiresBodyError("Single-part message requires a body")
        return tree.body
    if tree.boundary is None:
        raise MessageBuildError(f"{tree.structure.value} message requires a boundary")
    return serialize_parts(tree.boundary, tree.parts)


def merge_headers(envelope: Mapping[str, str], tree: MimeTree) -> dict[str, str]:
    """Merge content headers of *tree* into a copy of the envelope headers.

    Existing names keep their position. A multipart message has no
    top-level transfer encoding, so that header is blanked.
    """
    merged = dict(envelope)
    merged.update(tree.headers)
    if tree.is_multipart and "Content-Transfer-Encoding" in merged:
        merged["Content-Transfer-Encoding"] = ""
    return merged


__all__ = [
    "merge_headers",
    "part_body",
    "render_header_block",
    "render_header_lines",
    "serialize_parts",
    "serialize_tree",
]
