"""Content encoders for message bodies and headers.

All helpers are pure and never fail: any byte sequence can be turned into
UTF-8 (invalid input is read as ISO-8859-1) and then encoded.
"""

from __future__ import annotations

import base64
import binascii

CRLF = b"\r\n"

#: Line width for base64 attachment bodies.
BASE64_LINE_LENGTH = 76


def is_utf8(data: str | bytes) -> bool:
    """Return True when *data* is valid UTF-8.

    Strings are valid unless they hold lone surrogates.

    Examples:
        >>> is_utf8("caf\\u00e9".encode("utf-8"))
        True
        >>> is_utf8(b"caf\\xe9")
        False
    """
    try:
        if isinstance(data, str):
            data.encode("utf-8")
        else:
            data.decode("utf-8")
    except UnicodeError:
        return False
    return True


def ensure_utf8(data: str | bytes) -> bytes:
    """Return *data* as UTF-8 bytes.

    Valid UTF-8 passes through untouched. Anything else is read as
    ISO-8859-1, which maps every byte to a code point, and re-encoded.

    Examples:
        >>> ensure_utf8(b"caf\\xe9")
        b'caf\\xc3\\xa9'
    """
    if isinstance(data, str):
        if is_utf8(data):
            return data.encode("utf-8")
        data = data.encode("utf-8", errors="surrogatepass")
    if is_utf8(data):
        return bytes(data)
    return data.decode("latin-1").encode("utf-8")


def encode_quoted_printable(text: str | bytes) -> bytes:
    """Quoted-printable encode *text* as UTF-8 with CRLF line endings.

    Soft line breaks keep encoded lines within 76 characters.

    Examples:
        >>> encode_quoted_printable("caf\\u00e9")
        b'caf=C3=A9'
    """
    data = ensure_utf8(text).replace(CRLF, b"\n").replace(b"\r", b"\n")
    encoded = binascii.b2a_qp(data, quotetabs=False, istext=True, header=False)
    return encoded.replace(b"\n", CRLF)


def encode_base64_chunks(data: bytes) -> str:
    """Base64 encode *data* into CRLF-terminated 76 character lines.

    Every line, the last one included, ends with CRLF.

    Examples:
        >>> encode_base64_chunks(b"hello")
        'aGVsbG8=\\r\\n'
    """
    encoded = base64.b64encode(data).decode("ascii")
    return "".join(
        f"{encoded[start:start + BASE64_LINE_LENGTH]}\r\n" for start in range(0, len(encoded), BASE64_LINE_LENGTH)
    )


def escape_header_word(text: str) -> str:
    """Wrap *text* in a base64 ``=?UTF-8?B?...?=`` encoded-word.

    Examples:
        >>> escape_header_word("Hello")
        '=?UTF-8?B?SGVsbG8=?='
    """
    return f"=?UTF-8?B?{base64.b64encode(ensure_utf8(text)).decode('ascii')}?="


__all__ = [
    "BASE64_LINE_LENGTH",
    "encode_base64_chunks",
    "encode_quoted_printable",
    "ensure_utf8",
    "escape_header_word",
    "is_utf8",
]
