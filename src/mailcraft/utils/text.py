"""Small text transformations used when filling message bodies."""

from __future__ import annotations

import re

_TAG_PATTERN = re.compile(r"<!--.*?-->|<[^>]*>", re.DOTALL)
_NEWLINE_PATTERN = re.compile(r"(\r\n|\n\r|\n|\r)")


def strip_tags(text: str) -> str:
    """Remove HTML/XML tags and comments from *text*.

    Examples:
        >>> strip_tags("<p>Hello <b>world</b></p>")
        'Hello world'
    """
    return _TAG_PATTERN.sub("", text)


def nl2br(text: str) -> str:
    """Insert ``<br />`` before every line break.

    Examples:
        >>> nl2br("a\\nb")
        'a<br />\\nb'
    """
    return _NEWLINE_PATTERN.sub(r"<br />\1", text)


__all__ = ["nl2br", "strip_tags"]
