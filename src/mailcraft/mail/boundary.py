"""Multipart boundary allocation.

Boundaries are keyed by nesting index (``0`` for the outermost multipart,
``1`` for an alternative block nested inside ``multipart/mixed``). A token
is generated the first time an index is requested and returned unchanged
afterwards, so rebuilding the same message yields identical output.
"""

from __future__ import annotations

import hashlib
import logging
import time
from collections.abc import Callable, Iterable

from mailcraft.logging import TRACE_LEVEL

log = logging.getLogger(__name__)

DEFAULT_BOUNDARY_PREFIX = "MAILCRAFT"

# Generation attempts before giving up on finding a token absent from content.
_MAX_ATTEMPTS = 16


class BoundaryAllocator:
    """Produce and memoize boundary tokens per nesting index.

    Tokens embed the index, so two indices can never share a value even
    if the clock returns the same reading twice.

    Args:
        prefix: Leading text of every token.
        clock: High-resolution time source (nanoseconds).

    Examples:
        >>> allocator = BoundaryAllocator(prefix="TEST", clock=lambda: 42)
        >>> allocator.get(0) == allocator.get(0)
        True
        >>> allocator.get(0) != allocator.get(1)
        True
    """

    def __init__(
        self,
        prefix: str = DEFAULT_BOUNDARY_PREFIX,
        *,
        clock: Callable[[], int] = time.time_ns,
    ) -> None:
        if not prefix or not prefix.isascii() or any(ch.isspace() for ch in prefix):
            raise ValueError(f"Invalid boundary prefix: {prefix!r}")
        self._prefix = prefix
        self._clock = clock
        self._tokens: dict[int, str] = {}

    @property
    def allocated(self) -> dict[int, str]:
        """Return a copy of the tokens generated so far."""
        return dict(self._tokens)

    def get(self, index: int = 0, *, avoid: Iterable[bytes] = ()) -> str:
        """Return the boundary for *index*, generating it on first use.

        Args:
            index: Nesting index, ``0`` being the outermost multipart.
            avoid: Content chunks the new token must not appear in. Only
                consulted when the token is generated.

        Returns:
            The boundary token.

        Raises:
            ValueError: If *index* is negative.
        """
        if index < 0:
            raise ValueError(f"Boundary index must be non-negative, got {index}")
        token = self._tokens.get(index)
        if token is not None:
            return token

        chunks = tuple(avoid)
        for attempt in range(_MAX_ATTEMPTS):
            token = self._generate(index, attempt)
            if not any(token.encode("ascii") in chunk for chunk in chunks):
                break
            log.debug("Boundary candidate for index %d found in content, regenerating", index)
        self._tokens[index] = token
        log.log(TRACE_LEVEL, "Allocated boundary #%d: %s", index, token)
        return token

    def _generate(self, index: int, attempt: int) -> str:
        seed = f"{self._clock()}:{index}:{attempt}".encode("ascii")
        digest = hashlib.md5(seed, usedforsecurity=False).hexdigest()
        return f"{self._prefix}_{index}_{digest}"


__all__ = ["DEFAULT_BOUNDARY_PREFIX", "BoundaryAllocator"]
