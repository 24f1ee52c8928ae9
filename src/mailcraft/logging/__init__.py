"""Logging helpers for mailcraft.

Modules log through ``logging.getLogger(__name__)``. Applications call
:func:`init_logging` once to attach Rich handlers to the ``mailcraft``
package logger.
"""

from __future__ import annotations

import logging
from typing import Any

from mailcraft.logging.manager import (
    FALLBACK_PRESETS,
    SUCCESS_LEVEL,
    TRACE_LEVEL,
    LogManager,
)

_root_logger: LogManager | None = None


def init_logging(*, preset: str | None = None, config: dict[str, Any] | None = None) -> LogManager:
    """Create the root ``LogManager`` and copy its handlers to ``mailcraft``.

    When neither *preset* nor *config* is given, the ``logging.preset``
    value of the loaded configuration is used.

    Args:
        preset: Preset name (``dev``, ``prod`` or ``debug``).
        config: Explicit handler configuration.

    Returns:
        The configured manager.
    """
    global _root_logger  # pylint: disable=global-statement

    if preset is None and config is None:
        from mailcraft.config import get_config  # pylint: disable=import-outside-toplevel

        preset = get_config().logging.preset

    manager = LogManager(name="mailcraft.root", preset=preset, config=config)
    package_logger = logging.getLogger("mailcraft")
    package_logger.setLevel(TRACE_LEVEL)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
    for handler in manager.handlers:
        package_logger.addHandler(handler)
    _root_logger = manager
    return manager


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the ``mailcraft`` logger or one of its children."""
    if not name:
        return logging.getLogger("mailcraft")
    if name == "mailcraft" or name.startswith("mailcraft."):
        return logging.getLogger(name)
    return logging.getLogger(f"mailcraft.{name}")


__all__ = [
    "FALLBACK_PRESETS",
    "SUCCESS_LEVEL",
    "TRACE_LEVEL",
    "LogManager",
    "get_logger",
    "init_logging",
]
