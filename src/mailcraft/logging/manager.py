"""Logger manager built on the standard library and Rich.

``LogManager`` is a :class:`logging.Logger` subclass that wires Rich console
handlers and rotating file handlers from a small configuration mapping or
one of the bundled presets (``dev``, ``prod``, ``debug``).

Two custom levels are registered: ``TRACE`` (below DEBUG, used for protocol
dumps) and ``SUCCESS`` (between INFO and WARNING).

Examples:
    >>> from mailcraft.logging import LogManager
    >>> logger = LogManager(name="demo", preset="dev")
    >>> logger.info("Message rendered", parts=3)  # doctest: +SKIP
"""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

from mailcraft.config.loader import deep_merge

TRACE_LEVEL = 5
SUCCESS_LEVEL = 25

logging.addLevelName(TRACE_LEVEL, "TRACE")
logging.addLevelName(SUCCESS_LEVEL, "SUCCESS")

#: Hard limit on rotated log file size (bytes).
HARD_MAX_FILE_BYTES = 50 * 1024 * 1024

#: Extensions accepted for log files.
ALLOWED_LOG_EXTENSIONS = frozenset({".log", ".txt", ".json"})

DEFAULT_CONFIG: dict[str, Any] = {
    "output": "console",
    "console": {
        "level": "INFO",
        "show_path": False,
        "tracebacks_show_locals": False,
    },
    "file": {
        "level": "DEBUG",
        "log_path": ".",
        "log_dir": "logs",
        "log_name": "mailcraft.log",
        "max_bytes": 5 * 1024 * 1024,
        "backup_count": 3,
    },
}

FALLBACK_PRESETS: dict[str, dict[str, Any]] = {
    "dev": {
        "output": "console",
        "console": {"level": "DEBUG", "show_path": True},
    },
    "prod": {
        "output": "console",
        "console": {"level": "WARNING", "tracebacks_show_locals": False},
    },
    "debug": {
        "output": "both",
        "console": {"level": "TRACE", "show_path": True, "tracebacks_show_locals": True},
        "file": {"level": "TRACE"},
    },
}


def _resolve_level(value: str | int) -> int:
    if isinstance(value, int):
        return value
    level = logging.getLevelName(value.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {value!r}")
    return level


class LogManager(logging.Logger):
    """Logger configured from presets or an explicit mapping.

    The logger itself accepts every level; handlers do the filtering.
    Keyword arguments passed to the logging methods are appended to the
    message as ``key=value`` pairs.

    Args:
        name: Logger name.
        preset: One of :data:`FALLBACK_PRESETS`. Unknown presets fall back
            to the defaults.
        config: Mapping merged over the preset.
    """

    def __init__(
        self,
        name: str = "mailcraft",
        *,
        preset: str | None = None,
        config: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(name, level=TRACE_LEVEL)
        settings = DEFAULT_CONFIG
        if preset is not None:
            settings = deep_merge(settings, FALLBACK_PRESETS.get(preset, {}))
        if config:
            settings = deep_merge(settings, dict(config))
        self.settings = settings
        self._configure_handlers()

    def _configure_handlers(self) -> None:
        output = self.settings.get("output", "console")
        if output in ("console", "both"):
            self.addHandler(self._console_handler(self.settings["console"]))
        if output in ("file", "both"):
            self.addHandler(self._file_handler(self.settings["file"]))

    @staticmethod
    def _console_handler(options: dict[str, Any]) -> logging.Handler:
        handler = RichHandler(
            console=Console(stderr=True),
            show_path=bool(options.get("show_path", False)),
            rich_tracebacks=True,
            tracebacks_show_locals=bool(options.get("tracebacks_show_locals", False)),
        )
        handler.setLevel(_resolve_level(options.get("level", "INFO")))
        return handler

    @staticmethod
    def _file_handler(options: dict[str, Any]) -> logging.Handler:
        directory = Path(options.get("log_path", ".")) / options.get("log_dir", "logs")
        log_file = directory / options.get("log_name", "mailcraft.log")
        if log_file.suffix and log_file.suffix not in ALLOWED_LOG_EXTENSIONS:
            raise ValueError(f"Log file extension not allowed: {log_file.suffix}")
        directory.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=min(int(options.get("max_bytes", HARD_MAX_FILE_BYTES)), HARD_MAX_FILE_BYTES),
            backupCount=int(options.get("backup_count", 3)),
            encoding="utf-8",
        )
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)-8s %(name)s: %(message)s"))
        handler.setLevel(_resolve_level(options.get("level", "DEBUG")))
        return handler

    def _log(  # type: ignore[override]
        self,
        level: int,
        msg: object,
        args: Any,
        exc_info: Any = None,
        extra: dict[str, Any] | None = None,
        stack_info: bool = False,
        stacklevel: int = 1,
        **context: Any,
    ) -> None:
        if context:
            pairs = " ".join(f"{key}={value!r}" for key, value in context.items())
            msg = f"{msg} | {pairs}"
        super()._log(level, msg, args, exc_info, extra, stack_info, stacklevel + 1)

    def trace(self, msg: object, *args: Any, **context: Any) -> None:
        """Log at TRACE level."""
        if self.isEnabledFor(TRACE_LEVEL):
            self._log(TRACE_LEVEL, msg, args, **context)

    def success(self, msg: object, *args: Any, **context: Any) -> None:
        """Log at SUCCESS level."""
        if self.isEnabledFor(SUCCESS_LEVEL):
            self._log(SUCCESS_LEVEL, msg, args, **context)

    def traceback(self, exc: BaseException) -> None:
        """Log an exception with its traceback at ERROR level."""
        self.error("%s: %s", type(exc).__name__, exc, exc_info=exc)


__all__ = [
    "ALLOWED_LOG_EXTENSIONS",
    "DEFAULT_CONFIG",
    "FALLBACK_PRESETS",
    "SUCCESS_LEVEL",
    "TRACE_LEVEL",
    "LogManager",
]
