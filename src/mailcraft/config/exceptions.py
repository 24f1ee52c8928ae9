"""Exceptions raised by the mailcraft.config module.

Exception hierarchy::

    MailcraftError (root of every mailcraft exception)
        ConfigError
            ConfigFileNotFoundError (also FileNotFoundError)
            ConfigFormatError (also ValueError)
            ConfigNotLoadedError
"""

from __future__ import annotations


class MailcraftError(Exception):
    """Base exception for every error raised by mailcraft."""


class ConfigError(MailcraftError):
    """Base exception for configuration errors."""


class ConfigFileNotFoundError(ConfigError, FileNotFoundError):
    """Configuration file could not be found."""


class ConfigFormatError(ConfigError, ValueError):
    """Configuration file is not valid YAML or not a mapping."""


class ConfigNotLoadedError(ConfigError):
    """Configuration was required before anything was loaded."""


__all__ = [
    "ConfigError",
    "ConfigFileNotFoundError",
    "ConfigFormatError",
    "ConfigNotLoadedError",
    "MailcraftError",
]
