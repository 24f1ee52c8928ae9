"""Configuration management for mailcraft."""

from mailcraft.config.exceptions import (
    ConfigError,
    ConfigFileNotFoundError,
    ConfigFormatError,
    ConfigNotLoadedError,
    MailcraftError,
)
from mailcraft.config.loader import (
    CONFIG_FILENAME,
    DEFAULT_CONFIG,
    ConfigLoader,
    clear_config,
    get_config,
    load_config,
    load_from_env,
    load_from_file,
    require_config,
)

__all__ = [
    "CONFIG_FILENAME",
    "DEFAULT_CONFIG",
    "ConfigError",
    "ConfigFileNotFoundError",
    "ConfigFormatError",
    "ConfigLoader",
    "ConfigNotLoadedError",
    "MailcraftError",
    "clear_config",
    "get_config",
    "load_config",
    "load_from_env",
    "load_from_file",
    "require_config",
]
