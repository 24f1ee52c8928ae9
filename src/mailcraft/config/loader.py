"""Configuration loading for mailcraft.

Configuration lives in a YAML file (``mailcraft.conf.yml`` by default) and
is returned as a :class:`box.Box` so that sections can be reached with
attribute access (``config.mail.sender.address``). Built-in defaults are
deep-merged underneath whatever the file provides.

Examples:
    >>> from mailcraft.config import load_config
    >>> config = load_config(path="mailcraft.conf.yml")  # doctest: +SKIP
    >>> config.mail.sender.address  # doctest: +SKIP
    'robot@example.com'
"""

from __future__ import annotations

import copy
import logging
import os
import time
from pathlib import Path
from typing import Any

import yaml
from box import Box

from mailcraft.config.exceptions import (
    ConfigFileNotFoundError,
    ConfigFormatError,
    ConfigNotLoadedError,
)

log = logging.getLogger(__name__)

#: Default configuration file name searched in the working directory.
CONFIG_FILENAME = "mailcraft.conf.yml"

#: Default environment variable pointing at a configuration file.
CONFIG_ENV_VAR = "CONFIG_PATH"

DEFAULT_CONFIG: dict[str, Any] = {
    "mail": {
        "sender": {
            "address": None,
            "name": None,
            "allow_reply": True,
        },
        "boundary_prefix": "MAILCRAFT",
    },
    "logging": {
        "preset": "dev",
    },
}


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new mapping with *override* merged recursively into *base*.

    Args:
        base: Mapping providing default values.
        override: Mapping whose values win on conflict.

    Returns:
        The merged mapping. Neither input is modified.

    Examples:
        >>> deep_merge({"a": {"b": 1, "c": 2}}, {"a": {"c": 3}})
        {'a': {'b': 1, 'c': 3}}
    """
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


class ConfigLoader:
    """Load YAML configuration files into ``Box`` objects.

    Args:
        encoding: Text encoding used to read configuration files.

    Examples:
        >>> loader = ConfigLoader()
        >>> config = loader.load(path="app.yml")  # doctest: +SKIP
    """

    def __init__(self, *, encoding: str = "utf-8") -> None:
        self.encoding = encoding
        self._cache: Box | None = None
        self._loaded_at: float | None = None
        self._source: Path | None = None

    @classmethod
    def from_file(cls, path: str | Path, **kwargs: Any) -> Box:
        """Load a configuration file with a fresh loader."""
        return cls(**kwargs).load(path=path)

    @classmethod
    def from_env(cls, env_var: str = CONFIG_ENV_VAR, **kwargs: Any) -> Box:
        """Load the configuration file named by an environment variable."""
        return cls(**kwargs).load(path=_path_from_env(env_var))

    @property
    def source(self) -> Path | None:
        """Return the file the cached configuration was read from."""
        return self._source

    def load(self, path: str | Path | None = None, *, filename: str = CONFIG_FILENAME) -> Box:
        """Load configuration and cache the result.

        When *path* is given the file must exist. Otherwise *filename* is
        searched in the current working directory and the built-in
        defaults are used when it is absent.

        Args:
            path: Explicit configuration file.
            filename: File name searched in the working directory.

        Returns:
            The merged configuration.

        Raises:
            ConfigFileNotFoundError: If *path* does not exist.
            ConfigFormatError: If the file is not a YAML mapping.
        """
        if path is not None:
            source = Path(path)
            if not source.is_file():
                raise ConfigFileNotFoundError(f"Config file not found: {source}")
        else:
            candidate = Path.cwd() / filename
            source = candidate if candidate.is_file() else None

        data = self._read(source) if source is not None else {}
        self._cache = Box(deep_merge(DEFAULT_CONFIG, data), default_box=False)
        self._loaded_at = time.monotonic()
        self._source = source
        log.debug("Configuration loaded from %s", source or "built-in defaults")
        return self._cache

    def get(self, *, force_reload: bool = False, max_age: float | None = None) -> Box:
        """Return the cached configuration, loading it when needed."""
        stale = (
            max_age is not None and self._loaded_at is not None and time.monotonic() - self._loaded_at > max_age
        )
        if self._cache is None or force_reload or stale:
            return self.load(path=self._source)
        return self._cache

    def require(self) -> Box:
        """Return the cached configuration or fail if nothing was loaded."""
        if self._cache is None:
            raise ConfigNotLoadedError("Configuration not loaded yet")
        return self._cache

    def clear(self) -> None:
        """Drop the cached configuration."""
        self._cache = None
        self._loaded_at = None
        self._source = None

    def _read(self, source: Path) -> dict[str, Any]:
        try:
            data = yaml.safe_load(source.read_text(encoding=self.encoding))
        except yaml.YAMLError as exc:
            raise ConfigFormatError(f"Invalid YAML in {source}: {exc}") from exc
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigFormatError(f"Config file {source} must contain a mapping, got {type(data).__name__}")
        return data


def _path_from_env(env_var: str) -> Path:
    value = os.environ.get(env_var)
    if not value:
        raise ValueError(f"Environment variable '{env_var}' is not set or empty")
    return Path(value)


_default_loader = ConfigLoader()


def load_config(path: str | Path | None = None, *, filename: str = CONFIG_FILENAME) -> Box:
    """Load configuration into the process-wide cache."""
    return _default_loader.load(path=path, filename=filename)


def load_from_file(path: str | Path) -> Box:
    """Load a configuration file without touching the process-wide cache."""
    return ConfigLoader.from_file(path)


def load_from_env(env_var: str = CONFIG_ENV_VAR) -> Box:
    """Load the configuration file named by *env_var*.

    Raises:
        ValueError: If the environment variable is not set or empty.
    """
    return ConfigLoader.from_env(env_var)


def get_config(*, force_reload: bool = False, max_age: float | None = None) -> Box:
    """Return the process-wide configuration, loading it lazily."""
    return _default_loader.get(force_reload=force_reload, max_age=max_age)


def require_config() -> Box:
    """Return the process-wide configuration, failing if it was never loaded."""
    return _default_loader.require()


def clear_config() -> None:
    """Forget the process-wide configuration."""
    _default_loader.clear()


__all__ = [
    "CONFIG_ENV_VAR",
    "CONFIG_FILENAME",
    "DEFAULT_CONFIG",
    "ConfigLoader",
    "clear_config",
    "deep_merge",
    "get_config",
    "load_config",
    "load_from_env",
    "load_from_file",
    "require_config",
]
