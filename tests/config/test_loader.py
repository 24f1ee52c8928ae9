"""Tests for the configuration loader module.

Covers the ConfigLoader class and the process-wide functional API:
file discovery, default merging, caching and error reporting.
"""

# pylint: disable=protected-access,missing-function-docstring

from __future__ import annotations

import time
from pathlib import Path

import pytest
from box import Box

from mailcraft.config import (
    CONFIG_FILENAME,
    ConfigFileNotFoundError,
    ConfigFormatError,
    ConfigLoader,
    ConfigNotLoadedError,
    clear_config,
    get_config,
    load_config,
    load_from_env,
    load_from_file,
    require_config,
)
from mailcraft.config.exceptions import ConfigError, MailcraftError
from mailcraft.config.loader import deep_merge


def _write(path: Path, content: str) -> Path:
    path.write_text(content, encoding="utf-8")
    return path


def test_defaults_without_file() -> None:
    config = load_config()
    assert isinstance(config, Box)
    assert config.mail.boundary_prefix == "MAILCRAFT"
    assert config.mail.sender.address is None
    assert config.mail.sender.allow_reply is True
    assert config.logging.preset == "dev"


def test_discovers_file_in_cwd() -> None:
    _write(Path(CONFIG_FILENAME), "mail:\n  sender:\n    address: robot@example.com\n")
    config = load_config()
    assert config.mail.sender.address == "robot@example.com"
    assert config.mail.sender.allow_reply is True  # merged from defaults
    assert config.mail.boundary_prefix == "MAILCRAFT"


def test_custom_filename() -> None:
    _write(Path("other.yml"), "logging:\n  preset: prod\n")
    assert load_config(filename="other.yml").logging.preset == "prod"


def test_explicit_path(tmp_path: Path) -> None:
    path = _write(tmp_path / "custom.yml", "extra:\n  key: value\n")
    config = load_config(path=path)
    assert config.extra.key == "value"
    assert config.mail.boundary_prefix == "MAILCRAFT"


def test_explicit_path_missing(tmp_path: Path) -> None:
    with pytest.raises(ConfigFileNotFoundError, match="Config file not found"):
        load_config(path=tmp_path / "missing.yml")


def test_missing_file_error_types() -> None:
    assert issubclass(ConfigFileNotFoundError, FileNotFoundError)
    assert issubclass(ConfigFormatError, ValueError)
    assert issubclass(ConfigError, MailcraftError)


def test_invalid_yaml(tmp_path: Path) -> None:
    path = _write(tmp_path / "broken.yml", "mail: [unclosed\n")
    with pytest.raises(ConfigFormatError, match="Invalid YAML"):
        load_config(path=path)


def test_non_mapping_yaml(tmp_path: Path) -> None:
    path = _write(tmp_path / "list.yml", "- a\n- b\n")
    with pytest.raises(ConfigFormatError, match="must contain a mapping"):
        load_config(path=path)


def test_empty_file_uses_defaults(tmp_path: Path) -> None:
    path = _write(tmp_path / "empty.yml", "")
    assert load_config(path=path).mail.boundary_prefix == "MAILCRAFT"


def test_box_is_strict() -> None:
    config = load_config()
    with pytest.raises(AttributeError):
        _ = config.does_not_exist


def test_get_config_loads_lazily() -> None:
    config = get_config()
    assert config.logging.preset == "dev"
    assert get_config() is config


def test_get_config_force_reload() -> None:
    first = get_config()
    _write(Path(CONFIG_FILENAME), "logging:\n  preset: prod\n")
    assert get_config() is first
    assert get_config(force_reload=True).logging.preset == "prod"


def test_get_config_max_age() -> None:
    loader = ConfigLoader()
    first = loader.get()
    assert loader.get(max_age=60) is first
    loader._loaded_at = time.monotonic() - 120
    assert loader.get(max_age=60) is not first


def test_reload_keeps_source(tmp_path: Path) -> None:
    path = _write(tmp_path / "app.yml", "logging:\n  preset: prod\n")
    loader = ConfigLoader()
    loader.load(path=path)
    assert loader.source == path
    _write(path, "logging:\n  preset: debug\n")
    assert loader.get(force_reload=True).logging.preset == "debug"


def test_require_config() -> None:
    with pytest.raises(ConfigNotLoadedError, match="not loaded"):
        require_config()
    loaded = load_config()
    assert require_config() is loaded


def test_clear_config() -> None:
    load_config()
    clear_config()
    with pytest.raises(ConfigNotLoadedError):
        require_config()


def test_load_from_file_does_not_touch_cache(tmp_path: Path) -> None:
    path = _write(tmp_path / "app.yml", "logging:\n  preset: prod\n")
    assert load_from_file(path).logging.preset == "prod"
    with pytest.raises(ConfigNotLoadedError):
        require_config()


def test_load_from_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = _write(tmp_path / "env.yml", "logging:\n  preset: debug\n")
    monkeypatch.setenv("MAILCRAFT_TEST_CONFIG", str(path))
    assert load_from_env("MAILCRAFT_TEST_CONFIG").logging.preset == "debug"


def test_load_from_env_unset(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MAILCRAFT_TEST_CONFIG", raising=False)
    with pytest.raises(ValueError, match="not set or empty"):
        load_from_env("MAILCRAFT_TEST_CONFIG")


def test_encoding_option(tmp_path: Path) -> None:
    path = tmp_path / "latin.yml"
    path.write_bytes("mail:\n  sender:\n    name: Général\n".encode("latin-1"))
    assert ConfigLoader(encoding="latin-1").load(path=path).mail.sender.name == "Général"


class TestDeepMerge:
    """Recursive merge used for defaults and presets."""

    def test_nested_override(self) -> None:
        """Nested keys are merged, not replaced."""
        assert deep_merge({"a": {"b": 1, "c": 2}}, {"a": {"c": 3}}) == {"a": {"b": 1, "c": 3}}

    def test_inputs_untouched(self) -> None:
        """Neither input is modified."""
        base = {"a": {"b": 1}}
        override = {"a": {"b": 2}, "d": [1]}
        merged = deep_merge(base, override)
        merged["a"]["b"] = 99
        merged["d"].append(2)
        assert base == {"a": {"b": 1}}
        assert override == {"a": {"b": 2}, "d": [1]}

    def test_scalar_replaces_mapping(self) -> None:
        """Non-mapping values replace mappings."""
        assert deep_merge({"a": {"b": 1}}, {"a": None}) == {"a": None}
