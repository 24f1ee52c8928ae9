"""Shared pytest fixtures for the mailcraft test suite."""

from __future__ import annotations

# Disable Rich colors and force wide terminal BEFORE any imports
# Rich checks these at import time
import os

os.environ["NO_COLOR"] = "1"
os.environ["TERM"] = "dumb"
os.environ["FORCE_COLOR"] = "0"
os.environ["COLUMNS"] = "200"

from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from mailcraft.config import clear_config
from mailcraft.mail import BoundaryAllocator, MailMessage, SenderSettings

# pylint: disable=redefined-outer-name


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Run every test from an empty directory with a fresh config cache."""
    workdir = tmp_path / "cwd"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    clear_config()
    yield
    clear_config()


@pytest.fixture
def sender() -> SenderSettings:
    """Return sender settings used by message fixtures."""
    return SenderSettings(address="robot@example.com", name="Robot")


@pytest.fixture
def boundaries() -> BoundaryAllocator:
    """Return an allocator with a fixed clock and a short prefix."""
    return BoundaryAllocator(prefix="TEST", clock=lambda: 1_700_000_000_000_000_000)


@pytest.fixture
def make_message(sender: SenderSettings, boundaries: BoundaryAllocator) -> Callable[..., MailMessage]:
    """Build messages sharing the test sender and allocator."""

    def _make(subject: str = "Subject", text: str = "") -> MailMessage:
        return MailMessage(subject, text, settings=sender, boundaries=boundaries)

    return _make


@pytest.fixture
def report_pdf(tmp_path: Path) -> Path:
    """Create a small PDF attachment."""
    path = tmp_path / "report.pdf"
    path.write_bytes(b"%PDF-1.4\n" + bytes(range(256)) * 4)
    return path


@pytest.fixture
def notes_txt(tmp_path: Path) -> Path:
    """Create a plain text attachment."""
    path = tmp_path / "notes.txt"
    path.write_text("first line\nsecond line\n", encoding="utf-8")
    return path
