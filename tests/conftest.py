"""Shared fixtures for the build tests."""

from __future__ import annotations

from pathlib import Path

import pytest


class RecordingRenderer:
    """Stub renderer: records every call and returns a marked-up copy of the input."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    def __call__(self, text: str) -> str:
        self.calls.append(text)
        return f"<pre>{text}</pre>"


@pytest.fixture
def renderer() -> RecordingRenderer:
    return RecordingRenderer()


@pytest.fixture
def book_root(tmp_path: Path) -> Path:
    """A build root with an empty sources/ directory."""
    (tmp_path / "sources").mkdir()
    return tmp_path


@pytest.fixture
def write_chapter(book_root: Path):
    def _write(name: str, text: str) -> Path:
        p = book_root / "sources" / f"{name}.md"
        p.write_bytes(text.encode("utf-8"))
        return p

    return _write
