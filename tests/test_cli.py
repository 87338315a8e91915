from __future__ import annotations

from pathlib import Path

import pytest

from build_book import CHAPTERS, OUTPUT_NAME, main


@pytest.fixture
def full_book(book_root: Path, write_chapter) -> Path:
    for name in CHAPTERS:
        write_chapter(name, f"# {name}\n\nSome text.\n")
    return book_root


def test_main_builds_into_root(full_book: Path) -> None:
    assert main(["--root", str(full_book)]) == 0
    assert "<h1>" in (full_book / OUTPUT_NAME).read_text(encoding="utf-8")


def test_main_defaults_to_cwd(full_book: Path, monkeypatch) -> None:
    monkeypatch.chdir(full_book)

    assert main([]) == 0
    assert (full_book / OUTPUT_NAME).is_file()


def test_main_missing_chapter_exit_code(book_root: Path, capsys) -> None:
    assert main(["--root", str(book_root)]) == 2

    err = capsys.readouterr().err
    assert err.startswith("error: ")
    assert CHAPTERS[0] in err
    assert not (book_root / OUTPUT_NAME).exists()


def test_main_write_error_exit_code(full_book: Path, capsys) -> None:
    (full_book / OUTPUT_NAME).mkdir()

    assert main(["--root", str(full_book)]) == 1
    assert OUTPUT_NAME in capsys.readouterr().err


def test_main_unknown_root(tmp_path: Path, capsys) -> None:
    assert main(["--root", str(tmp_path / "nope")]) == 2
    assert "build root not found" in capsys.readouterr().err


def test_main_rejects_unknown_flags() -> None:
    with pytest.raises(SystemExit) as exc:
        main(["--watch"])

    assert exc.value.code == 2
