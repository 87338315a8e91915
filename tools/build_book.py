#!/usr/bin/env python3
"""
Build `effective_elixir.html` from the Markdown chapters under `sources/`.

Chapters are read in the order of `CHAPTERS`, joined with a single newline,
rendered to HTML and written in one atomic replace of the output file.

Optional `book.yaml` (build root) only affects the HTML shell around the
rendered chapters; the table of contents is the `CHAPTERS` constant below.
"""

from __future__ import annotations

import argparse
import html
import os
import stat
import sys
import tempfile
from pathlib import Path
from typing import Any, Callable, Iterable

import markdown
import yaml


# Chapter names (files under sources/ without .md), in table-of-contents order.
CHAPTERS = (
    "control_structures",
)

SOURCES_NAME = "sources"
OUTPUT_NAME = "effective_elixir.html"
CONFIG_NAME = "book.yaml"

MARKDOWN_EXTENSIONS = ["fenced_code", "tables"]

Renderer = Callable[[str], str]


class BuildError(Exception):
    """Fatal build failure; `exit_code` is what the CLI returns."""

    exit_code = 1


class MissingFileError(BuildError):
    exit_code = 2

    def __init__(self, chapter: str, path: Path) -> None:
        super().__init__(f"chapter {chapter!r} not found or unreadable: {path}")
        self.chapter = chapter
        self.path = path


class RenderError(BuildError):
    pass


class WriteError(BuildError):
    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"cannot write {path}: {reason}")
        self.path = path


def load_book_config(root: Path) -> dict[str, Any]:
    """Load document metadata from `book.yaml` (optional)."""
    defaults: dict[str, Any] = {
        "title": "Effective Elixir",
        "lang": "en",
        "stylesheet": None,
        "standalone": False,
    }
    p = root / CONFIG_NAME
    if not p.is_file():
        return defaults
    try:
        cfg = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        print(f"warning: ignoring {p}: {e}", file=sys.stderr)
        return defaults
    if not isinstance(cfg, dict):
        print(f"warning: ignoring {p}: expected a mapping", file=sys.stderr)
        return defaults
    out = defaults.copy()
    out.update({k: v for k, v in cfg.items() if v is not None})
    if not isinstance(out["standalone"], bool):
        print(f"warning: {p}: standalone must be true or false, got {out['standalone']!r}", file=sys.stderr)
        out["standalone"] = False
    return out


def chapter_path(name: str, sources_dir: Path) -> Path:
    return sources_dir / f"{name}.md"


def read_chapter(name: str, sources_dir: Path) -> str:
    path = chapter_path(name, sources_dir)
    # newline="" keeps the file's own line endings intact.
    try:
        with open(path, "r", encoding="utf-8", newline="") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise MissingFileError(name, path) from e


def collect_sources(
    chapters: Iterable[str] = CHAPTERS,
    sources_dir: Path = Path(SOURCES_NAME),
) -> str:
    """Join every chapter's raw text with one newline between chapters."""
    texts: list[str] = []
    for name in chapters:
        text = read_chapter(name, sources_dir)
        print(f"  ✓ {name} ({len(text.encode('utf-8'))} bytes)")
        texts.append(text)
    return "\n".join(texts)


def markdown_to_html(text: str) -> str:
    return markdown.markdown(text, extensions=MARKDOWN_EXTENSIONS)


def render(text: str, renderer: Renderer = markdown_to_html) -> str:
    try:
        out = renderer(text)
    except Exception as e:
        raise RenderError(f"markdown rendering failed: {e}") from e
    if not isinstance(out, str):
        raise RenderError(f"renderer returned {type(out).__name__}, expected str")
    return out


def wrap_document(body: str, book: dict[str, Any]) -> str:
    """Place the rendered chapters in a minimal HTML page when `standalone` is set."""
    if book.get("standalone") is not True:
        return body
    title = html.escape(str(book.get("title") or ""))
    lang = html.escape(str(book.get("lang") or "en"))
    stylesheet = book.get("stylesheet")
    link = f'\n  <link rel="stylesheet" href="{html.escape(str(stylesheet))}">' if stylesheet else ""
    return f"""<!DOCTYPE html>
<html lang="{lang}">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{title}</title>{link}
</head>
<body>
<article>
{body}
</article>
</body>
</html>
"""


def output_mode(path: Path) -> int:
    """Mode for the new output: the existing file's, else 0666 minus the umask."""
    try:
        return stat.S_IMODE(os.stat(path).st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def write_output(text: str, path: Path) -> None:
    """Replace `path` with `text`; on failure the old file (if any) is untouched."""
    tmp_name = None
    replaced = False
    try:
        mode = output_mode(path)
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            newline="",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as f:
            tmp_name = f.name
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
        replaced = True
    except (OSError, UnicodeEncodeError) as e:
        raise WriteError(path, getattr(e, "strerror", None) or str(e)) from e
    finally:
        if not replaced and tmp_name and os.path.exists(tmp_name):
            os.unlink(tmp_name)


def run(
    root: Path | None = None,
    chapters: Iterable[str] = CHAPTERS,
    renderer: Renderer = markdown_to_html,
) -> Path:
    root = Path.cwd() if root is None else root
    chapters = tuple(chapters)
    book = load_book_config(root)
    sources_dir = root / SOURCES_NAME
    out_path = root / OUTPUT_NAME

    print(f"Found {len(chapters)} chapters")
    text = collect_sources(chapters, sources_dir)
    body = render(text, renderer)
    write_output(wrap_document(body, book), out_path)
    print(f"  ✓ Output → {out_path}")
    print("Done.")
    return out_path


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Build effective_elixir.html from sources/*.md")
    ap.add_argument("--root", default=".", help="Build root containing sources/ (default: cwd)")
    args = ap.parse_args(argv)

    root = Path(args.root).resolve()
    if not root.is_dir():
        print(f"error: build root not found: {root}", file=sys.stderr)
        return 2

    try:
        run(root)
    except BuildError as e:
        print(f"error: {e}", file=sys.stderr)
        return e.exit_code
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
