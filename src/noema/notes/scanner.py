"""Note scanner — discovers markdown files under a root and strips front matter."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any

import frontmatter

from noema.notes.models import Note

logger = logging.getLogger(__name__)

MARKDOWN_SUFFIXES = frozenset({".md", ".markdown"})

# Opening delimiter line, then lazily everything up to the next line that is exactly ---
# (LF or CRLF line endings)
FRONTMATTER_PATTERN = re.compile(r"\A---[ \t]*\r?\n(.*?)^---[ \t]*\r?$", re.DOTALL | re.MULTILINE)


class ScanError(Exception):
    """Base error for note scanning."""


class RootNotADirectoryError(ScanError):
    """Raised when the scan root does not exist or is not a directory."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"not a directory: {path}")


class WalkError(ScanError):
    """Raised when the recursive walk itself fails (e.g. permission denied)."""

    def __init__(self, path: Path, original: OSError) -> None:
        self.path = path
        self.original = original
        super().__init__(f"walk error at {path}: {original}")


class ReadError(ScanError):
    """Raised when a markdown file cannot be read as text."""

    def __init__(self, path: Path, original: Exception) -> None:
        self.path = path
        self.original = original
        super().__init__(f"read error for {path}: {original}")


def is_hidden(name: str) -> bool:
    return name.startswith(".")


def is_markdown(path: Path) -> bool:
    return path.suffix.lower() in MARKDOWN_SUFFIXES


def strip_frontmatter(content: str) -> str:
    """Remove a leading ``---`` delimited metadata block.

    An unterminated block leaves the content untouched.
    """
    stripped = content.lstrip()
    match = FRONTMATTER_PATTERN.match(stripped)
    if match is None:
        return content
    return stripped[match.end() :].lstrip()


def scan_notes(root: Path) -> list[Note]:
    """Scan *root* recursively for markdown notes.

    Hidden entries (leading dot) below the root are pruned along with their
    subtrees. Symlinks are neither followed nor read. Directory entries are
    visited in sorted order so repeated scans are identical.

    Raises:
        RootNotADirectoryError: *root* is missing or not a directory.
        WalkError: the walk failed part-way.
        ReadError: a markdown file could not be read as UTF-8 text.
    """
    if not root.is_dir():
        raise RootNotADirectoryError(root)

    def _on_walk_error(err: OSError) -> None:
        raise WalkError(Path(err.filename or root), err)

    notes: list[Note] = []
    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_walk_error, followlinks=False):
        # Prune in place so os.walk skips hidden subtrees
        dirnames[:] = sorted(d for d in dirnames if not is_hidden(d))
        current = Path(dirpath)
        for name in sorted(filenames):
            if is_hidden(name):
                continue
            path = current / name
            if not is_markdown(path) or path.is_symlink() or not path.is_file():
                continue
            notes.append(read_note(path))

    logger.info("Scanned %d notes under %s", len(notes), root)
    return notes


def read_note(path: Path) -> Note:
    """Read a single markdown file into a Note."""
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ReadError(path, e) from e

    body = strip_frontmatter(raw)
    metadata = _parse_metadata(raw, path) if body != raw else {}
    title = metadata.get("title") or path.stem.replace("-", " ").replace("_", " ")
    return Note(path=path, raw=raw, body=body, title=str(title), metadata=metadata)


def _parse_metadata(raw: str, path: Path) -> dict[str, Any]:
    """Parse YAML front matter. Invalid YAML yields no metadata."""
    try:
        post = frontmatter.loads(raw.lstrip())
    except Exception as e:
        logger.warning("Invalid front matter in %s: %s", path, e)
        return {}
    return dict(post.metadata or {})
