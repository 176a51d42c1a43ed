"""Note chunker — splits note bodies into bounded-length chunks for embedding.

Boundary preference, for text longer than the budget:

1. Paragraphs (blank line).
2. Last line break inside a ``max_chars + 1`` lookahead window.
3. Last space inside the window.
4. Hard cut at ``max_chars``.

A budget of 0 disables splitting entirely.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from noema.notes.models import Chunk

if TYPE_CHECKING:
    from collections.abc import Iterable

    from noema.notes.models import Note

logger = logging.getLogger(__name__)

# Keeps chunks small enough for typical local embedding models
DEFAULT_MAX_CHARS = 512


def chunk_note(note: Note, max_chars: int = DEFAULT_MAX_CHARS) -> list[Chunk]:
    """Split a single note body into chunks with contiguous indices."""
    if max_chars < 0:
        raise ValueError(f"max_chars must be >= 0, got {max_chars}")

    body = note.body.strip()
    if not body:
        return []

    texts = [t.strip() for t in _split_into_chunks(body, max_chars)]
    return [
        Chunk(text=text, note_path=note.path, index=idx)
        for idx, text in enumerate(t for t in texts if t)
    ]


def chunk_notes(notes: Iterable[Note], max_chars: int = DEFAULT_MAX_CHARS) -> list[Chunk]:
    """Chunk all notes in order. Indices restart at zero for each note."""
    chunks: list[Chunk] = []
    count = 0
    for note in notes:
        chunks.extend(chunk_note(note, max_chars))
        count += 1
    logger.debug("Chunked %d notes into %d chunks (max %d chars)", count, len(chunks), max_chars)
    return chunks


def _split_into_chunks(text: str, max_chars: int) -> list[str]:
    if max_chars == 0:
        return [text]

    result: list[str] = []
    for para in text.split("\n\n"):
        para = para.strip()
        if not para:
            continue
        if len(para) <= max_chars:
            result.append(para)
        else:
            result.extend(_split_long_text(para, max_chars))

    if not result and text.strip():
        result.extend(_split_long_text(text.strip(), max_chars))
    return result


def _split_long_text(text: str, max_chars: int) -> list[str]:
    result: list[str] = []
    remaining = text
    while remaining:
        if len(remaining) <= max_chars:
            result.append(remaining.strip())
            break
        chunk, remaining = _split_at_boundary(remaining, max_chars)
        result.append(chunk)
    return result


def _split_at_boundary(text: str, max_chars: int) -> tuple[str, str]:
    """Cut at the last newline in the window, else the last space, else hard cut."""
    window = text[: max_chars + 1]

    pos = window.rfind("\n")
    if pos == -1:
        pos = window.rfind(" ")
    if pos != -1:
        return text[:pos].strip(), text[pos + 1 :].lstrip()

    return text[:max_chars], text[max_chars:].lstrip()
