"""Note operations — scanning, chunking, and watching a user-chosen notes directory."""

from noema.notes.chunker import DEFAULT_MAX_CHARS, chunk_note, chunk_notes
from noema.notes.events import RescanEvent
from noema.notes.models import Chunk, Note
from noema.notes.scanner import (
    ReadError,
    RootNotADirectoryError,
    ScanError,
    WalkError,
    scan_notes,
    strip_frontmatter,
)
from noema.notes.watcher import NotesWatcher, watch_notes

__all__ = [
    "DEFAULT_MAX_CHARS",
    "Chunk",
    "Note",
    "NotesWatcher",
    "ReadError",
    "RescanEvent",
    "RootNotADirectoryError",
    "ScanError",
    "WalkError",
    "chunk_note",
    "chunk_notes",
    "scan_notes",
    "strip_frontmatter",
    "watch_notes",
]
