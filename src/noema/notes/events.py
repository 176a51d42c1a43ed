"""Typed rescan events delivered to watcher subscribers."""

from __future__ import annotations

from dataclasses import dataclass, field
from time import time
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from noema.notes.models import Note
    from noema.notes.scanner import ScanError


@dataclass(frozen=True, slots=True)
class RescanEvent:
    """Result of a debounced re-scan of the notes root.

    Exactly one of ``notes`` (possibly empty) or ``error`` is meaningful:
    a failed scan carries the error and no notes.
    """

    root: Path
    notes: list[Note] = field(default_factory=list)
    error: ScanError | None = None
    timestamp: float = field(default_factory=time)

    @property
    def ok(self) -> bool:
        return self.error is None


# Callback signature: fn(event) -> None, invoked on the watcher's timer thread
type RescanCallback = Callable[[RescanEvent], None]
