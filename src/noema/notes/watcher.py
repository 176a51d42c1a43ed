"""Notes watcher — monitors the notes root and re-scans after changes settle.

watchdog delivers raw filesystem events on its observer thread.  Bursts of
events (editors typically fire several per save) are collapsed by a
debounce timer: every relevant event restarts the timer, and only when it
expires does the watcher run a fresh :func:`scan_notes` and hand the result
to the subscriber as a :class:`RescanEvent`.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import TYPE_CHECKING

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from noema.notes.events import RescanEvent
from noema.notes.scanner import (
    RootNotADirectoryError,
    ScanError,
    is_hidden,
    is_markdown,
    scan_notes,
)

if TYPE_CHECKING:
    from noema.notes.events import RescanCallback

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_MS = 400


class _NotesEventHandler(FileSystemEventHandler):
    """Forwards events that can change the set or content of notes."""

    def __init__(self, root: Path, on_event: RescanTrigger) -> None:
        self.root = root
        self.on_event = on_event

    def _is_relevant(self, path: str | bytes, is_directory: bool) -> bool:
        p = Path(path.decode() if isinstance(path, bytes) else path)
        try:
            rel = p.relative_to(self.root)
        except ValueError:
            return False
        if any(is_hidden(part) for part in rel.parts):
            return False
        return is_directory or is_markdown(p)

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type in ("opened", "closed_no_write"):
            return
        paths = [event.src_path]
        if getattr(event, "dest_path", ""):
            paths.append(event.dest_path)
        if any(self._is_relevant(p, event.is_directory) for p in paths):
            logger.debug("Notes change: %s %s", event.event_type, event.src_path)
            self.on_event()


class RescanTrigger:
    """Debounced re-scan: collapses rapid triggers into one scan + callback."""

    def __init__(self, root: Path, on_change: RescanCallback, debounce_ms: int) -> None:
        self.root = root
        self.on_change = on_change
        self.debounce_s = debounce_ms / 1000.0
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None

    def __call__(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.debounce_s, self._fire)
            self._timer.daemon = True
            self._timer.start()

    @property
    def pending(self) -> bool:
        """Whether a re-scan is waiting for the debounce window to close."""
        with self._lock:
            return self._timer is not None

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def _fire(self) -> None:
        with self._lock:
            self._timer = None

        try:
            event = RescanEvent(root=self.root, notes=scan_notes(self.root))
        except ScanError as e:
            logger.warning("Re-scan of %s failed: %s", self.root, e)
            event = RescanEvent(root=self.root, error=e)

        try:
            self.on_change(event)
        except Exception:
            logger.exception("Rescan callback %s failed", self.on_change)


class NotesWatcher:
    """Watches a notes root for changes and re-scans it.

    Usage:
        watcher = NotesWatcher(root, on_change=my_callback)
        watcher.start()  # non-blocking
        ...
        watcher.stop()

    or ``watcher.run()`` to block until :meth:`stop` is called from
    another thread.
    """

    def __init__(
        self,
        root: Path,
        on_change: RescanCallback,
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
    ) -> None:
        if not root.is_dir():
            raise RootNotADirectoryError(root)
        self.root = root.resolve()
        self.trigger = RescanTrigger(self.root, on_change, debounce_ms)
        self.handler = _NotesEventHandler(self.root, self.trigger)
        self._observer: Observer | None = None
        self._stopped = threading.Event()

    def start(self) -> None:
        """Start watching the notes root (non-blocking)."""
        self._stopped.clear()
        self._observer = Observer()
        self._observer.schedule(self.handler, str(self.root), recursive=True)
        self._observer.start()
        logger.info("Watching notes at %s", self.root)

    def stop(self) -> None:
        """Stop the watcher and drop any pending re-scan."""
        self.trigger.cancel()
        observer, self._observer = self._observer, None
        if observer is not None:
            observer.stop()
            observer.join()
            logger.info("Notes watcher stopped")
        self._stopped.set()

    def run(self) -> None:
        """Start watching and block until :meth:`stop` is called."""
        self.start()
        try:
            self._stopped.wait()
        finally:
            self.stop()


def watch_notes(
    root: Path,
    on_change: RescanCallback,
    debounce_ms: int = DEFAULT_DEBOUNCE_MS,
) -> None:
    """Watch *root* and call *on_change* after each debounced re-scan.

    Blocks until interrupted (KeyboardInterrupt propagates after cleanup).
    """
    NotesWatcher(root, on_change, debounce_ms).run()
