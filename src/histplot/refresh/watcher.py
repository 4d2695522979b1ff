from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

log = logging.getLogger(__name__)


class _CsvWatchHandler(FileSystemEventHandler):
    def __init__(self, path: Path, on_change: Callable[[str], None]) -> None:
        super().__init__()
        self.path = os.path.abspath(path)
        self.on_change = on_change

    def _matches(self, event: FileSystemEvent) -> bool:
        if event.is_directory:
            return False
        if os.path.abspath(event.src_path) == self.path:
            return True
        # editors often write to a temp file and move it over the original
        dest = getattr(event, "dest_path", "")
        return bool(dest) and os.path.abspath(dest) == self.path

    def on_modified(self, event: FileSystemEvent) -> None:
        if self._matches(event):
            self.on_change("modified")

    def on_created(self, event: FileSystemEvent) -> None:
        if self._matches(event):
            self.on_change("created")

    def on_moved(self, event: FileSystemEvent) -> None:
        if self._matches(event):
            self.on_change("moved")


class CsvFileWatcher:
    """
    Watches one file and calls `on_change(reason)` from the observer thread.

    The callback must not touch chart state itself; the refresh controller
    passes it `submit`, which only enqueues a trigger.
    """

    def __init__(self, path: str | Path, on_change: Callable[[str], None]) -> None:
        self.path = Path(path)
        self.on_change = on_change
        self._observer = None

    @property
    def running(self) -> bool:
        return self._observer is not None

    def start(self) -> None:
        if self._observer is not None:
            return
        watch_dir = str(self.path.resolve().parent)
        handler = _CsvWatchHandler(self.path.resolve(), self.on_change)
        observer = Observer()
        observer.schedule(handler, watch_dir, recursive=False)
        observer.daemon = True
        observer.start()
        self._observer = observer
        log.info("File watcher set up for: %s", self.path)

    def stop(self) -> None:
        observer = self._observer
        self._observer = None
        if observer is None:
            return
        observer.stop()
        observer.join(timeout=1.0)
