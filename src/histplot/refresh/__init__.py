"""Reload-on-change: file watcher and the serialized refresh controller."""

from .controller import RefreshController, RefreshState, RefreshTrigger
from .watcher import CsvFileWatcher

__all__ = [
    "CsvFileWatcher",
    "RefreshController",
    "RefreshState",
    "RefreshTrigger",
]
