"""Error taxonomy for the history plotter.

Nothing here is meant to reach the chart host: the parser turns row problems
into diagnostics and the refresh controller catches the rest.
"""

from __future__ import annotations


class HistoryPlotterError(Exception):
    """Base class for plotter errors."""


class CsvFileNotFound(HistoryPlotterError, FileNotFoundError):
    def __init__(self, path) -> None:
        super().__init__(f"CSV file not found: {path}")
        self.path = path


class HostBindingUnavailable(HistoryPlotterError):
    """A cosmetic host call is not supported by the current chart host."""

    def __init__(self, capability: str) -> None:
        super().__init__(f"host does not support: {capability}")
        self.capability = capability


class ArtifactNotFound(HistoryPlotterError, KeyError):
    def __init__(self, artifact_id: str) -> None:
        super().__init__(artifact_id)
        self.artifact_id = artifact_id

    def __str__(self) -> str:
        return f"chart object not found: {self.artifact_id}"
