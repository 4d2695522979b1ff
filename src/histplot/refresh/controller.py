"""
Reload-on-change orchestration.

Two event sources feed one queue: the file watcher (observer thread) and the
host's per-bar callback (interval check). `pump()` drains the queue on the
caller's thread and runs at most one reload at a time. A reload is a full
rebuild: every tracked chart object is removed before the CSV is parsed
again, so a failed load never leaves a half-drawn set behind.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable

from histplot.core.config import PlotterConfig
from histplot.core.planner import ArtifactKind, plan_trades
from histplot.core.repository import TradeRepository
from histplot.errors import ArtifactNotFound, CsvFileNotFound
from histplot.hosts.base import ChartHost, apply_theme, chart_context, draw_command
from histplot.io.trades_csv import ParseResult, load_trades_csv
from histplot.refresh.watcher import CsvFileWatcher

log = logging.getLogger(__name__)


class RefreshState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    PLOTTED = "plotted"


class RefreshTrigger(str, Enum):
    INITIAL = "initial"
    FILE_CHANGED = "file_changed"
    INTERVAL = "interval"
    MANUAL = "manual"


def _empty_ids() -> dict[ArtifactKind, dict[str, str]]:
    return {k: {} for k in ArtifactKind}


class RefreshController:
    def __init__(
        self,
        host: ChartHost,
        config: PlotterConfig,
        *,
        clock: Callable[[], float] = time.monotonic,
        watcher_factory: Callable[..., CsvFileWatcher] = CsvFileWatcher,
    ) -> None:
        self.host = host
        self.config = config
        self.clock = clock
        self.watcher_factory = watcher_factory

        self.repository = TradeRepository(host.symbol.name)
        self.artifact_ids = _empty_ids()
        self.state = RefreshState.IDLE
        self.reload_count = 0
        self.last_result: ParseResult | None = None
        # ids the host refused to remove; retried on every clear
        self.stale_ids: list[str] = []

        self._queue: queue.Queue[RefreshTrigger] = queue.Queue()
        self._lock = threading.Lock()
        self._last_refresh: float | None = None
        self._watcher: CsvFileWatcher | None = None

    # ---- lifecycle ----
    def start(self) -> None:
        """Applies the chart theme, plots the file once and starts watching it."""
        try:
            apply_theme(self.host, self.config.theme())
        except Exception:
            log.exception("Could not apply chart theme")

        self.submit(RefreshTrigger.INITIAL)
        self.pump()

        if self.config.refresh_interval_minutes > 0 and Path(self.config.csv_path).is_file():
            try:
                self._watcher = self.watcher_factory(self.config.csv_path, self.notify_file_changed)
                self._watcher.start()
            except Exception as exc:
                self._watcher = None
                log.warning("Could not set up file watcher: %s", exc)

    def stop(self) -> None:
        if self._watcher is not None:
            self._watcher.stop()
            self._watcher = None

    @property
    def watching(self) -> bool:
        return self._watcher is not None

    # ---- event sources ----
    def submit(self, trigger: RefreshTrigger) -> None:
        """Thread-safe; only enqueues."""
        self._queue.put(trigger)

    def notify_file_changed(self, reason: str = "modified") -> None:
        log.debug("CSV file event: %s", reason)
        self.submit(RefreshTrigger.FILE_CHANGED)

    def _interval_due(self) -> bool:
        minutes = self.config.refresh_interval_minutes
        if minutes <= 0:
            return False
        if self._last_refresh is None:
            return True
        return self.clock() - self._last_refresh >= minutes * 60

    def on_bar(self) -> int:
        """Per-update callback from the host. Returns the number of reloads run."""
        if self._interval_due():
            self.submit(RefreshTrigger.INTERVAL)
        return self.pump()

    def refresh(self, trigger: RefreshTrigger = RefreshTrigger.MANUAL) -> int:
        self.submit(trigger)
        return self.pump()

    # ---- serialized handler ----
    def _accept(self, trigger: RefreshTrigger) -> bool:
        if trigger == RefreshTrigger.FILE_CHANGED and self._last_refresh is not None:
            if self.clock() - self._last_refresh < self.config.cooldown_seconds:
                log.debug("Ignoring file change inside %.1fs cooldown", self.config.cooldown_seconds)
                return False
        if trigger == RefreshTrigger.INTERVAL and not self._interval_due():
            return False
        return True

    def pump(self) -> int:
        handled = 0
        with self._lock:
            while True:
                try:
                    trigger = self._queue.get_nowait()
                except queue.Empty:
                    break
                if self._accept(trigger):
                    self._reload(trigger)
                    handled += 1
        return handled

    def _remove(self, artifact_id: str) -> bool:
        """Removes one chart object. Returns False if it may still be on the chart."""
        try:
            self.host.remove_object(artifact_id)
        except ArtifactNotFound:
            log.debug("Chart object already gone: %s", artifact_id)
        except Exception as exc:
            log.warning("Could not remove chart object %s: %s", artifact_id, exc)
            return False
        return True

    def _remove_all(self, artifact_ids: Iterable[str]) -> None:
        pending = list(dict.fromkeys([*self.stale_ids, *artifact_ids]))
        self.stale_ids = [i for i in pending if not self._remove(i)]

    def _clear_plots(self) -> None:
        self._remove_all(i for ids in self.artifact_ids.values() for i in ids.values())
        self.artifact_ids = _empty_ids()

    def _fail(self, drawn: list[str]) -> None:
        self._remove_all(drawn)
        self.repository.clear()
        self.artifact_ids = _empty_ids()
        self.state = RefreshState.IDLE

    def _reload(self, trigger: RefreshTrigger) -> bool:
        self._last_refresh = self.clock()
        self.reload_count += 1
        self.state = RefreshState.LOADING
        cfg = self.config
        drawn: list[str] = []

        try:
            self._clear_plots()
            self.repository.clear()

            result = load_trades_csv(
                cfg.csv_path,
                active_symbol=self.repository.symbol,
                date_format=cfg.date_format,
                decimal_separator=cfg.decimal_separator,
                time_offset_hours=cfg.time_offset_hours,
                debug=cfg.debug,
            )
            self.repository.replace(result.records)

            plan = plan_trades(self.repository.all(), config=cfg, chart=chart_context(self.host))
            for cmd in plan.commands:
                draw_command(self.host, cmd)
                drawn.append(cmd.artifact_id)
        except CsvFileNotFound as exc:
            log.warning("%s", exc)
            self.last_result = None
            self._fail(drawn)
            return False
        except Exception:
            log.exception("Error loading trades (%s)", trigger.value)
            self.last_result = None
            self._fail(drawn)
            return False

        self.artifact_ids = {k: dict(v) for k, v in plan.artifact_ids.items()}
        # a stale id drawn again by this pass is tracked now
        redrawn = set(drawn)
        self.stale_ids = [i for i in self.stale_ids if i not in redrawn]
        self.last_result = result
        self.state = RefreshState.PLOTTED
        log.info("Refreshed trades at %s (%s)", datetime.now().strftime("%Y-%m-%d %H:%M:%S"), trigger.value)
        return True
