import logging

import pytest

from conftest import BUY_ROW, OPEN_ROW, SELL_ROW, RecordingHost, make_csv
from histplot.core.config import PlotterConfig
from histplot.core.planner import ArtifactKind
from histplot.hosts.base import CAP_BACKGROUND_COLOR, CAP_CANDLE_COLORS, CAP_GRID
from histplot.refresh.controller import RefreshController, RefreshState, RefreshTrigger


class FakeWatcher:
    instances = []

    def __init__(self, path, on_change):
        self.path = path
        self.on_change = on_change
        self.started = False
        self.stopped = False
        FakeWatcher.instances.append(self)

    def start(self):
        self.started = True

    def stop(self):
        self.stopped = True


@pytest.fixture(autouse=True)
def _reset_watchers():
    FakeWatcher.instances.clear()


def _controller(host, clock, csv_path, **cfg):
    config = PlotterConfig(csv_path=str(csv_path), **cfg)
    return RefreshController(host, config, clock=clock, watcher_factory=FakeWatcher)


def _artifact_count(controller):
    return sum(len(ids) for ids in controller.artifact_ids.values())


def test_start_plots_trades(host, clock, trades_csv):
    ctl = _controller(host, clock, trades_csv)
    ctl.start()

    assert ctl.state == RefreshState.PLOTTED
    assert ctl.reload_count == 1
    assert len(ctl.repository) == 3
    assert ctl.last_result.skipped_symbol == 1
    # buy: 5 artifacts, sell: 5, open (no levels): 3
    assert len(host.objects) == 13
    assert _artifact_count(ctl) == 13
    assert set(host.objects) == {i for ids in ctl.artifact_ids.values() for i in ids.values()}


def test_start_applies_theme_and_installs_watcher(host, clock, trades_csv):
    ctl = _controller(host, clock, trades_csv)
    ctl.start()

    assert host.settings["grid"] is False
    assert host.settings["background_image"] is False
    assert "background" in host.settings and "candles" in host.settings

    assert ctl.watching
    (watcher,) = FakeWatcher.instances
    assert watcher.started and watcher.path == str(trades_csv)

    ctl.stop()
    assert watcher.stopped and not ctl.watching


def test_no_watcher_when_interval_disabled(host, clock, trades_csv):
    ctl = _controller(host, clock, trades_csv, refresh_interval_minutes=0)
    ctl.start()
    assert not ctl.watching
    clock.advance(3600)
    assert ctl.on_bar() == 0


def test_missing_cosmetic_capability_is_not_fatal(clock, trades_csv, caplog):
    host = RecordingHost(capabilities={CAP_BACKGROUND_COLOR, CAP_CANDLE_COLORS, CAP_GRID})
    ctl = _controller(host, clock, trades_csv)
    with caplog.at_level(logging.INFO, logger="histplot"):
        ctl.start()

    assert "background_image" not in host.settings
    assert ctl.state == RefreshState.PLOTTED
    assert "Could not apply chart setting" in caplog.text


def test_two_file_changes_within_cooldown_reload_once(host, clock, trades_csv):
    ctl = _controller(host, clock, trades_csv)

    ctl.notify_file_changed()
    ctl.notify_file_changed()
    assert ctl.pump() == 1
    assert ctl.reload_count == 1
    count = len(host.objects)

    clock.advance(2)
    ctl.notify_file_changed()
    assert ctl.pump() == 0
    assert len(host.objects) == count


def test_file_change_after_cooldown_redraws_without_doubling(host, clock, trades_csv):
    ctl = _controller(host, clock, trades_csv)
    ctl.start()
    first_ids = set(host.objects)

    clock.advance(6)
    ctl.notify_file_changed()
    assert ctl.pump() == 1
    assert ctl.reload_count == 2
    assert set(host.objects) == first_ids
    assert sorted(host.remove_calls) == sorted(first_ids)


def test_reload_picks_up_new_file_content(host, clock, trades_csv):
    ctl = _controller(host, clock, trades_csv)
    ctl.start()

    trades_csv.write_text(make_csv(OPEN_ROW), encoding="utf-8")
    clock.advance(10)
    ctl.notify_file_changed()
    ctl.pump()

    assert len(ctl.repository) == 1
    assert set(host.objects) == {
        "20240106080000|Buy|2",
        "20240106080000|Buy|2_arrow",
        "20240106080000|Buy|2_label",
    }


def test_interval_trigger(host, clock, trades_csv):
    ctl = _controller(host, clock, trades_csv, refresh_interval_minutes=5)
    ctl.start()

    clock.advance(60)
    assert ctl.on_bar() == 0
    clock.advance(240)
    assert ctl.on_bar() == 1
    assert ctl.reload_count == 2
    assert ctl.on_bar() == 0


def test_queued_interval_and_file_change_collapse(host, clock, trades_csv):
    ctl = _controller(host, clock, trades_csv, refresh_interval_minutes=1)
    ctl.start()
    clock.advance(61)

    ctl.notify_file_changed()
    ctl.submit(RefreshTrigger.INTERVAL)
    assert ctl.pump() == 1


def test_manual_refresh_ignores_cooldown(host, clock, trades_csv):
    ctl = _controller(host, clock, trades_csv)
    ctl.start()
    assert ctl.refresh() == 1
    assert ctl.reload_count == 2


def test_missing_file_leaves_empty_repository(host, clock, tmp_path, caplog):
    ctl = _controller(host, clock, tmp_path / "nope.csv")
    with caplog.at_level(logging.WARNING, logger="histplot"):
        ctl.start()

    assert ctl.state == RefreshState.IDLE
    assert len(ctl.repository) == 0
    assert host.objects == {}
    assert not ctl.watching
    assert "CSV file not found" in caplog.text


def test_file_deleted_between_reloads_clears_plot(host, clock, trades_csv):
    ctl = _controller(host, clock, trades_csv)
    ctl.start()
    trades_csv.unlink()

    ctl.refresh()
    assert ctl.state == RefreshState.IDLE
    assert host.objects == {}
    assert len(ctl.repository) == 0
    assert all(ids == {} for ids in ctl.artifact_ids.values())


def test_objects_removed_by_someone_else_are_ignored(host, clock, trades_csv):
    ctl = _controller(host, clock, trades_csv)
    ctl.start()
    host.objects.clear()

    assert ctl.refresh() == 1
    assert ctl.state == RefreshState.PLOTTED
    assert len(host.objects) == 13


def test_failure_while_drawing_rolls_back(clock, trades_csv, caplog):
    class BrokenTextHost(RecordingHost):
        def draw_text(self, *args, **kwargs):
            raise RuntimeError("text layer unavailable")

    host = BrokenTextHost()
    ctl = _controller(host, clock, trades_csv)
    with caplog.at_level(logging.ERROR, logger="histplot"):
        ctl.start()

    assert ctl.state == RefreshState.IDLE
    assert host.objects == {}
    assert len(ctl.repository) == 0
    assert "Error loading trades" in caplog.text


def test_bad_row_does_not_affect_other_rows(host, clock, tmp_path):
    path = tmp_path / "trades.csv"
    path.write_text(make_csv(BUY_ROW.replace(",1.0,", ",abc,", 1), SELL_ROW), encoding="utf-8")
    ctl = _controller(host, clock, path)
    ctl.start()

    assert [r.order_type for r in ctl.repository.all()] == ["Sell"]
    assert len(ctl.last_result.diagnostics) == 1
    assert len(ctl.artifact_ids[ArtifactKind.ORDER]) == 1


def test_watcher_callback_only_enqueues(host, clock, trades_csv):
    ctl = _controller(host, clock, trades_csv)
    ctl.start()
    (watcher,) = FakeWatcher.instances

    clock.advance(30)
    watcher.on_change("modified")
    assert ctl.reload_count == 1
    assert ctl.on_bar() == 1
    assert ctl.reload_count == 2


def test_debug_mode_logs_each_line(host, clock, trades_csv, caplog):
    ctl = _controller(host, clock, trades_csv, debug=True)
    with caplog.at_level(logging.DEBUG, logger="histplot"):
        ctl.start()
    assert "Processing line 2" in caplog.text
    assert "Added trade: EURUSD Buy 1" in caplog.text


class FlakyRemoveHost(RecordingHost):
    """Refuses the first `failures` removals with a host error."""

    def __init__(self, failures=1, **kwargs):
        super().__init__(**kwargs)
        self.failures = failures

    def remove_object(self, artifact_id):
        if self.failures > 0:
            self.failures -= 1
            self.remove_calls.append(artifact_id)
            raise RuntimeError("chart is busy")
        super().remove_object(artifact_id)


def test_failed_removal_does_not_abort_clear(clock, trades_csv):
    host = FlakyRemoveHost()
    ctl = _controller(host, clock, trades_csv)
    ctl.start()
    host.failures = 1

    assert ctl.refresh() == 1
    assert ctl.state == RefreshState.PLOTTED
    assert len(host.objects) == 13
    assert _artifact_count(ctl) == 13
    # the refused id was drawn again, so it is tracked normally
    assert ctl.stale_ids == []


def test_object_that_could_not_be_removed_is_retried(clock, trades_csv):
    host = FlakyRemoveHost(failures=0)
    ctl = _controller(host, clock, trades_csv)
    ctl.start()

    trades_csv.write_text(make_csv(OPEN_ROW), encoding="utf-8")
    host.failures = 1
    ctl.refresh()

    assert ctl.state == RefreshState.PLOTTED
    (stale,) = ctl.stale_ids
    assert stale in host.objects
    assert len(host.objects) == 4

    ctl.refresh()
    assert ctl.stale_ids == []
    assert stale not in host.objects
    assert len(host.objects) == 3


def test_start_leaves_logger_level_alone(host, clock, trades_csv):
    logger = logging.getLogger("histplot")
    before = logger.level
    ctl = _controller(host, clock, trades_csv, debug=True)
    ctl.start()
    assert logger.level == before
