"""Tests for the worker pool: counts, duration stop, shutdown and reporting."""

import threading

import pytest
from structlog.testing import capture_logs

from telgen.config import ConfigError
from telgen.engine import run_workers
from telgen.generators import LogWorker
from telgen.generators.log_generator import run


def _telgen_threads() -> list[str]:
    return [t.name for t in threading.enumerate() if t.name.startswith("telgen-")]


def test_exact_count_across_workers(logs_config, log_exporter) -> None:
    total = run(logs_config(count=4, workers=3), log_exporter)
    assert total == 12
    assert len(log_exporter.items) == 12
    assert log_exporter.shutdown_calls == 1


def test_no_threads_left_behind(logs_config, log_exporter) -> None:
    run(logs_config(count=2, workers=4, terminal_output=True), log_exporter)
    assert _telgen_threads() == []


def test_duration_overrides_count(logs_config, log_exporter) -> None:
    """With a duration the count is ignored and the rate paces each worker."""
    total = run(logs_config(count=1, rate=10.0, duration=0.5), log_exporter)
    assert 5 <= total <= 20
    assert len(log_exporter.items) == total
    assert log_exporter.shutdown_calls == 1
    assert _telgen_threads() == []


def test_invalid_config_still_shuts_down_exporter(logs_config, log_exporter) -> None:
    with pytest.raises(ConfigError):
        run(logs_config(workers=0), log_exporter)
    assert log_exporter.shutdown_calls == 1
    assert log_exporter.items == []


def test_final_count_printed(logs_config, log_exporter, capsys: pytest.CaptureFixture[str]) -> None:
    run(logs_config(count=3, terminal_output=True), log_exporter)
    out = capsys.readouterr().out
    assert "Logs generated (final count): 3" in out


def test_quiet_without_terminal_output(
    logs_config, log_exporter, capsys: pytest.CaptureFixture[str]
) -> None:
    run(logs_config(count=3), log_exporter)
    assert capsys.readouterr().out == ""


def test_worker_failure_reported_on_stderr(
    logs_config, log_exporter, capsys: pytest.CaptureFixture[str]
) -> None:
    log_exporter.fail = True
    run(logs_config(count=2, workers=2, terminal_output=True), log_exporter)
    captured = capsys.readouterr()
    assert "Error: worker" in captured.err
    assert "Logs generated (final count): 0" in captured.out


class _ExplodingWorker:
    def run(self) -> int:
        raise RuntimeError("kaboom")


def test_unexpected_worker_error_is_logged(logs_config, log_exporter) -> None:
    with capture_logs() as logs:
        total = run_workers(
            logs_config(count=1, workers=2),
            lambda **kwargs: _ExplodingWorker(),
            log_exporter,
        )
    assert total == 0
    errors = [entry for entry in logs if entry["log_level"] == "error"]
    assert sorted(entry["worker"] for entry in errors) == [0, 1]
    assert all(entry["error_kind"] == "RuntimeError" for entry in errors)
    assert any(entry["event"] == "final count" and entry["logs_generated"] == 0 for entry in logs)
    assert log_exporter.shutdown_calls == 1


def test_limit_passed_to_workers(logs_config, log_exporter) -> None:
    seen: list[dict] = []

    class _Recorder:
        def __init__(self, **kwargs):
            seen.append(kwargs)

        def run(self) -> int:
            return 0

    run_workers(logs_config(count=7, workers=2), _Recorder, log_exporter)
    assert [kw["index"] for kw in seen] == [0, 1]
    assert {kw["limit"] for kw in seen} == {7}
    assert seen[0]["state"] is seen[1]["state"]


def test_exporter_shutdown_error_is_logged(logs_config, log_exporter) -> None:
    def broken_shutdown():
        raise OSError("socket closed")

    log_exporter.shutdown = broken_shutdown
    with capture_logs() as logs:
        assert run(logs_config(count=1), log_exporter) == 1
    failures = [entry for entry in logs if entry["event"] == "failed to shutdown exporter"]
    assert failures and failures[0]["error"] == "socket closed"


class _RefusingExporter:
    def export(self, batch):
        raise OSError("connection refused")


def test_failed_worker_leaves_siblings_running(logs_config, log_exporter) -> None:
    """Worker 0 cannot export; worker 1 still delivers its full count."""
    cfg = logs_config(count=4, workers=2)

    def make_worker(index, **kwargs):
        exporter = _RefusingExporter() if index == 0 else log_exporter
        return LogWorker(index=index, cfg=cfg, exporter=exporter, **kwargs)

    with capture_logs() as logs:
        total = run_workers(cfg, make_worker, log_exporter)
    assert total == 4
    assert len(log_exporter.items) == 4
    assert log_exporter.shutdown_calls == 1
    (failure,) = [entry for entry in logs if entry["log_level"] == "error"]
    assert failure["worker"] == 0
    assert failure["error_kind"] == "ExportError"
