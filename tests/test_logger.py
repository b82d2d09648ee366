"""Tests for structured JSON logging."""

import json

import pytest
from structlog.testing import capture_logs

from telgen.config import ConfigError
from telgen.logger import create_logger, get_logger


def test_json_output_on_stdout(capsys: pytest.CaptureFixture[str]) -> None:
    create_logger("debug", terminal_output=False)
    get_logger("traces").debug("worker started", worker=0)
    payload = json.loads(capsys.readouterr().out.strip())
    assert payload["msg"] == "worker started"
    assert payload["level"] == "debug"
    assert payload["logger"] == "telgen.traces"
    assert payload["worker"] == 0
    assert "ts" in payload


def test_exception_is_rendered(capsys: pytest.CaptureFixture[str]) -> None:
    create_logger("info", terminal_output=False)
    try:
        raise RuntimeError("boom")
    except RuntimeError as e:
        get_logger().error("failed", exc_info=e)
    payload = json.loads(capsys.readouterr().out.strip())
    assert "RuntimeError: boom" in payload["exception"]


def test_terminal_output_discards_structured_logs(capsys: pytest.CaptureFixture[str]) -> None:
    create_logger("info", terminal_output=True)
    get_logger().info("hidden")
    assert capsys.readouterr().out == ""


def test_level_filters(capsys: pytest.CaptureFixture[str]) -> None:
    create_logger("warn", terminal_output=False)
    get_logger().info("quiet")
    get_logger().warning("loud")
    out = capsys.readouterr().out
    assert "quiet" not in out
    assert "loud" in out


def test_unknown_level() -> None:
    with pytest.raises(ConfigError, match="log level"):
        create_logger("verbose")


def test_bound_context_is_merged() -> None:
    with capture_logs() as logs:
        logger = get_logger("logs").bind(worker=1, signal="logs")
        logger.bind(worker=9).info("exported", count=3)
    (entry,) = logs
    assert entry["worker"] == 9
    assert entry["signal"] == "logs"
    assert entry["count"] == 3
    assert entry["logger"] == "telgen.logs"
