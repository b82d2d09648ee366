"""Tests for the command-line interface."""

import json
from pathlib import Path

import pytest

from telgen import __version__
from telgen import config as gen_config
from telgen.cli import collect_overrides, create_parser, main
from telgen.config import TracesConfig


@pytest.fixture(autouse=True)
def _restore_vendor(monkeypatch: pytest.MonkeyPatch) -> None:
    """--vendor rewrites the marker namespace; undo it after each test."""
    monkeypatch.setattr(gen_config, "ATTR_PREFIX", gen_config.ATTR_PREFIX)


def test_only_given_flags_become_overrides() -> None:
    args = create_parser().parse_args(
        [
            "traces",
            "--traces",
            "5",
            "--rate",
            "2.5",
            "--batch=false",
            "--marshal",
            "--span-duration",
            "1ms",
            "--telemetry-attributes",
            'a="x"',
            "--telemetry-attributes",
            "b=2",
        ]
    )
    overrides = collect_overrides(args, TracesConfig)
    assert overrides == {
        "traces": 5,
        "rate": 2.5,
        "batch": False,
        "marshal": True,
        "span-duration": "1ms",
        "telemetry-attributes": ['a="x"', "b=2"],
    }
    cfg = TracesConfig.create(overrides=overrides)
    assert cfg.count == 5
    assert cfg.span_duration == pytest.approx(0.001)
    assert cfg.telemetry_attributes == {"a": "x", "b": 2}


def test_bad_bool_flag_is_rejected() -> None:
    with pytest.raises(SystemExit) as exc:
        create_parser().parse_args(["traces", "--batch", "maybe"])
    assert exc.value.code == 2


def test_logs_to_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "logs.jsonl"
    main(
        [
            "logs",
            "--logs",
            "3",
            "--rate",
            "0",
            "--mock-seed",
            "7",
            "--body",
            "hello {{Number 1 1}}",
            "--output-file",
            str(path),
        ]
    )
    out = capsys.readouterr().out
    assert "Starting logs generation..." in out
    assert f"Output: {path}" in out
    assert "Mock seed: 7" in out
    assert "Logs generated (final count): 3" in out

    rows = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
    assert [row["body"] for row in rows] == ["hello 1"] * 3
    assert rows[0]["attributes"] == {"service.name": "telgen", "telgen.mock.data": "body"}


def test_json_logs_without_terminal_output(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    path = tmp_path / "traces.jsonl"
    main(["traces", "--rate", "0", "--terminal-output", "false", "--output-file", str(path)])
    lines = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
    final = [line for line in lines if line["msg"] == "final count"]
    assert final and final[0]["traces_generated"] == 1


def test_config_file_and_vendor(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    config = tmp_path / "config.yaml"
    config.write_text(
        "rate: 0\n"
        "telemetry-attributes: {card: '4111'}\n"
        "sensitive-data: [card]\n"
        "metrics:\n"
        "  metrics: 2\n"
        "  metric-type: Sum\n",
        encoding="utf-8",
    )
    path = tmp_path / "metrics.jsonl"
    main(["metrics", "--config", str(config), "--vendor", "Acme", "--output-file", str(path)])
    rows = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
    assert len(rows) == 2
    assert rows[0]["data_points"][0]["attributes"] == {
        "card": "4111",
        "acme.sensitive.data": "card",
    }
    assert "Metrics generated (final count): 2" in capsys.readouterr().out


def test_invalid_config_exits_1(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "logs.jsonl"
    with pytest.raises(SystemExit) as exc:
        main(["logs", "--workers", "0", "--output-file", str(path)])
    assert exc.value.code == 1
    assert "Error: `workers` must be at least 1" in capsys.readouterr().err
    assert not path.exists()


def test_no_command_prints_help(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc:
        main([])
    assert exc.value.code == 0
    assert "traces" in capsys.readouterr().out


def test_version(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc:
        main(["--version"])
    assert exc.value.code == 0
    assert capsys.readouterr().out.strip() == f"telgen {__version__}"
