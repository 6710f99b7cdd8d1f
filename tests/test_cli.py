"""Example runner tests"""

import json

import pytest

from realsched import cli


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("REALSCHED_DELAY_MS", raising=False)
    monkeypatch.delenv("REALSCHED_MAX_CALLS", raising=False)


def test_dry_run(capsys):
    assert cli.main(["--dry-run", "--delay", "40", "--max-calls", "3"]) == 0
    out = capsys.readouterr().out
    assert "Delay: 40.0ms" in out
    assert "Max calls: 3" in out
    assert "Dry run mode" in out


def test_run_prints_each_call_and_statistics(capsys):
    assert cli.main(["--delay", "10", "--max-calls", "3", "--keep-going"]) == 0
    lines = capsys.readouterr().out.splitlines()
    calls = [line for line in lines if "Call count:" in line]
    assert [line.split("Call count: ")[1] for line in calls] == ["1", "2", "3"]
    assert calls[0].split(":")[0].endswith("|10")

    stopped = [line for line in lines if line.startswith("stopped. stats: ")]
    assert len(stopped) == 1
    stats = json.loads(stopped[0][len("stopped. stats: "):])
    assert stats["numberOfCalls"] == 3
    assert stats["delay"] == 10.0


def test_run_with_immediate_first_call(capsys):
    assert cli.main(["--delay", "10", "--max-calls", "2", "--no-wait", "--keep-going"]) == 0
    calls = [line for line in capsys.readouterr().out.splitlines() if "Call count:" in line]
    assert calls[0] == "0|0: Call count: 1"
    assert len(calls) == 2


def test_config_file(tmp_path, capsys):
    path = tmp_path / "run.yaml"
    path.write_text("scheduler:\n  delay_ms: 30\n  max_calls: 5\n")
    assert cli.main(["--config", str(path), "--dry-run"]) == 0
    out = capsys.readouterr().out
    assert "Delay: 30ms" in out
    assert "Max calls: 5" in out


def test_invalid_arguments_exit_with_error():
    assert cli.main(["--delay", "-5", "--dry-run"]) == 1


def test_missing_config_file(tmp_path):
    assert cli.main(["--config", str(tmp_path / "missing.yaml"), "--dry-run"]) == 1


async def _fake_run(config):
    raise KeyboardInterrupt


def test_keyboard_interrupt(monkeypatch, capsys):
    monkeypatch.setattr(cli, "run", _fake_run)
    assert cli.main(["--delay", "10"]) == 130
    assert "Stopped by user" in capsys.readouterr().out
