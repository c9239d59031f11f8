from __future__ import annotations

import importlib.util
import signal
from pathlib import Path

import pytest

MAIN_PATH = Path(__file__).resolve().parents[1] / "cmd" / "signal_trader" / "main.py"


@pytest.fixture
def cli(monkeypatch):
    spec = importlib.util.spec_from_file_location("signal_trader_main", MAIN_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)  # type: ignore[union-attr]
    monkeypatch.setattr(signal, "signal", lambda *args: None)
    return module


@pytest.fixture
def env_file(tmp_path: Path) -> Path:
    path = tmp_path / "signal_trader.env"
    path.write_text("DRY_RUN=true\nWORKERS=2\n", encoding="utf-8")
    return path


def test_main_replays_empty_file(cli, env_file: Path, tmp_path: Path) -> None:
    replay = tmp_path / "messages.jsonl"
    replay.write_text("", encoding="utf-8")

    assert cli.main(["--config-file", str(env_file), "--replay-file", str(replay)]) == 0


def test_main_reports_source_failure(cli, env_file: Path, tmp_path: Path, caplog) -> None:
    replay = tmp_path / "messages.jsonl"
    replay.write_text("not json\n", encoding="utf-8")

    code = cli.main(["--config-file", str(env_file), "--replay-file", str(replay)])

    assert code == 1
    assert "Signal trader stopped" in caplog.text


@pytest.mark.parametrize("workers", ["0", "-3"])
def test_main_rejects_invalid_worker_count(cli, env_file: Path, tmp_path: Path, caplog, workers: str) -> None:
    replay = tmp_path / "messages.jsonl"
    replay.write_text("", encoding="utf-8")

    code = cli.main(
        ["--config-file", str(env_file), "--replay-file", str(replay), "--workers", workers]
    )

    assert code == 1
    assert "workers must be >= 1" in caplog.text
