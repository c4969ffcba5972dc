import logging
import sys
from pathlib import Path

from gantt_planner.config import DEFAULT_PIC_LIST, HOME_ENV, LOG_LEVEL_ENV, load_config
from gantt_planner.logger import CrashHandler


class _NoApplication:
    @staticmethod
    def instance():
        return None


def test_environment_overrides(tmp_path: Path) -> None:
    config = load_config({HOME_ENV: str(tmp_path), LOG_LEVEL_ENV: "debug"})

    assert config.snapshot_path == tmp_path / "snapshot.json"
    assert config.log_level == logging.DEBUG
    assert config.default_pic_list == DEFAULT_PIC_LIST


def test_unknown_log_level_falls_back_to_info(tmp_path: Path) -> None:
    config = load_config({HOME_ENV: str(tmp_path), LOG_LEVEL_ENV: "chatty"})

    assert config.log_level == logging.INFO


def test_crash_handler_writes_bug_report(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(sys, "excepthook", sys.excepthook)
    monkeypatch.setattr("gantt_planner.logger.QApplication", _NoApplication)
    handler = CrashHandler(load_config({HOME_ENV: str(tmp_path)}))

    try:
        raise RuntimeError("boom")
    except RuntimeError:
        handler.handle_exception(*sys.exc_info())

    report = (tmp_path / "bugs.txt").read_text(encoding="utf-8")
    assert "RuntimeError: boom" in report
    assert (tmp_path / "logs").is_dir()
