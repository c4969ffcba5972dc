"""Logging setup and last-resort crash reporting."""
from __future__ import annotations

import logging
import os
import platform
import sys
import traceback
from datetime import datetime
from pathlib import Path

from PyQt6.QtWidgets import QApplication, QMessageBox

from .config import AppConfig

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_RETENTION_DAYS = 7


class CrashHandler:
    """Routes logging to a daily file and reports uncaught exceptions."""

    def __init__(self, config: AppConfig) -> None:
        self.log_dir = config.log_dir
        self.bug_log_path = config.bug_log_path
        self.log_dir.mkdir(parents=True, exist_ok=True)

        log_file = self.log_dir / f"app_{datetime.now().strftime('%Y%m%d')}.log"
        logging.basicConfig(
            level=config.log_level,
            format=LOG_FORMAT,
            handlers=[
                logging.FileHandler(log_file, encoding="utf-8"),
                logging.StreamHandler(sys.stdout),
            ],
        )
        sys.excepthook = self.handle_exception
        self._rotate_logs()

    def handle_exception(self, exc_type, exc_value, exc_traceback) -> None:
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return

        logging.error("Uncaught exception", exc_info=(exc_type, exc_value, exc_traceback))
        error_msg = "".join(traceback.format_exception(exc_type, exc_value, exc_traceback))
        self._write_bug_report(exc_type, exc_value, error_msg)

        if QApplication.instance():  # pragma: no cover - requires UI
            box = QMessageBox()
            box.setIcon(QMessageBox.Icon.Critical)
            box.setWindowTitle("Unexpected error")
            box.setText("An unexpected error occurred.")
            box.setInformativeText(str(exc_value))
            box.setDetailedText(error_msg)
            box.exec()

    def _write_bug_report(self, exc_type, exc_value, error_msg: str) -> None:
        try:
            with Path(self.bug_log_path).open("a", encoding="utf-8") as handle:
                handle.write(f"[{datetime.now().strftime('%Y-%m-%d %H:%M:%S')}]\n")
                handle.write(f"System: {platform.system()} {platform.release()}\n")
                handle.write(f"Python: {sys.version}\n\n")
                handle.write(f"{exc_type.__name__}: {exc_value}\n\n")
                handle.write(error_msg)
                handle.write(f"\n{'-' * 50}\n")
        except OSError as exc:
            logging.error("Failed to write bug report: %s", exc)

    def _rotate_logs(self, days_to_keep: int = LOG_RETENTION_DAYS) -> None:
        """Remove log files older than ``days_to_keep`` days."""
        now = datetime.now()
        for entry in self.log_dir.iterdir():
            if not (entry.name.startswith("app_") and entry.suffix == ".log"):
                continue
            try:
                modified = datetime.fromtimestamp(os.path.getmtime(entry))
                if (now - modified).days > days_to_keep:
                    entry.unlink()
                    logging.info("Deleted old log file: %s", entry.name)
            except OSError as exc:
                logging.error("Failed to rotate %s: %s", entry.name, exc)
