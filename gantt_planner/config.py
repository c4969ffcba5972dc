"""Runtime configuration resolved from the environment."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Tuple

HOME_ENV = "GANTT_PLANNER_HOME"
LOG_LEVEL_ENV = "GANTT_PLANNER_LOG_LEVEL"
DEFAULT_PIC_LIST = ("Alice", "Bob", "Charlie")


@dataclass(frozen=True)
class AppConfig:
    data_dir: Path
    log_level: int = logging.INFO
    default_pic_list: Tuple[str, ...] = DEFAULT_PIC_LIST

    @property
    def snapshot_path(self) -> Path:
        return self.data_dir / "snapshot.json"

    @property
    def log_dir(self) -> Path:
        return self.data_dir / "logs"

    @property
    def bug_log_path(self) -> Path:
        return self.data_dir / "bugs.txt"


def load_config(environ: Optional[Mapping[str, str]] = None) -> AppConfig:
    """Build the config; the user's home directory avoids permission issues."""
    env = os.environ if environ is None else environ
    data_dir = env.get(HOME_ENV) or os.path.join(os.path.expanduser("~"), ".gantt_planner")
    level_name = env.get(LOG_LEVEL_ENV, "INFO").upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO
    return AppConfig(data_dir=Path(data_dir), log_level=level)
