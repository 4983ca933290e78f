"""
Oven_Treats.utils.logger

Logging setup for the app: one log file per day under the data dir plus
console output. Modules only call logging.getLogger(__name__); nothing
is configured until configure_logging() runs (main.py / UI startup).
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from Oven_Treats.data.connection import get_data_dir

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"

_configured = False


def get_log_dir(base_dir: Optional[Path] = None) -> Path:
    log_dir = (base_dir or get_data_dir()) / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def configure_logging(level: int = logging.INFO, base_dir: Optional[Path] = None, console: bool = True) -> Path:
    """
    Install file + console handlers on the root logger. Safe to call more
    than once; later calls only change the level. Returns the log file path.
    """
    global _configured

    log_path = get_log_dir(base_dir) / f"oventreats_{datetime.now().strftime('%Y%m%d')}.log"
    root = logging.getLogger()
    root.setLevel(level)

    if _configured:
        return log_path

    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, "%Y-%m-%d %H:%M:%S"))
    root.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT, "%H:%M:%S"))
        root.addHandler(console_handler)

    _configured = True
    logging.getLogger(__name__).info("Logging to %s", log_path)
    return log_path
