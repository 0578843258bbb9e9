"""
Logging setup shared by every KartRank module.

Records go to stdout at INFO (DEBUG when Config.DEBUG is set) and, when
Config.LOG_DIR is non-empty, to a per-day file there that always keeps DEBUG
detail such as per-racer rating changes.
"""

import logging
import sys
from datetime import date
from pathlib import Path
from typing import Optional

from kartrank.config import Config

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def log_file_path(log_dir: str, day: Optional[date] = None) -> Path:
    """Daily log file for the given day, today by default"""
    day = day or date.today()
    return Path(log_dir) / f'kartrank_{day:%Y%m%d}.log'


def setup_logger(name: str) -> logging.Logger:
    """Return the named logger, attaching KartRank handlers the first time"""
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    console_level = logging.DEBUG if Config.DEBUG else logging.INFO
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if Config.LOG_DIR:
        path = log_file_path(Config.LOG_DIR)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(console_level)

    return logger
