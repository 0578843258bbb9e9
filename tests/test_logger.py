"""
Tests for logger setup.
"""

import logging
from datetime import date

from kartrank.config import Config
from kartrank.utils.logger import log_file_path, setup_logger


def test_log_file_named_by_day(tmp_path):
    assert log_file_path(str(tmp_path), date(2026, 3, 1)) == tmp_path / 'kartrank_20260301.log'


def test_file_handler_keeps_debug_records(tmp_path, monkeypatch):
    monkeypatch.setattr(Config, "LOG_DIR", str(tmp_path / "logs"))
    logger = setup_logger("kartrank.tests.file_logger")

    logger.debug("round 1 rating changes")
    for handler in logger.handlers:
        handler.flush()

    assert len(logger.handlers) == 2
    assert "round 1 rating changes" in log_file_path(Config.LOG_DIR).read_text(encoding='utf-8')
    for handler in logger.handlers:
        handler.close()


def test_console_only_without_log_dir(monkeypatch):
    monkeypatch.setattr(Config, "LOG_DIR", "")
    monkeypatch.setattr(Config, "DEBUG", False)
    logger = setup_logger("kartrank.tests.console_logger")

    assert [type(h) for h in logger.handlers] == [logging.StreamHandler]
    assert logger.level == logging.INFO
    assert setup_logger("kartrank.tests.console_logger") is logger
    assert len(logger.handlers) == 1
