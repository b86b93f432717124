"""Tests for the application logger utility."""

from __future__ import annotations

import logging
import logging.handlers
from unittest.mock import patch

import pytest


def _file_handlers() -> list[logging.Handler]:
    return [
        h
        for h in logging.getLogger("focustimer").handlers
        if isinstance(h, logging.handlers.RotatingFileHandler)
    ]


def _drop_file_handlers() -> None:
    app_logger = logging.getLogger("focustimer")
    for handler in _file_handlers():
        app_logger.removeHandler(handler)
        handler.close()


@pytest.fixture(autouse=True)
def reset_logger():
    """Reset the logger singleton and its file handler between tests."""
    import focustimer.utils.logger as logger_mod

    logger_mod._logger = None
    _drop_file_handlers()

    yield

    _drop_file_handlers()
    logger_mod._logger = None


def test_get_logger_creates_log_file(tmp_path):
    """Logger creates the log file inside user_log_dir."""
    with patch("focustimer.utils.logger.user_log_dir", return_value=str(tmp_path)):
        from focustimer.utils.logger import get_logger

        logger = get_logger()

    assert (tmp_path / "focustimer.log").exists()
    assert logger.name == "focustimer"
    assert logger.propagate is False


def test_get_logger_returns_singleton(tmp_path):
    with patch("focustimer.utils.logger.user_log_dir", return_value=str(tmp_path)):
        from focustimer.utils.logger import get_logger

        assert get_logger() is get_logger()


def test_handler_rotates(tmp_path):
    with patch("focustimer.utils.logger.user_log_dir", return_value=str(tmp_path)):
        from focustimer.utils.logger import get_logger

        get_logger()

    (handler,) = _file_handlers()
    assert handler.maxBytes == 5 * 1024 * 1024
    assert handler.backupCount == 3


def test_file_handler_added_next_to_existing_handlers(tmp_path):
    """A capture handler already on the logger must not block the file handler."""
    other = logging.NullHandler()
    logging.getLogger("focustimer").addHandler(other)
    try:
        with patch(
            "focustimer.utils.logger.user_log_dir", return_value=str(tmp_path)
        ):
            from focustimer.utils.logger import get_logger

            get_logger("engine").warning("still written")

        assert len(_file_handlers()) == 1
        for handler in _file_handlers():
            handler.flush()
        assert "still written" in (tmp_path / "focustimer.log").read_text()
    finally:
        logging.getLogger("focustimer").removeHandler(other)


def test_child_logger_writes_to_shared_file(tmp_path):
    """Named loggers are children that reuse the application handler."""
    with patch("focustimer.utils.logger.user_log_dir", return_value=str(tmp_path)):
        from focustimer.utils.logger import get_logger

        engine_logger = get_logger("engine")
        engine_logger.info("session abc started")

    assert engine_logger.name == "focustimer.engine"
    for handler in _file_handlers():
        handler.flush()

    content = (tmp_path / "focustimer.log").read_text()
    assert "[focustimer.engine] session abc started" in content


def test_get_logger_creates_parent_dirs(tmp_path):
    nested = tmp_path / "a" / "b" / "c"
    with patch("focustimer.utils.logger.user_log_dir", return_value=str(nested)):
        from focustimer.utils.logger import get_logger

        get_logger()

    assert nested.is_dir()
