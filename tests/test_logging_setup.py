from __future__ import annotations

import logging

import pytest

from syncview.logging_setup import configure_logging


@pytest.fixture
def package_logger():
    logger = logging.getLogger("syncview")
    handlers = list(logger.handlers)
    level = logger.level
    yield logger
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)


def test_configure_logging_writes_to_file(tmp_path, package_logger) -> None:
    log_file = tmp_path / "logs" / "syncview.log"
    assert configure_logging("debug", log_file) == log_file
    logging.getLogger("syncview.transport").debug("seek to %s", 12.0)
    for handler in package_logger.handlers:
        handler.flush()
    assert "seek to 12.0" in log_file.read_text(encoding="utf-8")
    assert package_logger.level == logging.DEBUG


def test_configure_logging_replaces_its_handler(tmp_path, package_logger) -> None:
    configure_logging("INFO", tmp_path / "one.log")
    configure_logging("INFO", tmp_path / "two.log")
    names = [handler.get_name() for handler in package_logger.handlers]
    assert names.count("syncview-file") == 1


def test_configure_logging_rejects_unknown_level(tmp_path, package_logger) -> None:
    with pytest.raises(ValueError, match="Unknown log level"):
        configure_logging("LOUD", tmp_path / "x.log")
    assert not (tmp_path / "x.log").exists()
