"""Настройка логирования: фильтр /health и обработчики."""

import logging
import logging.handlers

import pytest

from rescue.core.logging_config import HealthCheckFilter, build_logging_config, setup_logging


def _access_record(path):
    return logging.LogRecord(
        "uvicorn.access", logging.INFO, __file__, 1, '%s - "%s %s HTTP/1.1" %d',
        ("127.0.0.1:5000", "GET", path, 200), None,
    )


def test_health_filter_drops_health_lines():
    health_filter = HealthCheckFilter()

    assert health_filter.filter(_access_record("/health")) is False
    assert health_filter.filter(_access_record("/api/animals")) is True


def test_console_only_without_log_file():
    config = build_logging_config("DEBUG")

    assert set(config["handlers"]) == {"console"}
    assert config["root"] == {"handlers": ["console"], "level": "DEBUG"}
    assert config["loggers"]["uvicorn.access"]["filters"] == ["skip_health"]
    assert config["loggers"]["sqlalchemy.engine"]["level"] == "WARNING"


def test_log_file_adds_rotating_handler(tmp_path):
    log_file = str(tmp_path / "app.log")

    config = build_logging_config("INFO", log_file)

    assert config["handlers"]["file"]["class"] == "logging.handlers.RotatingFileHandler"
    assert config["handlers"]["file"]["filename"] == log_file
    assert config["root"]["handlers"] == ["console", "file"]
    assert config["loggers"]["uvicorn"]["handlers"] == ["console", "file"]


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    for name in ("uvicorn", "uvicorn.access"):
        logger = logging.getLogger(name)
        for handler in logger.handlers:
            handler.close()
        logger.handlers.clear()


def test_setup_logging_writes_to_file(tmp_path, restore_root_logger):
    log_file = tmp_path / "logs" / "rescue.log"

    setup_logging("info", str(log_file))
    logging.getLogger("rescue.test").info("animal saved")
    logging.getLogger("uvicorn.access").info('127.0.0.1 - "GET /health HTTP/1.1" 200')
    for handler in restore_root_logger.handlers:
        handler.flush()

    assert restore_root_logger.level == logging.INFO
    assert any(isinstance(h, logging.handlers.RotatingFileHandler) for h in restore_root_logger.handlers)
    text = log_file.read_text(encoding="utf-8")
    assert "animal saved" in text
    assert "/health" not in text
