from __future__ import annotations

import logging
from pathlib import Path

import pytest

from ml_recipes.logging_config import PACKAGE_LOGGER, build_logging_config, get_logger


def test_get_logger_returns_named_logger() -> None:
    logger = get_logger("ml_recipes.tests.basic")

    assert isinstance(logger, logging.Logger)
    assert logger.name == "ml_recipes.tests.basic"


def test_package_logger_has_formatted_stream_handler() -> None:
    get_logger("ml_recipes.tests.handlers")
    package_logger = logging.getLogger(PACKAGE_LOGGER)

    assert package_logger.handlers
    assert any(isinstance(h, logging.StreamHandler) for h in package_logger.handlers)
    for handler in package_logger.handlers:
        if handler.formatter is None:
            continue
        fmt = handler.formatter._fmt or ""  # type: ignore[attr-defined]
        assert "levelname" in fmt
        assert "name" in fmt


def test_get_logger_is_idempotent() -> None:
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    get_logger("ml_recipes.tests.first")
    handlers_before = list(package_logger.handlers)

    get_logger("ml_recipes.tests.second")
    assert package_logger.handlers == handlers_before


def test_messages_reach_capturing_handler(package_caplog: pytest.LogCaptureFixture) -> None:
    logger = get_logger("ml_recipes.tests.emit")

    with package_caplog.at_level(logging.INFO, logger="ml_recipes.tests.emit"):
        logger.info("hello from logging test")

    assert any(
        r.getMessage() == "hello from logging test" and r.levelno == logging.INFO
        for r in package_caplog.records
    )


def test_dev_config_is_console_only(tmp_path: Path) -> None:
    config = build_logging_config(env="dev", log_dir=tmp_path / "logs", level="INFO", fmt="text")

    assert set(config["handlers"]) == {"console"}
    assert config["loggers"][PACKAGE_LOGGER]["propagate"] is False
    assert not (tmp_path / "logs").exists()


def test_prod_config_adds_rotating_file(tmp_path: Path) -> None:
    log_dir = tmp_path / "logs"
    config = build_logging_config(env="prod", log_dir=log_dir, level="WARNING", fmt="text")

    file_handler = config["handlers"]["file"]
    assert file_handler["class"] == "logging.handlers.RotatingFileHandler"
    assert file_handler["filename"] == str(log_dir / "ml_recipes.log")
    assert config["root"]["handlers"] == ["console", "file"]
    assert log_dir.is_dir()


def test_json_format_uses_json_formatter(tmp_path: Path) -> None:
    config = build_logging_config(env="dev", log_dir=tmp_path, level="INFO", fmt="json")

    assert "JsonFormatter" in config["formatters"]["console"]["()"]
