from __future__ import annotations

import logging
import logging.config
import os
from pathlib import Path
from typing import Any, Mapping

# ----------------------------------------------------------------------
# Environment-driven defaults
# ----------------------------------------------------------------------

DEFAULT_LOG_LEVEL = (
    os.getenv("ML_RECIPES_LOG_LEVEL") or os.getenv("LOG_LEVEL", "INFO")
).upper()

DEFAULT_LOG_DIR = Path(os.getenv("ML_RECIPES_LOG_DIR") or os.getenv("LOG_DIR", "logs"))

# Same variable that config.AppConfig reads for profile selection.
APP_ENV = (os.getenv("ML_RECIPES_ENV") or os.getenv("ENV") or "dev").lower()

AUTO_CONFIG = os.getenv("ML_RECIPES_CONFIGURE_LOGGING", "1").lower() not in {
    "0",
    "false",
    "no",
}

# "text" (default) or "json"
LOG_FORMAT = os.getenv("ML_RECIPES_LOG_FORMAT", "text").lower()

PACKAGE_LOGGER = "ml_recipes"

_PROD_ENVS = frozenset({"prod", "production"})
_LOG_CONFIGURED = False


def _formatters(fmt: str) -> dict[str, dict[str, str]]:
    """Return the (console, file) formatter definitions for a log format."""
    if fmt == "json":
        return {
            "console": {
                "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
                "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
            },
            "file": {
                "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
                "format": (
                    "%(asctime)s %(levelname)s %(name)s "
                    "%(filename)s %(lineno)d %(message)s"
                ),
            },
        }

    return {
        "console": {
            "format": "[%(asctime)s] [%(levelname)s] %(name)s - %(message)s",
        },
        "file": {
            "format": (
                "[%(asctime)s] [%(levelname)s] %(name)s "
                "(%(filename)s:%(lineno)d) - %(message)s"
            ),
        },
    }


def build_logging_config(
    *,
    env: str,
    log_dir: Path,
    level: str,
    fmt: str,
) -> dict[str, Any]:
    """Return a dictConfig-style logging configuration.

    Every environment logs to stdout. Production environments additionally
    write to a rotating ``<log_dir>/ml_recipes.log`` file, so the log
    directory is only created there.
    """
    handlers: dict[str, dict[str, Any]] = {
        "console": {
            "class": "logging.StreamHandler",
            "level": level,
            "formatter": "console",
            "stream": "ext://sys.stdout",
        },
    }

    if env.lower() in _PROD_ENVS:
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": level,
            "formatter": "file",
            "filename": str(log_dir / f"{PACKAGE_LOGGER}.log"),
            "maxBytes": 5 * 1024 * 1024,
            "backupCount": 3,
            "encoding": "utf-8",
        }

    active = list(handlers)

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": _formatters(fmt),
        "handlers": handlers,
        "root": {"level": level, "handlers": active},
        "loggers": {
            PACKAGE_LOGGER: {
                "level": level,
                "handlers": active,
                "propagate": False,
            },
        },
    }


def configure_logging(
    *,
    level: str | None = None,
    log_dir: Path | str | None = None,
    env: str | None = None,
    fmt: str | None = None,
    extra_config: Mapping[str, Any] | None = None,
    force: bool = False,
) -> None:
    """Configure process-wide logging for ml_recipes.

    Parameters
    ----------
    level:
        Log level name. Defaults to ML_RECIPES_LOG_LEVEL or "INFO".
    log_dir:
        Directory for the rotating log file (prod only). Defaults to
        ML_RECIPES_LOG_DIR or "logs".
    env:
        "dev", "test", "prod", ... Defaults to ML_RECIPES_ENV.
    fmt:
        "text" or "json". Defaults to ML_RECIPES_LOG_FORMAT.
    extra_config:
        dictConfig fragments merged one level deep into the generated config.
    force:
        Re-apply the configuration even if logging was already configured.
    """
    global _LOG_CONFIGURED

    if _LOG_CONFIGURED and not force:
        return

    config = build_logging_config(
        env=(env or APP_ENV).lower(),
        log_dir=Path(log_dir) if log_dir is not None else DEFAULT_LOG_DIR,
        level=(level or DEFAULT_LOG_LEVEL).upper(),
        fmt=(fmt or LOG_FORMAT).lower(),
    )

    for key, value in (extra_config or {}).items():
        if isinstance(value, Mapping) and isinstance(config.get(key), dict):
            config[key].update(value)
        else:
            config[key] = value

    logging.config.dictConfig(config)
    _LOG_CONFIGURED = True


def configure_logging_from_app_config(
    app_config: Any,
    *,
    fmt: str | None = None,
    force: bool = False,
) -> None:
    """Configure logging from an ``ml_recipes.config.AppConfig``.

    Typed as ``Any`` so this module never imports the config layer.
    """
    paths = getattr(app_config, "paths", None)
    log_dir = Path(paths.base_dir) / "logs" if paths is not None else DEFAULT_LOG_DIR

    configure_logging(
        level=str(getattr(app_config, "log_level", DEFAULT_LOG_LEVEL)),
        log_dir=log_dir,
        env=str(getattr(app_config, "env", APP_ENV)),
        fmt=fmt,
        force=force,
    )


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger, configuring logging on first use.

    Set ML_RECIPES_CONFIGURE_LOGGING=0 to leave configuration to the host
    application.

        from ml_recipes.logging_config import get_logger

        logger = get_logger(__name__)
    """
    if not _LOG_CONFIGURED and AUTO_CONFIG:
        configure_logging()

    return logging.getLogger(name)
