"""Logging configuration built around structlog JSON logging."""

from __future__ import annotations

import logging
import logging.config
import os
from pathlib import Path

import structlog

_LOGGING_INITIALISED = False
_ACTIVE_LOG_DIR: Path | None = None

MAIN_LOG_NAME = "scout.log"
ERROR_LOG_NAME = "error.log"


def _default_log_dir() -> Path:
    env_root = os.environ.get("OIDC_SCOUT_HOME")
    root = Path(env_root).expanduser() if env_root else Path.cwd()
    return (root / "logs").resolve()


def active_log_dir() -> Path:
    """Directory the file handlers write to (or would write to)."""

    return _ACTIVE_LOG_DIR or _default_log_dir()


def configure_logging(verbose: bool = False, log_dir: Path | None = None) -> structlog.BoundLogger:
    """Configure structlog + stdlib handlers and return application logger."""

    global _LOGGING_INITIALISED, _ACTIVE_LOG_DIR

    if not _LOGGING_INITIALISED:
        log_dir = (log_dir or _default_log_dir()).resolve()
        log_dir.mkdir(parents=True, exist_ok=True)
        main_log = log_dir / MAIN_LOG_NAME
        error_log = log_dir / ERROR_LOG_NAME
        main_log.touch(exist_ok=True)
        error_log.touch(exist_ok=True)

        console_level = "DEBUG" if verbose else "WARNING"
        logging.config.dictConfig(
            {
                "version": 1,
                "disable_existing_loggers": False,
                "formatters": {
                    "plain": {
                        "()": "pythonjsonlogger.json.JsonFormatter",
                        "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s",
                    }
                },
                "handlers": {
                    "console": {
                        "class": "logging.StreamHandler",
                        "level": console_level,
                        "formatter": "plain",
                    },
                    "scout_file": {
                        "class": "logging.FileHandler",
                        "level": "INFO",
                        "filename": str(main_log),
                        "encoding": "utf-8",
                        "formatter": "plain",
                    },
                    "error_file": {
                        "class": "logging.FileHandler",
                        "level": "ERROR",
                        "filename": str(error_log),
                        "encoding": "utf-8",
                        "formatter": "plain",
                    },
                },
                "loggers": {
                    "oidc_scout": {
                        "handlers": ["console", "scout_file", "error_file"],
                        "level": "DEBUG" if verbose else "INFO",
                        "propagate": False,
                    },
                },
            }
        )

        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.stdlib.add_log_level,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                # JSON rendering happens at handler level
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
        _ACTIVE_LOG_DIR = log_dir
        _LOGGING_INITIALISED = True
    return structlog.get_logger("oidc_scout")


def component_logger(component: str) -> structlog.BoundLogger:
    """Return the application logger bound to a component name."""

    return configure_logging().bind(component=component)


def tail_log(path: Path, line_count: int = 100) -> list[str]:
    """Return the last N lines from a log file."""

    if not path.exists():
        return []
    with path.open("r", encoding="utf-8", errors="ignore") as stream:
        lines = stream.readlines()
    return lines[-line_count:]


__all__ = [
    "ERROR_LOG_NAME",
    "MAIN_LOG_NAME",
    "active_log_dir",
    "component_logger",
    "configure_logging",
    "tail_log",
]
