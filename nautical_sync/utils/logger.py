"""Logging setup and the ``SyncLogger`` collaborator.

Every channel logs to stdout. Outside production a channel with a file in
``logging.files`` also writes to a rotating log file.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional

from .config import LoggingConfig, get_config


def _console_handler(formatter: logging.Formatter) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.INFO)
    handler.setFormatter(formatter)
    return handler


def _file_handler(path: str, settings: LoggingConfig, formatter: logging.Formatter) -> logging.Handler:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(path, maxBytes=settings.max_bytes, backupCount=settings.backup_count)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(formatter)
    return handler


def setup_logger(
    name: str,
    log_file: Optional[str] = None,
    level: Optional[str] = None
) -> logging.Logger:
    """
    Return logger *name*, attaching handlers on first use.

    Args:
        name: Logger name
        log_file: Rotating file to write to (ignored in production)
        level: Level override; defaults to ``logging.level``
    """
    config = get_config()
    settings = config.logging

    logger = logging.getLogger(name)
    logger.setLevel((level or settings.level).upper())
    if logger.handlers:
        return logger

    formatter = logging.Formatter(settings.format)
    logger.addHandler(_console_handler(formatter))
    # production platforms collect stdout; their filesystems are ephemeral
    if log_file and not config.is_production:
        logger.addHandler(_file_handler(log_file, settings, formatter))
    return logger


def get_sync_logger() -> logging.Logger:
    """Channel for bulk flows and scheduled jobs."""
    return setup_logger("sync", get_config().logging.files.sync)


def get_webhook_logger() -> logging.Logger:
    """Channel for inbound webhook deliveries."""
    return setup_logger("webhook", get_config().logging.files.webhook)


def get_error_logger() -> logging.Logger:
    """Every error from any channel, collected in one file."""
    return setup_logger("error", get_config().logging.files.error, "ERROR")


def get_api_logger() -> logging.Logger:
    return setup_logger("api")


def get_scheduler_logger() -> logging.Logger:
    """APScheduler's own logger.

    Job exceptions raised in scheduler threads are only reported here.
    """
    return setup_logger("apscheduler")


class SyncLogger:
    """
    Logging collaborator handed to every sync component.

    Components call ``info``/``warn``/``error``/``debug`` with a message and
    keyword data, and ``metric`` with a name and a numeric value. The data
    travels to the underlying ``logging.Logger`` through ``extra`` and is
    appended to the message so plain formatters still show it.
    """

    def __init__(self, logger: logging.Logger, error_logger: Optional[logging.Logger] = None):
        self.logger = logger
        self.error_logger = error_logger

    @staticmethod
    def _format(message: str, data: dict) -> str:
        if not data:
            return message
        pairs = " ".join(f"{key}={value}" for key, value in data.items())
        return f"{message} [{pairs}]"

    def debug(self, message: str, **data: Any) -> None:
        self.logger.debug(self._format(message, data), extra={"data": data})

    def info(self, message: str, **data: Any) -> None:
        self.logger.info(self._format(message, data), extra={"data": data})

    def warn(self, message: str, **data: Any) -> None:
        self.logger.warning(self._format(message, data), extra={"data": data})

    def error(self, message: str, error: Optional[BaseException] = None, **data: Any) -> None:
        if error is not None:
            data = {"error": str(error), "error_type": type(error).__name__, **data}
        text = self._format(message, data)
        self.logger.error(text, extra={"data": data})
        if self.error_logger is not None:
            self.error_logger.error(text, extra={"data": data})

    def metric(self, name: str, value: float, **tags: Any) -> None:
        self.logger.info(
            self._format(f"metric {name}={value}", tags),
            extra={"metric": name, "value": value, "tags": tags}
        )


def get_sync_collaborator(name: str = "sync") -> SyncLogger:
    """Build the ``SyncLogger`` used by hosts for the given channel."""
    if name == "webhook":
        base = get_webhook_logger()
    else:
        base = get_sync_logger()
    return SyncLogger(base, get_error_logger())
