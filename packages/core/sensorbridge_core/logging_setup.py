"""Diagnostic logging on stderr, optional structured log files, and crash hooks."""

from __future__ import annotations

import faulthandler
import json
import logging
import logging.handlers
import sys
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import IO, Any

from .config import config_root


_LOGGER_NAME = "sensorbridge"

DIAGNOSTIC_FORMAT = "[%(asctime)s.%(msecs)03d] %(message)s"
DIAGNOSTIC_DATEFMT = "%Y-%m-%d %H:%M:%S"


def log_dir() -> Path:
    path = config_root() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts_utc": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        if hasattr(record, "event"):
            payload["event"] = getattr(record, "event")
        return json.dumps(payload, ensure_ascii=True)


def diagnostic_formatter() -> logging.Formatter:
    return logging.Formatter(DIAGNOSTIC_FORMAT, datefmt=DIAGNOSTIC_DATEFMT)


def configure_logging(
    level: str = "INFO",
    log_to_file: bool = False,
    keep_files: int = 7,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """Attach the stderr diagnostic handler (and optionally a JSON file handler).

    stdout is the data channel, so nothing here ever writes to it.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    if logger.handlers:
        return logger

    logger.setLevel(level)
    logger.propagate = False

    stream_handler = logging.StreamHandler(stream or sys.stderr)
    stream_handler.setFormatter(diagnostic_formatter())
    logger.addHandler(stream_handler)

    if log_to_file:
        handler = logging.handlers.TimedRotatingFileHandler(
            filename=str(log_dir() / "sensorbridge.log"),
            when="midnight",
            backupCount=max(2, keep_files),
            encoding="utf-8",
        )
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)

    logger.debug("logging configured", extra={"event": "logging_configured"})
    return logger


def reset_logging() -> None:
    logger = logging.getLogger(_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def get_logger(name: str | None = None) -> logging.Logger:
    return logging.getLogger(f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME)


def _install_fault_handler(logger: logging.Logger, to_file: bool) -> None:
    if to_file:
        fh = (log_dir() / "fault.log").open("a", encoding="utf-8")
        faulthandler.enable(file=fh, all_threads=True)
    else:
        try:
            faulthandler.enable(file=sys.stderr, all_threads=True)
        except (OSError, ValueError):
            # stderr without a real file descriptor (captured or redirected in-process)
            logger.debug("fault handler unavailable for stderr")
            return
    logger.debug("fault handler enabled", extra={"event": "fault_handler_enabled"})


def install_crash_hooks(to_file: bool = False) -> None:
    logger = get_logger()

    def _log_uncaught(exc_type, exc_value, exc_tb) -> None:
        crash_id = str(uuid.uuid4())
        logger.critical(
            f"uncaught exception crash_id={crash_id}",
            exc_info=(exc_type, exc_value, exc_tb),
            extra={"event": "uncaught_exception", "crash_id": crash_id},
        )

    def _thread_hook(args: threading.ExceptHookArgs) -> None:
        crash_id = str(uuid.uuid4())
        logger.critical(
            f"thread exception crash_id={crash_id}",
            exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
            extra={"event": "thread_exception", "crash_id": crash_id},
        )

    sys.excepthook = _log_uncaught
    threading.excepthook = _thread_hook
    _install_fault_handler(logger, to_file)
