"""
Structured Logging Setup

Consistent logging configuration across all agent components.
Uses JSON format for structured logs in production.
"""

import contextvars
import gzip
import logging
import logging.handlers
import os
import shutil
import sys
from datetime import datetime, timezone
from typing import Any
import json

ROOT_LOGGER_NAME = "janus"

_log_context: contextvars.ContextVar[dict[str, Any]] = contextvars.ContextVar(
    "janus_log_context", default={}
)


class JsonFormatter(logging.Formatter):
    """JSON log formatter for structured logging"""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "service": getattr(record, "service", "unknown"),
            "message": record.getMessage(),
            "logger": record.name,
        }

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Add extra fields
        for key, value in record.__dict__.items():
            if key not in (
                "name", "msg", "args", "levelname", "levelno", "pathname",
                "filename", "module", "exc_info", "exc_text", "stack_info",
                "lineno", "funcName", "created", "msecs", "relativeCreated",
                "thread", "threadName", "processName", "process", "service",
                "message", "taskName",
            ):
                log_data[key] = value

        return json.dumps(log_data, default=str)


class ServiceLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that adds service name to all logs"""

    def process(self, msg: str, kwargs: dict) -> tuple[str, dict]:
        kwargs.setdefault("extra", {})
        kwargs["extra"]["service"] = self.extra.get("service", "unknown")
        return msg, kwargs


def _gzip_namer(name: str) -> str:
    return name + ".gz"


def _gzip_rotator(source: str, dest: str) -> None:
    with open(source, "rb") as f_in, gzip.open(dest, "wb") as f_out:
        shutil.copyfileobj(f_in, f_out)
    os.remove(source)


def setup_logging(
    log_level: str = "INFO",
    json_format: bool = True,
    log_file: str | None = None,
    max_size_mb: int = 10,
    max_backups: int = 3,
    compress: bool = False,
) -> logging.Logger:
    """
    Set up structured logging for the agent.

    All service loggers are children of the ``janus`` logger, so handlers
    are attached once here and every component inherits them.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON format (True for production, False for dev)
        log_file: Optional path of a size-rotated log file
        max_size_mb: Rotate the log file after this many megabytes
        max_backups: Number of rotated files to keep
        compress: Gzip rotated files

    Returns:
        Configured root agent logger
    """
    # Environment variables win over the config file
    log_level = os.environ.get("JANUS_LOG_LEVEL", log_level)
    env_format = os.environ.get("JANUS_LOG_FORMAT")
    if env_format:
        json_format = env_format.lower() == "json"

    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(numeric_level)

    # Clear existing handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if json_format:
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(formatter)
    handler.addFilter(ContextFilter())
    logger.addHandler(handler)

    if log_file:
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max(max_size_mb, 1) * 1024 * 1024,
            backupCount=max(max_backups, 0),
            encoding="utf-8",
        )
        if compress:
            file_handler.namer = _gzip_namer
            file_handler.rotator = _gzip_rotator
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(ContextFilter())
        logger.addHandler(file_handler)

    # Don't propagate to root logger
    logger.propagate = False

    return logger


def get_service_logger(service_name: str) -> ServiceLoggerAdapter:
    """
    Get a logger adapter with service context.

    Handlers are configured by setup_logging(); until then records fall
    through to Python's last-resort handler.

    Args:
        service_name: Name of the service (e.g., "dispatcher", "chat.ingress")

    Returns:
        Logger adapter with service name in all logs
    """
    logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{service_name}")
    return ServiceLoggerAdapter(logger, {"service": service_name})


class ContextFilter(logging.Filter):
    """Copies the active LogContext onto records; explicit extra fields win"""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _log_context.get().items():
            record.__dict__.setdefault(key, value)
        return True


class LogContext:
    """
    Context manager for adding temporary context to logs.

    The context is task-local, so concurrent tasks never see each
    other's fields.

    Usage:
        with LogContext(command="switch", os="LINUX"):
            logger.info("Executing recipe")
    """

    def __init__(self, **context: Any):
        self.context = context
        self._token: contextvars.Token | None = None

    def __enter__(self):
        self._token = _log_context.set({**_log_context.get(), **self.context})
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        _log_context.reset(self._token)
        return False


def log_command(
    logger: logging.LoggerAdapter,
    source: str,
    command: str,
    accepted: bool = True,
) -> None:
    """Log a command seen at an ingress"""
    if accepted:
        logger.info(
            f"Command '{command}' accepted from {source}",
            extra={"source": source, "command": command},
        )
    else:
        logger.warning(
            f"Command '{command}' rejected from {source}",
            extra={"source": source, "command": command},
        )


def log_step(
    logger: logging.LoggerAdapter,
    argv: list[str],
    returncode: int | None,
    elapsed_ms: float,
) -> None:
    """Log a finished executor step"""
    if returncode == 0:
        logger.info(
            f"Step succeeded: {' '.join(argv)} ({elapsed_ms:.0f}ms)",
            extra={"argv": argv, "returncode": returncode, "elapsed_ms": elapsed_ms},
        )
    else:
        logger.error(
            f"Step failed: {' '.join(argv)} (exit={returncode}, {elapsed_ms:.0f}ms)",
            extra={"argv": argv, "returncode": returncode, "elapsed_ms": elapsed_ms},
        )
