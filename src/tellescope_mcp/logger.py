from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

LOGGER_NAME = "tellescope_mcp"
DEFAULT_LOG_DIR = "logs"
DEFAULT_LOG_FILE = "gateway.log"

CONSOLE_FORMAT = "[%(levelname)s] %(name)s: %(message)s"

_MAX_INLINE_CHARS = 100

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


@dataclass(frozen=True)
class LoggingConfig:
    level: int = logging.INFO
    file: str | None = None
    enable_file_logging: bool = True
    log_dir: str = DEFAULT_LOG_DIR
    log_rotation: bool = False
    max_bytes: int = 10 * 1024 * 1024
    backup_count: int = 5


def _extra_fields(record: logging.LogRecord) -> Iterator[tuple[str, Any]]:
    for key, value in record.__dict__.items():
        if key in _RECORD_ATTRS or key.startswith("_") or key == "event":
            continue
        yield key, value


def _render(value: Any) -> str:
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, indent=2, default=str)
    if isinstance(value, float):
        return f"{value:.2f}"
    text = str(value)
    if len(text) > _MAX_INLINE_CHARS:
        return f"{text[:_MAX_INLINE_CHARS]}..."
    return text


class DetailedTextFormatter(logging.Formatter):
    """File log format: a header line tagged with the event, then one line per ``extra`` field.

    ``2025-01-01 12:00:00.000 | INFO  | dispatcher   | tool_call_complete | Tool: forms_get_page``
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, UTC).strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
        module = record.name.rsplit(".", 1)[-1]
        event = getattr(record, "event", None) or "-"
        lines = [f"{timestamp} | {record.levelname:5s} | {module:12s} | {event} | {record.getMessage()}"]
        lines.extend(f"    {key}: {_render(value)}" for key, value in _extra_fields(record))
        if record.exc_info:
            lines.append(self.formatException(record.exc_info))
        return "\n".join(lines)


def get_logger(name: str | None = None) -> logging.Logger:
    logger = logging.getLogger(name or LOGGER_NAME)
    if not any(isinstance(h, logging.NullHandler) for h in logger.handlers):
        logger.addHandler(logging.NullHandler())
    return logger


def _file_handler(config: LoggingConfig) -> logging.Handler | None:
    log_file = Path(config.log_dir) / DEFAULT_LOG_FILE
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        if config.log_rotation:
            return RotatingFileHandler(log_file, maxBytes=config.max_bytes, backupCount=config.backup_count)
        return logging.FileHandler(log_file, mode="a")
    except OSError as e:
        sys.stderr.write(f"Warning: Could not create log file {log_file}: {e}\n")
        sys.stderr.write("Falling back to stderr logging only\n")
        return None


def configure_logging(config: LoggingConfig | None = None) -> None:
    """Attach handlers to the package logger, replacing any from a previous call.

    Console output always goes to stderr: stdout carries the stdio binding's
    JSON-RPC stream and must stay clean. ``config.file`` redirects that
    console output to a file instead.
    """
    config = config or LoggingConfig()
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(config.level)
    logger.propagate = False

    handlers: list[logging.Handler] = []
    if config.enable_file_logging and not config.file:
        detailed = _file_handler(config)
        if detailed is not None:
            detailed.setFormatter(DetailedTextFormatter())
            handlers.append(detailed)

    console: logging.Handler = (
        logging.FileHandler(config.file, mode="w") if config.file else logging.StreamHandler(sys.stderr)
    )
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    handlers.append(console)

    for handler in handlers:
        handler.setLevel(config.level)
        logger.addHandler(handler)
