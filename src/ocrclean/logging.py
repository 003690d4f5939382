"""
Logging setup for ocrclean.

What the library logs:
- INFO   ``ocrclean.core.pipeline``: pipeline construction (rule set, segments,
  lookup tables, workers) and one line per batch carrying the BatchSummary
  counts (total, complete, partial, empty, failed, duplicates_dropped) as extras
- INFO   ``ocrclean.core.rules.loader``: each rule set loaded
- WARNING ``ocrclean.core.pipeline``: a record skipped for a RecordError, with
  its ``source_id`` as an extra
- DEBUG: misread corrections per record, segment misses, dedup drops

Every line emitted while a CLI batch runs is tagged with that batch's id,
worker threads included.

Usage:
    from ocrclean.logging import setup_logging, set_batch_id

    setup_logging(level="INFO", json_format=True)
    set_batch_id(uuid.uuid4().hex)
    pipeline.process_batch(records)
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, TextIO

# Correlates every log line of one extraction batch
batch_id_var: ContextVar[str | None] = ContextVar("batch_id", default=None)

# LogRecord internals; anything else on a record came in through ``extra=``
_SKIP_ATTRS = frozenset({
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "taskName", "message",
})


def get_batch_id() -> str | None:
    """Get the id of the batch being processed, if any."""
    return batch_id_var.get()


def set_batch_id(batch_id: str | None) -> None:
    """Tag subsequent log lines with ``batch_id`` (None clears it)."""
    batch_id_var.set(batch_id)


def _extras(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _SKIP_ATTRS and not key.startswith("_")
    }


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line, for log shippers and ``--json-logs``.

    A batch summary line looks like:
    {
        "timestamp": "2024-01-15T10:30:00.123456+00:00",
        "level": "INFO",
        "logger": "ocrclean.core.pipeline",
        "message": "Batch processed in 41.7 ms",
        "batch_id": "9f1c...",
        "total": 120, "complete": 87, "partial": 21, "empty": 4,
        "failed": 2, "duplicates_dropped": 6
    }

    Warnings and errors also carry a ``source`` block (file, line, function).
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        batch_id = get_batch_id()
        if batch_id:
            entry["batch_id"] = batch_id

        if record.levelno >= logging.WARNING:
            entry["source"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        for key, value in _extras(record).items():
            try:
                json.dumps(value)
            except (TypeError, ValueError):
                value = str(value)
            entry[key] = value

        return json.dumps(entry, default=str)


class DevelopmentFormatter(logging.Formatter):
    """
    Single-line console format with extras appended as key=value.

        2024-01-15 10:30:00 WARNING  [9f1c2a7b] [ocrclean.core.pipeline] Skipping record: Record is missing 'raw_text' source_id=dwg-7

    Levels are coloured only when the stream is a terminal.
    """

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True) -> None:
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        level = record.levelname
        if self.use_colors:
            level = f"{self.COLORS.get(level, '')}{level}{self.RESET}"

        extras = " ".join(f"{key}={value}" for key, value in _extras(record).items())
        batch_id = get_batch_id()
        batch = f" [{batch_id[:8]}]" if batch_id else ""

        line = f"{timestamp} {level:8}{batch} [{record.name}] {record.getMessage()}"
        if extras:
            line += " " + extras
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(
    level: str = "INFO",
    json_format: bool = False,
    log_file: str | None = None,
    stream: TextIO | None = None,
) -> None:
    """
    Configure the root logger for the ocrclean CLI.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
        json_format: JSON lines on the console instead of the development format
        log_file: Also append JSON lines to this file
        stream: Console stream; stderr by default because ``extract`` writes
            rows to stdout
    """
    stream = stream or sys.stderr
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if json_format:
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = DevelopmentFormatter(use_colors=stream.isatty())

    console_handler = logging.StreamHandler(stream)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    """Return ``logging.getLogger(name)``; modules normally pass ``__name__``."""
    return logging.getLogger(name)
