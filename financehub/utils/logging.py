"""Logging setup shared by the CLI and the review console.

``configure_logging`` rebuilds the root handlers from the environment (or
explicit arguments) so every ``sfh.*`` logger ends up with one format and
destination. Call it once, after ``.env`` has been loaded.

Environment:
  - LOG_LEVEL: root level (default INFO)
  - LOG_OUTPUT: stdout | file | both (default stdout)
  - LOG_FILE_PATH: rotating log file (default logs/financehub.log)
  - LOG_FORMAT: text | json (default text)
  - LOG_LEVELS: per-logger overrides, e.g. ``sfh.ai=DEBUG,werkzeug=INFO``
"""

from __future__ import annotations

import json
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Dict, Literal, Mapping, Optional

LogOutput = Literal["stdout", "file", "both"]
LogFormat = Literal["text", "json"]

DEFAULT_FILE_PATH = "logs/financehub.log"
TEXT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(filename)s:%(lineno)d | %(message)s"

# Chatty third-party loggers kept at WARNING unless LOG_LEVELS says otherwise
QUIET_LOGGERS = ("urllib3", "github", "werkzeug")


class JsonFormatter(logging.Formatter):
    """One JSON object per line; exceptions are rendered into ``exc``."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "name": record.name,
            "file": f"{record.filename}:{record.lineno}",
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def parse_level_overrides(value: str | None) -> Dict[str, str]:
    """Parse ``name=LEVEL`` pairs separated by commas; malformed pairs are skipped."""
    overrides: Dict[str, str] = {}
    for pair in (value or "").split(","):
        name, sep, level = pair.partition("=")
        level = level.strip().upper()
        if sep and name.strip() and isinstance(logging.getLevelName(level), int):
            overrides[name.strip()] = level
    return overrides


def configure_logging(
    level: str | int | None = None,
    output: LogOutput | None = None,
    file_path: str | None = None,
    log_format: LogFormat | None = None,
    levels: Optional[Mapping[str, str]] = None,
) -> None:
    """Configure the root logger.

    Parameters
    ----------
    level:
        Root level name or number; falls back to ``LOG_LEVEL``.
    output:
        "stdout", "file" or "both"; falls back to ``LOG_OUTPUT``.
    file_path:
        Log file used when output includes "file".
    log_format:
        "text" or "json".
    levels:
        Per-logger levels applied after ``LOG_LEVELS`` from the environment.
    """
    if level is None:
        level = os.environ.get("LOG_LEVEL", "INFO")
    if isinstance(level, str):
        level = level.upper()
    output = output or os.environ.get("LOG_OUTPUT", "stdout").lower()  # type: ignore[assignment]
    file_path = file_path or os.environ.get("LOG_FILE_PATH") or DEFAULT_FILE_PATH
    log_format = log_format or os.environ.get("LOG_FORMAT", "text").lower()  # type: ignore[assignment]

    formatter: logging.Formatter = JsonFormatter() if log_format == "json" else logging.Formatter(TEXT_FORMAT)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    if output in ("stdout", "both"):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    if output in ("file", "both"):
        log_dir = os.path.dirname(file_path)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(file_path, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    overrides = parse_level_overrides(os.environ.get("LOG_LEVELS"))
    overrides.update(levels or {})
    for name, name_level in overrides.items():
        logging.getLogger(name).setLevel(name_level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
