"""
Logging setup for the pipeline.

Console output goes through rich; the optional run log and the LLM call log
are JSON lines, one event per line, with ``log_event`` fields merged into
the top-level object.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
import re
from typing import Any, Callable

from rich.logging import RichHandler

from ..config import LoggingConfig


_URL_RE = re.compile(r"https?://\S+")

# Attributes every LogRecord carries; extras must not collide with them.
_RESERVED = set(vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))) | {
    "message",
    "asctime",
    "taskName",
}

_REDACTORS: dict[str, Callable[[str], str]] = {
    "none": lambda text: text,
    "redact_content": lambda text: "",
    "redact_urls": lambda text: _URL_RE.sub("[REDACTED_URL]", text),
}

REDACTION_MODES = tuple(_REDACTORS)


def setup_logging(cfg: LoggingConfig, log_dir: Path | None) -> logging.Logger:
    """Configure the ``republisher`` logger from ``cfg``.

    Handlers from a previous call are replaced, so the CLI can call this again
    after loading a config file.
    """
    level = _level_from_string(cfg.level)
    logger = _reset_logger("republisher", level)

    if cfg.console:
        console = RichHandler(rich_tracebacks=True, show_time=False, show_level=True)
        console.setLevel(level)
        console.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(console)

    if cfg.file and log_dir is not None:
        formatter = JsonlFormatter() if cfg.format == "jsonl" else logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s"
        )
        logger.addHandler(_file_handler(log_dir / cfg.filename, level, formatter))

    return logger


def setup_llm_logger(cfg: LoggingConfig, log_dir: Path | None) -> logging.Logger | None:
    """Dedicated JSONL log of provider calls; None unless enabled with a log dir."""
    if not cfg.llm_log_enabled or log_dir is None:
        return None
    level = _level_from_string(cfg.level)
    logger = _reset_logger("republisher.llm", level)
    logger.addHandler(_file_handler(log_dir / cfg.llm_log_file, level, JsonlFormatter()))
    return logger


def log_event(logger: logging.Logger | None, message: str, **fields: Any) -> None:
    """Log a structured event; fields land in the JSONL payload."""
    if logger is None:
        return
    safe = {(f"{key}_" if key in _RESERVED else key): value for key, value in fields.items()}
    logger.info(message, extra=safe)


def redact_text(text: str, mode: str) -> str:
    """Apply a redaction mode; unknown modes leave the text unchanged."""
    redactor = _REDACTORS.get(mode)
    return redactor(text) if redactor else text


def truncate_text(text: str, max_chars: int = 20000) -> str:
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + "...(truncated)"


class JsonlFormatter(logging.Formatter):
    """One JSON object per record, stamped with the record's own time."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            (key, value) for key, value in vars(record).items() if key not in _RESERVED
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _reset_logger(name: str, level: int) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = False
    return logger


def _file_handler(path: Path, level: int, formatter: logging.Formatter) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def _level_from_string(level: str) -> int:
    return getattr(logging, level.upper(), logging.INFO)
