"""Logging helpers shared by every stage."""

from .logging import REDACTION_MODES, JsonlFormatter, log_event, redact_text, setup_llm_logger, setup_logging, truncate_text

__all__ = [
    "REDACTION_MODES",
    "JsonlFormatter",
    "log_event",
    "redact_text",
    "setup_llm_logger",
    "setup_logging",
    "truncate_text",
]
