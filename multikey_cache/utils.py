"""
Utility functions for the multikey save cache step.

Includes logging setup and message helpers.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from rich.logging import RichHandler

LOGGER_NAME = "multikey_cache"


def setup_logging(
    verbose: bool = False,
    log_format: str = "pretty",
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Set up logging for a step run.

    Args:
        verbose: Log at DEBUG instead of INFO
        log_format: "pretty" (rich console) or "plain" (level-prefixed lines)
        log_file: Optional file receiving structured (JSON) records

    Returns:
        Configured package logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.handlers = []  # Clear existing handlers

    if log_format == "pretty":
        console_handler = RichHandler(rich_tracebacks=True, show_time=False, show_path=False)
    else:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(
            logging.Formatter("%(levelname)s: %(message)s")
        )
    logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(StructuredFormatter())
        logger.addHandler(file_handler)

    return logger


def enable_debug_log(enabled: bool) -> None:
    """Switch the package logger between DEBUG and INFO."""
    logging.getLogger(LOGGER_NAME).setLevel(logging.DEBUG if enabled else logging.INFO)


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Add extra fields if present
        if hasattr(record, "cache_key"):
            log_data["cache_key"] = record.cache_key
        if hasattr(record, "event"):
            log_data["event"] = record.event

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def truncate_message(message: str, max_length: int = 500) -> str:
    """Trim a message to max_length characters, keeping the tail."""
    message = message.strip()
    if len(message) > max_length:
        message = "..." + message[-max_length:]
    return message


def format_error_list(header: str, items) -> str:
    """Render a header followed by one indented bullet per item."""
    lines = [header]
    for item in items:
        lines.append(f"    - {item}")
    return "\n".join(lines)
