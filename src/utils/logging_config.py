"""
Logging Configuration Module for the Syllabus Structure Extraction Engine

Configures loguru for console output plus rotating log files in the logs/
directory. Every record carries the name of the document being extracted
(``document_context``), so interleaved runs can be told apart in the files.

Extraction outcomes are logged through ``log_extraction_summary`` and
``log_extraction_failure`` so that every document ends with exactly one
summary line naming the path used or the failure reason.
"""

import sys
from datetime import datetime
from typing import Any, Dict, Optional
from loguru import logger as _logger

from src.config import (
    LOG_LEVEL,
    LOGS_DIR,
)


# Records logged outside document_context()
NO_DOCUMENT = "-"

# File format: Full timestamp, document and source location
FILE_LOG_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[document]} | "
    "{name}:{function}:{line} | {message}"
)

# Console format: Short timestamp and document
CONSOLE_LOG_FORMAT = "{time:HH:mm:ss} | {level: <8} | {extra[document]} | {message}"


def setup_logger(level: Optional[str] = None, log_files: bool = True) -> Any:
    """
    Configure loguru with a console handler and, optionally, log files.

    Creates two log files when ``log_files`` is set:
    1. extraction_{timestamp}.log - All log messages (10MB rotation, keep 10 files)
    2. errors_{timestamp}.log - Error/Critical only (5MB rotation, keep 20 files)

    Args:
        level: Console and extraction log level (defaults to LOG_LEVEL)
        log_files: Write the rotating files under LOGS_DIR

    Returns:
        Configured loguru logger instance

    Example:
        >>> from src.utils.logging_config import setup_logger
        >>> logger = setup_logger(level="DEBUG", log_files=False)
        >>> logger.debug("Discarded subtopic '10.2.1 Vectors': not contained in topic 10.1")
    """
    level = (level or LOG_LEVEL).upper()

    _logger.remove()
    _logger.configure(extra={"document": NO_DOCUMENT})

    _logger.add(
        sys.stderr,
        format=CONSOLE_LOG_FORMAT,
        level=level,
        colorize=True,
    )

    if not log_files:
        return _logger

    LOGS_DIR.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

    extraction_log = LOGS_DIR / f"extraction_{timestamp}.log"
    _logger.add(
        extraction_log,
        format=FILE_LOG_FORMAT,
        level=level,
        rotation="10 MB",
        retention=10,
        compression="zip",
        enqueue=True,
    )

    error_log = LOGS_DIR / f"errors_{timestamp}.log"
    _logger.add(
        error_log,
        format=FILE_LOG_FORMAT,
        level="ERROR",
        rotation="5 MB",
        retention=20,
        compression="zip",
        enqueue=True,
    )

    _logger.info(f"Logging configured: {extraction_log}")
    _logger.info(f"Error logging configured: {error_log}")

    return _logger


def document_context(name: str):
    """
    Tag every record logged inside the block with the document name.

    Example:
        >>> with document_context("physics_grades_10_12"):
        ...     logger.info("Running line-based extraction")
    """
    return _logger.contextualize(document=name or NO_DOCUMENT)


def log_step_start(step_name: str) -> None:
    """
    Log the start of an extraction step with consistent formatting.

    Args:
        step_name: Name of the step (e.g., "Syllabus extraction: Physics (obc)")
    """
    _logger.info("=" * 80)
    _logger.info(f"STARTING: {step_name}")
    _logger.info("=" * 80)


def log_step_complete(step_name: str, duration: float) -> None:
    """
    Log the completion of an extraction step with duration.

    Args:
        step_name: Name of the step
        duration: Duration in seconds (use time.time() difference)
    """
    _logger.success(f"COMPLETED: {step_name}")
    _logger.info(f"Duration: {duration:.2f} seconds")
    _logger.info("=" * 80)


def log_extraction_summary(method: str, counts: Dict[str, int]) -> None:
    """Log the one-line summary of a successful extraction."""
    _logger.success(
        f"✓ Extraction complete ({method}): {counts.get('topics', 0)} topics, "
        f"{counts.get('subtopics', 0)} subtopics, {counts.get('outcomes', 0)} outcomes"
    )


def log_extraction_failure(reason: str, error: str) -> None:
    """Log the one-line summary of a failed extraction."""
    _logger.error(f"❌ Extraction failed ({reason}): {error}")


# Export the logger instance for direct use
logger = _logger


__all__ = [
    "NO_DOCUMENT",
    "setup_logger",
    "document_context",
    "log_step_start",
    "log_step_complete",
    "log_extraction_summary",
    "log_extraction_failure",
    "logger",
]
