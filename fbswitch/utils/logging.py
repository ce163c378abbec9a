"""Logging configuration for the Firebase configuration switcher.

User ids are usually e-mail addresses and REST calls carry the API key in
the query string, so every handler installed here masks both.
"""

import logging
import re
import sys
from pathlib import Path
from typing import List, Optional


LOGGER_NAME = "fbswitch"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Applied in order; the query-string rule must run before the bare key rule
REDACTION_PATTERNS = [
    (re.compile(r'((?:[?&]key=)|(?:api_?key["\s:=]+))[^\s&,}\]"]+', re.IGNORECASE), r'\1[REDACTED]'),
    (re.compile(r'AIza[0-9A-Za-z_\-]{35}'), '[REDACTED]'),
    # Keep the first character and the domain
    (re.compile(r'\b([A-Za-z0-9._%+\-])[A-Za-z0-9._%+\-]*@([A-Za-z0-9.\-]+\.[A-Za-z]{2,})\b'), r'\1***@\2'),
]


def redact(message: str) -> str:
    """Mask API keys and e-mail addresses in a message."""
    for pattern, replacement in REDACTION_PATTERNS:
        message = pattern.sub(replacement, message)
    return message


class RedactingFormatter(logging.Formatter):
    """Formatter whose output (including tracebacks) is passed through redact()."""

    def format(self, record: logging.LogRecord) -> str:
        return redact(super().format(record))


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    console: bool = True
) -> logging.Logger:
    """
    Configure the package logger.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        level: Logging level (default INFO)
        log_file: Optional file that receives the same records as the console
        console: Whether to log to stdout

    Returns:
        The "fbswitch" logger
    """
    formatter = RedactingFormatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    handlers: List[logging.Handler] = []
    if console:
        handlers.append(logging.StreamHandler(sys.stdout))
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logger = logging.getLogger(LOGGER_NAME)
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()

    logger.setLevel(level)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def get_logger(name: str = LOGGER_NAME) -> logging.Logger:
    """Logger under the package namespace (default is the package logger)."""
    return logging.getLogger(name)
