# propscrape/logging_utils.py
"""
Logging setup for CLI and service use.

Library modules only call `logging.getLogger(__name__)`; handlers are
installed here, once, on the `propscrape` logger.

PROPSCRAPE_DEBUG=1 additionally writes a rotating debug log to
logs/propscrape_debug.log.
"""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler

ROOT_LOGGER = "propscrape"
DEBUG_LOG_PATH = os.path.join("logs", "propscrape_debug.log")

_REDACT_KEYS = ("OPENAI_API_KEY",)
_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


def debug_enabled() -> bool:
    return os.getenv("PROPSCRAPE_DEBUG", "").strip().lower() in {"1", "true", "yes", "on"}


def redact(text: str) -> str:
    for k in _REDACT_KEYS:
        val = os.getenv(k)
        if val:
            text = text.replace(val, "[REDACTED]")
    return text


class RedactingFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        return redact(super().format(record))


def configure_logging(level: str | int = "INFO") -> logging.Logger:
    """Install a stderr handler (and the debug file handler when enabled). Safe to call repeatedly."""
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(logging.DEBUG if debug_enabled() else level)

    # Avoid duplicate handlers if reloaded in REPL/tests
    if not any(getattr(h, "_propscrape", False) for h in logger.handlers):
        stream = logging.StreamHandler(sys.stderr)
        stream.setFormatter(RedactingFormatter(_FORMAT, _DATEFMT))
        stream.setLevel(level)
        stream._propscrape = True  # type: ignore[attr-defined]
        logger.addHandler(stream)

        if debug_enabled():
            try:
                os.makedirs(os.path.dirname(DEBUG_LOG_PATH), exist_ok=True)
                handler = RotatingFileHandler(DEBUG_LOG_PATH, maxBytes=1_000_000, backupCount=3, encoding="utf-8")
            except OSError as exc:
                logger.warning("Debug log file unavailable: %s", exc)
            else:
                handler.setFormatter(RedactingFormatter(_FORMAT, _DATEFMT))
                handler.setLevel(logging.DEBUG)
                handler._propscrape = True  # type: ignore[attr-defined]
                logger.addHandler(handler)

    return logger
