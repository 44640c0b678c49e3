"""
Centralized logging configuration.
Every engine module logs under the "suggestion_engine" namespace, so the
host application can route or silence the engine as one unit.
"""

import logging
import sys
from typing import Any, Dict, Optional

from suggestion_engine.core.config import settings

ENGINE_LOGGER = "suggestion_engine"
DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


class ColoredFormatter(logging.Formatter):
    """Console formatter that tints the level name."""

    LEVEL_COLORS = {
        logging.DEBUG: '\033[36m',     # Cyan
        logging.INFO: '\033[32m',      # Green
        logging.WARNING: '\033[33m',   # Yellow
        logging.ERROR: '\033[31m',     # Red
        logging.CRITICAL: '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno)
        if color is None:
            return super().format(record)
        # Tint a copy; other handlers share the record
        tinted = logging.makeLogRecord(record.__dict__)
        tinted.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(tinted)


def setup_logging(
    level: Optional[str] = None,
    format_string: Optional[str] = None,
    use_colors: bool = True,
    stream=None,
) -> logging.Logger:
    """
    Attach a console handler to the engine logger.

    Args:
        level: DEBUG, INFO, WARNING, ... (defaults to settings.log_level)
        format_string: Custom format string (optional)
        use_colors: Tint level names with ANSI colors
        stream: Output stream (defaults to stdout)

    Returns:
        The configured engine logger
    """
    if level is None:
        level = settings.log_level

    handler = logging.StreamHandler(stream or sys.stdout)
    formatter_class = ColoredFormatter if use_colors else logging.Formatter
    handler.setFormatter(formatter_class(format_string or DEFAULT_FORMAT, datefmt="%H:%M:%S"))

    engine_logger = logging.getLogger(ENGINE_LOGGER)
    engine_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    engine_logger.handlers = [handler]
    engine_logger.propagate = False

    # Quiet transport internals
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return engine_logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger below the engine namespace.

    Usage:
        from suggestion_engine.core.logging import get_logger
        logger = get_logger(__name__)
        logger.info("[Bulk] accept 3 suggestions")
    """
    if name != ENGINE_LOGGER and not name.startswith(ENGINE_LOGGER + "."):
        name = f"{ENGINE_LOGGER}.{name}"
    return logging.getLogger(name)


# === Backend call helpers ===

def _format_fields(fields: Dict[str, Any]) -> str:
    return " ".join(f"{k}={v}" for k, v in fields.items() if v is not None)


def log_request(logger: logging.Logger, method: str, path: str, **params):
    """Log an outgoing backend call."""
    logger.debug(f"→ {method} {path} {_format_fields(params)}".strip())


def log_response(logger: logging.Logger, status: int, duration_ms: float, **fields):
    """Log a backend answer; error statuses are warnings."""
    message = f"← {status} ({duration_ms:.1f}ms) {_format_fields(fields)}".strip()
    logger.log(logging.WARNING if status >= 400 else logging.DEBUG, message)


def log_error(logger: logging.Logger, error: BaseException, context: str = None):
    """Log an exception with its traceback and an optional context tag."""
    code = getattr(error, "code", None)
    msg = f"{type(error).__name__}{f' ({code})' if code else ''}: {error}"
    if context:
        msg = f"[{context}] {msg}"
    logger.error(msg, exc_info=error)
