"""
Core package - foundation for the engine.

Modules:
- config.py - Engine settings via Pydantic Settings
- exceptions.py - Custom exception hierarchy
- responses.py - Paginated list envelope
- logging.py - Centralized logging configuration
"""

from suggestion_engine.core.config import settings, get_settings, Settings
from suggestion_engine.core.exceptions import (
    AppException,
    NotFoundError,
    ConflictError,
    AlreadyReviewedError,
    BusyError,
    ValidationError,
    QuotaExceededError,
    TransportError,
    JobFailedError,
    JobTimeoutError,
)
from suggestion_engine.core.responses import Page, PaginationMeta

__all__ = [
    'settings',
    'get_settings',
    'Settings',
    'AppException',
    'NotFoundError',
    'ConflictError',
    'AlreadyReviewedError',
    'BusyError',
    'ValidationError',
    'QuotaExceededError',
    'TransportError',
    'JobFailedError',
    'JobTimeoutError',
    'Page',
    'PaginationMeta',
]
