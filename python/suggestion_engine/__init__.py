"""
Face suggestion review engine.

Client-side engine for reviewing machine-generated face-to-person
suggestions against the image search backend.
"""

from suggestion_engine.core.config import VERSION
from suggestion_engine.services.engine import SuggestionEngine
from suggestion_engine.services.job_progress import JobCallbacks

__version__ = VERSION

__all__ = ['SuggestionEngine', 'JobCallbacks', '__version__']
