"""
Request DTOs - bodies sent to the backend.
"""

from suggestion_engine.models.requests.suggestions import (
    BulkAction,
    BulkActionRequest,
    FindMoreRequest,
)
from suggestion_engine.models.requests.faces import (
    AssignFaceRequest,
    CreatePersonRequest,
)

__all__ = [
    # Suggestions
    'BulkAction',
    'BulkActionRequest',
    'FindMoreRequest',
    # Faces / persons
    'AssignFaceRequest',
    'CreatePersonRequest',
]
