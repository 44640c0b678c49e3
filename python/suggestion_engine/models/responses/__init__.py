"""
Response DTOs - bodies returned by the backend.
"""

from suggestion_engine.models.responses.suggestions import (
    BulkActionError,
    BulkActionResult,
)
from suggestion_engine.models.responses.faces import (
    AssignFaceResponse,
    UnassignFaceResponse,
    CreatePersonResponse,
    AssignmentResult,
)

__all__ = [
    # Suggestions
    'BulkActionError',
    'BulkActionResult',
    # Faces / persons
    'AssignFaceResponse',
    'UnassignFaceResponse',
    'CreatePersonResponse',
    'AssignmentResult',
]
