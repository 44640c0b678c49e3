"""
Domain models - core entities of the review engine.

These are the source of truth for data structures.
Request and response models derive from these.
"""

from suggestion_engine.models.domain.suggestion import Suggestion, SuggestionStatus, BoundingBox
from suggestion_engine.models.domain.face import FaceAssignment
from suggestion_engine.models.domain.person import Person
from suggestion_engine.models.domain.job import (
    JobStatus,
    JobPhase,
    JobProgress,
    FindMoreJob,
    TrackedJob,
)

__all__ = [
    'Suggestion',
    'SuggestionStatus',
    'BoundingBox',
    'FaceAssignment',
    'Person',
    'JobStatus',
    'JobPhase',
    'JobProgress',
    'FindMoreJob',
    'TrackedJob',
]
