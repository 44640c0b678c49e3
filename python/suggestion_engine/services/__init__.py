"""
Services package - review session logic.

Modules:
- suggestion_store.py - In-memory suggestions (copy-on-write)
- face_state.py - Face -> person assignments shown in the view
- recent_selection.py - Most-recently-used persons
- person_directory.py - Known persons and target ranking
- assignment.py - Single-item review with optimistic updates
- bulk_actions.py - Batch accept/reject
- job_progress.py - "Find more" job monitoring (stream or poll)
- suggestion_loader.py - Per-face fetch, last request wins
- engine.py - Facade wiring everything together
"""

from suggestion_engine.services.suggestion_store import SuggestionStore
from suggestion_engine.services.face_state import FaceStateStore
from suggestion_engine.services.recent_selection import RecentSelectionCache
from suggestion_engine.services.person_directory import PersonDirectory
from suggestion_engine.services.assignment import AssignmentCoordinator
from suggestion_engine.services.bulk_actions import BulkActionProcessor
from suggestion_engine.services.job_progress import (
    JobCallbacks,
    JobProgressMonitor,
    MonitorHandle,
    MonitorState,
    PollingChannel,
    StreamingChannel,
)
from suggestion_engine.services.suggestion_loader import LoadState, SuggestionLoader
from suggestion_engine.services.engine import SuggestionEngine

__all__ = [
    'SuggestionStore',
    'FaceStateStore',
    'RecentSelectionCache',
    'PersonDirectory',
    'AssignmentCoordinator',
    'BulkActionProcessor',
    'JobCallbacks',
    'JobProgressMonitor',
    'MonitorHandle',
    'MonitorState',
    'PollingChannel',
    'StreamingChannel',
    'LoadState',
    'SuggestionLoader',
    'SuggestionEngine',
]
