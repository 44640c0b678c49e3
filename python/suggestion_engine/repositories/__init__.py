"""
Repositories package - backend access layer.

Repositories wrap REST resources.
No business logic - only requests and payload translation.

Usage:
    from suggestion_engine.repositories import SuggestionsRepository

    repo = SuggestionsRepository(api_client)
    page = await repo.list(status="pending")
"""

from suggestion_engine.repositories.base import BaseRepository
from suggestion_engine.repositories.suggestions_repo import SuggestionsRepository
from suggestion_engine.repositories.faces_repo import FacesRepository
from suggestion_engine.repositories.persons_repo import PersonsRepository
from suggestion_engine.repositories.job_progress_repo import JobProgressRepository

__all__ = [
    'BaseRepository',
    'SuggestionsRepository',
    'FacesRepository',
    'PersonsRepository',
    'JobProgressRepository',
]
