"""
Suggestion Engine

Entry point for a review session. Owns the HTTP client and wires the
repositories, local stores and services together.

Usage:
    async with SuggestionEngine() as engine:
        await engine.load_persons()
        state = await engine.load_suggestions(face_id)
        await engine.accept(state.suggestions[0].id)
"""

from typing import Iterable, List, Optional

import httpx

from suggestion_engine.core.config import Settings, settings as default_settings
from suggestion_engine.core.logging import get_logger
from suggestion_engine.infrastructure.http_client import ApiClient
from suggestion_engine.infrastructure.storage import LocalSettings, get_local_settings
from suggestion_engine.models.domain.job import FindMoreJob
from suggestion_engine.models.domain.person import Person
from suggestion_engine.models.requests.suggestions import FindMoreRequest
from suggestion_engine.models.responses.faces import AssignmentResult, UnassignFaceResponse
from suggestion_engine.models.responses.suggestions import BulkActionResult
from suggestion_engine.models.domain.suggestion import Suggestion
from suggestion_engine.repositories.faces_repo import FacesRepository
from suggestion_engine.repositories.job_progress_repo import JobProgressRepository
from suggestion_engine.repositories.persons_repo import PersonsRepository
from suggestion_engine.repositories.suggestions_repo import SuggestionsRepository
from suggestion_engine.services.assignment import AssignmentCoordinator
from suggestion_engine.services.bulk_actions import BulkActionProcessor
from suggestion_engine.services.face_state import FaceStateStore
from suggestion_engine.services.job_progress import JobCallbacks, JobProgressMonitor, MonitorHandle
from suggestion_engine.services.person_directory import PersonDirectory
from suggestion_engine.services.recent_selection import RecentSelectionCache
from suggestion_engine.services.suggestion_loader import LoadState, SuggestionLoader
from suggestion_engine.services.suggestion_store import SuggestionStore

logger = get_logger(__name__)


class SuggestionEngine:
    """
    Facade over the suggestion review components.

    Components are public attributes so callers can read state directly
    (engine.store.snapshot(), engine.monitor.running_jobs, ...).
    """

    def __init__(
        self,
        config: Optional[Settings] = None,
        api: Optional[ApiClient] = None,
        local_settings: Optional[LocalSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            config: Settings to use (defaults to the environment)
            api: Pre-built client; the engine closes it on close()
            local_settings: Durable storage for the recent-persons list
            transport: httpx transport for the client built here (tests)
        """
        self.config = config or default_settings
        self.api = api or ApiClient(
            base_url=self.config.api_base_url,
            timeout=self.config.request_timeout,
            token=self.config.api_token,
            transport=transport,
        )
        if local_settings is None:
            local_settings = get_local_settings() if config is None else LocalSettings(
                path=self.config.local_settings_path,
                namespace=self.config.local_settings_namespace,
            )
        self.local_settings = local_settings

        # Repositories
        prefix = self.config.faces_prefix
        self.suggestions_repo = SuggestionsRepository(self.api, prefix=prefix)
        self.faces_repo = FacesRepository(self.api, prefix=prefix)
        self.persons_repo = PersonsRepository(self.api, prefix=prefix)
        self.job_progress_repo = JobProgressRepository(self.api)

        # Local state
        self.store = SuggestionStore()
        self.faces = FaceStateStore()
        self.recent = RecentSelectionCache(
            self.local_settings,
            key=self.config.recent_persons_key,
            capacity=self.config.recent_persons_limit,
        )
        self.directory = PersonDirectory(self.persons_repo)

        # Services
        self.assignments = AssignmentCoordinator(
            self.faces_repo,
            self.suggestions_repo,
            self.persons_repo,
            self.store,
            self.faces,
            self.recent,
            self.directory,
        )
        self.bulk = BulkActionProcessor(self.suggestions_repo, self.store, self.faces, self.recent, self.directory)
        self.monitor = JobProgressMonitor(
            self.job_progress_repo,
            poll_interval=self.config.job_poll_interval,
            timeout=self.config.job_timeout,
            max_stream_connections=self.config.max_stream_connections,
            reconnect_attempts=self.config.stream_reconnect_attempts,
            reconnect_delay=self.config.stream_reconnect_delay,
            poll_max_errors=self.config.poll_max_errors,
        )
        self.loader = SuggestionLoader(self.suggestions_repo, self.store, page_size=self.config.suggestions_page_size)

        logger.info(f"SuggestionEngine ready ({self.api.base_url})")

    async def __aenter__(self) -> "SuggestionEngine":
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

    async def close(self) -> None:
        """Stop every job monitor and close the HTTP client."""
        await self.monitor.aclose()
        self.loader.cancel()
        await self.api.aclose()
        logger.info("SuggestionEngine closed")

    # ============================================================
    # Loading
    # ============================================================

    async def load_persons(self) -> List[Person]:
        return await self.directory.load()

    async def load_suggestions(self, face_id: str, asset_id: Optional[str] = None) -> LoadState:
        """Load the pending suggestions of the face being viewed (last call wins)."""
        return await self.loader.load(face_id, asset_id)

    def ranked_persons(self) -> List[Person]:
        """Assignment targets, recently used first."""
        return self.directory.ranked(self.recent.list())

    # ============================================================
    # Single-item review
    # ============================================================

    async def accept(self, suggestion_id: str) -> AssignmentResult:
        return await self.assignments.accept(suggestion_id)

    async def reject(self, suggestion_id: str) -> Suggestion:
        return await self.assignments.reject(suggestion_id)

    async def assign_to_existing(self, face_id: str, person_id: str) -> AssignmentResult:
        return await self.assignments.assign_to_existing(face_id, person_id)

    async def create_and_assign(self, face_id: str, name: str) -> AssignmentResult:
        return await self.assignments.create_and_assign(face_id, name)

    async def unassign(self, face_id: str) -> UnassignFaceResponse:
        return await self.assignments.unassign(face_id)

    # ============================================================
    # Bulk
    # ============================================================

    async def bulk_action(
        self,
        suggestion_ids: Iterable[str],
        action: str,
        auto_find_more: bool = False,
        find_more_prototype_count: Optional[int] = None,
        callbacks: Optional[JobCallbacks] = None,
    ) -> BulkActionResult:
        """
        Accept or reject a batch.

        Every "find more" job the server queued in response is tracked by
        the monitor; `callbacks` receive events for all of them.
        """
        result = await self.bulk.execute(suggestion_ids, action, auto_find_more, find_more_prototype_count)
        for job in result.find_more_jobs:
            self.monitor.track_job(job, callbacks, person_name=self.directory.name_of(job.person_id))
        if result.find_more_jobs:
            logger.info(f"[Engine] Tracking {len(result.find_more_jobs)} find-more jobs from bulk accept")
        return result

    # ============================================================
    # Find more
    # ============================================================

    async def start_find_more(
        self,
        person_id: str,
        prototype_count: Optional[int] = None,
        max_suggestions: Optional[int] = None,
        min_confidence: Optional[float] = None,
    ) -> FindMoreJob:
        """Queue a "find more" job without monitoring it."""
        request = FindMoreRequest(
            prototype_count=prototype_count,
            max_suggestions=max_suggestions,
            min_confidence=min_confidence,
        )
        job = await self.suggestions_repo.start_find_more(person_id, request)
        logger.info(f"[Engine] Find-more job {job.job_id} queued for person {person_id}")
        return job

    async def find_more(
        self,
        person_id: str,
        callbacks: Optional[JobCallbacks] = None,
        prototype_count: Optional[int] = None,
        max_suggestions: Optional[int] = None,
        min_confidence: Optional[float] = None,
    ) -> MonitorHandle:
        """Queue a "find more" job and start monitoring it."""
        job = await self.start_find_more(person_id, prototype_count, max_suggestions, min_confidence)
        return self.monitor.track_job(job, callbacks, person_name=self.directory.name_of(person_id))

    async def accept_and_find_more(
        self,
        suggestion_id: str,
        callbacks: Optional[JobCallbacks] = None,
        prototype_count: Optional[int] = None,
    ) -> MonitorHandle:
        """Accept a suggestion, then look for more faces of the same person."""
        result = await self.accept(suggestion_id)
        return await self.find_more(result.person_id, callbacks, prototype_count=prototype_count)
