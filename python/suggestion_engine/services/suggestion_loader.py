"""
Suggestion Loader

Fetches the pending suggestions of the face currently being viewed.
Loads are restartable: every load takes a new generation and a result is
applied only if its generation is still current, so a slow load for a face
the viewer has already left never reaches the store.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from suggestion_engine.core.config import settings
from suggestion_engine.core.exceptions import AppException
from suggestion_engine.core.logging import get_logger
from suggestion_engine.models.domain.suggestion import Suggestion, SuggestionStatus
from suggestion_engine.repositories.suggestions_repo import SuggestionsRepository
from suggestion_engine.services.suggestion_store import SuggestionStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class LoadState:
    """What the viewer shows for the current face."""

    face_id: Optional[str] = None
    asset_id: Optional[str] = None
    loading: bool = False
    suggestions: List[Suggestion] = field(default_factory=list)
    error: Optional[AppException] = None
    generation: int = 0


class SuggestionLoader:
    """
    Per-face suggestion fetch with last-request-wins semantics.

    Usage:
        loader = SuggestionLoader(repo, store)
        state = await loader.load(face_id, asset_id)
        if state.error: ...
    """

    def __init__(
        self,
        repo: SuggestionsRepository,
        store: SuggestionStore,
        page_size: Optional[int] = None,
    ):
        self.repo = repo
        self.store = store
        self.page_size = page_size or settings.suggestions_page_size
        self._generation = 0
        self._state = LoadState()

    @property
    def state(self) -> LoadState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    def cancel(self) -> None:
        """Discard whatever load is outstanding."""
        self._generation += 1
        if self._state.loading:
            logger.debug(f"[Loader] Cancelled load for face {self._state.face_id}")
        self._state = LoadState(
            face_id=self._state.face_id,
            asset_id=self._state.asset_id,
            suggestions=self._state.suggestions,
            generation=self._generation,
        )

    async def load(self, face_id: str, asset_id: Optional[str] = None) -> LoadState:
        """
        Fetch the pending suggestions of a face.

        Args:
            face_id: Face instance being viewed
            asset_id: Asset the face belongs to, when known

        Returns:
            The loader state after this call. If a newer load started while
            this one was in flight, that newer load's state is returned and
            nothing from this fetch is applied.

        Errors are reported in `state.error`, not raised.
        """
        self._generation += 1
        generation = self._generation
        self._state = LoadState(face_id=face_id, asset_id=asset_id, loading=True, generation=generation)
        logger.debug(f"[Loader] Loading suggestions for face {face_id} (generation {generation})")

        try:
            suggestions = [
                s async for s in self.repo.iter_all(
                    status=SuggestionStatus.PENDING,
                    face_id=face_id,
                    asset_id=asset_id,
                    page_size=self.page_size,
                )
            ]
        except AppException as e:
            if generation != self._generation:
                logger.debug(f"[Loader] Dropping stale error for face {face_id}: {e.message}")
                return self._state
            logger.warning(f"[Loader] Failed to load suggestions for face {face_id}: {e.message}")
            self._state = LoadState(face_id=face_id, asset_id=asset_id, error=e, generation=generation)
            return self._state

        if generation != self._generation:
            logger.debug(f"[Loader] Dropping stale result for face {face_id} (generation {generation})")
            return self._state

        # Only this face
        suggestions = [s for s in suggestions if s.face_instance_id == face_id]
        self.store.replace_face(face_id, suggestions)
        self._state = LoadState(
            face_id=face_id,
            asset_id=asset_id,
            suggestions=self.store.list_by_face(face_id, pending_only=True),
            generation=generation,
        )
        logger.info(f"[Loader] Loaded {len(suggestions)} suggestions for face {face_id}")
        return self._state
