"""
Suggestions repository - /suggestions endpoints.
"""

from typing import AsyncIterator, Optional

from suggestion_engine.repositories.base import BaseRepository
from suggestion_engine.models.domain.suggestion import Suggestion, SuggestionStatus
from suggestion_engine.models.domain.job import FindMoreJob
from suggestion_engine.models.requests.suggestions import BulkActionRequest, FindMoreRequest
from suggestion_engine.models.responses.suggestions import BulkActionResult
from suggestion_engine.core.config import settings
from suggestion_engine.core.exceptions import (
    AlreadyReviewedError,
    ConflictError,
    InsufficientLabeledFacesError,
    NotFoundError,
    PersonNotFoundError,
    SuggestionNotFoundError,
    ValidationError,
)
from suggestion_engine.core.responses import Page


class SuggestionsRepository(BaseRepository[Suggestion]):
    """
    Repository for face suggestions.
    """

    resource = "suggestions"
    model_class = Suggestion

    # ============================================================
    # Queries
    # ============================================================

    async def list(
        self,
        status: Optional[SuggestionStatus] = None,
        person_id: Optional[str] = None,
        face_id: Optional[str] = None,
        asset_id: Optional[str] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> Page[Suggestion]:
        """
        List suggestions with pagination.

        Args:
            status: Filter by status
            person_id: Filter by suggested person
            face_id: Filter by face instance
            asset_id: Filter by the asset the face belongs to
            page: Page number (1-indexed)
            page_size: Items per page (1-100)
        """
        params = {
            "page": page,
            "page_size": page_size,
            "status": status.value if isinstance(status, SuggestionStatus) else status,
            "person_id": person_id,
            "face_instance_id": face_id,
            "asset_id": asset_id,
        }
        payload = await self.api.get(self._path(), params=params)
        return self._to_page(payload, page, page_size)

    async def iter_all(
        self,
        status: Optional[SuggestionStatus] = None,
        person_id: Optional[str] = None,
        face_id: Optional[str] = None,
        asset_id: Optional[str] = None,
        page_size: int = None,
    ) -> AsyncIterator[Suggestion]:
        """Iterate every matching suggestion across all pages."""

        async def fetch_page(page: int, page_size: int) -> Page[Suggestion]:
            return await self.list(
                status=status,
                person_id=person_id,
                face_id=face_id,
                asset_id=asset_id,
                page=page,
                page_size=page_size,
            )

        async for suggestion in self._iter_pages(fetch_page, page_size or settings.suggestions_page_size):
            yield suggestion

    async def get(self, suggestion_id: str) -> Suggestion:
        """
        Fetch one suggestion.

        Raises:
            SuggestionNotFoundError: Unknown id
        """
        try:
            payload = await self.api.get(self._path(suggestion_id))
        except NotFoundError:
            raise SuggestionNotFoundError(suggestion_id)
        return self._to_model(payload)

    # ============================================================
    # Review transitions
    # ============================================================

    async def accept(self, suggestion_id: str) -> Suggestion:
        """Accept a suggestion (server assigns the face to the suggested person)."""
        return await self._review(suggestion_id, "accept")

    async def reject(self, suggestion_id: str) -> Suggestion:
        return await self._review(suggestion_id, "reject")

    async def _review(self, suggestion_id: str, action: str) -> Suggestion:
        try:
            payload = await self.api.post(self._path(suggestion_id, action))
        except NotFoundError:
            raise SuggestionNotFoundError(suggestion_id)
        except ConflictError:
            raise AlreadyReviewedError(suggestion_id)
        return self._to_model(payload)

    async def bulk_action(self, request: BulkActionRequest) -> BulkActionResult:
        """
        Accept or reject many suggestions in one round trip.

        Returns:
            BulkActionResult with `succeeded_ids` filled in from the request.
            When the server counts failures it does not name, no id can be
            known to have succeeded and `succeeded_ids` is empty.
        """
        payload = await self.api.post(self._path("bulk-action"), json=request.to_payload())
        result = self._to_model(payload or {}, BulkActionResult)

        if result.unattributed_failures:
            self.logger.warning(
                f"Bulk {request.action.value}: {result.unattributed_failures} failures without an id, "
                f"leaving all {len(request.suggestion_ids)} suggestions unconfirmed"
            )
            return result

        failed = set(result.failed_ids)
        succeeded = [i for i in request.suggestion_ids if i not in failed]
        return result.model_copy(update={"succeeded_ids": succeeded})

    # ============================================================
    # Find more
    # ============================================================

    async def start_find_more(self, person_id: str, request: Optional[FindMoreRequest] = None) -> FindMoreJob:
        """
        Queue a job that searches for more faces of a person.

        Raises:
            InsufficientLabeledFacesError: Person has too few labeled faces (400)
            PersonNotFoundError: Unknown person
        """
        body = (request or FindMoreRequest()).to_payload()
        try:
            payload = await self.api.post(self._path("persons", person_id, "find-more"), json=body)
        except NotFoundError:
            raise PersonNotFoundError(person_id)
        except ValidationError as e:
            if e.status_code == 400:
                raise InsufficientLabeledFacesError(person_id, e.message)
            raise
        return self._to_model(payload, FindMoreJob)
