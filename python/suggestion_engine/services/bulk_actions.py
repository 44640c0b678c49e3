"""
Bulk accept/reject over many suggestions in one request.
"""

from typing import Iterable, List, Optional

from suggestion_engine.core.exceptions import ValidationError
from suggestion_engine.core.logging import get_logger
from suggestion_engine.models.domain.suggestion import SuggestionStatus
from suggestion_engine.models.requests.suggestions import BulkAction, BulkActionRequest
from suggestion_engine.models.responses.suggestions import BulkActionResult
from suggestion_engine.repositories.suggestions_repo import SuggestionsRepository
from suggestion_engine.services.face_state import FaceStateStore
from suggestion_engine.services.person_directory import PersonDirectory
from suggestion_engine.services.recent_selection import RecentSelectionCache
from suggestion_engine.services.suggestion_store import SuggestionStore

logger = get_logger(__name__)

_STATUS_FOR_ACTION = {
    BulkAction.ACCEPT: SuggestionStatus.ACCEPTED,
    BulkAction.REJECT: SuggestionStatus.REJECTED,
}


class BulkActionProcessor:
    """
    Applies one action to a batch of suggestions.

    Local state changes only after the server answers, and only for the ids
    it confirmed (see SuggestionsRepository.bulk_action).
    """

    def __init__(
        self,
        repo: SuggestionsRepository,
        store: SuggestionStore,
        faces: FaceStateStore,
        recent: RecentSelectionCache,
        directory: Optional[PersonDirectory] = None,
    ):
        self.repo = repo
        self.store = store
        self.faces = faces
        self.recent = recent
        self.directory = directory

    def build_request(
        self,
        suggestion_ids: Iterable[str],
        action: str,
        auto_find_more: bool = False,
        find_more_prototype_count: Optional[int] = None,
    ) -> BulkActionRequest:
        """
        Validate input into a request body.

        Raises:
            ValidationError: No ids, unknown action or bad prototype count
        """
        ids = [str(i) for i in suggestion_ids]
        if not ids:
            raise ValidationError("At least one suggestion id is required", field="suggestion_ids")

        try:
            bulk_action = BulkAction(action)
        except ValueError:
            raise ValidationError(f"Unknown bulk action '{action}'", field="action")

        if find_more_prototype_count is not None and find_more_prototype_count < 1:
            raise ValidationError("find_more_prototype_count must be positive", field="find_more_prototype_count")

        if not auto_find_more or bulk_action != BulkAction.ACCEPT:
            return BulkActionRequest(suggestion_ids=ids, action=bulk_action)
        return BulkActionRequest(
            suggestion_ids=ids,
            action=bulk_action,
            auto_find_more=True,
            find_more_prototype_count=find_more_prototype_count,
        )

    async def execute(
        self,
        suggestion_ids: Iterable[str],
        action: str,
        auto_find_more: bool = False,
        find_more_prototype_count: Optional[int] = None,
    ) -> BulkActionResult:
        """
        Send the batch and reconcile the store with the per-id outcome.

        Args:
            suggestion_ids: Suggestions to act on (duplicates are ignored)
            action: "accept" or "reject"
            auto_find_more: Ask the server to queue "find more" jobs for accepted persons
            find_more_prototype_count: Prototypes per queued job

        Returns:
            BulkActionResult; partial failure is reported, not raised

        Raises:
            ValidationError: Invalid input (nothing is sent)
            AppException: The whole request failed (the store is untouched)
        """
        request = self.build_request(suggestion_ids, action, auto_find_more, find_more_prototype_count)
        logger.info(f"[Bulk] {request.action.value} {len(request.suggestion_ids)} suggestions")

        result = await self.repo.bulk_action(request)
        self._apply(result, request.action)

        if result.errors or result.failed_count:
            logger.warning(
                f"[Bulk] {request.action.value}: {len(result.succeeded_ids)} applied, "
                f"{max(result.failed_count, len(result.errors))} failed ({', '.join(result.failed_ids)})"
            )
        return result

    def _apply(self, result: BulkActionResult, action: BulkAction) -> None:
        status = _STATUS_FOR_ACTION[action]
        updated = []
        accepted_persons: List[str] = []

        for suggestion_id in result.succeeded_ids:
            suggestion = self.store.get(suggestion_id)
            if suggestion is None or not suggestion.is_pending:
                continue
            updated.append(suggestion.transition(status))

            if action == BulkAction.ACCEPT:
                person_id = suggestion.suggested_person_id
                name = (self.directory.name_of(person_id) if self.directory else None) or suggestion.person_name
                self.faces.assign(suggestion.face_instance_id, person_id, name)
                accepted_persons.append(person_id)

        if updated:
            self.store.upsert_many(updated)

        for person_id in dict.fromkeys(accepted_persons):
            self.recent.record(person_id)
