"""
Assignment Coordinator

Turns single review decisions (accept, reject, assign, create-and-assign,
unassign) into backend mutations. Local state is updated optimistically
before the request and put back exactly as it was if the request fails.
Operations on the same face never overlap: a second one is refused with
BusyError instead of being queued.
"""

import asyncio
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, Optional, Set

from suggestion_engine.core.exceptions import (
    AlreadyReviewedError,
    AppException,
    BusyError,
    SuggestionNotFoundError,
    ValidationError,
)
from suggestion_engine.core.logging import get_logger
from suggestion_engine.models.domain.face import FaceAssignment
from suggestion_engine.models.domain.person import Person
from suggestion_engine.models.domain.suggestion import Suggestion, SuggestionStatus
from suggestion_engine.models.responses.faces import AssignmentResult, UnassignFaceResponse
from suggestion_engine.repositories.faces_repo import FacesRepository
from suggestion_engine.repositories.persons_repo import PersonsRepository
from suggestion_engine.repositories.suggestions_repo import SuggestionsRepository
from suggestion_engine.services.face_state import FaceStateStore
from suggestion_engine.services.person_directory import PersonDirectory
from suggestion_engine.services.recent_selection import RecentSelectionCache
from suggestion_engine.services.suggestion_store import StoreCheckpoint, SuggestionStore

logger = get_logger(__name__)


@dataclass
class _Undo:
    """Pre-operation copy of everything an optimistic update touches."""

    face_id: str
    face: Optional[FaceAssignment]
    suggestions: Dict[str, Optional[Suggestion]] = field(default_factory=dict)
    checkpoint: Optional[StoreCheckpoint] = None


class AssignmentCoordinator:
    """
    Single-item review and assignment operations.

    Usage:
        coordinator = AssignmentCoordinator(faces_repo, suggestions_repo, persons_repo,
                                            store, faces, recent, directory)
        result = await coordinator.accept(suggestion_id)
    """

    def __init__(
        self,
        faces_repo: FacesRepository,
        suggestions_repo: SuggestionsRepository,
        persons_repo: PersonsRepository,
        store: SuggestionStore,
        faces: FaceStateStore,
        recent: RecentSelectionCache,
        directory: PersonDirectory,
    ):
        self.faces_repo = faces_repo
        self.suggestions_repo = suggestions_repo
        self.persons_repo = persons_repo
        self.store = store
        self.faces = faces
        self.recent = recent
        self.directory = directory
        self._in_flight: Set[str] = set()

    # ============================================================
    # Per-face serialization
    # ============================================================

    def is_busy(self, face_id: str) -> bool:
        return face_id in self._in_flight

    @contextmanager
    def _claim(self, face_id: str) -> Iterator[None]:
        """Hold the face for the duration of one operation."""
        if face_id in self._in_flight:
            logger.info(f"[Assignment] Refusing overlapping operation on face {face_id}")
            raise BusyError(face_id)
        self._in_flight.add(face_id)
        try:
            yield
        finally:
            self._in_flight.discard(face_id)

    # ============================================================
    # Optimistic update helpers
    # ============================================================

    def _capture(self, face_id: str, suggestion_ids: Iterable[str] = ()) -> _Undo:
        return _Undo(
            face_id=face_id,
            face=self.faces.get(face_id),
            suggestions={sid: self.store.get(sid) for sid in suggestion_ids},
            checkpoint=self.store.checkpoint(),
        )

    def _rollback(self, undo: _Undo, error: BaseException) -> None:
        self.faces.restore(undo.face_id, undo.face)
        if undo.suggestions:
            self.store.restore(undo.suggestions, undo.checkpoint)
        logger.warning(
            f"[Assignment] Rolled back face {undo.face_id} "
            f"({len(undo.suggestions)} suggestions): {type(error).__name__}: {error}"
        )

    def _pending_suggestion(self, suggestion_id: str) -> Suggestion:
        suggestion = self.store.get(suggestion_id)
        if suggestion is None:
            raise SuggestionNotFoundError(suggestion_id)
        if not suggestion.is_pending:
            raise AlreadyReviewedError(suggestion.id, suggestion.status.value)
        return suggestion

    # ============================================================
    # Assign
    # ============================================================

    async def assign_to_existing(self, face_id: str, person_id: str) -> AssignmentResult:
        """
        Assign a face to an existing person.

        The face shows the person (name looked up locally when known) and the
        face's pending suggestion for that person leaves the store before the
        request is sent; both are restored if it fails.

        Raises:
            BusyError: Another operation on this face is in flight
            AppException: Backend failure, after rollback
        """
        with self._claim(face_id):
            return await self._assign(face_id, person_id, self.directory.name_of(person_id))

    async def _assign(self, face_id: str, person_id: str, person_name: Optional[str]) -> AssignmentResult:
        matching = [
            s for s in self.store.list_by_face(face_id, pending_only=True)
            if s.suggested_person_id == person_id
        ]
        undo = self._capture(face_id, [s.id for s in matching])

        self.faces.assign(face_id, person_id, person_name)
        for suggestion in matching:
            self.store.remove(suggestion.id)
        logger.debug(f"[Assignment] Optimistic assign face {face_id} -> person {person_id}")

        try:
            response = await self.faces_repo.assign(face_id, person_id)
        except (AppException, asyncio.CancelledError) as e:
            self._rollback(undo, e)
            raise

        if response.person_name and response.person_name != person_name:
            person_name = response.person_name
            self.faces.assign(face_id, person_id, person_name)

        self.recent.record(person_id)
        logger.info(f"[Assignment] Face {face_id} assigned to {person_name or person_id}")
        return AssignmentResult(face_id=face_id, person_id=person_id, person_name=person_name)

    async def create_and_assign(self, face_id: str, name: str) -> AssignmentResult:
        """
        Create a person and assign the face to them.

        A person created here is kept when the assignment afterwards fails;
        the raised error carries its id in `details["created_person_id"]`.

        Raises:
            ValidationError: Blank name, or DuplicatePersonError
            BusyError: Another operation on this face is in flight
            AppException: Backend failure
        """
        trimmed = (name or "").strip()
        if not trimmed:
            raise ValidationError("Person name is required", field="name")

        with self._claim(face_id):
            created = await self.persons_repo.create(trimmed)
            person = Person(id=created.id, name=created.name, status=created.status,
                            face_count=0, created_at=created.created_at)
            self.directory.add(person)
            logger.info(f"[Assignment] Created person {person.name} ({person.id})")

            try:
                return await self._assign(face_id, person.id, person.name)
            except AppException as e:
                e.details["created_person_id"] = person.id
                logger.warning(
                    f"[Assignment] Person {person.id} was created but assigning face {face_id} failed; "
                    f"the person is kept"
                )
                raise

    # ============================================================
    # Review a suggestion
    # ============================================================

    async def accept(self, suggestion_id: str) -> AssignmentResult:
        """
        Accept a suggestion: its face is assigned to the suggested person.

        Raises:
            SuggestionNotFoundError: Not in the store
            AlreadyReviewedError: Not pending (locally or per the server)
            BusyError: Another operation on the face is in flight
        """
        suggestion = self._pending_suggestion(str(suggestion_id))
        face_id = suggestion.face_instance_id
        person_id = suggestion.suggested_person_id

        with self._claim(face_id):
            person_name = self.directory.name_of(person_id) or suggestion.person_name
            undo = self._capture(face_id, [suggestion.id])

            self.store.upsert(suggestion.transition(SuggestionStatus.ACCEPTED))
            self.faces.assign(face_id, person_id, person_name)
            logger.debug(f"[Assignment] Optimistic accept {suggestion.id}")

            try:
                reviewed = await self.suggestions_repo.accept(suggestion.id)
            except (AppException, asyncio.CancelledError) as e:
                self._rollback(undo, e)
                raise

            if reviewed.status == SuggestionStatus.ACCEPTED:
                self.store.upsert(reviewed)
            self.recent.record(person_id)
            logger.info(f"[Assignment] Accepted suggestion {suggestion.id}: face {face_id} -> {person_name or person_id}")
            return AssignmentResult(
                face_id=face_id,
                person_id=person_id,
                person_name=person_name,
                suggestion_id=suggestion.id,
            )

    async def reject(self, suggestion_id: str) -> Suggestion:
        """
        Reject a suggestion. Only the suggestion changes; the face does not.

        Raises:
            SuggestionNotFoundError: Not in the store
            AlreadyReviewedError: Not pending (locally or per the server)
            BusyError: Another operation on the face is in flight
        """
        suggestion = self._pending_suggestion(str(suggestion_id))
        face_id = suggestion.face_instance_id

        with self._claim(face_id):
            undo = self._capture(face_id, [suggestion.id])
            rejected = suggestion.transition(SuggestionStatus.REJECTED)
            self.store.upsert(rejected)

            try:
                reviewed = await self.suggestions_repo.reject(suggestion.id)
            except (AppException, asyncio.CancelledError) as e:
                self._rollback(undo, e)
                raise

            if reviewed.status == SuggestionStatus.REJECTED:
                self.store.upsert(reviewed)
                rejected = reviewed
            logger.info(f"[Assignment] Rejected suggestion {suggestion.id}")
            return rejected

    # ============================================================
    # Unassign
    # ============================================================

    async def unassign(self, face_id: str) -> UnassignFaceResponse:
        """
        Clear a face's person.

        Raises:
            BusyError: Another operation on this face is in flight
            FaceNotFoundError: Unknown face
        """
        with self._claim(face_id):
            undo = self._capture(face_id)
            self.faces.clear(face_id)

            try:
                response = await self.faces_repo.unassign(face_id)
            except (AppException, asyncio.CancelledError) as e:
                self._rollback(undo, e)
                raise

            previous = undo.face
            if previous is not None and response.previous_person_id is None:
                response = response.model_copy(update={
                    "previous_person_id": previous.person_id,
                    "previous_person_name": previous.person_name,
                })
            logger.info(f"[Assignment] Face {face_id} unassigned")
            return response
