"""
In-memory suggestion collection.

Single source of truth for suggestion status within a session. Every
mutation swaps in a new read-only snapshot, so a snapshot handed out
earlier never changes underneath its holder.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional

from suggestion_engine.models.domain.suggestion import Suggestion
from suggestion_engine.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class StoreCheckpoint:
    """A snapshot and the version it was taken at."""

    items: Mapping[str, Suggestion]
    version: int


class SuggestionStore:
    """Suggestions keyed by id."""

    def __init__(self, suggestions: Iterable[Suggestion] = ()):
        self._items: Mapping[str, Suggestion] = MappingProxyType({s.id: s for s in suggestions})
        self.version = 0

    def _replace(self, items: Dict[str, Suggestion]) -> None:
        self._items = MappingProxyType(items)
        self.version += 1

    # ============================================================
    # Reads
    # ============================================================

    def snapshot(self) -> Mapping[str, Suggestion]:
        """Current read-only view of every suggestion."""
        return self._items

    def get(self, suggestion_id: str) -> Optional[Suggestion]:
        return self._items.get(str(suggestion_id))

    def list_by_face(self, face_id: str, pending_only: bool = False) -> List[Suggestion]:
        """Suggestions for a face, highest confidence first."""
        items = [
            s for s in self._items.values()
            if s.face_instance_id == face_id and (s.is_pending or not pending_only)
        ]
        return sorted(items, key=lambda s: s.confidence, reverse=True)

    def list_pending(self, person_id: Optional[str] = None) -> List[Suggestion]:
        """The active working set: pending suggestions, optionally for one person."""
        return [
            s for s in self._items.values()
            if s.is_pending and (person_id is None or s.suggested_person_id == person_id)
        ]

    def __contains__(self, suggestion_id: object) -> bool:
        return str(suggestion_id) in self._items

    def __len__(self) -> int:
        return len(self._items)

    # ============================================================
    # Mutations
    # ============================================================

    def upsert(self, suggestion: Suggestion) -> None:
        items = dict(self._items)
        items[suggestion.id] = suggestion
        self._replace(items)

    def upsert_many(self, suggestions: Iterable[Suggestion]) -> None:
        items = dict(self._items)
        for suggestion in suggestions:
            items[suggestion.id] = suggestion
        self._replace(items)

    def remove(self, suggestion_id: str) -> Optional[Suggestion]:
        """Remove a suggestion; unknown ids are ignored."""
        suggestion_id = str(suggestion_id)
        if suggestion_id not in self._items:
            return None
        items = dict(self._items)
        removed = items.pop(suggestion_id)
        self._replace(items)
        return removed

    def replace_face(self, face_id: str, suggestions: Iterable[Suggestion]) -> None:
        """
        Make `suggestions` the pending set of a face.

        Pending suggestions of the face that are not in the new set are
        dropped; reviewed ones are kept for the session.
        """
        incoming = {s.id: s for s in suggestions}
        items = {
            sid: s for sid, s in self._items.items()
            if not (s.face_instance_id == face_id and s.is_pending and sid not in incoming)
        }
        items.update(incoming)
        self._replace(items)

    def checkpoint(self) -> StoreCheckpoint:
        """Capture the current snapshot so a rollback can return to it."""
        return StoreCheckpoint(items=self._items, version=self.version)

    def restore(
        self,
        previous: Mapping[str, Optional[Suggestion]],
        checkpoint: Optional[StoreCheckpoint] = None,
    ) -> None:
        """
        Put records back the way they were.

        With a checkpoint taken alongside `previous`, the store returns to that
        exact snapshot (same order, same version) when nothing outside
        `previous` changed since. Otherwise the records are put back in their
        checkpoint positions and other changes are kept.

        Args:
            previous: id -> record before the change (None if it did not exist)
            checkpoint: Store state captured together with `previous`
        """
        if checkpoint is not None and self._only_changed(previous, checkpoint):
            self._items = checkpoint.items
            self.version = checkpoint.version
            return

        items = dict(self._items)
        for suggestion_id, suggestion in previous.items():
            if suggestion is None:
                items.pop(suggestion_id, None)
            else:
                items[suggestion_id] = suggestion

        if checkpoint is not None:
            ordered = {sid: items[sid] for sid in checkpoint.items if sid in items}
            ordered.update(items)
            items = ordered
        self._replace(items)

    def _only_changed(self, previous: Mapping[str, Optional[Suggestion]], checkpoint: StoreCheckpoint) -> bool:
        before, now = checkpoint.items, self._items
        if any(before.get(sid) is not suggestion for sid, suggestion in previous.items()):
            return False
        others = [sid for sid in now if sid not in previous]
        if others != [sid for sid in before if sid not in previous]:
            return False
        return all(now[sid] is before[sid] for sid in others)

    def clear(self) -> None:
        self._replace({})
