"""
Most-recently-used person ids.
Ranks assignment targets; survives restarts through LocalSettings.
"""

from typing import List, Optional

from suggestion_engine.core.config import settings
from suggestion_engine.core.logging import get_logger
from suggestion_engine.infrastructure.storage import LocalSettings

logger = get_logger(__name__)


class RecentSelectionCache:
    """
    Bounded MRU list of person ids, most recent first.

    Usage:
        recent = RecentSelectionCache(local_settings)
        recent.record(person_id)
        recent.list()
    """

    def __init__(
        self,
        storage: LocalSettings,
        key: Optional[str] = None,
        capacity: Optional[int] = None,
    ):
        self.storage = storage
        self.key = key or settings.recent_persons_key
        self.capacity = capacity or settings.recent_persons_limit

    def list(self) -> List[str]:
        """Person ids, most recent first. Unreadable storage yields []."""
        stored = self.storage.get(self.key, [])
        if not isinstance(stored, list):
            logger.warning(f"Ignoring malformed recent persons under '{self.key}'")
            return []
        # Drop anything that is not an id and keep the first occurrence
        ids = [str(i) for i in stored if isinstance(i, (str, int)) and not isinstance(i, bool)]
        return list(dict.fromkeys(ids))[:self.capacity]

    def record(self, person_id: str) -> List[str]:
        """Move (or insert) a person to the front and truncate to capacity."""
        person_id = str(person_id)
        updated = [person_id] + [i for i in self.list() if i != person_id]
        updated = updated[:self.capacity]
        self.storage.set(self.key, updated)
        return updated

    def clear(self) -> None:
        self.storage.remove(self.key)
