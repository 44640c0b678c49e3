"""
Locally known persons.
Display-name lookup and assignment-target ranking.
"""

from typing import Dict, Iterable, List, Optional

from suggestion_engine.models.domain.person import Person
from suggestion_engine.repositories.persons_repo import PersonsRepository
from suggestion_engine.core.logging import get_logger

logger = get_logger(__name__)


class PersonDirectory:
    """Persons loaded from the backend, keyed by id."""

    def __init__(self, repo: PersonsRepository, persons: Iterable[Person] = ()):
        self.repo = repo
        self._persons: Dict[str, Person] = {p.id: p for p in persons}
        self.loading = False

    async def load(self, status: str = "active") -> List[Person]:
        """Fetch every person across all pages, replacing the local copy."""
        self.loading = True
        try:
            persons = await self.repo.list_all(status=status)
        finally:
            self.loading = False
        self._persons = {p.id: p for p in persons}
        logger.info(f"Loaded {len(persons)} persons")
        return persons

    @property
    def persons(self) -> List[Person]:
        return list(self._persons.values())

    def get(self, person_id: str) -> Optional[Person]:
        return self._persons.get(person_id)

    def name_of(self, person_id: str) -> Optional[str]:
        person = self._persons.get(person_id)
        return person.name if person else None

    def add(self, person: Person) -> None:
        self._persons = {**self._persons, person.id: person}

    def ranked(self, recent_ids: Iterable[str] = ()) -> List[Person]:
        """Recently used persons first (in MRU order), then everyone else by name."""
        recent = [self._persons[i] for i in dict.fromkeys(recent_ids) if i in self._persons]
        seen = {p.id for p in recent}
        rest = sorted(
            (p for p in self._persons.values() if p.id not in seen),
            key=lambda p: p.name.casefold(),
        )
        return recent + rest
