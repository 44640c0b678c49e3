"""
Persons repository - /persons endpoints.
"""

from typing import List

from suggestion_engine.repositories.base import BaseRepository
from suggestion_engine.models.domain.person import Person
from suggestion_engine.models.requests.faces import CreatePersonRequest
from suggestion_engine.models.responses.faces import CreatePersonResponse
from suggestion_engine.core.config import settings
from suggestion_engine.core.exceptions import ConflictError, DuplicatePersonError
from suggestion_engine.core.responses import Page


class PersonsRepository(BaseRepository[Person]):
    """
    Repository for persons.
    """

    resource = "persons"
    model_class = Person

    async def list(self, page: int = 1, page_size: int = 20, status: str = None) -> Page[Person]:
        params = {"page": page, "page_size": page_size, "status": status}
        payload = await self.api.get(self._path(), params=params)
        return self._to_page(payload, page, page_size)

    async def list_all(self, status: str = "active") -> List[Person]:
        """Fetch every person across all pages."""

        async def fetch_page(page: int, page_size: int) -> Page[Person]:
            return await self.list(page=page, page_size=page_size, status=status)

        return [p async for p in self._iter_pages(fetch_page, settings.persons_page_size)]

    async def create(self, name: str) -> CreatePersonResponse:
        """
        Create a person.

        Raises:
            DuplicatePersonError: A person with this name exists (409)
        """
        body = CreatePersonRequest(name=name).to_payload()
        try:
            payload = await self.api.post(self._path(), json=body)
        except ConflictError:
            raise DuplicatePersonError(name)
        return self._to_model(payload, CreatePersonResponse)
