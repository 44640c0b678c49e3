"""
Job progress repository - /job-progress endpoints.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from suggestion_engine.repositories.base import BaseRepository
from suggestion_engine.models.domain.job import JobProgress
from suggestion_engine.infrastructure.sse import SSEEvent, iter_sse_events
from suggestion_engine.core.exceptions import JobNotFoundError, NotFoundError


class JobProgressRepository(BaseRepository[JobProgress]):
    """
    Progress of background jobs, keyed by progress key.
    Lives at the API root rather than below the faces prefix.
    """

    resource = "job-progress"
    model_class = JobProgress

    def __init__(self, api, prefix: str = ""):
        super().__init__(api, prefix=prefix)

    async def status(self, progress_key: str) -> JobProgress:
        """
        Poll the current progress.

        Raises:
            JobNotFoundError: Job record unknown or expired
        """
        try:
            payload = await self.api.get(self._path("status"), params={"progress_key": progress_key})
        except NotFoundError:
            raise JobNotFoundError(progress_key)
        return self._to_model(payload or {})

    @asynccontextmanager
    async def events(self, progress_key: str, connect_timeout: float = 5.0) -> AsyncIterator[AsyncIterator[SSEEvent]]:
        """
        Open the progress event stream.

        Usage:
            async with repo.events(key) as events:
                async for event in events:
                    ...
        """
        try:
            async with self.api.stream(
                self._path("events"),
                params={"progress_key": progress_key},
                connect_timeout=connect_timeout,
            ) as response:
                yield iter_sse_events(response)
        except NotFoundError:
            raise JobNotFoundError(progress_key)
