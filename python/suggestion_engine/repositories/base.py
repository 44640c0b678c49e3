"""
Base repository with common functionality.
"""

from typing import Any, AsyncIterator, Dict, Generic, Optional, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from suggestion_engine.core.config import settings
from suggestion_engine.core.exceptions import TransportError
from suggestion_engine.core.logging import get_logger
from suggestion_engine.core.responses import Page
from suggestion_engine.infrastructure.http_client import ApiClient, path_id

logger = get_logger(__name__)

T = TypeVar('T', bound=BaseModel)


class BaseRepository(Generic[T]):
    """
    Base repository for one REST resource.

    Subclasses should:
    - Set `resource` class attribute (path segment below the prefix)
    - Set `model_class` class attribute
    - Implement resource-specific methods
    """

    resource: str = None
    model_class: Type[T] = None

    def __init__(self, api: ApiClient, prefix: Optional[str] = None):
        """
        Initialize repository.

        Args:
            api: Shared ApiClient
            prefix: Path prefix in front of `resource` (defaults to the faces API prefix)
        """
        self.api = api
        self.prefix = "/" + (settings.faces_prefix if prefix is None else prefix).strip("/")
        self.logger = get_logger(f"repo.{self.__class__.__name__}")

    def _path(self, *parts: Any) -> str:
        """Build "<prefix>/<resource>/<part>/..." with quoted id segments."""
        segments = [self.prefix.rstrip("/"), self.resource]
        segments.extend(path_id(p) for p in parts)
        return "/".join(segments)

    def _to_model(self, data: Dict[str, Any], model_class: Type[BaseModel] = None) -> Any:
        """Validate a response body, treating malformed payloads as transport errors."""
        model_class = model_class or self.model_class
        try:
            return model_class.model_validate(data)
        except PydanticValidationError as e:
            self.logger.error(f"Malformed {model_class.__name__} payload: {e}")
            raise TransportError(f"Malformed {model_class.__name__} in response")

    def _to_page(self, payload: Dict[str, Any], page: int, page_size: int) -> Page:
        try:
            return Page.from_envelope(payload, self.model_class, page=page, page_size=page_size)
        except PydanticValidationError as e:
            self.logger.error(f"Malformed {self.resource} page: {e}")
            raise TransportError(f"Malformed {self.resource} list in response")

    async def _iter_pages(
        self,
        fetch_page,
        page_size: int,
        max_pages: int = 1000,
    ) -> AsyncIterator[T]:
        """Walk every page of a list endpoint, yielding items in order."""
        page = 1
        while page <= max_pages:
            result = await fetch_page(page=page, page_size=page_size)
            for item in result.items:
                yield item
            if not result.items or not result.has_next:
                return
            page += 1
        self.logger.warning(f"Stopped paging {self.resource} after {max_pages} pages")
