"""
Paginated list envelope returned by the backend.

List endpoints answer in one of two shapes:
{"data": [...], "pagination": {"page", "pageSize", "total"}}
{"items": [...], "total", "page", "pageSize"}
"""

from typing import TypeVar, Generic, Any, Dict, List, Type
from pydantic import BaseModel, Field

from suggestion_engine.core.exceptions import TransportError

T = TypeVar('T', bound=BaseModel)


class PaginationMeta(BaseModel):
    """Pagination metadata."""

    page: int = Field(ge=1)
    page_size: int = Field(ge=1)
    total: int = Field(ge=0)
    total_pages: int = Field(ge=0)
    has_next: bool
    has_prev: bool

    @classmethod
    def create(cls, page: int, page_size: int, total: int) -> "PaginationMeta":
        total_pages = (total + page_size - 1) // page_size if page_size > 0 else 0
        return cls(
            page=page,
            page_size=page_size,
            total=total,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_prev=page > 1
        )


class Page(BaseModel, Generic[T]):
    """One page of a paginated list."""

    items: List[T]
    meta: PaginationMeta

    @classmethod
    def from_envelope(
        cls,
        payload: Dict[str, Any],
        item_model: Type[T],
        page: int = 1,
        page_size: int = 20
    ) -> "Page[T]":
        """
        Parse either envelope shape into a Page.

        Args:
            payload: Decoded JSON body
            item_model: Model used to validate every item
            page: Requested page, used when the body omits it
            page_size: Requested page size, used when the body omits it

        Raises:
            TransportError: If the body has neither `data` nor `items`
        """
        if not isinstance(payload, dict):
            raise TransportError("Unexpected list response: not an object")

        raw_items = payload.get("data")
        if raw_items is None:
            raw_items = payload.get("items")
        if not isinstance(raw_items, list):
            raise TransportError("Unexpected list response: missing 'data'/'items'")

        pagination = payload.get("pagination")
        if not isinstance(pagination, dict):
            pagination = payload

        page = int(pagination.get("page") or page)
        page_size = int(pagination.get("pageSize") or pagination.get("page_size") or page_size)
        total = pagination.get("total")
        if total is None:
            total = (page - 1) * page_size + len(raw_items)

        return cls(
            items=[item_model.model_validate(item) for item in raw_items],
            meta=PaginationMeta.create(page, page_size, int(total))
        )

    @property
    def has_next(self) -> bool:
        return self.meta.has_next
