"""
Request bodies for suggestion endpoints.
"""

from typing import List, Optional
from enum import Enum
from pydantic import Field, field_validator

from suggestion_engine.models.base import ApiModel


class BulkAction(str, Enum):
    ACCEPT = "accept"
    REJECT = "reject"


class BulkActionRequest(ApiModel):
    """Body of POST /suggestions/bulk-action."""

    suggestion_ids: List[str] = Field(..., min_length=1)
    action: BulkAction
    auto_find_more: Optional[bool] = None
    find_more_prototype_count: Optional[int] = Field(None, ge=1)

    @field_validator("suggestion_ids")
    @classmethod
    def _unique_ids(cls, value: List[str]) -> List[str]:
        # Keep first occurrence order
        return list(dict.fromkeys(value))

    def to_payload(self) -> dict:
        payload = super().to_payload()
        # The backend keys suggestions by integer id
        payload["suggestionIds"] = [int(i) if i.isdigit() else i for i in self.suggestion_ids]
        return payload


class FindMoreRequest(ApiModel):
    """Body of POST /suggestions/persons/{personId}/find-more."""

    prototype_count: Optional[int] = Field(None, ge=1)
    max_suggestions: Optional[int] = Field(None, ge=1)
    min_confidence: Optional[float] = Field(None, ge=0, le=1)
