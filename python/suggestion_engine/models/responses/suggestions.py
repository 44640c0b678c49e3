"""
Response bodies of suggestion endpoints.
"""

from typing import List, Any, Optional
from pydantic import AliasChoices, Field, field_validator, model_validator

from suggestion_engine.models.base import ApiModel
from suggestion_engine.models.domain.job import FindMoreJob


class BulkActionError(ApiModel):
    """
    One failure in a bulk action.

    Older backends send bare message strings; those carry no id.
    """

    suggestion_id: Optional[str] = Field(None, validation_alias=AliasChoices("suggestionId", "suggestion_id", "id"))
    reason: str = ""

    @model_validator(mode="before")
    @classmethod
    def _from_message(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"suggestionId": None, "reason": value}
        return value

    @field_validator("suggestion_id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        return value if value is None or isinstance(value, str) else str(value)


class BulkActionResult(ApiModel):
    """Outcome of a bulk action, including per-id failures."""

    success_count: int = Field(0, ge=0, validation_alias=AliasChoices("successCount", "processed"))
    failed_count: int = Field(0, ge=0, validation_alias=AliasChoices("failedCount", "failed"))
    errors: List[BulkActionError] = Field(default_factory=list)
    find_more_jobs: List[FindMoreJob] = Field(default_factory=list)

    # Filled in client-side from the request
    succeeded_ids: List[str] = Field(default_factory=list)

    @field_validator("find_more_jobs", mode="before")
    @classmethod
    def _none_is_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def failed_ids(self) -> List[str]:
        return [error.suggestion_id for error in self.errors if error.suggestion_id is not None]

    @property
    def unattributed_failures(self) -> int:
        """Failures the server counted without naming the id."""
        return max(self.failed_count, len(self.errors)) - len(self.failed_ids)

    @property
    def is_partial(self) -> bool:
        return self.success_count > 0 and self.failed_count > 0
