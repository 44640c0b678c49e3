"""
Person domain model.
Represents a labeled identity faces can be assigned to.
"""

from typing import Optional, Any
from datetime import datetime
from pydantic import Field, field_validator

from suggestion_engine.models.base import ApiModel


class Person(ApiModel):
    """Full person model."""

    id: str = Field(..., description="Unique person ID")
    name: str = Field(..., description="Display name")
    status: str = Field("active", description="active | merged | hidden")

    # Statistics
    face_count: int = Field(0, ge=0)
    prototype_count: int = Field(0, ge=0)

    # Timestamps
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        return value if isinstance(value, str) else str(value)

    @property
    def is_active(self) -> bool:
        return self.status == "active"
