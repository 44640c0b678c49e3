"""
Face assignment state.
The part of a detected face the review engine reads and writes.
"""

from typing import Optional, Any
from pydantic import ConfigDict, Field, field_validator, model_validator

from suggestion_engine.models.base import ApiModel


class FaceAssignment(ApiModel):
    """Which person (if any) a face belongs to."""

    model_config = ConfigDict(frozen=True)

    face_id: str = Field(..., description="Face instance ID")
    person_id: Optional[str] = Field(None, description="Assigned person ID")
    person_name: Optional[str] = Field(None, description="Assigned person display name")

    @field_validator("face_id", "person_id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        return str(value)

    @model_validator(mode="after")
    def _name_requires_person(self) -> "FaceAssignment":
        if self.person_id is None and self.person_name is not None:
            raise ValueError("An unassigned face cannot carry a person name")
        return self

    @property
    def is_assigned(self) -> bool:
        return self.person_id is not None
