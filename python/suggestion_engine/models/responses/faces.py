"""
Response bodies of face and person endpoints.
"""

from typing import Optional, Any
from datetime import datetime
from pydantic import field_validator

from suggestion_engine.models.base import ApiModel


class AssignFaceResponse(ApiModel):
    face_id: str
    person_id: str
    person_name: Optional[str] = None

    @field_validator("face_id", "person_id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        return value if isinstance(value, str) else str(value)


class UnassignFaceResponse(ApiModel):
    face_id: str
    previous_person_id: Optional[str] = None
    previous_person_name: Optional[str] = None


class CreatePersonResponse(ApiModel):
    id: str
    name: str
    status: str = "active"
    created_at: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        return value if isinstance(value, str) else str(value)


class AssignmentResult(ApiModel):
    """Outcome of a successful face assignment."""

    face_id: str
    person_id: str
    person_name: Optional[str] = None
    suggestion_id: Optional[str] = None
