"""
Request bodies for face and person endpoints.
"""

from pydantic import Field, field_validator

from suggestion_engine.models.base import ApiModel


class AssignFaceRequest(ApiModel):
    """Body of POST /faces/{faceId}/assign."""

    person_id: str


class CreatePersonRequest(ApiModel):
    """Body of POST /persons."""

    name: str = Field(..., min_length=1, max_length=255)

    @field_validator("name", mode="before")
    @classmethod
    def _strip(cls, value):
        return value.strip() if isinstance(value, str) else value
