"""
Suggestion domain model.
A proposed (face -> person) match awaiting human review.
"""

from typing import Optional, Any
from datetime import datetime, timezone
from enum import Enum
from pydantic import AliasChoices, ConfigDict, Field, field_validator

from suggestion_engine.models.base import ApiModel
from suggestion_engine.core.exceptions import AlreadyReviewedError


class SuggestionStatus(str, Enum):
    """Suggestion review status."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"  # Set by the server only


class BoundingBox(ApiModel):
    """Face bounding box in image pixel coordinates."""

    model_config = ConfigDict(frozen=True)

    x: float = Field(..., description="Left edge X coordinate")
    y: float = Field(..., description="Top edge Y coordinate")
    width: float = Field(..., ge=0, validation_alias=AliasChoices("w", "width"))
    height: float = Field(..., ge=0, validation_alias=AliasChoices("h", "height"))

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def center(self) -> tuple:
        """Center point (x, y)."""
        return (self.x + self.width / 2, self.y + self.height / 2)


class Suggestion(ApiModel):
    """Face labeling suggestion."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Suggestion ID")
    face_instance_id: str = Field(..., description="Face the suggestion is about")
    suggested_person_id: str = Field(..., description="Proposed person")
    confidence: float = Field(..., ge=0, le=1, description="Match confidence")
    source_face_id: Optional[str] = Field(None, description="Labeled face that produced the match")
    status: SuggestionStatus = Field(SuggestionStatus.PENDING)

    created_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None

    # Display
    person_name: Optional[str] = None
    thumbnail_ref: Optional[str] = Field(
        None, validation_alias=AliasChoices("thumbnailRef", "faceThumbnailUrl", "thumbnail_ref")
    )
    image_ref: Optional[str] = Field(
        None, validation_alias=AliasChoices("imageRef", "fullImageUrl", "image_ref")
    )
    bbox: Optional[BoundingBox] = None
    detection_confidence: Optional[float] = Field(None, ge=0, le=1)
    quality_score: Optional[float] = None

    @field_validator("id", "face_instance_id", "suggested_person_id", "source_face_id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        # Backend suggestion ids are integers, face/person ids are UUIDs
        if value is None or isinstance(value, str):
            return value
        return str(value)

    @property
    def is_pending(self) -> bool:
        return self.status == SuggestionStatus.PENDING

    @property
    def is_reviewed(self) -> bool:
        return self.status in (SuggestionStatus.ACCEPTED, SuggestionStatus.REJECTED)

    def transition(self, status: SuggestionStatus, reviewed_at: Optional[datetime] = None) -> "Suggestion":
        """
        Return a reviewed copy of this suggestion.

        Raises:
            AlreadyReviewedError: If the suggestion is not pending
        """
        if not self.is_pending:
            raise AlreadyReviewedError(self.id, self.status.value)
        if status not in (SuggestionStatus.ACCEPTED, SuggestionStatus.REJECTED):
            raise ValueError(f"Cannot review a suggestion as '{status.value}'")
        return self.model_copy(update={
            "status": status,
            "reviewed_at": reviewed_at or datetime.now(timezone.utc),
        })
