"""
Badge Schemas - Data Transfer Objects.

Request/response models for badge evaluation plus the persisted badge
record shape.
"""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

from app.posture_engine.modules import BadgeCheckContext


class UserBadgeSchema(BaseModel):
    """Badge state of one user."""
    id: str = Field(..., description="Badge id")
    earned_at: Optional[str] = Field(None, description="ISO timestamp when earned, null if not earned")


class BadgeCheckContextRequest(BaseModel):
    """History snapshot used to check badge conditions."""
    total_analyses: int = Field(0, ge=0)
    current_streak: int = Field(0, ge=0)
    latest_score: float = 0.0
    previous_score: Optional[float] = None
    head_forward_score: float = 0.0
    shoulder_balance_score: float = 0.0
    overall_score: float = 0.0

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "total_analyses": 1,
            "current_streak": 3,
            "latest_score": 80,
            "previous_score": 70,
            "head_forward_score": 80,
            "shoulder_balance_score": 60,
            "overall_score": 82
        }
    })

    def to_context(self) -> BadgeCheckContext:
        return BadgeCheckContext(**self.model_dump())


class BadgeUpdateResponse(BaseModel):
    """Badge evaluation result."""
    badges: List[UserBadgeSchema] = Field(default_factory=list)
    newly_earned: List[str] = Field(default_factory=list)
    earned_count: int = 0
    persisted: bool = Field(True, description="False when saving the badges failed")
    warning: Optional[str] = Field(None, description="Non-fatal storage warning, client may retry")


class StoredBadge(BaseModel):
    id: str
    earned_at: Optional[str] = Field(None, alias="earnedAt")

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class BadgeStoragePayload(BaseModel):
    """Persisted badge record: one per user."""
    user_id: str = Field(..., alias="userId")
    badges: List[StoredBadge]
    last_updated: str = Field(..., alias="lastUpdated")

    model_config = ConfigDict(populate_by_name=True, extra="forbid")
