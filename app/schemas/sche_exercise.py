"""
Exercise Session Schemas - Data Transfer Objects.
"""

from typing import List, Optional
from pydantic import BaseModel, Field
from enum import Enum


class SessionStatus(str, Enum):
    """Session status."""
    ACTIVE = "active"
    RESTING = "resting"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ExerciseConfigResponse(BaseModel):
    id: str
    name: str
    joint: str
    axis: str
    mirror: bool
    threshold_up: float
    threshold_down: float
    cooldown_ms: int
    sets_target: int
    reps_per_set_target: int
    rest_time_sec: int
    target_condition: str = ""


class LandmarkSchema(BaseModel):
    x: float = Field(..., allow_inf_nan=False)
    y: float = Field(..., allow_inf_nan=False)
    z: float = Field(0.0, allow_inf_nan=False)
    visibility: Optional[float] = None


class StartSessionRequest(BaseModel):
    """Request to start an exercise session."""
    exercise_id: str = Field(..., description="Exercise id from the catalog")
    user_id: Optional[str] = Field(None, description="User identifier, results are stored when set")


class StartSessionResponse(BaseModel):
    session_id: str
    status: SessionStatus
    exercise: ExerciseConfigResponse


class ProcessFrameRequest(BaseModel):
    """One pose-estimation frame."""
    landmarks: List[Optional[LandmarkSchema]] = Field(..., description="33 pose landmarks")
    timestamp_ms: Optional[float] = Field(None, description="Monotonic frame timestamp in milliseconds")


class ExerciseResultResponse(BaseModel):
    exercise_id: str
    exercise_name: str
    completed_sets: int
    completed_reps: List[int]
    total_reps: int
    duration: int
    accuracy: int
    date: str


class ProcessFrameResponse(BaseModel):
    session_id: str
    status: SessionStatus
    value: Optional[float] = Field(None, description="Projected joint value, null if occluded")
    phase: str
    counted: bool = False
    suppressed: bool = False
    rep_count: int = 0
    completed_sets: int = 0
    set_completed: bool = False
    session_completed: bool = False
    rest_time_sec: Optional[int] = Field(None, description="Rest to take before the next set")
    result: Optional[ExerciseResultResponse] = None


class SessionStateResponse(BaseModel):
    session_id: str
    status: SessionStatus
    exercise_id: str
    phase: str
    rep_count: int
    completed_sets: int
    completed_reps: List[int]


class FinishSessionResponse(BaseModel):
    session_id: str
    status: SessionStatus
    result: Optional[ExerciseResultResponse] = None
