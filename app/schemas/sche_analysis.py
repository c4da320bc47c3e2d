"""
Posture Analysis Schemas - Data Transfer Objects.
"""

from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field

from app.schemas.sche_badge import BadgeUpdateResponse
from app.schemas.sche_exercise import ExerciseConfigResponse, LandmarkSchema


class AnalysisItemRequest(BaseModel):
    """One posture measurement."""
    id: str = Field(..., description="Measurement id, e.g. forward_head")
    value: float = Field(..., allow_inf_nan=False, description="Measured value")
    score: Optional[float] = Field(None, ge=0, le=100, allow_inf_nan=False,
                                   description="0-100 grade of this measurement")


class AnalysisRequest(BaseModel):
    """Posture analysis submission."""
    user_id: Optional[str] = Field(None, description="User identifier, enables history and badges")
    items: List[AnalysisItemRequest] = Field(..., description="Posture measurements")
    overall_score: Optional[float] = Field(None, ge=0, le=100, allow_inf_nan=False,
                                           description="Overall posture score, computed from the items when omitted")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "user_id": "user_123",
            "items": [
                {"id": "forward_head", "value": 4.0, "score": 55},
                {"id": "shoulder_tilt", "value": 1.0, "score": 90}
            ],
            "overall_score": 72
        }
    })


class DiseaseRiskResponse(BaseModel):
    id: str
    risk: int
    level: str
    item_risks: Dict[str, float] = Field(default_factory=dict)


class DiseaseRiskAnalysisResponse(BaseModel):
    overall_risk: int
    overall_level: str
    diseases: List[DiseaseRiskResponse]
    primary_concern: Optional[DiseaseRiskResponse] = None
    recommendations: List[str] = Field(default_factory=list)


class PostureItemResponse(BaseModel):
    id: str
    value: float
    unit: str
    score: int
    grade: str
    description: str = ""


class PostureAnalysisResponse(BaseModel):
    overall_score: int
    overall_grade: str
    items: List[PostureItemResponse] = Field(default_factory=list)
    confidence: float = 0.0


class ExerciseProgramResponse(BaseModel):
    """Exercises recommended for the analyzed risks."""
    urgent: List[ExerciseConfigResponse] = Field(default_factory=list)
    recommended: List[ExerciseConfigResponse] = Field(default_factory=list)
    preventive: List[ExerciseConfigResponse] = Field(default_factory=list)
    daily_routine: List[str] = Field(default_factory=list, description="Exercise ids, at most six")
    weekly_goal: str = ""


class LandmarkAnalysisRequest(BaseModel):
    """One standing front-facing landmark frame."""
    user_id: Optional[str] = Field(None, description="User identifier, enables history and badges")
    landmarks: List[Optional[LandmarkSchema]] = Field(..., description="33 MediaPipe Pose landmarks")


class AnalysisResponse(BaseModel):
    """Risk analysis and exercise program, plus badge changes when a user was given."""
    analysis: DiseaseRiskAnalysisResponse
    program: Optional[ExerciseProgramResponse] = None
    posture: Optional[PostureAnalysisResponse] = None
    badges: Optional[BadgeUpdateResponse] = None
    warnings: List[str] = Field(default_factory=list)
