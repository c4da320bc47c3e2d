"""
History Schemas - persisted analysis and exercise records.
"""

from typing import List
from pydantic import BaseModel, Field


class AnalysisRecord(BaseModel):
    """One stored posture analysis."""
    date: str = Field(..., description="ISO timestamp of the analysis")
    overall_score: float = 0.0
    head_forward_score: float = 0.0
    shoulder_balance_score: float = 0.0


class ExerciseResultRecord(BaseModel):
    """One stored exercise session result."""
    exercise_id: str
    exercise_name: str
    completed_sets: int
    completed_reps: List[int]
    total_reps: int
    duration: int
    accuracy: int
    date: str

