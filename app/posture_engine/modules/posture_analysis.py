"""
Posture Analysis Module for Posture Coach.

Measures a standing front-facing pose from one landmark frame and grades it.

Measurements:
    forward_head   horizontal ear-to-shoulder offset (cm)
    shoulder_tilt  left/right shoulder height difference (cm)
    pelvis_tilt    left/right hip height difference (cm)
    knee_angle     mean hip-knee-ankle angle (degrees)

Normalized distances are converted to centimeters against the measured
shoulder width, assuming an average shoulder width of 42 cm.

Scores are strict: 100 is reserved for a near perfect alignment, 75 and
above is graded good, 55 and above warning, anything lower danger.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from ..core.data_types import LandmarkList, LandmarkPoint, PoseLandmarkIndex
from ..utils.math_utils import clamp_score, round_half_up
from .risk_scorer import AnalysisItem


AVERAGE_SHOULDER_WIDTH_CM = 42.0

# Distance (cm) -> score breakpoints; continuous piecewise linear
FORWARD_HEAD_BREAKPOINTS: Tuple[Tuple[float, ...], Tuple[float, ...]] = (
    (0.0, 1.0, 2.0, 2.5, 3.0, 4.0, 5.0),
    (100.0, 95.0, 88.0, 80.0, 70.0, 55.0, 40.0),
)
TILT_BREAKPOINTS: Tuple[Tuple[float, ...], Tuple[float, ...]] = (
    (0.0, 0.3, 0.5, 0.8, 1.0, 1.5, 2.0),
    (100.0, 97.0, 93.0, 85.0, 75.0, 58.0, 45.0),
)

# Overall score weights; unknown items weigh 0.25
ITEM_WEIGHTS: Dict[str, float] = {
    "forward_head": 0.35,
    "shoulder_tilt": 0.25,
    "pelvis_tilt": 0.25,
    "knee_angle": 0.15,
}
DEFAULT_ITEM_WEIGHT = 0.25

WARNING_PENALTY = 3
DANGER_PENALTY = 5
SHOULDER_PELVIS_PENALTY = 5
SEVERE_FORWARD_HEAD_PENALTY = 3
SEVERE_FORWARD_HEAD_SCORE = 50


class PostureGrade(str, Enum):
    """Grade of one measurement or of the whole posture."""
    GOOD = "good"
    WARNING = "warning"
    DANGER = "danger"


ITEM_DESCRIPTIONS: Dict[str, List[Tuple[int, str]]] = {
    "forward_head": [
        (90, "Head is in an ideal position"),
        (80, "Head position is good"),
        (70, "Slight forward head tendency"),
        (55, "Forward head posture, correction needed"),
        (0, "Severe forward head posture, active correction needed"),
    ],
    "shoulder_tilt": [
        (90, "Shoulders are balanced"),
        (75, "Shoulder balance is good"),
        (55, "Shoulders are slightly uneven"),
        (0, "Shoulders are clearly uneven"),
    ],
    "pelvis_tilt": [
        (90, "Pelvis is balanced"),
        (75, "Pelvis balance is good"),
        (55, "Pelvis is slightly uneven"),
        (0, "Pelvis is clearly uneven"),
    ],
    "knee_angle": [
        (90, "Knees are well aligned"),
        (75, "Knee alignment is good"),
        (0, "Knee alignment needs attention"),
    ],
}


@dataclass(frozen=True)
class PostureItem:
    """
    One graded posture measurement.

    Attributes:
        id: Measurement id.
        value: Measured value, cm rounded to 0.1 or whole degrees.
        unit: 'cm' or 'deg'.
        score: 0-100 score.
        grade: Grade derived from the score.
        description: Short human readable verdict.
    """
    id: str
    value: float
    unit: str
    score: int
    grade: PostureGrade
    description: str = ""

    def to_analysis_item(self) -> AnalysisItem:
        """Measurement as an input of the risk scorer."""
        return AnalysisItem(id=self.id, value=self.value, score=float(self.score))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "value": self.value,
            "unit": self.unit,
            "score": self.score,
            "grade": self.grade.value,
            "description": self.description,
        }


@dataclass(frozen=True)
class PostureAnalysis:
    """Graded measurements of one pose plus the overall score."""
    overall_score: int
    overall_grade: PostureGrade
    items: List[PostureItem] = field(default_factory=list)
    confidence: float = 0.0

    def risk_items(self) -> List[AnalysisItem]:
        return [item.to_analysis_item() for item in self.items]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall_score": self.overall_score,
            "overall_grade": self.overall_grade.value,
            "items": [item.to_dict() for item in self.items],
            "confidence": self.confidence,
        }


# =============================================================================
# Geometry
# =============================================================================

def calculate_angle(a: LandmarkPoint, b: LandmarkPoint, c: LandmarkPoint) -> float:
    """
    Angle at ``b`` formed by a-b-c in the image plane, in degrees (0-180).
    """
    v1 = np.array([a.x - b.x, a.y - b.y])
    v2 = np.array([c.x - b.x, c.y - b.y])

    norm = np.linalg.norm(v1) * np.linalg.norm(v2)
    if norm == 0:
        return 0.0

    cos_angle = np.clip(np.dot(v1, v2) / norm, -1.0, 1.0)
    return float(np.degrees(np.arccos(cos_angle)))


def normalized_to_cm(distance: float, shoulder_width: float) -> float:
    """Scale a normalized distance to cm using the shoulder width as ruler."""
    if shoulder_width == 0:
        return 0.0
    return distance / shoulder_width * AVERAGE_SHOULDER_WIDTH_CM


def _shoulder_width(landmarks: LandmarkList) -> float:
    left = landmarks[PoseLandmarkIndex.LEFT_SHOULDER]
    right = landmarks[PoseLandmarkIndex.RIGHT_SHOULDER]
    return float(np.hypot(left.x - right.x, left.y - right.y))


def measure_forward_head(landmarks: LandmarkList) -> float:
    """Horizontal distance between the ear midpoint and the shoulder midpoint (cm)."""
    ear_x = (landmarks[PoseLandmarkIndex.LEFT_EAR].x + landmarks[PoseLandmarkIndex.RIGHT_EAR].x) / 2
    shoulder_x = (landmarks[PoseLandmarkIndex.LEFT_SHOULDER].x
                  + landmarks[PoseLandmarkIndex.RIGHT_SHOULDER].x) / 2
    return normalized_to_cm(abs(ear_x - shoulder_x), _shoulder_width(landmarks))


def measure_shoulder_tilt(landmarks: LandmarkList) -> float:
    """Height difference between the shoulders (cm)."""
    diff = abs(landmarks[PoseLandmarkIndex.LEFT_SHOULDER].y - landmarks[PoseLandmarkIndex.RIGHT_SHOULDER].y)
    return normalized_to_cm(diff, _shoulder_width(landmarks))


def measure_pelvis_tilt(landmarks: LandmarkList) -> float:
    """Height difference between the hips (cm)."""
    diff = abs(landmarks[PoseLandmarkIndex.LEFT_HIP].y - landmarks[PoseLandmarkIndex.RIGHT_HIP].y)
    return normalized_to_cm(diff, _shoulder_width(landmarks))


def measure_knee_angle(landmarks: LandmarkList) -> float:
    """Mean of the left and right hip-knee-ankle angles (degrees)."""
    left = calculate_angle(
        landmarks[PoseLandmarkIndex.LEFT_HIP],
        landmarks[PoseLandmarkIndex.LEFT_KNEE],
        landmarks[PoseLandmarkIndex.LEFT_ANKLE],
    )
    right = calculate_angle(
        landmarks[PoseLandmarkIndex.RIGHT_HIP],
        landmarks[PoseLandmarkIndex.RIGHT_KNEE],
        landmarks[PoseLandmarkIndex.RIGHT_ANKLE],
    )
    return (left + right) / 2


# =============================================================================
# Scoring
# =============================================================================

def forward_head_score(distance_cm: float) -> int:
    """Score of the forward head offset; 40 at 5 cm, then -6 per cm down to 10."""
    distance = abs(distance_cm)
    xs, ys = FORWARD_HEAD_BREAKPOINTS
    if distance < xs[-1]:
        return round_half_up(float(np.interp(distance, xs, ys)))
    return max(10, round_half_up(ys[-1] - (distance - xs[-1]) * 6))


def tilt_score(diff_cm: float) -> int:
    """Score of a shoulder or pelvis height difference; 45 at 2 cm, then -10 per cm down to 15."""
    diff = abs(diff_cm)
    xs, ys = TILT_BREAKPOINTS
    if diff < xs[-1]:
        return round_half_up(float(np.interp(diff, xs, ys)))
    return max(15, round_half_up(ys[-1] - (diff - xs[-1]) * 10))


def knee_score(angle: float) -> int:
    """
    Score of the knee angle. 176-180 degrees is ideal (178 best); bent and
    hyperextended knees lose points on either side.
    """
    if 176 <= angle <= 180:
        return round_half_up(100 - abs(178 - angle) * 2)
    if 173 <= angle < 176:
        return round_half_up(92 - (176 - angle) / 3 * 10)
    if 180 < angle <= 183:
        return round_half_up(92 - (angle - 180) / 3 * 10)
    if 170 <= angle < 173:
        return round_half_up(82 - (173 - angle) / 3 * 15)
    if 183 < angle <= 186:
        return round_half_up(82 - (angle - 183) / 3 * 15)
    if 165 <= angle < 170:
        return round_half_up(67 - (170 - angle) / 5 * 15)
    if angle > 186:
        return max(20, round_half_up(67 - (angle - 186) * 4))
    return max(15, round_half_up(52 - (165 - angle) * 3))


def score_to_grade(score: float) -> PostureGrade:
    if score >= 75:
        return PostureGrade.GOOD
    if score >= 55:
        return PostureGrade.WARNING
    return PostureGrade.DANGER


def overall_grade(score: float) -> PostureGrade:
    """Grade of the overall score; stricter than the per-item grade."""
    if score >= 85:
        return PostureGrade.GOOD
    if score >= 65:
        return PostureGrade.WARNING
    return PostureGrade.DANGER


def _describe(item_id: str, score: int) -> str:
    for min_score, text in ITEM_DESCRIPTIONS.get(item_id, []):
        if score >= min_score:
            return text
    return ""


def _grade_item(item_id: str, value: float, unit: str, score: int) -> PostureItem:
    return PostureItem(
        id=item_id,
        value=value,
        unit=unit,
        score=score,
        grade=score_to_grade(score),
        description=_describe(item_id, score),
    )


def calculate_overall_score(items: Sequence[PostureItem]) -> int:
    """
    Weighted mean of the item scores with compound penalties.

    Penalties:
        - 3 per warning item beyond the first, once two or more are warnings
        - 5 per danger item
        - 5 when shoulders and pelvis are both below good
        - 3 when the forward head score is under 50

    Returns:
        Score clamped to 0-100.
    """
    if not items:
        return 0

    weights = [ITEM_WEIGHTS.get(item.id, DEFAULT_ITEM_WEIGHT) for item in items]
    score = float(np.average([item.score for item in items], weights=weights))

    warning_count = sum(1 for item in items if item.grade == PostureGrade.WARNING)
    danger_count = sum(1 for item in items if item.grade == PostureGrade.DANGER)
    if warning_count >= 2:
        score -= (warning_count - 1) * WARNING_PENALTY
    score -= danger_count * DANGER_PENALTY

    by_id = {item.id: item for item in items}
    shoulder, pelvis = by_id.get("shoulder_tilt"), by_id.get("pelvis_tilt")
    if shoulder and pelvis and shoulder.grade != PostureGrade.GOOD and pelvis.grade != PostureGrade.GOOD:
        score -= SHOULDER_PELVIS_PENALTY

    forward_head = by_id.get("forward_head")
    if forward_head and forward_head.score < SEVERE_FORWARD_HEAD_SCORE:
        score -= SEVERE_FORWARD_HEAD_PENALTY

    return round_half_up(clamp_score(score))


def overall_score_from_scores(scores: Mapping[str, float]) -> int:
    """Overall score of externally graded measurements, keyed by item id."""
    items = [
        PostureItem(id=item_id, value=0.0, unit="", score=round_half_up(score), grade=score_to_grade(score))
        for item_id, score in scores.items()
    ]
    return calculate_overall_score(items)


def analyze_posture(landmarks: Optional[LandmarkList]) -> PostureAnalysis:
    """
    Analyze a standing posture from one frame of 33 landmarks.

    A frame with fewer than 33 landmarks, or with any of the required
    points missing, yields an empty analysis scored 0 with zero confidence.

    Args:
        landmarks: Landmark frame in MediaPipe Pose order.

    Returns:
        PostureAnalysis with forward_head, shoulder_tilt, pelvis_tilt and
        knee_angle items.
    """
    required = (
        PoseLandmarkIndex.LEFT_EAR, PoseLandmarkIndex.RIGHT_EAR,
        PoseLandmarkIndex.LEFT_SHOULDER, PoseLandmarkIndex.RIGHT_SHOULDER,
        PoseLandmarkIndex.LEFT_HIP, PoseLandmarkIndex.RIGHT_HIP,
        PoseLandmarkIndex.LEFT_KNEE, PoseLandmarkIndex.RIGHT_KNEE,
        PoseLandmarkIndex.LEFT_ANKLE, PoseLandmarkIndex.RIGHT_ANKLE,
    )
    if (not landmarks or len(landmarks) < PoseLandmarkIndex.COUNT
            or any(landmarks[i] is None for i in required)):
        return PostureAnalysis(overall_score=0, overall_grade=PostureGrade.DANGER)

    forward_head = measure_forward_head(landmarks)
    shoulder_tilt = measure_shoulder_tilt(landmarks)
    pelvis_tilt = measure_pelvis_tilt(landmarks)
    knee_angle = measure_knee_angle(landmarks)

    items = [
        _grade_item("forward_head", round_half_up(forward_head * 10) / 10, "cm", forward_head_score(forward_head)),
        _grade_item("shoulder_tilt", round_half_up(shoulder_tilt * 10) / 10, "cm", tilt_score(shoulder_tilt)),
        _grade_item("pelvis_tilt", round_half_up(pelvis_tilt * 10) / 10, "cm", tilt_score(pelvis_tilt)),
        _grade_item("knee_angle", float(round_half_up(knee_angle)), "deg", knee_score(knee_angle)),
    ]

    score = calculate_overall_score(items)
    visibility = [p.confidence if p is not None else 0.0 for p in landmarks]

    return PostureAnalysis(
        overall_score=score,
        overall_grade=overall_grade(score),
        items=items,
        confidence=round_half_up(float(np.mean(visibility)) * 100) / 100,
    )
