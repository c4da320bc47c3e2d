"""
Risk Scorer Module for Posture Coach.

Turns posture measurements into a 0-100 risk per postural condition and an
overall risk. Every function here is pure: same input, same analysis.

Scoring per measurement (piecewise linear):

    DISTANCE (larger is worse)          ANGLE (larger is healthier)
    value <= warning        -> 0        value >= warning        -> 0
    warning < value <= danger -> 0..50  danger <= value < warning -> 0..50
    value > danger -> 50 + 10/unit      value < danger -> 50 + 5/unit
    capped at 100                       capped at 100
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence
import numpy as np

from .disease_catalog import (
    DISEASE_DEFINITIONS, GENERIC_RECOMMENDATIONS, DiseaseDefinition,
    ItemThreshold, MeasurementKind,
)
from ..utils.math_utils import clamp_score, round_half_up


# Slope beyond the danger boundary, risk points per unit
DISTANCE_OVER_DANGER_SLOPE = 10.0
ANGLE_UNDER_DANGER_SLOPE = 5.0

PRIMARY_CONCERN_MIN_RISK = 30
SPECIFIC_TIP_MIN_RISK = 40
MAX_RECOMMENDATIONS = 5


class RiskLevel(str, Enum):
    """Risk levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class AnalysisItem:
    """
    One named posture measurement.

    Attributes:
        id: Measurement id (e.g. 'forward_head', 'shoulder_tilt').
        value: Measured value.
        score: Optional 0-100 grade from the analysis collaborator.
    """
    id: str
    value: float
    score: Optional[float] = None


@dataclass(frozen=True)
class DiseaseRisk:
    """Risk of one condition."""
    id: str
    risk: int
    level: RiskLevel
    item_risks: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "risk": self.risk,
            "level": self.level.value,
            "item_risks": dict(self.item_risks),
        }


@dataclass(frozen=True)
class DiseaseRiskAnalysis:
    """Full risk analysis of one posture submission."""
    overall_risk: int
    overall_level: RiskLevel
    diseases: List[DiseaseRisk]
    primary_concern: Optional[DiseaseRisk]
    recommendations: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall_risk": self.overall_risk,
            "overall_level": self.overall_level.value,
            "diseases": [d.to_dict() for d in self.diseases],
            "primary_concern": self.primary_concern.to_dict() if self.primary_concern else None,
            "recommendations": list(self.recommendations),
        }


def get_risk_level(risk: float) -> RiskLevel:
    """Map a 0-100 risk onto a level."""
    if risk < 25:
        return RiskLevel.LOW
    if risk < 50:
        return RiskLevel.MEDIUM
    if risk < 75:
        return RiskLevel.HIGH
    return RiskLevel.CRITICAL


def calculate_item_risk(value: float, threshold: ItemThreshold) -> float:
    """
    Risk (0-100) of one measurement against its threshold pair.

    Args:
        value: Measured value.
        threshold: Warning / danger pair and direction.

    Returns:
        Unrounded risk in [0, 100].
    """
    warning, danger = threshold.warning, threshold.danger

    if threshold.kind == MeasurementKind.ANGLE:
        if value >= warning:
            return 0.0
        if value >= danger:
            risk = np.interp(value, [danger, warning], [50.0, 0.0])
        else:
            risk = 50.0 + (danger - value) * ANGLE_UNDER_DANGER_SLOPE
    else:
        if value <= warning:
            return 0.0
        if value <= danger:
            risk = np.interp(value, [warning, danger], [0.0, 50.0])
        else:
            risk = 50.0 + (value - danger) * DISTANCE_OVER_DANGER_SLOPE

    return clamp_score(risk)


def _index_items(items: Iterable[AnalysisItem]) -> Dict[str, AnalysisItem]:
    """Items by id, first occurrence wins."""
    indexed: Dict[str, AnalysisItem] = {}
    for item in items:
        indexed.setdefault(item.id, item)
    return indexed


def calculate_disease_risk(disease: DiseaseDefinition, items: Iterable[AnalysisItem]) -> DiseaseRisk:
    """
    Weighted average of the item risks of one condition.

    Only measurements present in ``items`` take part; weights are
    renormalized over them. Absent measurements are never counted as zero
    risk.
    """
    indexed = items if isinstance(items, dict) else _index_items(items)

    item_risks: Dict[str, float] = {}
    weights: List[float] = []
    for item_id, weight in disease.weights.items():
        item = indexed.get(item_id)
        if item is None or not weight:
            continue
        item_risks[item_id] = calculate_item_risk(item.value, disease.thresholds[item_id])
        weights.append(weight)

    if weights:
        average = float(np.average(list(item_risks.values()), weights=weights))
        risk = round_half_up(clamp_score(average))
    else:
        risk = 0

    return DiseaseRisk(
        id=disease.id,
        risk=risk,
        level=get_risk_level(risk),
        item_risks=item_risks,
    )


def calculate_overall_risk(
    diseases: Sequence[DiseaseRisk],
    catalog: Sequence[DiseaseDefinition] = DISEASE_DEFINITIONS
) -> int:
    """Fixed-weight average of the condition risks over the catalog."""
    risks = {d.id: d.risk for d in diseases}
    weights = [c.overall_weight for c in catalog if c.id in risks]
    values = [risks[c.id] for c in catalog if c.id in risks]

    if not values or sum(weights) <= 0:
        return 0
    return round_half_up(clamp_score(float(np.average(values, weights=weights))))


def generate_recommendations(
    diseases: Sequence[DiseaseRisk],
    overall_risk: float,
    catalog: Sequence[DiseaseDefinition] = DISEASE_DEFINITIONS
) -> List[str]:
    """
    Ordered recommendations, at most ``MAX_RECOMMENDATIONS``.

    Generic pair chosen by the overall risk bracket first, then the tip of
    every condition at or above ``SPECIFIC_TIP_MIN_RISK`` in the order of
    ``diseases`` (descending risk).
    """
    recommendations: List[str] = []

    for lower_bound in sorted(GENERIC_RECOMMENDATIONS, reverse=True):
        if overall_risk >= lower_bound:
            recommendations.extend(GENERIC_RECOMMENDATIONS[lower_bound])
            break

    tips = {c.id: c.tip for c in catalog}
    for disease in diseases:
        if disease.risk < SPECIFIC_TIP_MIN_RISK:
            continue
        tip = tips.get(disease.id)
        if tip and tip not in recommendations:
            recommendations.append(tip)

    return recommendations[:MAX_RECOMMENDATIONS]


def analyze_disease_risk(
    items: Iterable[AnalysisItem],
    catalog: Sequence[DiseaseDefinition] = DISEASE_DEFINITIONS
) -> DiseaseRiskAnalysis:
    """
    Analyze postural risk from a set of measurements.

    Args:
        items: Posture measurements of one analysis.
        catalog: Conditions to score.

    Returns:
        DiseaseRiskAnalysis with conditions sorted by descending risk.
    """
    indexed = _index_items(items)

    diseases = [calculate_disease_risk(d, indexed) for d in catalog]
    # Stable sort keeps catalog order for ties
    diseases.sort(key=lambda d: d.risk, reverse=True)

    overall_risk = calculate_overall_risk(diseases, catalog)

    primary_concern = None
    if diseases and diseases[0].risk >= PRIMARY_CONCERN_MIN_RISK:
        primary_concern = diseases[0]

    return DiseaseRiskAnalysis(
        overall_risk=overall_risk,
        overall_level=get_risk_level(overall_risk),
        diseases=diseases,
        primary_concern=primary_concern,
        recommendations=generate_recommendations(diseases, overall_risk, catalog),
    )
