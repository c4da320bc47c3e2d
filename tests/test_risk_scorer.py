"""Tests for postural risk scoring.

Covers:
  - Piecewise item risk for distances and angles
  - Weighted condition risk with absent items
  - Overall risk, primary concern and recommendations
"""

import numpy as np
import pytest

from app.posture_engine.modules import (
    AnalysisItem, DISEASE_DEFINITIONS, DiseaseConfigError, DiseaseDefinition,
    ItemThreshold, MeasurementKind, RiskLevel, analyze_disease_risk,
    calculate_disease_risk, calculate_item_risk, get_disease_definition,
    get_risk_level, item_threshold,
)
from app.posture_engine.modules.risk_scorer import MAX_RECOMMENDATIONS


class TestItemRisk:

    def test_distance_brackets(self):
        threshold = ItemThreshold(warning=2, danger=3.5)
        assert calculate_item_risk(1.0, threshold) == 0.0
        assert calculate_item_risk(2.0, threshold) == 0.0
        assert calculate_item_risk(2.75, threshold) == pytest.approx(25.0)
        assert calculate_item_risk(3.5, threshold) == pytest.approx(50.0)
        assert calculate_item_risk(4.0, threshold) == pytest.approx(55.0)

    def test_angle_brackets(self):
        threshold = item_threshold("knee_angle", warning=170, danger=150)
        assert threshold.kind == MeasurementKind.ANGLE
        assert calculate_item_risk(175, threshold) == 0.0
        assert calculate_item_risk(160, threshold) == pytest.approx(25.0)
        assert calculate_item_risk(150, threshold) == pytest.approx(50.0)
        assert calculate_item_risk(140, threshold) == pytest.approx(100.0)

    def test_risk_clamped(self):
        threshold = ItemThreshold(warning=2, danger=3.5)
        risks = [calculate_item_risk(v, threshold) for v in np.linspace(-50, 50, 101)]
        assert min(risks) >= 0.0
        assert max(risks) == pytest.approx(100.0)

    def test_monotonic_in_value(self):
        threshold = ItemThreshold(warning=2, danger=3.5)
        risks = [calculate_item_risk(v, threshold) for v in np.linspace(0, 10, 200)]
        assert all(b >= a for a, b in zip(risks, risks[1:]))

    def test_zero_width_rejected(self):
        with pytest.raises(DiseaseConfigError):
            ItemThreshold(warning=2, danger=2)

    def test_wrong_direction_rejected(self):
        with pytest.raises(DiseaseConfigError):
            ItemThreshold(warning=3, danger=2)
        with pytest.raises(DiseaseConfigError):
            ItemThreshold(warning=150, danger=170, kind=MeasurementKind.ANGLE)


class TestDiseaseRisk:

    def test_forward_head_scenario(self):
        disease = get_disease_definition("forward_head")
        items = [AnalysisItem("forward_head", 4), AnalysisItem("shoulder_tilt", 1)]
        risk = calculate_disease_risk(disease, items)

        assert risk.item_risks["shoulder_tilt"] == 0.0
        assert risk.item_risks["forward_head"] == pytest.approx(55.0)
        # 0.8 * 55 + 0.2 * 0
        assert risk.risk == 44
        assert risk.level == RiskLevel.MEDIUM

    def test_absent_item_renormalizes(self):
        disease = get_disease_definition("forward_head")
        risk = calculate_disease_risk(disease, [AnalysisItem("forward_head", 4)])
        assert risk.risk == 55
        assert "shoulder_tilt" not in risk.item_risks

    def test_no_items_is_zero(self):
        disease = get_disease_definition("round_shoulder")
        assert calculate_disease_risk(disease, []).risk == 0

    def test_unknown_items_ignored(self):
        disease = get_disease_definition("forward_head")
        items = [AnalysisItem("forward_head", 4), AnalysisItem("pelvis_tilt", 99)]
        assert calculate_disease_risk(disease, items).risk == 55

    def test_first_duplicate_wins(self):
        disease = get_disease_definition("forward_head")
        items = [AnalysisItem("forward_head", 4), AnalysisItem("forward_head", 1)]
        assert calculate_disease_risk(disease, items).risk == 55

    def test_zero_weight_item_excluded(self):
        disease = DiseaseDefinition(
            id="custom",
            weights={"forward_head": 1.0, "shoulder_tilt": 0.0},
            thresholds={
                "forward_head": item_threshold("forward_head", 2, 3.5),
                "shoulder_tilt": item_threshold("shoulder_tilt", 1.5, 3),
            },
        )
        items = [AnalysisItem("shoulder_tilt", 10)]
        assert calculate_disease_risk(disease, items).risk == 0

    def test_weight_without_threshold_rejected(self):
        with pytest.raises(DiseaseConfigError):
            DiseaseDefinition(id="broken", weights={"forward_head": 1.0}, thresholds={})


class TestAnalysis:

    def test_scenario_analysis(self):
        analysis = analyze_disease_risk([AnalysisItem("forward_head", 4), AnalysisItem("shoulder_tilt", 1)])

        assert [d.id for d in analysis.diseases] == ["forward_head", "round_shoulder"]
        assert analysis.diseases[0].risk == 44
        # round_shoulder: 0.3 * 25 over forward_head, 0.7 * 0 over shoulder_tilt
        assert analysis.diseases[1].risk == 8
        assert analysis.overall_risk == 26
        assert analysis.overall_level == RiskLevel.MEDIUM
        assert analysis.primary_concern.id == "forward_head"

    def test_recommendations_order(self):
        analysis = analyze_disease_risk([AnalysisItem("forward_head", 4), AnalysisItem("shoulder_tilt", 1)])
        forward_head_tip = get_disease_definition("forward_head").tip

        assert len(analysis.recommendations) == 3
        assert analysis.recommendations[-1] == forward_head_tip
        assert len(set(analysis.recommendations)) == len(analysis.recommendations)

    def test_healthy_posture(self):
        analysis = analyze_disease_risk([AnalysisItem("forward_head", 0.5), AnalysisItem("shoulder_tilt", 0.5)])
        assert analysis.overall_risk == 0
        assert analysis.primary_concern is None
        assert len(analysis.recommendations) == 2

    def test_high_risk_caps_recommendations(self):
        analysis = analyze_disease_risk([AnalysisItem("forward_head", 20), AnalysisItem("shoulder_tilt", 20)])
        assert analysis.overall_risk == 100
        assert analysis.overall_level == RiskLevel.CRITICAL
        assert 0 < len(analysis.recommendations) <= MAX_RECOMMENDATIONS
        for definition in DISEASE_DEFINITIONS:
            assert definition.tip in analysis.recommendations

    def test_all_risks_in_range(self):
        rng = np.random.RandomState(7)
        for _ in range(50):
            fh, st = rng.uniform(-5, 15, size=2)
            analysis = analyze_disease_risk([AnalysisItem("forward_head", fh), AnalysisItem("shoulder_tilt", st)])
            assert 0 <= analysis.overall_risk <= 100
            assert all(0 <= d.risk <= 100 for d in analysis.diseases)
            assert len(analysis.recommendations) <= MAX_RECOMMENDATIONS

    def test_deterministic(self):
        items = [AnalysisItem("forward_head", 3.1), AnalysisItem("shoulder_tilt", 2.2)]
        assert analyze_disease_risk(items).to_dict() == analyze_disease_risk(items).to_dict()

    def test_overall_uses_catalog_weights(self):
        heavy = DiseaseDefinition(
            id="heavy", weights={"forward_head": 1.0},
            thresholds={"forward_head": item_threshold("forward_head", 2, 3.5)},
            overall_weight=3.0,
        )
        light = DiseaseDefinition(
            id="light", weights={"shoulder_tilt": 1.0},
            thresholds={"shoulder_tilt": item_threshold("shoulder_tilt", 1.5, 3)},
            overall_weight=1.0,
        )
        analysis = analyze_disease_risk(
            [AnalysisItem("forward_head", 3.5), AnalysisItem("shoulder_tilt", 0)],
            catalog=[light, heavy],
        )
        # (3 * 50 + 1 * 0) / 4
        assert analysis.overall_risk == 38
        assert [d.id for d in analysis.diseases] == ["heavy", "light"]


class TestRiskLevel:

    @pytest.mark.parametrize("risk,level", [
        (0, RiskLevel.LOW), (24, RiskLevel.LOW), (25, RiskLevel.MEDIUM),
        (49, RiskLevel.MEDIUM), (50, RiskLevel.HIGH), (75, RiskLevel.CRITICAL), (100, RiskLevel.CRITICAL),
    ])
    def test_levels(self, risk, level):
        assert get_risk_level(risk) == level
