import logging
from datetime import date
from typing import List, Optional

from fastapi import Depends

from app.posture_engine.core import parse_landmarks
from app.posture_engine.modules import (
    AnalysisItem, DiseaseRiskAnalysis, analyze_disease_risk, analyze_posture,
    overall_score_from_scores, recommend_exercises,
)
from app.repository.repo_history import HistoryRepository, get_history_repository
from app.schemas.sche_analysis import (
    AnalysisRequest, AnalysisResponse, DiseaseRiskAnalysisResponse, ExerciseProgramResponse,
    LandmarkAnalysisRequest, PostureAnalysisResponse,
)
from app.services.srv_badge import BadgeService

HEAD_FORWARD_ITEM = "forward_head"
SHOULDER_BALANCE_ITEM = "shoulder_tilt"

HISTORY_SAVE_WARNING = "Analysis history could not be saved"


def _item_score(items: List[AnalysisItem], item_id: str) -> float:
    for item in items:
        if item.id == item_id:
            return item.score if item.score is not None else 0.0
    return 0.0


def _overall_score(request: AnalysisRequest, items: List[AnalysisItem]) -> float:
    """Submitted overall score, else the weighted score of the graded items."""
    if request.overall_score is not None:
        return request.overall_score
    scores = {}
    for item in items:
        if item.score is not None:
            scores.setdefault(item.id, item.score)
    return float(overall_score_from_scores(scores))


class AnalysisService:
    def __init__(
        self,
        history_repo: HistoryRepository = Depends(get_history_repository),
        badge_service: BadgeService = Depends()
    ):
        self.history_repo = history_repo
        self.badge_service = badge_service
        self.logger = logging.getLogger(__name__)

    def _build_response(self, analysis: DiseaseRiskAnalysis) -> AnalysisResponse:
        program = recommend_exercises(analysis)
        return AnalysisResponse(
            analysis=DiseaseRiskAnalysisResponse(**analysis.to_dict()),
            program=ExerciseProgramResponse(**program.to_dict()),
        )

    def _record(
        self,
        response: AnalysisResponse,
        user_id: str,
        items: List[AnalysisItem],
        overall_score: float,
        today: Optional[date] = None
    ) -> None:
        """Store the analysis and evaluate badges against the updated history."""
        history, recorded = self.history_repo.record_analysis(
            user_id,
            overall_score=overall_score,
            head_forward_score=_item_score(items, HEAD_FORWARD_ITEM),
            shoulder_balance_score=_item_score(items, SHOULDER_BALANCE_ITEM),
        )
        if not recorded:
            response.warnings.append(HISTORY_SAVE_WARNING)

        # The in-memory history includes this analysis even when the write failed
        context = self.history_repo.build_badge_context(user_id, today=today, analyses=history)
        response.badges = self.badge_service.evaluate(user_id, context)
        if response.badges.warning:
            response.warnings.append(response.badges.warning)

    def analyze(self, request: AnalysisRequest, today: Optional[date] = None) -> AnalysisResponse:
        """
        Score postural risk and recommend exercises; with a user id also
        record the analysis and evaluate badges.
        """
        items = [AnalysisItem(id=i.id, value=i.value, score=i.score) for i in request.items]
        analysis = analyze_disease_risk(items)
        self.logger.info(f"analyze: overall_risk={analysis.overall_risk}, "
                         f"primary_concern={analysis.primary_concern.id if analysis.primary_concern else None}")

        response = self._build_response(analysis)
        if request.user_id:
            self._record(response, request.user_id, items, _overall_score(request, items), today=today)
        return response

    def analyze_landmarks(self, request: LandmarkAnalysisRequest, today: Optional[date] = None) -> AnalysisResponse:
        """
        Measure and grade a landmark frame, then continue as ``analyze``
        with the measured items and the weighted overall score.
        """
        landmarks = parse_landmarks([lm.model_dump() if lm else None for lm in request.landmarks])
        posture = analyze_posture(landmarks)
        if not posture.items:
            raise ValueError("Pose not detected: 33 landmarks with ears, shoulders, hips, knees and ankles required")

        items = posture.risk_items()
        analysis = analyze_disease_risk(items)
        self.logger.info(f"analyze_landmarks: overall_score={posture.overall_score}, "
                         f"confidence={posture.confidence}, overall_risk={analysis.overall_risk}")

        response = self._build_response(analysis)
        response.posture = PostureAnalysisResponse(**posture.to_dict())
        if request.user_id:
            self._record(response, request.user_id, items, float(posture.overall_score), today=today)
        return response
