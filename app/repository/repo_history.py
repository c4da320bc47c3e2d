import json
import logging
from datetime import date, datetime, timezone
from typing import List, Optional, Tuple, Type, TypeVar

from fastapi import Depends
from pydantic import BaseModel, TypeAdapter, ValidationError

from app.core.config import settings
from app.posture_engine.core import ExerciseResult
from app.posture_engine.modules import BadgeCheckContext, StreakSummary, calculate_streak
from app.repository.repo_storage import StorageBackend, StorageError, get_storage
from app.schemas.sche_history import AnalysisRecord, ExerciseResultRecord

logger = logging.getLogger(__name__)

EXERCISE_HISTORY_LIMIT = 100

RecordT = TypeVar("RecordT", bound=BaseModel)


def analysis_history_key(user_id: str) -> str:
    return f"analysis_history:{user_id}"


def exercise_history_key(user_id: str) -> str:
    return f"exercise_history:{user_id}"


class HistoryRepository:
    """
    Analysis and exercise history per user, newest first.

    Both lists are capped at ``limit`` entries; older records are dropped on
    write.
    """

    def __init__(self, storage: StorageBackend, limit: int = EXERCISE_HISTORY_LIMIT):
        self.storage = storage
        self.limit = limit

    def _load_list(self, key: str, model: Type[RecordT]) -> List[RecordT]:
        try:
            raw = self.storage.load(key)
        except StorageError as e:
            logger.warning(f"_load_list: storage unavailable for key={key}: {str(e)}")
            return []
        if raw is None:
            return []
        try:
            return TypeAdapter(List[model]).validate_python(json.loads(raw))
        except (ValueError, ValidationError) as e:
            logger.warning(f"_load_list: corrupt history for key={key}: {str(e)}")
            return []

    def _save_list(self, key: str, records: List[BaseModel]) -> bool:
        data = json.dumps([r.model_dump() for r in records[:self.limit]]).encode('utf-8')
        saved = self.storage.save(key, data)
        if not saved:
            logger.warning(f"_save_list: write failed for key={key}")
        return saved

    def get_analysis_history(self, user_id: str) -> List[AnalysisRecord]:
        return self._load_list(analysis_history_key(user_id), AnalysisRecord)

    def get_exercise_history(self, user_id: str) -> List[ExerciseResultRecord]:
        return self._load_list(exercise_history_key(user_id), ExerciseResultRecord)

    def record_analysis(
        self,
        user_id: str,
        overall_score: float,
        head_forward_score: float = 0.0,
        shoulder_balance_score: float = 0.0,
        analyzed_at: Optional[str] = None
    ) -> Tuple[List[AnalysisRecord], bool]:
        """
        Prepend an analysis to the user's history.

        Returns:
            The updated history, newest first and capped at ``limit``, and
            whether it was saved. The list is returned even when the write
            failed.
        """
        record = AnalysisRecord(
            date=analyzed_at or datetime.now(timezone.utc).isoformat(),
            overall_score=overall_score,
            head_forward_score=head_forward_score,
            shoulder_balance_score=shoulder_balance_score,
        )
        history = ([record] + self.get_analysis_history(user_id))[:self.limit]
        return history, self._save_list(analysis_history_key(user_id), history)

    def record_exercise_result(self, user_id: str, result: ExerciseResult) -> bool:
        record = ExerciseResultRecord(**result.to_dict())
        history = self.get_exercise_history(user_id)
        saved = self._save_list(exercise_history_key(user_id), [record] + history)
        if saved:
            logger.info(f"record_exercise_result: user_id={user_id}, exercise={result.exercise_id}, "
                        f"total_reps={result.total_reps}")
        return saved

    def get_streak(
        self,
        user_id: str,
        today: Optional[date] = None,
        analyses: Optional[List[AnalysisRecord]] = None
    ) -> StreakSummary:
        # Records are stamped in UTC
        today = today or datetime.now(timezone.utc).date()
        if analyses is None:
            analyses = self.get_analysis_history(user_id)
        dates = [r.date for r in analyses]
        dates += [r.date for r in self.get_exercise_history(user_id)]
        return calculate_streak(dates, today=today)

    def build_badge_context(
        self,
        user_id: str,
        today: Optional[date] = None,
        analyses: Optional[List[AnalysisRecord]] = None
    ) -> BadgeCheckContext:
        """
        History snapshot for badge evaluation, from the two newest analyses.

        ``analyses`` overrides the stored analysis history, e.g. with the
        list returned by ``record_analysis`` when its write failed.
        """
        if analyses is None:
            analyses = self.get_analysis_history(user_id)
        streak = self.get_streak(user_id, today=today, analyses=analyses)

        if not analyses:
            return BadgeCheckContext(current_streak=streak.current)

        latest = analyses[0]
        previous = analyses[1] if len(analyses) > 1 else None
        return BadgeCheckContext(
            total_analyses=len(analyses),
            current_streak=streak.current,
            latest_score=latest.overall_score,
            previous_score=previous.overall_score if previous else None,
            head_forward_score=latest.head_forward_score,
            shoulder_balance_score=latest.shoulder_balance_score,
            overall_score=latest.overall_score,
        )


def get_history_repository(storage: StorageBackend = Depends(get_storage)) -> HistoryRepository:
    return HistoryRepository(storage, limit=settings.EXERCISE_HISTORY_LIMIT)
