"""
Exercise Session Service - Business Logic Layer.

Keeps exercise sessions in memory and feeds each incoming frame through the
projector, the smoother and the repetition counter.
"""

import logging
import time
import uuid
from typing import Callable, Dict, List, Mapping, Optional

from app.core.config import settings
from app.helpers.exception_handler import CustomException
from app.posture_engine.core import (
    ExerciseConfig, ExerciseResult, RepetitionCounter, ValueSmoother,
    monotonic_ms, parse_landmarks, project_for_config,
)
from app.posture_engine.modules import (
    EXERCISE_CATALOG, get_exercises_by_condition, load_exercise_catalog_file,
)
from app.posture_engine.utils import LogCategory, SessionLogger, create_session_logger
from app.schemas.sche_exercise import (
    ExerciseConfigResponse, ExerciseResultResponse, FinishSessionResponse,
    ProcessFrameRequest, ProcessFrameResponse, SessionStateResponse,
    SessionStatus, StartSessionRequest, StartSessionResponse,
)

ResultCallback = Callable[[str, ExerciseResult], None]


# ==================== SESSION CLASS ====================

class ExerciseSession:
    """Represents a single exercise session."""

    def __init__(self, session_id: str, config: ExerciseConfig, counter: RepetitionCounter,
                 smoother: ValueSmoother, session_logger: SessionLogger, user_id: Optional[str] = None):
        self.session_id = session_id
        self.config = config
        self.counter = counter
        self.smoother = smoother
        self.session_logger = session_logger
        self.user_id = user_id
        self.created_at = time.time()
        self.last_activity = time.time()
        self.status = SessionStatus.ACTIVE
        self.result: Optional[ExerciseResult] = None

    def update_activity(self) -> None:
        self.last_activity = time.time()

    def is_expired(self, timeout: int) -> bool:
        return time.time() - self.last_activity > timeout


def _result_response(result: Optional[ExerciseResult]) -> Optional[ExerciseResultResponse]:
    if result is None:
        return None
    return ExerciseResultResponse(**result.to_dict())


def load_configured_catalog() -> Dict[str, ExerciseConfig]:
    """Built-in catalog, or the JSON file named by EXERCISE_CATALOG_FILE."""
    if settings.EXERCISE_CATALOG_FILE:
        return load_exercise_catalog_file(settings.EXERCISE_CATALOG_FILE)
    return dict(EXERCISE_CATALOG)


# ==================== SERVICE CLASS ====================

class ExerciseSessionService:
    """
    Service for exercise session operations.

    Results are handed to ``on_result`` exactly once per session, when the
    last set closes or when the session is finished early with reps.
    """

    def __init__(
        self,
        catalog: Optional[Mapping[str, ExerciseConfig]] = None,
        session_timeout: int = settings.POSE_SESSION_TIMEOUT,
        visibility_threshold: float = settings.VISIBILITY_THRESHOLD,
        smoothing_window: int = settings.SAMPLE_SMOOTHING_WINDOW,
        log_dir: Optional[str] = settings.SESSION_LOG_DIR,
        clock: Callable[[], float] = monotonic_ms
    ):
        self.logger = logging.getLogger(__name__)
        self.catalog: Dict[str, ExerciseConfig] = dict(catalog) if catalog is not None else load_configured_catalog()
        self.session_timeout = session_timeout
        self.visibility_threshold = visibility_threshold
        self.smoothing_window = smoothing_window
        self.log_dir = log_dir
        self.clock = clock
        self._sessions: Dict[str, ExerciseSession] = {}
        self.logger.info(f"ExerciseSessionService initialized: {len(self.catalog)} exercises")

    # ==================== CATALOG ====================

    def list_exercises(self, condition: Optional[str] = None) -> List[ExerciseConfigResponse]:
        configs = get_exercises_by_condition(condition, self.catalog) if condition else self.catalog.values()
        return [ExerciseConfigResponse(**c.to_dict()) for c in configs]

    def get_exercise(self, exercise_id: str) -> ExerciseConfigResponse:
        config = self.catalog.get(exercise_id)
        if config is None:
            raise CustomException(http_code=404, code='404', message=f"Exercise {exercise_id} not found")
        return ExerciseConfigResponse(**config.to_dict())

    # ==================== SESSION MANAGEMENT ====================

    def start_session(self, request: StartSessionRequest) -> StartSessionResponse:
        self.logger.info(f"start_session: user_id={request.user_id}, exercise={request.exercise_id}")
        self._cleanup_expired_sessions()

        config = self.catalog.get(request.exercise_id)
        if config is None:
            raise CustomException(http_code=404, code='404', message=f"Exercise {request.exercise_id} not found")

        session_id = f"ex_{uuid.uuid4().hex}"
        counter = RepetitionCounter(config, clock=self.clock)
        session_logger = create_session_logger(session_id, self.log_dir)
        counter.set_on_rep_complete(session_logger.log_rep)
        counter.set_on_set_complete(session_logger.log_set_complete)
        session_logger.info(LogCategory.SESSION, "Session started",
                            {'exercise_id': config.id, 'user_id': request.user_id})

        self._sessions[session_id] = ExerciseSession(
            session_id=session_id,
            config=config,
            counter=counter,
            smoother=ValueSmoother(self.smoothing_window),
            session_logger=session_logger,
            user_id=request.user_id,
        )

        self.logger.info(f"start_session success: session_id={session_id}")
        return StartSessionResponse(
            session_id=session_id,
            status=SessionStatus.ACTIVE,
            exercise=ExerciseConfigResponse(**config.to_dict()),
        )

    def get_session(self, session_id: str) -> ExerciseSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise CustomException(http_code=404, code='404', message=f"Session {session_id} not found")
        if session.is_expired(self.session_timeout):
            self._close_session(session_id)
            raise CustomException(http_code=404, code='404', message=f"Session {session_id} expired")
        session.update_activity()
        return session

    def get_session_state(self, session_id: str) -> SessionStateResponse:
        session = self.get_session(session_id)
        state = session.counter.state
        return SessionStateResponse(
            session_id=session_id,
            status=session.status,
            exercise_id=session.config.id,
            phase=state.phase.value,
            rep_count=state.reps_in_current_set,
            completed_sets=state.completed_sets,
            completed_reps=list(state.completed_reps_per_set),
        )

    def process_frame(self, session_id: str, request: ProcessFrameRequest,
                      on_result: Optional[ResultCallback] = None) -> ProcessFrameResponse:
        """Project one frame and feed it to the session's counter."""
        session = self.get_session(session_id)

        landmarks = parse_landmarks([lm.model_dump() if lm is not None else None for lm in request.landmarks])
        raw_value = project_for_config(landmarks, session.config, self.visibility_threshold)
        value = session.smoother.smooth(raw_value)
        update = session.counter.update(value, timestamp_ms=request.timestamp_ms)

        if update.set_completed and not update.session_completed:
            session.status = SessionStatus.RESTING
            session.smoother.reset()

        if update.session_completed:
            session.status = SessionStatus.COMPLETED
            session.result = session.counter.finalize()
            session.session_logger.info(LogCategory.SESSION, "Session completed", session.result.to_dict())
            self.logger.info(f"process_frame: session {session_id} completed, "
                             f"total_reps={session.result.total_reps}")
            self._report_result(session, on_result)
            self._save_session_log(session)

        return ProcessFrameResponse(
            session_id=session_id,
            status=session.status,
            value=value,
            phase=update.phase.value,
            counted=update.counted,
            suppressed=update.suppressed,
            rep_count=update.rep_count,
            completed_sets=update.completed_sets,
            set_completed=update.set_completed,
            session_completed=update.session_completed,
            rest_time_sec=session.config.rest_time_sec if update.set_completed and not update.session_completed else None,
            result=_result_response(session.result) if update.session_completed else None,
        )

    def next_set(self, session_id: str) -> SessionStateResponse:
        """End the rest interval."""
        session = self.get_session(session_id)
        if session.status != SessionStatus.RESTING:
            raise CustomException(http_code=409, code='409', message=f"Session {session_id} is not resting")

        session.counter.start_next_set()
        session.smoother.reset()
        session.status = SessionStatus.ACTIVE
        session.session_logger.info(LogCategory.SET, f"Set {session.counter.state.completed_sets + 1} started")
        return self.get_session_state(session_id)

    def finish_session(self, session_id: str, on_result: Optional[ResultCallback] = None) -> FinishSessionResponse:
        """Close the session, returning the summary of what was done."""
        session = self.get_session(session_id)

        if session.result is None:
            result = session.counter.finalize(include_current_set=True)
            session.session_logger.info(LogCategory.SESSION, "Session finished early", result.to_dict())
            if result.total_reps > 0:
                session.result = result
                self._report_result(session, on_result)
        else:
            result = session.result

        self._save_session_log(session)
        self._close_session(session_id)
        self.logger.info(f"finish_session: session_id={session_id}, total_reps={result.total_reps}")
        return FinishSessionResponse(
            session_id=session_id,
            status=SessionStatus.COMPLETED,
            result=_result_response(result),
        )

    def cancel_session(self, session_id: str) -> FinishSessionResponse:
        """Discard the session without a result."""
        session = self.get_session(session_id)
        session.counter.cancel()
        session.status = SessionStatus.CANCELLED
        session.session_logger.info(LogCategory.SESSION, "Session cancelled")
        self._save_session_log(session)
        self._close_session(session_id)
        self.logger.info(f"cancel_session: session_id={session_id}")
        return FinishSessionResponse(session_id=session_id, status=SessionStatus.CANCELLED)

    # ==================== INTERNAL METHODS ====================

    def _report_result(self, session: ExerciseSession, on_result: Optional[ResultCallback]) -> None:
        if on_result is not None and session.user_id and session.result is not None:
            on_result(session.user_id, session.result)

    def _save_session_log(self, session: ExerciseSession) -> None:
        try:
            path = session.session_logger.save_session_log()
        except OSError as e:
            self.logger.error(f"_save_session_log error: {session.session_id}: {str(e)}", exc_info=True)
            return
        if path is not None:
            self.logger.debug(f"_save_session_log: {path}")

    def _close_session(self, session_id: str) -> None:
        if session_id in self._sessions:
            del self._sessions[session_id]
            self.logger.debug(f"_close_session: Removed {session_id}")

    def _cleanup_expired_sessions(self) -> int:
        """Cleanup expired sessions. Returns count of removed sessions."""
        expired = [sid for sid, s in list(self._sessions.items()) if s.is_expired(self.session_timeout)]
        for sid in expired:
            self._close_session(sid)
        if expired:
            self.logger.info(f"_cleanup_expired_sessions: Removed {len(expired)} sessions")
        return len(expired)

    @property
    def active_session_count(self) -> int:
        return len(self._sessions)


# ==================== SINGLETON INSTANCE ====================

exercise_session_service = ExerciseSessionService()
