from typing import Any, List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends
import logging

from app.helpers.exception_handler import CustomException
from app.posture_engine.core import ExerciseResult
from app.repository.repo_history import HistoryRepository, get_history_repository
from app.schemas.sche_base import DataResponse
from app.schemas.sche_exercise import (
    ExerciseConfigResponse, FinishSessionResponse, ProcessFrameRequest,
    ProcessFrameResponse, SessionStateResponse, StartSessionRequest, StartSessionResponse,
)
from app.services.srv_exercise import ExerciseSessionService, exercise_session_service

router = APIRouter()
session_router = APIRouter()

logger = logging.getLogger(__name__)


def get_exercise_session_service() -> ExerciseSessionService:
    return exercise_session_service


def _schedule_save(background_tasks: BackgroundTasks, history_repo: HistoryRepository):
    def on_result(user_id: str, result: ExerciseResult) -> None:
        background_tasks.add_task(history_repo.record_exercise_result, user_id, result)
    return on_result


@router.get('', response_model=DataResponse[List[ExerciseConfigResponse]])
def get_all_exercises(
    condition: Optional[str] = None,
    service: ExerciseSessionService = Depends(get_exercise_session_service)
) -> Any:
    """
    Retrieve the exercise catalog.

    Every entry carries the tracked joint, axis, hysteresis thresholds,
    cooldown and set targets used by the repetition counter. `condition`
    filters by target postural condition (e.g. forward_head).
    """
    exercises = service.list_exercises(condition)
    logger.info(f"get_all_exercises success: {len(exercises)} exercises retrieved")
    return DataResponse().success_response(data=exercises)


@router.get('/{exercise_id}', response_model=DataResponse[ExerciseConfigResponse])
def get_exercise(
    exercise_id: str,
    service: ExerciseSessionService = Depends(get_exercise_session_service)
) -> Any:
    """Retrieve one exercise by id."""
    return DataResponse().success_response(data=service.get_exercise(exercise_id))


@session_router.post('', response_model=DataResponse[StartSessionResponse])
def start_session(
    request: StartSessionRequest,
    service: ExerciseSessionService = Depends(get_exercise_session_service)
) -> Any:
    """
    Start an exercise session.

    **Process**:
    1. Look up the exercise configuration
    2. Create a repetition counter for the session
    3. Return the session id used by the frame endpoint
    """
    return DataResponse().success_response(data=service.start_session(request))


@session_router.get('/{session_id}', response_model=DataResponse[SessionStateResponse])
def get_session_state(
    session_id: str,
    service: ExerciseSessionService = Depends(get_exercise_session_service)
) -> Any:
    return DataResponse().success_response(data=service.get_session_state(session_id))


@session_router.post('/{session_id}/frames', response_model=DataResponse[ProcessFrameResponse])
def process_frame(
    session_id: str,
    request: ProcessFrameRequest,
    background_tasks: BackgroundTasks,
    service: ExerciseSessionService = Depends(get_exercise_session_service),
    history_repo: HistoryRepository = Depends(get_history_repository)
) -> Any:
    """
    Feed one pose frame to the session.

    Frames whose tracked joint is occluded are skipped. When the last set
    closes the response carries the session result, which is stored in the
    background for sessions started with a user id.
    """
    try:
        result = service.process_frame(session_id, request, on_result=_schedule_save(background_tasks, history_repo))
        return DataResponse().success_response(data=result)
    except CustomException:
        raise
    except Exception as e:
        logger.error(f"process_frame error: {str(e)}", exc_info=True)
        raise CustomException(http_code=400, code='400', message=str(e))


@session_router.post('/{session_id}/next-set', response_model=DataResponse[SessionStateResponse])
def next_set(
    session_id: str,
    service: ExerciseSessionService = Depends(get_exercise_session_service)
) -> Any:
    """End the rest interval and resume counting."""
    return DataResponse().success_response(data=service.next_set(session_id))


@session_router.post('/{session_id}/finish', response_model=DataResponse[FinishSessionResponse])
def finish_session(
    session_id: str,
    background_tasks: BackgroundTasks,
    service: ExerciseSessionService = Depends(get_exercise_session_service),
    history_repo: HistoryRepository = Depends(get_history_repository)
) -> Any:
    """Close the session and return the summary of what was done."""
    result = service.finish_session(session_id, on_result=_schedule_save(background_tasks, history_repo))
    return DataResponse().success_response(data=result)


@session_router.delete('/{session_id}', response_model=DataResponse[FinishSessionResponse])
def cancel_session(
    session_id: str,
    service: ExerciseSessionService = Depends(get_exercise_session_service)
) -> Any:
    """Cancel the session, discarding its progress."""
    return DataResponse().success_response(data=service.cancel_session(session_id))
