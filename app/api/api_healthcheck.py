from fastapi import APIRouter, Request

from app.schemas.sche_base import DataResponse
from app.services.srv_exercise import exercise_session_service

router = APIRouter()


@router.get('', response_model=DataResponse[dict])
async def get(request: Request):
    """Service status."""
    return DataResponse().success_response(data={
        "status": "healthy",
        "storage": type(request.app.state.storage).__name__,
        "exercises": len(exercise_session_service.catalog),
        "active_sessions": exercise_session_service.active_session_count,
    })
