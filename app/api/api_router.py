from fastapi import APIRouter

from app.api import api_healthcheck, api_exercise, api_analysis, api_badge

router = APIRouter()

router.include_router(api_healthcheck.router, tags=["health-check"], prefix="/healthcheck")
router.include_router(api_exercise.router, tags=["exercise"], prefix="/exercises")
router.include_router(api_exercise.session_router, tags=["exercise-session"], prefix="/exercise-sessions")
router.include_router(api_analysis.router, tags=["analysis"], prefix="/analysis")
router.include_router(api_badge.router, tags=["badge"], prefix="/badges")
