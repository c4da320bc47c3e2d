from typing import Any
from fastapi import APIRouter, Depends
import logging

from app.helpers.exception_handler import CustomException
from app.schemas.sche_analysis import AnalysisRequest, AnalysisResponse, LandmarkAnalysisRequest
from app.schemas.sche_base import DataResponse
from app.services.srv_analysis import AnalysisService

router = APIRouter()

logger = logging.getLogger(__name__)


@router.post('', response_model=DataResponse[AnalysisResponse])
def analyze_posture(
    request: AnalysisRequest,
    analysis_service: AnalysisService = Depends()
) -> Any:
    """
    Score postural risk from a set of measurements.

    **Process**:
    1. Score every condition from its weighted measurement risks
    2. Pick the primary concern, the recommendations and the exercise program
    3. With a user id, record the analysis and evaluate badges

    Storage failures do not fail the request; they are reported in `warnings`.
    """
    try:
        logger.info(f"analyze_posture request: user_id={request.user_id}, items={len(request.items)}")
        result = analysis_service.analyze(request)
        return DataResponse().success_response(data=result)
    except Exception as e:
        logger.error(f"analyze_posture error: {str(e)}", exc_info=True)
        raise CustomException(http_code=400, code='400', message=str(e))


@router.post('/landmarks', response_model=DataResponse[AnalysisResponse])
def analyze_landmarks(
    request: LandmarkAnalysisRequest,
    analysis_service: AnalysisService = Depends()
) -> Any:
    """
    Analyze posture from one standing front-facing landmark frame.

    **Process**:
    1. Measure forward head, shoulder tilt, pelvis tilt and knee angle
    2. Grade each measurement and compute the weighted overall score
    3. Score postural risk and recommend exercises
    4. With a user id, record the analysis and evaluate badges

    A frame without the required landmarks is rejected with 400.
    """
    try:
        logger.info(f"analyze_landmarks request: user_id={request.user_id}, landmarks={len(request.landmarks)}")
        result = analysis_service.analyze_landmarks(request)
        return DataResponse().success_response(data=result)
    except Exception as e:
        logger.error(f"analyze_landmarks error: {str(e)}", exc_info=True)
        raise CustomException(http_code=400, code='400', message=str(e))
