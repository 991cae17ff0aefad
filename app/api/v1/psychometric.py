from fastapi import APIRouter, Depends, Request

from app.ai.router import ProviderError
from app.api.deps import get_assessment_service, raise_http_error
from app.core.errors import InputValidationError
from app.core.rate_limit import rate_limit
from app.schemas.psychometric import PsychometricSubmission, PsychometricSubmitRequest
from app.services.assessment_service import AssessmentService

router = APIRouter(prefix="/psychometric")


@router.post("/submit", response_model=PsychometricSubmission)
@rate_limit()
async def psychometric_submit(
    request: Request,
    payload: PsychometricSubmitRequest,
    service: AssessmentService = Depends(get_assessment_service),
):
    _ = request
    try:
        return await service.psychometric_report(
            payload.answers,
            payload.user_data.cv_text,
            payload.user_data.job_description,
        )
    except (InputValidationError, ProviderError) as exc:
        raise_http_error(exc)
