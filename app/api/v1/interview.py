from fastapi import APIRouter, Depends, Request

from app.ai.router import ProviderError
from app.ai.types import ChatMessage
from app.api.deps import get_assessment_service, raise_http_error
from app.core.errors import InputValidationError
from app.core.rate_limit import interview_rate_limit
from app.schemas.assessment import InterviewReply, InterviewRequest
from app.services.assessment_service import AssessmentService

router = APIRouter(prefix="/interview")


async def _turn(service: AssessmentService, payload: InterviewRequest, *, history: bool, feedback: bool):
    messages = (
        [ChatMessage(role=m.role, content=m.content) for m in payload.messages] if history else []
    )
    try:
        return await service.interview_turn(
            payload.cv_text,
            payload.job_description,
            messages,
            mode=payload.mode,
            with_feedback=feedback,
        )
    except (InputValidationError, ProviderError) as exc:
        raise_http_error(exc)


@router.post("/start", response_model=InterviewReply, response_model_exclude_none=True)
@interview_rate_limit()
async def interview_start(
    request: Request,
    payload: InterviewRequest,
    service: AssessmentService = Depends(get_assessment_service),
):
    _ = request
    return await _turn(service, payload, history=False, feedback=False)


@router.post("/chat", response_model=InterviewReply, response_model_exclude_none=True)
@interview_rate_limit()
async def interview_chat(
    request: Request,
    payload: InterviewRequest,
    service: AssessmentService = Depends(get_assessment_service),
):
    _ = request
    return await _turn(service, payload, history=True, feedback=False)


@router.post("/speak", response_model=InterviewReply)
@interview_rate_limit()
async def interview_speak(
    request: Request,
    payload: InterviewRequest,
    service: AssessmentService = Depends(get_assessment_service),
):
    _ = request
    return await _turn(service, payload, history=True, feedback=True)
