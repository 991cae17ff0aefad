from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.datastructures import UploadFile

from app.ai.router import ProviderError
from app.api.deps import (
    get_assessment_service,
    get_text_extractor,
    get_tier_resolver,
    raise_http_error,
    read_upload_text,
)
from app.core.errors import InputValidationError
from app.core.rate_limit import rate_limit
from app.parsing.extract import TextExtractor
from app.schemas.assessment import AnalyzeCvRequest, RewriteCvRequest, RewriteResult
from app.services.assessment_service import AssessmentService
from app.services.tier import TierResolver

router = APIRouter()


def _is_multipart(request: Request) -> bool:
    return request.headers.get("content-type", "").lower().startswith("multipart/form-data")


async def _payload(request: Request, extractor: TextExtractor) -> dict[str, Any]:
    if not _is_multipart(request):
        try:
            body = await request.json()
        except ValueError as exc:
            raise InputValidationError("Request body must be JSON or multipart form data.") from exc
        if not isinstance(body, dict):
            raise InputValidationError("Request body must be a JSON object.")
        return body

    form = await request.form()
    payload: dict[str, Any] = {
        key: value for key, value in form.items() if not isinstance(value, UploadFile)
    }
    upload = form.get("cv")
    if isinstance(upload, UploadFile):
        payload["cvText"] = await read_upload_text(upload, extractor)
    return payload


def _validate(model, payload: dict[str, Any]):
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise InputValidationError(f"Invalid request: {exc.error_count()} field error(s).") from exc


@router.post("/analyze-cv")
@rate_limit()
async def analyze_cv(
    request: Request,
    service: AssessmentService = Depends(get_assessment_service),
    tier_resolver: TierResolver = Depends(get_tier_resolver),
    extractor: TextExtractor = Depends(get_text_extractor),
):
    try:
        payload = _validate(AnalyzeCvRequest, await _payload(request, extractor))
        report = await service.analyze_cv(
            payload.cv_text,
            payload.job_description,
            tier=tier_resolver.resolve(payload.user_id),
            rubric=payload.rubric,
        )
    except (InputValidationError, ProviderError) as exc:
        raise_http_error(exc)
    return JSONResponse(report.model_dump(mode="json", by_alias=True))


@router.post("/rewrite-cv", response_model=RewriteResult)
@rate_limit()
async def rewrite_cv(
    request: Request,
    service: AssessmentService = Depends(get_assessment_service),
    extractor: TextExtractor = Depends(get_text_extractor),
):
    try:
        payload = _validate(RewriteCvRequest, await _payload(request, extractor))
        return await service.rewrite_cv(payload.cv_text)
    except (InputValidationError, ProviderError) as exc:
        raise_http_error(exc)
