from __future__ import annotations

from fastapi import HTTPException, Request, status
from starlette.datastructures import UploadFile

from app.ai.router import ProviderError
from app.core.config import settings
from app.core.errors import InputValidationError
from app.parsing.extract import DocumentTextExtractor, TextExtractor
from app.services.assessment_service import AssessmentService, build_assessment_service
from app.services.tier import StaticTierResolver, TierResolver


def get_assessment_service(request: Request) -> AssessmentService:
    service = getattr(request.app.state, "assessment_service", None)
    if service is None:
        service = build_assessment_service()
        request.app.state.assessment_service = service
    return service


def get_tier_resolver(request: Request) -> TierResolver:
    resolver = getattr(request.app.state, "tier_resolver", None)
    return resolver or StaticTierResolver(settings.pro_user_ids)


def get_text_extractor(request: Request) -> TextExtractor:
    extractor = getattr(request.app.state, "text_extractor", None)
    return extractor or DocumentTextExtractor()


def raise_http_error(exc: Exception) -> None:
    if isinstance(exc, InputValidationError):
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    if isinstance(exc, ProviderError):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="AI providers are unavailable right now. Please try again.",
        ) from exc
    raise exc


async def read_upload_text(upload: UploadFile, extractor: TextExtractor) -> str:
    content = await upload.read(settings.max_upload_bytes + 1)
    if len(content) > settings.max_upload_bytes:
        raise InputValidationError(
            "Uploaded file is too large.",
            code="file_too_large",
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        )
    return extractor.extract(upload.filename or "", content)
