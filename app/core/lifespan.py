from contextlib import asynccontextmanager
import logging

from app.ai.factory import get_ai_client
from app.core.config import settings
from app.parsing.extract import DocumentTextExtractor
from app.services.assessment_service import build_assessment_service
from app.services.tier import StaticTierResolver

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    app.state.assessment_service = build_assessment_service()
    app.state.tier_resolver = StaticTierResolver(settings.pro_user_ids)
    app.state.text_extractor = DocumentTextExtractor()
    logger.info(
        "assessment_service_ready rubric=%s provider_override=%s",
        settings.cv_audit_rubric,
        settings.ai_provider_override,
    )
    yield
    get_ai_client.cache_clear()
