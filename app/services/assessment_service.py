from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from app.ai.config import Complexity
from app.ai.router import ProviderError, ProviderRouter
from app.ai.types import ChatMessage
from app.core.assessment_config import get_assessment_value
from app.core.config import settings
from app.core.errors import InputValidationError
from app.schemas.assessment import (
    AnalysisReport,
    AssessmentKind,
    AssessmentRequest,
    AuditRubric,
    InterviewMode,
    InterviewReply,
    RewriteResult,
    Tier,
)
from app.schemas.psychometric import PsychometricSubmission
from app.services.normalizer import (
    fallback_psychometric_report,
    fallback_report,
    fallback_rewrite,
    normalize_interview_reply,
    normalize_psychometric_report,
    normalize_rewrite,
    parse_report,
)
from app.services.prompt_builder import PromptBuilder, PromptBundle, TruncationLimits
from app.services.redactor import redact
from app.services.scoring_engine import compute_score_set

logger = logging.getLogger(__name__)

COMPLEXITY_BY_KIND: dict[AssessmentKind, Complexity] = {
    AssessmentKind.CV_AUDIT: Complexity.MEDIUM,
    AssessmentKind.CV_REWRITE: Complexity.MEDIUM,
    AssessmentKind.INTERVIEW_TURN: Complexity.COMPLEX,
    AssessmentKind.PSYCHOMETRIC_REPORT: Complexity.HARD,
}


class AssessmentService:
    """Prompt -> provider -> normalized contract pipeline for every assessment kind.

    Each call builds its own request and prompt; nothing is shared between
    concurrent calls apart from the immutable collaborators held here.
    """

    def __init__(
        self,
        router: ProviderRouter,
        *,
        builder: PromptBuilder | None = None,
        provider_override: str | None = None,
        min_subject_chars: int = 50,
    ):
        self._router = router
        self._builder = builder or PromptBuilder()
        self._provider_override = provider_override
        router.check_override(provider_override)
        self._min_subject_chars = min_subject_chars

    def build_request(
        self,
        kind: AssessmentKind,
        subject_text: str | None,
        reference_text: str | None = None,
        *,
        tier: Tier | str = Tier.FREE,
        require_reference: bool = True,
    ) -> AssessmentRequest:
        subject = (subject_text or "").strip()
        reference = (reference_text or "").strip()
        if len(subject) < self._min_subject_chars:
            raise InputValidationError(
                f"CV text too short (minimum {self._min_subject_chars} characters).",
                code="subject_too_short",
            )
        if require_reference and not reference:
            raise InputValidationError("Job description is required.", code="reference_missing")
        return AssessmentRequest(
            kind=kind,
            subject_text=subject,
            reference_text=reference or None,
            tier=Tier.parse(tier),
            complexity=COMPLEXITY_BY_KIND[kind],
        )

    async def _complete(self, request: AssessmentRequest, prompt: PromptBundle) -> str:
        config = self._router.route(request.complexity, self._provider_override)
        response = await self._router.call(prompt.to_messages(), config, json_mode=prompt.json_mode)
        logger.info(
            "assessment_completed kind=%s provider=%s model=%s latency_ms=%s",
            request.kind.value,
            response.provider_id,
            response.model_id,
            response.latency_ms,
        )
        return response.raw_text

    async def analyze_cv(
        self,
        cv_text: str | None,
        job_description: str | None,
        *,
        tier: Tier | str = Tier.FREE,
        rubric: AuditRubric | None = None,
    ) -> AnalysisReport:
        request = self.build_request(AssessmentKind.CV_AUDIT, cv_text, job_description, tier=tier)
        prompt = self._builder.cv_audit(request, rubric=rubric)
        try:
            raw_text = await self._complete(request, prompt)
        except ProviderError as exc:
            logger.warning("cv_audit_degraded reason=provider_error attempts=%s", ",".join(exc.attempts))
            return fallback_report()

        result = parse_report(raw_text)
        if not result.ok or result.value is None:
            logger.warning("cv_audit_degraded reason=schema_violation: %s", result.error)
            return fallback_report()
        return redact(result.value, request.tier)

    async def rewrite_cv(self, cv_text: str | None) -> RewriteResult:
        request = self.build_request(AssessmentKind.CV_REWRITE, cv_text, require_reference=False)
        prompt = self._builder.cv_rewrite(request)
        try:
            raw_text = await self._complete(request, prompt)
        except ProviderError as exc:
            logger.warning("cv_rewrite_degraded reason=provider_error attempts=%s", ",".join(exc.attempts))
            return fallback_rewrite()
        return normalize_rewrite(raw_text)

    async def interview_turn(
        self,
        cv_text: str | None,
        job_description: str | None,
        messages: Sequence[ChatMessage] = (),
        *,
        mode: InterviewMode = InterviewMode.HARDCORE,
        with_feedback: bool = False,
    ) -> InterviewReply:
        request = self.build_request(AssessmentKind.INTERVIEW_TURN, cv_text, job_description)
        prompt = self._builder.interview_turn(
            request, history=messages, mode=mode, with_feedback=with_feedback
        )
        # No fabricated recruiter reply exists, so provider failures propagate.
        raw_text = await self._complete(request, prompt)
        return normalize_interview_reply(raw_text, expects_feedback=with_feedback)

    async def psychometric_report(
        self,
        answers: Mapping[str, Any],
        cv_text: str | None,
        job_description: str | None,
    ) -> PsychometricSubmission:
        request = self.build_request(AssessmentKind.PSYCHOMETRIC_REPORT, cv_text, job_description)
        scores = compute_score_set(answers)
        prompt = self._builder.psychometric_report(request, scores)
        try:
            raw_text = await self._complete(request, prompt)
        except ProviderError as exc:
            logger.warning(
                "psychometric_report_degraded reason=provider_error attempts=%s", ",".join(exc.attempts)
            )
            return PsychometricSubmission(scores=scores, ai_report=fallback_psychometric_report())
        return PsychometricSubmission(scores=scores, ai_report=normalize_psychometric_report(raw_text))


def build_assessment_service(router: ProviderRouter | None = None) -> AssessmentService:
    builder = PromptBuilder(
        limits=TruncationLimits.from_config(),
        audit_rubric=AuditRubric(settings.cv_audit_rubric),
        max_history_messages=int(get_assessment_value("prompts.max_history_messages", 12)),
    )
    return AssessmentService(
        router or ProviderRouter(),
        builder=builder,
        provider_override=settings.ai_provider_override,
        min_subject_chars=int(get_assessment_value("prompts.min_subject_chars", 50)),
    )
