"""Turns free-text model replies into the typed report contracts.

Parsing yields a ``NormalizationResult`` so callers have to pick a fallback
explicitly. The ``normalize*`` helpers do that with the fixed degraded
shapes and never raise, whatever text the provider sent back.
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from app.schemas.assessment import AnalysisReport, InterviewReply, RewriteResult
from app.schemas.psychometric import PsychometricAIReport

logger = logging.getLogger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

_FENCE_RE = re.compile(r"```[a-zA-Z]*")

FALLBACK_SUMMARY = "Analysis failed due to technical issues."
FALLBACK_MATCH_LEVEL = "Error"
REWRITE_FALLBACK_ADVICE = "Rewrite failed due to technical issues. Please retry."


class SchemaViolationError(ValueError):
    pass


@dataclass(frozen=True)
class NormalizationResult(Generic[T]):
    value: T | None = None
    error: SchemaViolationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> NormalizationResult[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, message: str) -> NormalizationResult[T]:
        return cls(error=SchemaViolationError(message))

    def unwrap_or(self, default: T) -> T:
        if self.error is not None or self.value is None:
            return default
        return self.value

    def unwrap_or_else(self, factory: Callable[[], T]) -> T:
        if self.error is not None or self.value is None:
            return factory()
        return self.value


def fallback_report() -> AnalysisReport:
    return AnalysisReport(
        score=0,
        match_level=FALLBACK_MATCH_LEVEL,
        summary=FALLBACK_SUMMARY,
        improvement_plan=["Retry analysis"],
    )


def fallback_rewrite() -> RewriteResult:
    return RewriteResult(improvements=[], general_advice=REWRITE_FALLBACK_ADVICE)


def fallback_psychometric_report() -> PsychometricAIReport:
    return PsychometricAIReport(
        porcentaje_match=50,
        analisis_brechas=["Error generating AI analysis"],
        ajuste_cultural="N/A",
        prediccion_performance="N/A",
        guia_entrevista=[],
    )


def strip_code_fences(raw: str) -> str:
    return _FENCE_RE.sub("", raw or "").strip()


def parse_json_object(raw: str | None) -> NormalizationResult[dict[str, Any]]:
    if not isinstance(raw, str):
        return NormalizationResult.failure("reply is not text")
    text = strip_code_fences(raw)
    if not text:
        return NormalizationResult.failure("empty reply")

    candidates = [text]
    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start and (start, end) != (0, len(text) - 1):
        candidates.append(text[start:end + 1])

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except (ValueError, RecursionError):
            continue
        if isinstance(parsed, dict):
            return NormalizationResult.success(parsed)
        return NormalizationResult.failure("reply is JSON but not an object")
    return NormalizationResult.failure("reply is not valid JSON")


def _parse_model(
    raw: str | None,
    model: type[M],
    required: tuple[tuple[str, ...], ...],
) -> NormalizationResult[M]:
    try:
        parsed = parse_json_object(raw)
        if not parsed.ok or parsed.value is None:
            return NormalizationResult(error=parsed.error)
        payload = parsed.value
        for names in required:
            if not any(payload.get(name) is not None for name in names):
                return NormalizationResult.failure(f"missing required field '{names[0]}'")
        return NormalizationResult.success(model.model_validate(payload))
    except ValidationError as exc:
        return NormalizationResult.failure(f"schema validation failed: {exc.error_count()} error(s)")
    except Exception as exc:  # noqa: BLE001 - malformed replies must never escape normalization
        return NormalizationResult.failure(f"unexpected normalization failure: {exc}")


def parse_report(raw: str | None) -> NormalizationResult[AnalysisReport]:
    return _parse_model(raw, AnalysisReport, (("score",), ("matchLevel", "match_level")))


def parse_rewrite(raw: str | None) -> NormalizationResult[RewriteResult]:
    return _parse_model(raw, RewriteResult, (("improvements",),))


def parse_psychometric_report(raw: str | None) -> NormalizationResult[PsychometricAIReport]:
    return _parse_model(raw, PsychometricAIReport, (("porcentaje_match",),))


def _log_failure(kind: str, raw: str | None, result: NormalizationResult[Any]) -> None:
    if not result.ok:
        logger.warning(
            "normalization_failed kind=%s raw_len=%s: %s",
            kind,
            len(raw) if isinstance(raw, str) else 0,
            result.error,
        )


def normalize(raw: str | None) -> AnalysisReport:
    result = parse_report(raw)
    _log_failure("analysis_report", raw, result)
    return result.unwrap_or_else(fallback_report)


def normalize_rewrite(raw: str | None) -> RewriteResult:
    result = parse_rewrite(raw)
    _log_failure("rewrite", raw, result)
    return result.unwrap_or_else(fallback_rewrite)


def normalize_psychometric_report(raw: str | None) -> PsychometricAIReport:
    result = parse_psychometric_report(raw)
    _log_failure("psychometric_report", raw, result)
    return result.unwrap_or_else(fallback_psychometric_report)


def normalize_interview_reply(raw: str | None, *, expects_feedback: bool) -> InterviewReply:
    text = (raw or "").strip() if isinstance(raw, str) else ""
    if expects_feedback:
        parsed = parse_json_object(text)
        if parsed.ok and parsed.value is not None and isinstance(parsed.value.get("message"), str):
            feedback = parsed.value.get("feedback")
            return InterviewReply(
                message=parsed.value["message"].strip(),
                feedback=feedback.strip() if isinstance(feedback, str) and feedback.strip() else None,
            )
    return InterviewReply(message=strip_code_fences(text) if expects_feedback else text)
