"""Tier-based view of an AnalysisReport.

Free users keep the numeric hook (score, match level, summary, breakdown) and
see qualitative feedback locked. This is an upsell policy, not a security
boundary: nothing here hides provider cost or candidate data.
"""
from __future__ import annotations

from typing import Callable

from app.schemas.assessment import (
    AnalysisReport,
    FeedbackSection,
    FormattingAnalysis,
    HardSkillsAnalysis,
    RedactedReport,
    Tier,
)

FREE_MISSING_KEYWORDS = 2
FREE_RED_FLAGS = 1

LOCKED_EXPERIENCE = "🔒 Análisis de experiencia disponible en el plan Pro."
LOCKED_SOFT_SKILLS = "🔒 Análisis de habilidades blandas disponible en el plan Pro."
LOCKED_FORMATTING = "🔒 Revisión de formato disponible en el plan Pro."
LOCKED_IMPROVEMENT_PLAN = "🔒 Desbloquea tu plan de mejora personalizado con el plan Pro."


def _hidden_counts(report: AnalysisReport) -> dict[str, int]:
    previous = report.total_hidden if isinstance(report, RedactedReport) else {}
    counts = {
        "missingKeywords": len(report.hard_skills_analysis.missing_keywords),
        "redFlags": len(report.red_flags),
        "improvementPlan": len(report.improvement_plan),
        "formattingIssues": len(report.formatting_analysis.issues),
    }
    if report.hard_skills_analysis.total_hidden is not None:
        counts["missingKeywords"] = report.hard_skills_analysis.total_hidden
    # counts taken from an already redacted report describe the original lists
    counts.update(previous)
    return counts


def _redact_free(report: AnalysisReport) -> RedactedReport:
    counts = _hidden_counts(report)
    hard_skills = report.hard_skills_analysis
    return RedactedReport(
        score=report.score,
        match_level=report.match_level,
        summary=report.summary,
        breakdown=report.breakdown.model_copy(),
        hard_skills_analysis=HardSkillsAnalysis(
            missing_keywords=hard_skills.missing_keywords[:FREE_MISSING_KEYWORDS],
            matched_keywords=list(hard_skills.matched_keywords),
            locked=True,
            total_hidden=counts["missingKeywords"],
        ),
        experience_analysis=FeedbackSection(feedback=LOCKED_EXPERIENCE, locked=True),
        soft_skills_analysis=FeedbackSection(feedback=LOCKED_SOFT_SKILLS, locked=True),
        formatting_analysis=FormattingAnalysis(issues=[LOCKED_FORMATTING], locked=True),
        red_flags=report.red_flags[:FREE_RED_FLAGS],
        improvement_plan=[LOCKED_IMPROVEMENT_PLAN],
        killer_questions_check=(
            report.killer_questions_check.model_copy() if report.killer_questions_check else None
        ),
        locked=True,
        total_hidden=counts,
    )


def _identity(report: AnalysisReport) -> AnalysisReport:
    return report


_REDACTORS: dict[Tier, Callable[[AnalysisReport], AnalysisReport]] = {
    Tier.FREE: _redact_free,
    Tier.PRO: _identity,
}


def redact(report: AnalysisReport, tier: Tier | str) -> AnalysisReport:
    return _REDACTORS[Tier.parse(tier)](report)
