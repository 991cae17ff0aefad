from __future__ import annotations

import json
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.ai.config import Complexity


class Tier(str, Enum):
    FREE = "free"
    PRO = "pro"

    @classmethod
    def parse(cls, value: str | Tier | None) -> Tier:
        if isinstance(value, Tier):
            return value
        normalized = (value or "").strip().lower()
        return cls.PRO if normalized == cls.PRO.value else cls.FREE


class AssessmentKind(str, Enum):
    CV_AUDIT = "cv_audit"
    CV_REWRITE = "cv_rewrite"
    INTERVIEW_TURN = "interview_turn"
    PSYCHOMETRIC_REPORT = "psychometric_report"


class AuditRubric(str, Enum):
    STRICT_ATS = "strict_ats"
    KNOCKOUT_ATS = "knockout_ats"
    EUROPASS_COACH = "europass_coach"


class InterviewMode(str, Enum):
    HARDCORE = "hardcore"
    COACH = "coach"


class AssessmentRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: AssessmentKind
    subject_text: str
    reference_text: str | None = None
    tier: Tier = Tier.FREE
    complexity: Complexity = Complexity.MEDIUM


def _item_text(item: Any) -> str:
    if isinstance(item, str):
        return item
    if isinstance(item, dict):
        return " - ".join(str(value) for value in item.values() if value not in (None, ""))
    return json.dumps(item, ensure_ascii=False) if isinstance(item, list) else str(item)


def _coerce_str_list(value: Any) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        value = [value]
    return [_item_text(item) for item in value if item is not None]


def _coerce_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else _item_text(value)


def _coerce_score(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError("score must be numeric")
    if isinstance(value, str):
        value = value.strip().rstrip("%")
    try:
        number = float(value)
    except OverflowError:
        number = float("inf") if value > 0 else float("-inf")
    except (TypeError, ValueError) as exc:
        raise ValueError("score must be numeric") from exc
    if number != number:
        raise ValueError("score must be numeric")
    return int(round(max(0.0, min(100.0, number))))


StrList = Annotated[list[str], BeforeValidator(_coerce_str_list)]
Text = Annotated[str, BeforeValidator(_coerce_text)]
Score = Annotated[int, BeforeValidator(_coerce_score)]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class Breakdown(CamelModel):
    hard_skills: Score = 0
    experience: Score = 0
    languages: Score = 0
    education: Score = 0
    soft_skills: Score = 0
    format: Score = 0


class HardSkillsAnalysis(CamelModel):
    missing_keywords: StrList = Field(default_factory=list)
    matched_keywords: StrList = Field(default_factory=list)
    locked: bool = False
    total_hidden: int | None = None


class FeedbackSection(CamelModel):
    feedback: Text = ""
    locked: bool = False


class FormattingAnalysis(CamelModel):
    issues: StrList = Field(default_factory=list)
    locked: bool = False


class KillerQuestionsCheck(CamelModel):
    passed: bool = False
    reason: Text = ""


class AnalysisReport(CamelModel):
    """Versioned CV-audit contract returned to the UI."""

    score: Score
    match_level: Text
    summary: Text = ""
    breakdown: Breakdown = Field(default_factory=Breakdown)
    hard_skills_analysis: HardSkillsAnalysis = Field(default_factory=HardSkillsAnalysis)
    experience_analysis: FeedbackSection = Field(default_factory=FeedbackSection)
    soft_skills_analysis: FeedbackSection = Field(default_factory=FeedbackSection)
    formatting_analysis: FormattingAnalysis = Field(default_factory=FormattingAnalysis)
    red_flags: StrList = Field(default_factory=list)
    improvement_plan: StrList = Field(default_factory=list)
    killer_questions_check: KillerQuestionsCheck | None = None

    @field_validator("breakdown", "hard_skills_analysis", "experience_analysis",
                     "soft_skills_analysis", "formatting_analysis", mode="before")
    @classmethod
    def _null_section(cls, value: Any) -> Any:
        return {} if value is None else value


class RedactedReport(AnalysisReport):
    locked: bool = True
    total_hidden: dict[str, int] = Field(default_factory=dict)


class RewriteImprovement(BaseModel):
    original: Text = ""
    improved: Text = ""


class RewriteResult(BaseModel):
    improvements: list[RewriteImprovement]
    general_advice: Text = ""


class InterviewReply(BaseModel):
    message: str
    feedback: str | None = None


class AnalyzeCvRequest(CamelModel):
    cv_text: str = ""
    job_description: str = ""
    user_id: str | None = None
    rubric: AuditRubric | None = None


class RewriteCvRequest(CamelModel):
    cv_text: str = ""


class InterviewTurnMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str = Field(default="", max_length=8000)


class InterviewRequest(CamelModel):
    cv_text: str = ""
    job_description: str = ""
    messages: list[InterviewTurnMessage] = Field(default_factory=list, max_length=200)
    mode: InterviewMode = InterviewMode.HARDCORE
