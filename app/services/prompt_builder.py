from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from app.ai.types import ChatMessage
from app.core.assessment_config import get_assessment_value
from app.schemas.assessment import AssessmentKind, AssessmentRequest, AuditRubric, InterviewMode
from app.schemas.psychometric import ScoreSet

AUDIT_OUTPUT_SCHEMA = (
    "Output JSON only, with exactly this shape:\n"
    "{\n"
    '  "score": integer 0-100,\n'
    '  "matchLevel": string,\n'
    '  "summary": string,\n'
    '  "breakdown": {"hardSkills": 0-100, "experience": 0-100, "languages": 0-100, '
    '"education": 0-100, "softSkills": 0-100, "format": 0-100},\n'
    '  "hardSkillsAnalysis": {"missingKeywords": [string], "matchedKeywords": [string]},\n'
    '  "experienceAnalysis": {"feedback": string},\n'
    '  "softSkillsAnalysis": {"feedback": string},\n'
    '  "formattingAnalysis": {"issues": [string]},\n'
    '  "redFlags": [string],\n'
    '  "improvementPlan": [string],\n'
    '  "killerQuestionsCheck": {"passed": boolean, "reason": string}\n'
    "}\n"
    "Write feedback in the language of the CV. Use empty lists or empty strings when something does not apply."
)

AUDIT_RUBRICS: dict[AuditRubric, str] = {
    AuditRubric.STRICT_ATS: (
        "Role: Expert ATS scanner and recruiter algorithm.\n"
        "Task: analyze the CV against the job description the way an automated filter would.\n"
        "Rubric:\n"
        "- Strictly evaluate keyword matching, formatting and relevance. Be harsh.\n"
        "- Every required skill of the job description that is absent from the CV is a missing keyword.\n"
        "- Penalize tables, columns, graphics and missing contact data under format.\n"
        "- matchLevel is one of \"High\", \"Medium\", \"Low\".\n"
        "- A score of 80 or more means the CV passes the filter."
    ),
    AuditRubric.KNOCKOUT_ATS: (
        "Role: ATS engine with knockout rules.\n"
        "Task: decide whether the CV survives automated screening for the job description.\n"
        "Rubric:\n"
        "- First extract the mandatory requirements (degrees, certifications, languages, years of experience, "
        "work permits). These are knockout rules.\n"
        "- If any knockout rule is not met, killerQuestionsCheck.passed is false, the reason names the rule, "
        "the score cannot exceed 40 and matchLevel is \"Rechazado\".\n"
        "- Otherwise weight hard skills 40%, experience 30%, languages 10%, education 10%, soft skills 5%, format 5%.\n"
        "- matchLevel is \"Aceptado\" for 80 or more, \"En revision\" for 50-79, \"Rechazado\" below 50."
    ),
    AuditRubric.EUROPASS_COACH: (
        "Role: Career coach specialised in the Europass CV standard.\n"
        "Task: assess the quality of the CV for the job description and coach the candidate.\n"
        "Rubric:\n"
        "- Check the Europass sections: personal information, work experience, education and training, "
        "language skills (CEFR levels A1-C2), digital skills and additional information.\n"
        "- Reward quantified achievements and reverse-chronological order.\n"
        "- Languages without a CEFR level and undated experience are formatting issues.\n"
        "- matchLevel is one of \"Excelente\", \"Bueno\", \"Mejorable\", \"Insuficiente\".\n"
        "- The improvement plan lists concrete, ordered steps."
    ),
}

REWRITE_SYSTEM = "You are a STAR method CV rewriter. Output JSON only."
REWRITE_INSTRUCTIONS = (
    "Role: Expert CV writer and career coach.\n"
    "Task: rewrite weak bullet points in the provided CV using the STAR method "
    "(Situation, Task, Action, Result).\n"
    "Instructions:\n"
    "1. Identify the 3-5 weakest or most vague experience bullet points.\n"
    "2. Rewrite them to be quantifiable and impact-driven.\n"
    "3. Keep the tone professional and executive.\n"
    "Output JSON only:\n"
    '{"improvements": [{"original": string, "improved": string}], "general_advice": string}'
)

INTERVIEW_PERSONAS: dict[InterviewMode, str] = {
    InterviewMode.HARDCORE: (
        "You are 'Alex', a strict and skeptical senior recruiter. You interrupt when answers are vague. "
        "You demand examples (STAR method). You are not here to make friends, but to find the best candidate."
    ),
    InterviewMode.COACH: (
        "You are 'Alex', a helpful and encouraging career coach. You guide the candidate to give better answers."
    ),
}
INTERVIEW_RULES = (
    "Instructions:\n"
    "1. Start by introducing yourself briefly and asking the first question directly related to a weak point in the CV.\n"
    "2. Keep your responses short (max 2-3 sentences) to allow for a fluid voice conversation.\n"
    "3. If the candidate gives a weak answer, challenge them.\n"
    "4. Focus on technical skills match and behavioral fit.\n"
    "Do not break character. Do not say you are an AI. Act exactly like the recruiter."
)
INTERVIEW_FEEDBACK_RULES = (
    "Reply with JSON only: {\"message\": string, \"feedback\": string}. "
    "\"message\" is what you say next as Alex. \"feedback\" is a one-sentence critique of the candidate's "
    "last answer (STAR completeness, concreteness); use an empty string if they have not answered yet."
)

PSYCHOMETRIC_SYSTEM = "You are a Psychometric API. Return JSON only."


@dataclass(frozen=True)
class TruncationLimits:
    cv_audit: int = 4000
    cv_rewrite: int = 4000
    interview: int = 3000
    psychometric_cv: int = 1500
    psychometric_jd: int = 1000

    @classmethod
    def from_config(cls) -> TruncationLimits:
        raw = get_assessment_value("prompts.truncation", {}) or {}
        defaults = cls()
        return cls(**{
            name: int(raw.get(name, getattr(defaults, name)))
            for name in ("cv_audit", "cv_rewrite", "interview", "psychometric_cv", "psychometric_jd")
        })


@dataclass(frozen=True)
class PromptBundle:
    kind: AssessmentKind
    system_instruction: str
    user_prompt: str
    history: tuple[ChatMessage, ...] = field(default_factory=tuple)
    json_mode: bool = True

    def to_messages(self) -> list[ChatMessage]:
        return [
            ChatMessage(role="system", content=self.system_instruction),
            ChatMessage(role="user", content=self.user_prompt),
            *self.history,
        ]


def truncate(text: str | None, limit: int) -> str:
    value = (text or "").strip()
    return value[:limit]


def format_scores(scores: ScoreSet) -> str:
    dass = scores.dass
    big5 = scores.big5
    return (
        f"- DASS-21 (mental health 0-42): [Stress:{dass.stress}, Anxiety:{dass.anxiety}, "
        f"Depression:{dass.depression}] (normal: <10, severe: >20)\n"
        f"- Flow State (performance 1-5): [Avg:{scores.flow.average}] (high: >4.0)\n"
        f"- Big 5 (personality 1-5): [O:{big5.openness}, C:{big5.conscientiousness}, "
        f"E:{big5.extraversion}, A:{big5.agreeableness}, N:{big5.neuroticism}]"
    )


class PromptBuilder:
    def __init__(
        self,
        *,
        limits: TruncationLimits | None = None,
        audit_rubric: AuditRubric = AuditRubric.KNOCKOUT_ATS,
        max_history_messages: int = 12,
    ):
        self._limits = limits or TruncationLimits()
        self._audit_rubric = AuditRubric(audit_rubric)
        self._max_history_messages = max_history_messages

    @property
    def audit_rubric(self) -> AuditRubric:
        return self._audit_rubric

    def build(
        self,
        request: AssessmentRequest,
        *,
        scores: ScoreSet | None = None,
        history: Sequence[ChatMessage] = (),
        rubric: AuditRubric | None = None,
        interview_mode: InterviewMode = InterviewMode.HARDCORE,
        with_feedback: bool = False,
    ) -> PromptBundle:
        if request.kind is AssessmentKind.CV_AUDIT:
            return self.cv_audit(request, rubric=rubric)
        if request.kind is AssessmentKind.CV_REWRITE:
            return self.cv_rewrite(request)
        if request.kind is AssessmentKind.INTERVIEW_TURN:
            return self.interview_turn(request, history=history, mode=interview_mode, with_feedback=with_feedback)
        if request.kind is AssessmentKind.PSYCHOMETRIC_REPORT:
            if scores is None:
                raise ValueError("psychometric prompts need a ScoreSet")
            return self.psychometric_report(request, scores)
        raise ValueError(f"Unsupported assessment kind '{request.kind}'")

    def cv_audit(self, request: AssessmentRequest, *, rubric: AuditRubric | None = None) -> PromptBundle:
        chosen = AuditRubric(rubric) if rubric is not None else self._audit_rubric
        limit = self._limits.cv_audit
        system = f"{AUDIT_RUBRICS[chosen]}\n\n{AUDIT_OUTPUT_SCHEMA}"
        user = (
            f"JOB DESCRIPTION:\n{truncate(request.reference_text, limit)}\n\n"
            f"CV TEXT:\n{truncate(request.subject_text, limit)}"
        )
        return PromptBundle(kind=request.kind, system_instruction=system, user_prompt=user)

    def cv_rewrite(self, request: AssessmentRequest) -> PromptBundle:
        user = f"{REWRITE_INSTRUCTIONS}\n\nINPUT CV:\n{truncate(request.subject_text, self._limits.cv_rewrite)}"
        return PromptBundle(kind=request.kind, system_instruction=REWRITE_SYSTEM, user_prompt=user)

    def interview_turn(
        self,
        request: AssessmentRequest,
        *,
        history: Sequence[ChatMessage] = (),
        mode: InterviewMode = InterviewMode.HARDCORE,
        with_feedback: bool = False,
    ) -> PromptBundle:
        parts = [INTERVIEW_PERSONAS[InterviewMode(mode)], INTERVIEW_RULES]
        if with_feedback:
            parts.append(INTERVIEW_FEEDBACK_RULES)
        limit = self._limits.interview
        user = (
            f"CANDIDATE CV:\n{truncate(request.subject_text, limit)}\n\n"
            f"JOB DESCRIPTION:\n{truncate(request.reference_text, limit)}"
        )
        turns = tuple(
            message for message in history if message.role in ("user", "assistant") and message.content.strip()
        )
        if self._max_history_messages > 0:
            turns = turns[-self._max_history_messages:]
        return PromptBundle(
            kind=request.kind,
            system_instruction="\n\n".join(parts),
            user_prompt=user,
            history=turns,
            json_mode=with_feedback,
        )

    def psychometric_report(self, request: AssessmentRequest, scores: ScoreSet) -> PromptBundle:
        user = (
            "Act as a senior headhunter. Analyze:\n"
            f"1. Candidate context (CV excerpt): {truncate(request.subject_text, self._limits.psychometric_cv)}\n"
            f"2. Target role: {truncate(request.reference_text, self._limits.psychometric_jd)}\n"
            f"3. Psychometrics:\n{format_scores(scores)}\n\n"
            "Return a JSON object with:\n"
            "{\n"
            '  "porcentaje_match": integer 0-100,\n'
            '  "analisis_brechas": ["3 distinct missing skills or traits"],\n'
            '  "ajuste_cultural": "analysis based on Big 5 vs typical culture for this role",\n'
            '  "prediccion_performance": "analysis based on the Flow State score",\n'
            '  "guia_entrevista": ["question probing a weakness", "question verifying a strength", '
            '"question on cultural fit"]\n'
            "}"
        )
        return PromptBundle(kind=request.kind, system_instruction=PSYCHOMETRIC_SYSTEM, user_prompt=user)
