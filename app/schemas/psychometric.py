from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.assessment import CamelModel, Score, StrList, Text


class DassScores(BaseModel):
    stress: int = Field(ge=0, le=42)
    anxiety: int = Field(ge=0, le=42)
    depression: int = Field(ge=0, le=42)


class FlowScores(CamelModel):
    average: float = Field(ge=1.0, le=5.0)
    per_dimension: dict[str, float]


class Big5Scores(BaseModel):
    openness: float = Field(ge=1.0, le=5.0)
    conscientiousness: float = Field(ge=1.0, le=5.0)
    extraversion: float = Field(ge=1.0, le=5.0)
    agreeableness: float = Field(ge=1.0, le=5.0)
    neuroticism: float = Field(ge=1.0, le=5.0)


class ScoreSet(BaseModel):
    dass: DassScores
    flow: FlowScores
    big5: Big5Scores


class PsychometricAIReport(BaseModel):
    porcentaje_match: Score
    analisis_brechas: StrList = Field(default_factory=list)
    ajuste_cultural: Text = ""
    prediccion_performance: Text = ""
    guia_entrevista: StrList = Field(default_factory=list)


class PsychometricUserData(CamelModel):
    model_config = ConfigDict(extra="allow")

    cv_text: str = ""
    job_description: str = ""


class PsychometricSubmitRequest(CamelModel):
    answers: dict[str, Any] = Field(default_factory=dict)
    user_data: PsychometricUserData = Field(default_factory=PsychometricUserData)


class PsychometricSubmission(BaseModel):
    scores: ScoreSet
    ai_report: PsychometricAIReport
