"""Deterministic psychometric scoring.

Answers arrive as a flat map keyed ``"<dimension>_<questionId>"`` (``dass_1``,
``flow_12``, ``big5_40``). Every function here is pure and total: missing,
non-numeric or out-of-scale answers never raise, they fall back to the
dimension default or are clamped onto the answer scale.
"""
from __future__ import annotations

from typing import Any, Mapping

from app.schemas.psychometric import Big5Scores, DassScores, FlowScores, ScoreSet

DASS_DIMENSIONS: dict[str, tuple[int, ...]] = {
    "stress": (1, 6, 8, 11, 12, 14, 18),
    "anxiety": (2, 4, 7, 9, 15, 19, 20),
    "depression": (3, 5, 10, 13, 16, 17, 21),
}
DASS_SCALE = (0, 3)
DASS_DEFAULT = 0

FLOW_DIMENSIONS = 9
FLOW_ITEMS_PER_DIMENSION = 4
LIKERT_SCALE = (1, 5)
LIKERT_DEFAULT = 3

BIG5_TRAITS = ("openness", "conscientiousness", "extraversion", "agreeableness", "neuroticism")
BIG5_ITEMS_PER_TRAIT = 10


def _answer(answers: Mapping[str, Any], key: str, default: int, scale: tuple[int, int]) -> int:
    raw = answers.get(key)
    if raw is None or isinstance(raw, bool):
        return default
    try:
        value = float(raw)
    except OverflowError:
        value = float("inf") if raw > 0 else float("-inf")
    except (TypeError, ValueError):
        return default
    if value != value:
        return default
    low, high = scale
    return int(max(low, min(high, value)))


def compute_dass21(answers: Mapping[str, Any]) -> DassScores:
    scores = {}
    for dimension, question_ids in DASS_DIMENSIONS.items():
        total = sum(_answer(answers, f"dass_{qid}", DASS_DEFAULT, DASS_SCALE) for qid in question_ids)
        scores[dimension] = total * 2
    return DassScores(**scores)


def compute_flow(answers: Mapping[str, Any]) -> FlowScores:
    per_dimension: dict[str, float] = {}
    total = 0
    count = 0
    for dimension in range(1, FLOW_DIMENSIONS + 1):
        start = (dimension - 1) * FLOW_ITEMS_PER_DIMENSION + 1
        values = [
            _answer(answers, f"flow_{qid}", LIKERT_DEFAULT, LIKERT_SCALE)
            for qid in range(start, start + FLOW_ITEMS_PER_DIMENSION)
        ]
        per_dimension[f"dim_{dimension}"] = round(sum(values) / len(values), 2)
        total += sum(values)
        count += len(values)
    return FlowScores(average=round(total / count, 2), per_dimension=per_dimension)


def compute_big5(answers: Mapping[str, Any]) -> Big5Scores:
    scores: dict[str, float] = {}
    question_id = 1
    for trait in BIG5_TRAITS:
        total = 0
        for _ in range(BIG5_ITEMS_PER_TRAIT):
            value = _answer(answers, f"big5_{question_id}", LIKERT_DEFAULT, LIKERT_SCALE)
            # even positions are reverse-keyed
            if question_id % 2 == 0:
                value = 6 - value
            total += value
            question_id += 1
        scores[trait] = round(total / BIG5_ITEMS_PER_TRAIT, 2)
    return Big5Scores(**scores)


def compute_score_set(answers: Mapping[str, Any]) -> ScoreSet:
    return ScoreSet(
        dass=compute_dass21(answers),
        flow=compute_flow(answers),
        big5=compute_big5(answers),
    )
