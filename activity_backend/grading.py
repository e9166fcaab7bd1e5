"""
Grading a student's answer on four rubric dimensions, levels 1-5.

Two strategies:
- grade_with_model: asks the model, using the activity's rubric when it has
  one and a fixed level scale otherwise.
- grade_by_keywords: local keyword counting, used when the model call fails.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Protocol

from activity_backend.activity_model import RUBRIC_DIMENSIONS, RUBRIC_LEVELS, Activity, Rubric
from activity_backend.prompts import GRADE_WITH_RUBRIC, GRADE_WITH_SCALE


DEFAULT_QUESTION = "How did the drought affect forests and non-farming communities across Canada?"
DEFAULT_KEYWORDS_CONTENT: tuple[str, ...] = (
    "wildfire",
    "forest",
    "air quality",
    "evacuat",
    "health",
    "newfoundland",
    "communities",
    "first nations",
    "bans",
)
DEFAULT_KEYWORDS_EVIDENCE: tuple[str, ...] = (
    "6.5 million",
    "6.8 million",
    "hectare",
    "newfoundland",
    "first nations",
    "pregnant",
    "children",
)

GRADE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        dim: {
            "type": "OBJECT",
            "properties": {"level": {"type": "INTEGER"}, "feedback": {"type": "STRING"}},
            "required": ["level", "feedback"],
        }
        for dim in RUBRIC_DIMENSIONS
    },
    "required": list(RUBRIC_DIMENSIONS),
}


class JsonGenerator(Protocol):
    def generate_json(self, prompt: str, *, schema: dict[str, Any] | None = None, temperature: float = 0.4) -> dict[str, Any]: ...


@dataclass(frozen=True)
class GradingContext:
    question: str
    keywords_content: tuple[str, ...]
    keywords_evidence: tuple[str, ...]
    rubric: Rubric | None = None


def resolve_grading_context(activity: Activity | None) -> GradingContext:
    grading = activity.grading if activity else None
    return GradingContext(
        question=(grading.question if grading else "") or DEFAULT_QUESTION,
        keywords_content=(grading.keywords_content if grading else ()) or DEFAULT_KEYWORDS_CONTENT,
        keywords_evidence=(grading.keywords_evidence if grading else ()) or DEFAULT_KEYWORDS_EVIDENCE,
        rubric=activity.rubric if activity else None,
    )


def format_rubric(rubric: Rubric | None) -> str:
    if rubric is None:
        return ""
    out = ""
    for dim in RUBRIC_DIMENSIONS:
        levels = rubric.dimension(dim)
        if not levels:
            continue
        out += f"\n{dim.capitalize()}:\n"
        for n in RUBRIC_LEVELS:
            if levels.get(n):
                out += f"  Level {n}: {levels[n]}\n"
    return out


def clamp_level(value: Any) -> int:
    try:
        level = math.floor(float(value or 1) + 0.5)
    except (TypeError, ValueError, OverflowError):
        level = 1
    return max(1, min(5, level))


def build_grading_prompt(answer: str, context: GradingContext) -> str:
    rubric_text = format_rubric(context.rubric)
    if rubric_text:
        return GRADE_WITH_RUBRIC.format(question=context.question, rubric_text=rubric_text, answer=answer)
    return GRADE_WITH_SCALE.format(
        question=context.question,
        theme_count=len(context.keywords_content),
        themes=", ".join(context.keywords_content),
        answer=answer,
    )


def grade_with_model(client: JsonGenerator, answer: str, context: GradingContext) -> dict[str, dict[str, Any]]:
    data = client.generate_json(build_grading_prompt(answer, context), schema=GRADE_SCHEMA)
    grades: dict[str, dict[str, Any]] = {}
    for dim in RUBRIC_DIMENSIONS:
        entry = data.get(dim)
        if not isinstance(entry, dict):
            raise ValueError(f"Grade for {dim!r} missing from model response")
        grades[dim] = {"level": clamp_level(entry.get("level")), "feedback": str(entry.get("feedback") or "")}
    return grades


def level_from_hits(hits: int) -> int:
    if hits == 0:
        return 1
    if hits <= 2:
        return 2
    if hits <= 4:
        return 3
    if hits <= 6:
        return 4
    return 5


def level_from_word_count(words: int) -> int:
    if words < 10:
        return 1
    if words < 30:
        return 2
    if words < 60:
        return 3
    if words < 100:
        return 4
    return 5


def grade_by_keywords(answer: str, context: GradingContext) -> dict[str, dict[str, Any]]:
    lower = answer.lower()
    content_hits = sum(1 for k in context.keywords_content if k.lower() in lower)
    evidence_hits = sum(1 for k in context.keywords_evidence if k.lower() in lower)
    total_keywords = max(len(context.keywords_content), 1)

    content_level = level_from_hits(content_hits)
    evidence_level = level_from_hits(evidence_hits)
    understanding_level = level_from_word_count(len(answer.split()))
    connections_level = clamp_level(content_level * 0.8)

    return {
        "content": {
            "level": content_level,
            "feedback": f"{content_hits} of {total_keywords} key themes identified.",
        },
        "understanding": {
            "level": understanding_level,
            "feedback": "Based on response length and structure.",
        },
        "connections": {
            "level": connections_level,
            "feedback": "Consider linking cause and effect more explicitly.",
        },
        "evidence": {
            "level": evidence_level,
            "feedback": f"{evidence_hits} specific details from the text cited.",
        },
    }
