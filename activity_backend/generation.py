from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Protocol, Sequence

from activity_backend.prompts import ACTIVITY_TEMPLATE, GENERATE_ACTIVITY


logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:markdown|md)?")

# Reading text past this point is dropped before prompting.
MAX_READING_CHARS = 60_000


class TextGenerator(Protocol):
    def generate_text(self, prompt: str, *, temperature: float = 0.7) -> str: ...


@dataclass(frozen=True)
class QuestionType:
    type: str
    instruction: str

    @property
    def tag(self) -> str:
        return self.type.capitalize()


QUESTION_TYPES: tuple[QuestionType, ...] = (
    QuestionType(
        "comprehension",
        "Create a comprehension question that asks students to identify and explain key facts, details, or "
        "concepts from the reading. Focus on WHAT happened or WHAT the text describes.",
    ),
    QuestionType(
        "comparison",
        "Create a comparison question that asks students to identify similarities and differences between two "
        "or more things discussed in the reading (e.g. regions, groups, causes, effects).",
    ),
    QuestionType(
        "analysis",
        "Create an analysis question that asks students to explore WHY something happened, evaluate causes and "
        "effects, or make connections between ideas in the reading.",
    ),
)


@dataclass(frozen=True)
class GeneratedActivity:
    slug: str
    markdown: str
    question_type: QuestionType


def get_question_type(name: str | None) -> QuestionType:
    """Unknown names fall back to the first type."""
    for qt in QUESTION_TYPES:
        if qt.type == (name or "").strip().lower():
            return qt
    return QUESTION_TYPES[0]


def _truncate(text: str, max_chars: int = MAX_READING_CHARS) -> str:
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + "\n\n[TRUNCATED]"


def strip_markdown_fence(text: str) -> str:
    return _FENCE_RE.sub("", text or "").strip()


def build_generation_prompt(reading_text: str, title: str, content_ref: str, question_type: QuestionType) -> str:
    return GENERATE_ACTIVITY.format(
        template=ACTIVITY_TEMPLATE,
        reading_text=_truncate(reading_text),
        title=title,
        content_ref=content_ref,
        question_type=question_type.type,
        instruction=question_type.instruction,
        tag=question_type.tag,
    )


def generate_activity_markdown(
    client: TextGenerator,
    reading_text: str,
    title: str,
    content_ref: str,
    question_type: QuestionType,
) -> str:
    prompt = build_generation_prompt(reading_text, title, content_ref, question_type)
    return strip_markdown_fence(client.generate_text(prompt))


async def generate_activities(
    client: TextGenerator,
    reading_text: str,
    title: str,
    content_ref: str,
    base_slug: str,
    question_types: Sequence[QuestionType] = QUESTION_TYPES,
) -> list[GeneratedActivity]:
    """
    One model call per question type, run concurrently. Failed calls are
    logged and left out; the rest keep question-type order.
    """
    results = await asyncio.gather(
        *(
            asyncio.to_thread(generate_activity_markdown, client, reading_text, title, content_ref, qt)
            for qt in question_types
        ),
        return_exceptions=True,
    )

    generated: list[GeneratedActivity] = []
    for i, (qt, result) in enumerate(zip(question_types, results), start=1):
        if isinstance(result, BaseException):
            logger.error("Failed to generate %s activity for %r: %s", qt.type, title, result)
            continue
        if not result:
            logger.error("Empty %s activity for %r", qt.type, title)
            continue
        generated.append(GeneratedActivity(slug=f"{base_slug}-q{i}-{qt.type}", markdown=result, question_type=qt))
    return generated
