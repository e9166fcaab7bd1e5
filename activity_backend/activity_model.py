from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping


RUBRIC_DIMENSIONS: tuple[str, ...] = ("content", "understanding", "connections", "evidence")
RUBRIC_LEVELS: tuple[int, ...] = (1, 2, 3, 4, 5)


class Persona(str, Enum):
    jamie = "jamie"
    thomas = "thomas"

    @property
    def heading(self) -> str:
        return self.value.capitalize()


class PositionStatus(str, Enum):
    red = "RED"
    yellow = "YELLOW"
    green = "GREEN"

    @classmethod
    def coerce(cls, raw: str | None) -> "PositionStatus":
        """Unknown or empty statuses count as RED."""
        try:
            return cls((raw or "").strip().upper())
        except ValueError:
            return cls.red


@dataclass(frozen=True)
class Question:
    text: str = ""
    tag: str = ""
    asked_by: str = ""


@dataclass(frozen=True)
class CharacterPosition:
    opinion: str = ""
    status: PositionStatus = PositionStatus.red


@dataclass(frozen=True)
class CharacterPositions:
    jamie: CharacterPosition
    thomas: CharacterPosition

    def get(self, persona: Persona) -> CharacterPosition:
        return getattr(self, persona.value)


@dataclass(frozen=True)
class InitialMessages:
    jamie: str = ""
    thomas: str = ""

    def get(self, persona: Persona) -> str:
        return getattr(self, persona.value)


@dataclass(frozen=True)
class Grading:
    question: str = ""
    keywords_content: tuple[str, ...] = ()
    keywords_evidence: tuple[str, ...] = ()


@dataclass(frozen=True)
class ChecklistItem:
    id: str
    label: str


# level number -> descriptor; sparse, absent levels are simply missing
RubricDimension = Mapping[int, str]


@dataclass(frozen=True)
class Rubric:
    content: RubricDimension | None = None
    understanding: RubricDimension | None = None
    connections: RubricDimension | None = None
    evidence: RubricDimension | None = None

    def __post_init__(self) -> None:
        # Read-only views over private copies.
        for name in RUBRIC_DIMENSIONS:
            levels = getattr(self, name)
            if levels is not None:
                object.__setattr__(self, name, MappingProxyType(dict(levels)))

    def dimension(self, name: str) -> RubricDimension | None:
        if name not in RUBRIC_DIMENSIONS:
            raise KeyError(name)
        return getattr(self, name)


@dataclass(frozen=True)
class Activity:
    slug: str
    title: str
    question: Question
    character_positions: CharacterPositions
    initial_messages: InitialMessages
    grading: Grading
    thumbnail: str = ""
    pdf: str = ""
    topics: tuple[str, ...] = ()
    themes: tuple[str, ...] = ()
    rubric: Rubric | None = None
    checklist: tuple[ChecklistItem, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready form, keyed the way the web client reads it."""
        return {
            "slug": self.slug,
            "title": self.title,
            "thumbnail": self.thumbnail,
            "topics": list(self.topics),
            "pdf": self.pdf,
            "question": {
                "text": self.question.text,
                "tag": self.question.tag,
                "askedBy": self.question.asked_by,
            },
            "themes": list(self.themes),
            "characterPositions": {
                p.value: {
                    "opinion": self.character_positions.get(p).opinion,
                    "status": self.character_positions.get(p).status.value,
                }
                for p in Persona
            },
            "initialMessages": {p.value: self.initial_messages.get(p) for p in Persona},
            "grading": {
                "question": self.grading.question,
                "keywordsContent": list(self.grading.keywords_content),
                "keywordsEvidence": list(self.grading.keywords_evidence),
            },
            "rubric": _rubric_to_dict(self.rubric),
            "checklist": [{"id": item.id, "label": item.label} for item in self.checklist],
        }

    def summary(self) -> dict[str, Any]:
        return {
            "slug": self.slug,
            "title": self.title,
            "thumbnail": self.thumbnail,
            "topics": list(self.topics),
            "questionText": self.question.text,
            "tag": self.question.tag,
            "askedBy": self.question.asked_by,
        }


def with_thumbnail(activity: Activity, thumbnail: str) -> Activity:
    return replace(activity, thumbnail=thumbnail)


def _rubric_to_dict(rubric: Rubric | None) -> dict[str, dict[int, str] | None] | None:
    if rubric is None:
        return None
    out: dict[str, dict[int, str] | None] = {}
    for name in RUBRIC_DIMENSIONS:
        levels = rubric.dimension(name)
        out[name] = dict(levels) if levels is not None else None
    return out
