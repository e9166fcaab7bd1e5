"""
Activity markdown -> Activity record.

Activity documents are written by a language model from a fixed template, so
the layout is predictable but the formatting is not: headings may carry
trailing spaces, fields may be quoted, sections may be missing. Every
extractor here degrades to an empty value instead of raising. The only hard
failure is a front-matter block that is not valid YAML.

Document shape:

    ---
    title: ...
    topics: [a, b]
    ---
    # Question
    <text>
    ## Meta
    - tag: ...
    ## Character Positions
    ### Jamie
    - opinion: ...
"""

from __future__ import annotations

import re
from typing import Any

import frontmatter
import yaml

from activity_backend.activity_model import (
    Activity,
    CharacterPosition,
    CharacterPositions,
    ChecklistItem,
    Grading,
    InitialMessages,
    Persona,
    PositionStatus,
    Question,
    Rubric,
    RubricDimension,
    RUBRIC_DIMENSIONS,
    RUBRIC_LEVELS,
)


_HEADING_RE = re.compile(r"(#+)\s+(.*?)\s*")
_NUMBERED_RE = re.compile(r"\d+\.\s+(.+)")
_CHECKLIST_RE = re.compile(r"-\s+(\w+):\s+(.+)", re.ASCII)
_QUOTES = "\"'"


class ActivityParseError(ValueError):
    pass


def split_front_matter(text: str) -> tuple[dict[str, Any], str]:
    """
    Returns (metadata, body). Text without a leading `---` block comes back
    untouched as the body with empty metadata.
    """
    try:
        post = frontmatter.loads(text)
    except yaml.YAMLError as e:
        raise ActivityParseError(f"Malformed front matter: {e}") from e
    return dict(post.metadata), post.content


def _heading(line: str) -> tuple[int, str] | None:
    m = _HEADING_RE.fullmatch(line)
    if not m:
        return None
    return len(m.group(1)), m.group(2)


def _scan_block(text: str, heading: str, level: int, stop_levels: range) -> str:
    lines = text.splitlines()
    wanted = heading.strip().lower()

    start = None
    for i, line in enumerate(lines):
        h = _heading(line)
        if h and h[0] == level and h[1].lower() == wanted:
            start = i + 1
            break
    if start is None:
        return ""

    end = len(lines)
    for j in range(start, len(lines)):
        h = _heading(lines[j])
        if h and h[0] in stop_levels:
            end = j
            break
    return "\n".join(lines[start:end]).strip()


def get_section(body: str, heading: str, level: int = 2) -> str:
    """
    Text under `<#*level> heading` up to the next heading of the same or a
    shallower level. Empty string when the heading is missing.
    """
    return _scan_block(body, heading, level, range(1, level + 1))


def get_subsection(section: str, heading: str) -> str:
    return get_section(section, heading, level=3)


def get_question_block(body: str) -> str:
    # Level 1, but the sections that follow are level 2.
    return _scan_block(body, "Question", 1, range(2, 3))


def parse_field(text: str, key: str) -> str:
    """Value of the first `- key: value` line, surrounding quotes removed."""
    pattern = re.compile(rf"\s*-\s+{re.escape(key)}:(.+)", re.IGNORECASE)
    for line in text.splitlines():
        m = pattern.fullmatch(line)
        if not m:
            continue
        value = m.group(1).strip()
        if value[:1] and value[0] in _QUOTES:
            value = value[1:]
        if value[-1:] and value[-1] in _QUOTES:
            value = value[:-1]
        return value
    return ""


def parse_list_field(text: str, key: str) -> list[str]:
    value = parse_field(text, key)
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def parse_numbered_list(text: str) -> list[str]:
    items: list[str] = []
    for line in text.splitlines():
        m = _NUMBERED_RE.fullmatch(line)
        if m:
            items.append(m.group(1).strip())
    return items


def parse_checklist(text: str) -> list[ChecklistItem]:
    items: list[ChecklistItem] = []
    for line in text.splitlines():
        m = _CHECKLIST_RE.fullmatch(line)
        if m:
            items.append(ChecklistItem(id=m.group(1), label=m.group(2).strip()))
    return items


def parse_rubric_dimension(text: str) -> RubricDimension | None:
    """
    Sparse level -> descriptor map, or None when the block holds no level
    fields at all.
    """
    if not text:
        return None
    levels: dict[int, str] = {}
    for n in RUBRIC_LEVELS:
        desc = parse_field(text, f"level_{n}")
        if desc:
            levels[n] = desc
    return levels or None


def parse_rubric(section: str) -> Rubric | None:
    if not section:
        return None
    dims = {name: parse_rubric_dimension(get_subsection(section, name.capitalize())) for name in RUBRIC_DIMENSIONS}
    return Rubric(**dims)


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _as_string_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if v is not None]
    return [str(value)]


def parse_activity(raw: str, slug: str) -> Activity:
    """
    Build an Activity from raw markdown. Pure: no file access, so freshly
    generated documents go through the same path as stored ones.
    """
    meta, body = split_front_matter(raw)

    question_text = get_question_block(body)

    meta_section = get_section(body, "Meta")
    themes_section = get_section(body, "Themes")
    positions_section = get_section(body, "Character Positions")
    messages_section = get_section(body, "Initial Messages")
    grading_section = get_section(body, "Grading")

    def position(persona: Persona) -> CharacterPosition:
        block = get_subsection(positions_section, persona.heading)
        return CharacterPosition(
            opinion=parse_field(block, "opinion"),
            status=PositionStatus.coerce(parse_field(block, "status")),
        )

    return Activity(
        slug=slug,
        title=_as_text(meta.get("title")) or slug,
        thumbnail=_as_text(meta.get("thumbnail")),
        topics=tuple(_as_string_list(meta.get("topics"))),
        pdf=_as_text(meta.get("pdf")),
        question=Question(
            text=question_text,
            tag=parse_field(meta_section, "tag"),
            asked_by=parse_field(meta_section, "askedBy"),
        ),
        themes=tuple(parse_numbered_list(themes_section)),
        character_positions=CharacterPositions(
            jamie=position(Persona.jamie),
            thomas=position(Persona.thomas),
        ),
        initial_messages=InitialMessages(
            jamie=get_subsection(messages_section, Persona.jamie.heading),
            thomas=get_subsection(messages_section, Persona.thomas.heading),
        ),
        grading=Grading(
            question=parse_field(grading_section, "question") or question_text,
            keywords_content=tuple(parse_list_field(grading_section, "keywords_content")),
            keywords_evidence=tuple(parse_list_field(grading_section, "keywords_evidence")),
        ),
        rubric=parse_rubric(get_section(body, "Rubric")),
        checklist=tuple(parse_checklist(get_section(body, "Checklist"))),
    )
