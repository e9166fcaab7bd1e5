from __future__ import annotations

import json
from typing import Any, Sequence

from activity_backend.activity_model import Activity, Persona, PositionStatus
from activity_backend.grading import JsonGenerator
from activity_backend.prompts import DISCUSSION_ORCHESTRATOR
from activity_backend.schemas import ChatMessage, ChatResponse, PersonaReply, PersonaState, UpdatedState


MAX_HISTORY = 12


def format_history(messages: Sequence[ChatMessage], max_messages: int = MAX_HISTORY) -> str:
    lines = []
    for m in list(messages)[-max_messages:]:
        if m.role == "user":
            speaker = "User"
        else:
            speaker = (m.character or "").upper() or "Assistant"
        lines.append(f"{speaker}: {m.content}")
    return "\n".join(lines)


def build_discussion_prompt(
    messages: Sequence[ChatMessage],
    agent_state: dict[str, Any],
    activity: Activity | None,
) -> str:
    themes = list(activity.themes) if activity else []
    return DISCUSSION_ORCHESTRATOR.format(
        question=activity.question.text if activity else "",
        theme_count=len(themes),
        themes="\n".join(f"{i}. {t}" for i, t in enumerate(themes, start=1)) or "(none listed)",
        agent_state=json.dumps(agent_state or {}),
        history=format_history(messages),
    )


def _persona_state(data: dict[str, Any]) -> PersonaState:
    return PersonaState(
        opinion=str(data.get("updatedOpinion") or ""),
        status=PositionStatus.coerce(data.get("status")),
        thought=str(data.get("thoughtProcess") or ""),
    )


def run_discussion_turn(
    client: JsonGenerator,
    messages: Sequence[ChatMessage],
    agent_state: dict[str, Any],
    activity: Activity | None,
) -> ChatResponse:
    data = client.generate_json(build_discussion_prompt(messages, agent_state, activity), temperature=0.8)

    replies: list[PersonaReply] = []
    states: dict[str, PersonaState] = {}
    for persona in Persona:
        part = data.get(persona.value)
        if not isinstance(part, dict) or not part.get("message"):
            raise ValueError(f"Model response missing a reply from {persona.value}")
        replies.append(PersonaReply(character=persona.value, message=str(part["message"])))
        states[persona.value] = _persona_state(part)

    checklist = data.get("checklist")
    facts = data.get("facts")
    return ChatResponse(
        responses=replies,
        updatedState=UpdatedState(**states),
        checklist={str(k): bool(v) for k, v in checklist.items()} if isinstance(checklist, dict) else None,
        facts=[str(f) for f in facts] if isinstance(facts, list) else [],
    )
