from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from activity_backend.activity_model import PositionStatus


class QuestionOut(BaseModel):
    text: str
    tag: str
    askedBy: str


class CharacterPositionOut(BaseModel):
    opinion: str
    status: PositionStatus


class CharacterPositionsOut(BaseModel):
    jamie: CharacterPositionOut
    thomas: CharacterPositionOut


class InitialMessagesOut(BaseModel):
    jamie: str
    thomas: str


class GradingOut(BaseModel):
    question: str
    keywordsContent: list[str]
    keywordsEvidence: list[str]


class RubricOut(BaseModel):
    content: dict[int, str] | None = None
    understanding: dict[int, str] | None = None
    connections: dict[int, str] | None = None
    evidence: dict[int, str] | None = None


class ChecklistItemOut(BaseModel):
    id: str
    label: str


class ActivityResponse(BaseModel):
    slug: str
    title: str
    thumbnail: str
    topics: list[str]
    pdf: str
    question: QuestionOut
    themes: list[str]
    characterPositions: CharacterPositionsOut
    initialMessages: InitialMessagesOut
    grading: GradingOut
    rubric: RubricOut | None = None
    checklist: list[ChecklistItemOut]


class ActivitySummary(BaseModel):
    slug: str
    title: str
    thumbnail: str
    topics: list[str]
    questionText: str
    tag: str
    askedBy: str


class GenerateActivityRequest(BaseModel):
    readingText: str = Field(..., min_length=1, description="Reading text to build the activity from")
    title: str = Field(..., min_length=1)
    questionType: str | None = Field(None, description="comprehension, comparison or analysis")


class UploadPdfResponse(BaseModel):
    activities: list[ActivityResponse]
    pdfPath: str


class UploadYoutubeRequest(BaseModel):
    url: str = Field(..., min_length=1, description="YouTube watch/share/embed URL or video id")


class UploadYoutubeResponse(BaseModel):
    activities: list[ActivityResponse]
    youtubeEmbedUrl: str
    thumbnailUrl: str


class ChatMessage(BaseModel):
    role: str = Field(..., min_length=1, description="'user' or 'assistant'")
    content: str = ""
    character: str | None = Field(None, description="jamie or thomas, for assistant messages")


class ChatRequest(BaseModel):
    messages: list[ChatMessage]
    agentState: dict[str, Any] = Field(default_factory=dict)
    activitySlug: str | None = None


class PersonaReply(BaseModel):
    character: str
    message: str


class PersonaState(BaseModel):
    opinion: str = ""
    status: PositionStatus = PositionStatus.red
    thought: str = ""


class UpdatedState(BaseModel):
    jamie: PersonaState
    thomas: PersonaState


class ChatResponse(BaseModel):
    responses: list[PersonaReply]
    updatedState: UpdatedState
    checklist: dict[str, bool] | None = None
    facts: list[str] = Field(default_factory=list)


class CheckAnswerRequest(BaseModel):
    answer: str = Field(..., min_length=1)
    activitySlug: str | None = None


class DimensionGrade(BaseModel):
    level: int = Field(..., ge=1, le=5)
    feedback: str


class CheckAnswerResponse(BaseModel):
    content: DimensionGrade
    understanding: DimensionGrade
    connections: DimensionGrade
    evidence: DimensionGrade


class ResetSessionResponse(BaseModel):
    deleted: int
