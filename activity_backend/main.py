from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from activity_backend.activity_model import Activity, with_thumbnail
from activity_backend.activity_parser import ActivityParseError, parse_activity
from activity_backend.activity_repo import load_activity, load_all_activities, make_activity_repo, make_asset_dir
from activity_backend.discussion import run_discussion_turn
from activity_backend.gemini_client import GeminiClient
from activity_backend.generation import (
    QUESTION_TYPES,
    GeneratedActivity,
    generate_activities,
    generate_activity_markdown,
    get_question_type,
)
from activity_backend.grading import grade_by_keywords, grade_with_model, resolve_grading_context
from activity_backend.schemas import (
    ActivityResponse,
    ActivitySummary,
    ChatRequest,
    ChatResponse,
    CheckAnswerRequest,
    CheckAnswerResponse,
    GenerateActivityRequest,
    ResetSessionResponse,
    UploadPdfResponse,
    UploadYoutubeRequest,
    UploadYoutubeResponse,
)
from activity_backend.sources import (
    extract_pdf_text,
    extract_youtube_video_id,
    fetch_youtube_title,
    fetch_youtube_transcript,
    has_enough_text,
    slugify,
    title_from_filename,
    youtube_embed_url,
    youtube_thumbnail_url,
)


logger = logging.getLogger(__name__)

MAX_PDF_BYTES = 20 * 1024 * 1024

app = FastAPI(title="Reading Discussion Activities API", version="0.3.0")
activity_repo = make_activity_repo()
asset_dir = make_asset_dir()

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_client() -> GeminiClient:
    return GeminiClient()


def _activity_response(activity: Activity) -> ActivityResponse:
    return ActivityResponse.model_validate(activity.to_dict())


def _save_parsed(slug: str, markdown: str) -> Activity:
    """Writes only documents that parse; raises ActivityParseError otherwise."""
    parse_activity(markdown, slug)
    saved = activity_repo.save(slug, markdown)
    return parse_activity(markdown, saved)


def _store_generated(generated: list[GeneratedActivity], tag: str) -> list[Activity]:
    activities: list[Activity] = []
    for g in generated:
        try:
            activity = _save_parsed(g.slug, g.markdown)
        except ActivityParseError as e:
            logger.error("[%s] Discarded unparsable %s activity %s: %s", tag, g.question_type.type, g.slug, e)
            continue
        logger.info("[%s] Saved %s activity: %s", tag, g.question_type.type, activity.slug)
        activities.append(activity)
    return activities


@app.get("/health")
def health() -> dict:
    return {"ok": True}


@app.get("/api/activities", response_model=list[ActivitySummary])
def list_activities() -> list[ActivitySummary]:
    try:
        activities = load_all_activities(activity_repo)
    except Exception:
        logger.exception("Error loading activities")
        raise HTTPException(status_code=500, detail="Failed to load activities")
    return [ActivitySummary.model_validate(a.summary()) for a in activities]


@app.get("/api/activities/{slug}", response_model=ActivityResponse)
def get_activity(slug: str) -> ActivityResponse:
    try:
        activity = load_activity(activity_repo, slug)
    except Exception:
        logger.exception("Error loading activity %s", slug)
        raise HTTPException(status_code=500, detail="Failed to load activity")
    if activity is None:
        raise HTTPException(status_code=404, detail="Activity not found")
    return _activity_response(activity)


@app.post("/api/generate-activity", response_model=ActivityResponse)
def generate_activity(req: GenerateActivityRequest) -> ActivityResponse:
    question_type = get_question_type(req.questionType)
    try:
        client = get_client()
        markdown = generate_activity_markdown(client, req.readingText, req.title, "", question_type)
        activity = _save_parsed(slugify(req.title) or "activity", markdown)
    except Exception:
        logger.exception("Error generating activity for %r", req.title)
        raise HTTPException(status_code=500, detail="Failed to generate activity")
    return _activity_response(activity)


@app.post("/api/upload-pdf", response_model=UploadPdfResponse)
async def upload_pdf(pdf: UploadFile = File(...)) -> UploadPdfResponse:
    filename = pdf.filename or ""
    is_pdf = pdf.content_type == "application/pdf" or filename.lower().endswith(".pdf")
    if not filename or not is_pdf:
        raise HTTPException(status_code=400, detail="Only PDF files are allowed")

    data = await pdf.read()
    logger.info("[upload-pdf] Request received, file: %s size: %d", filename, len(data))
    if not data:
        raise HTTPException(status_code=400, detail="No PDF file uploaded")
    if len(data) > MAX_PDF_BYTES:
        raise HTTPException(status_code=400, detail="PDF is larger than 20MB")

    stem = Path(filename).stem
    slug = slugify(stem) or "reading"
    pdf_path = asset_dir.save(f"{slug}.pdf", data)
    logger.info("[upload-pdf] PDF saved to %s", pdf_path)

    try:
        reading_text = await asyncio.to_thread(extract_pdf_text, data)
    except Exception as e:
        logger.error("[upload-pdf] Could not read %s: %s", filename, e)
        raise HTTPException(status_code=400, detail="Could not read the PDF file.")
    if not has_enough_text(reading_text):
        raise HTTPException(
            status_code=400,
            detail="Could not extract enough text from PDF. The file may be image-based or empty.",
        )

    title = title_from_filename(stem)
    logger.info("[upload-pdf] Generating %d activities for: %s", len(QUESTION_TYPES), title)
    try:
        client = get_client()
        generated = await generate_activities(client, reading_text, title, pdf_path, slug)
    except Exception as e:
        logger.exception("[upload-pdf] Error")
        raise HTTPException(status_code=500, detail=f"Failed to process PDF: {e}")

    activities = _store_generated(generated, "upload-pdf")
    if not activities:
        raise HTTPException(status_code=500, detail="Failed to generate any activities from the PDF")

    logger.info("[upload-pdf] Success! Generated %d activities", len(activities))
    return UploadPdfResponse(activities=[_activity_response(a) for a in activities], pdfPath=pdf_path)


@app.post("/api/upload-youtube", response_model=UploadYoutubeResponse)
async def upload_youtube(req: UploadYoutubeRequest) -> UploadYoutubeResponse:
    logger.info("[upload-youtube] Request received, url: %s", req.url)
    video_id = extract_youtube_video_id(req.url)
    if not video_id:
        raise HTTPException(status_code=400, detail="Invalid YouTube URL.")

    try:
        transcript = await asyncio.to_thread(fetch_youtube_transcript, video_id)
    except Exception as e:
        logger.error("[upload-youtube] Transcript error: %s", e)
        raise HTTPException(
            status_code=400,
            detail="Could not fetch transcript. The video may not have captions enabled.",
        )
    if not has_enough_text(transcript):
        raise HTTPException(status_code=400, detail="Transcript is too short.")

    title = await fetch_youtube_title(video_id)
    embed_url = youtube_embed_url(video_id)
    thumbnail_url = youtube_thumbnail_url(video_id)

    logger.info("[upload-youtube] Generating %d activities for: %s", len(QUESTION_TYPES), title)
    try:
        client = get_client()
        generated = await generate_activities(client, transcript, title, embed_url, slugify(title) or slugify(video_id))
    except Exception as e:
        logger.exception("[upload-youtube] Error")
        raise HTTPException(status_code=500, detail=f"Failed to process YouTube video: {e}")

    activities = [with_thumbnail(a, thumbnail_url) for a in _store_generated(generated, "upload-youtube")]
    if not activities:
        raise HTTPException(status_code=500, detail="Failed to generate any activities from the video")

    logger.info("[upload-youtube] Success! Generated %d activities", len(activities))
    return UploadYoutubeResponse(
        activities=[_activity_response(a) for a in activities],
        youtubeEmbedUrl=embed_url,
        thumbnailUrl=thumbnail_url,
    )


def _activity_or_none(slug: str | None) -> Activity | None:
    if not slug:
        return None
    try:
        return load_activity(activity_repo, slug)
    except ActivityParseError as e:
        logger.error("Activity %s is unavailable: %s", slug, e)
        return None


@app.post("/api/chat", response_model=ChatResponse)
def chat(req: ChatRequest) -> ChatResponse:
    logger.info("Chat request received. History length: %d, activity: %s", len(req.messages), req.activitySlug or "default")
    activity = _activity_or_none(req.activitySlug)
    try:
        client = get_client()
        return run_discussion_turn(client, req.messages, req.agentState, activity)
    except Exception:
        logger.exception("Error in discussion orchestrator")
        raise HTTPException(status_code=500, detail="Failed to generate discussion")


@app.post("/api/check-answer", response_model=CheckAnswerResponse)
def check_answer(req: CheckAnswerRequest) -> CheckAnswerResponse:
    context = resolve_grading_context(_activity_or_none(req.activitySlug))
    try:
        client = get_client()
        grades = grade_with_model(client, req.answer, context)
    except Exception as e:
        logger.error("Model grading failed, using keyword grading: %s", e)
        grades = grade_by_keywords(req.answer, context)
    return CheckAnswerResponse.model_validate(grades)


@app.post("/api/reset-session", response_model=ResetSessionResponse)
def reset_session() -> ResetSessionResponse:
    removed = activity_repo.reset()
    removed_assets = asset_dir.reset()
    logger.info("[reset-session] Cleaned up %d files", len(removed) + len(removed_assets))
    return ResetSessionResponse(deleted=len(removed) + len(removed_assets))
