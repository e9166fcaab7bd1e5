from __future__ import annotations

import re
from io import BytesIO
from urllib.parse import parse_qs, urlparse

import httpx
from pypdf import PdfReader
from youtube_transcript_api import CouldNotRetrieveTranscript, NoTranscriptFound, YouTubeTranscriptApi


MIN_READING_CHARS = 50
DEFAULT_VIDEO_TITLE = "YouTube Video"

_VIDEO_ID_RE = re.compile(r"[A-Za-z0-9_-]{11}")


class TranscriptUnavailable(RuntimeError):
    pass


def _clean_text(text: str) -> str:
    text = text.replace("\u00a0", " ")
    text = re.sub(r"[ \t]+\n", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def slugify(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", (text or "").lower()).strip("-")


def title_from_filename(filename: str) -> str:
    """`drought_reading-2023.pdf` -> `Drought Reading 2023`."""
    stem = re.sub(r"\.pdf$", "", filename or "", flags=re.IGNORECASE)
    spaced = re.sub(r"[_-]+", " ", stem)
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), spaced)


def has_enough_text(text: str | None) -> bool:
    return bool(text) and len(text.strip()) >= MIN_READING_CHARS


def extract_pdf_text(data: bytes) -> str:
    reader = PdfReader(BytesIO(data))
    pages = [page.extract_text() or "" for page in reader.pages]
    return _clean_text("\n\n".join(pages))


def extract_youtube_video_id(url: str) -> str | None:
    """
    Accepts watch, youtu.be, embed and shorts URLs, or a bare 11-character id.
    """
    url = (url or "").strip()
    if _VIDEO_ID_RE.fullmatch(url):
        return url

    try:
        u = urlparse(url if "://" in url else f"https://{url}")
    except ValueError:
        return None

    host = (u.netloc or "").lower()
    path = u.path or ""
    vid: str | None = None

    # youtu.be/<id>
    if host.endswith("youtu.be"):
        vid = path.strip("/").split("/")[0]
    elif host.endswith("youtube.com"):
        # youtube.com/watch?v=<id>
        qs = parse_qs(u.query or "")
        vid = (qs.get("v") or [None])[0]
        # youtube.com/embed/<id>, youtube.com/shorts/<id>
        for prefix in ("/embed/", "/shorts/"):
            if not vid and path.startswith(prefix):
                vid = path[len(prefix) :].split("/")[0]

    if vid and _VIDEO_ID_RE.fullmatch(vid):
        return vid
    return None


def youtube_embed_url(video_id: str) -> str:
    return f"https://www.youtube.com/embed/{video_id}"


def youtube_thumbnail_url(video_id: str) -> str:
    return f"https://img.youtube.com/vi/{video_id}/hqdefault.jpg"


def fetch_youtube_transcript(video_id: str, languages: tuple[str, ...] = ("en", "en-US", "en-GB")) -> str:
    """
    Caption text for a video, English preferred, otherwise whatever track
    the video has. Raises TranscriptUnavailable when there is none.
    """
    api = YouTubeTranscriptApi()
    try:
        try:
            fetched = api.fetch(video_id, languages=list(languages))
        except NoTranscriptFound:
            # No English track; take the first one listed.
            transcript = next(iter(api.list(video_id)), None)
            if transcript is None:
                raise TranscriptUnavailable(f"No transcript for video {video_id}")
            fetched = transcript.fetch()
    except CouldNotRetrieveTranscript as e:
        raise TranscriptUnavailable(f"No transcript for video {video_id}: {e}") from e

    text = " ".join((snippet.text or "").strip() for snippet in fetched)
    return _clean_text(text)


async def fetch_youtube_title(video_id: str) -> str:
    url = "https://www.youtube.com/oembed"
    params = {"url": f"https://www.youtube.com/watch?v={video_id}", "format": "json"}
    try:
        async with httpx.AsyncClient(timeout=10, follow_redirects=True) as client:
            r = await client.get(url, params=params)
            r.raise_for_status()
            data = r.json()
    except (httpx.HTTPError, ValueError):
        return DEFAULT_VIDEO_TITLE
    if not isinstance(data, dict):
        return DEFAULT_VIDEO_TITLE
    return str(data.get("title") or "").strip() or DEFAULT_VIDEO_TITLE
