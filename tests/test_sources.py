import asyncio

import httpx
import pytest

from activity_backend.sources import (
    DEFAULT_VIDEO_TITLE,
    extract_youtube_video_id,
    fetch_youtube_title,
    has_enough_text,
    slugify,
    title_from_filename,
    youtube_embed_url,
    youtube_thumbnail_url,
)


@pytest.mark.parametrize(
    "url",
    [
        "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
        "https://www.youtube.com/watch?feature=share&v=dQw4w9WgXcQ",
        "https://youtu.be/dQw4w9WgXcQ?t=42",
        "https://www.youtube.com/embed/dQw4w9WgXcQ",
        "https://youtube.com/shorts/dQw4w9WgXcQ",
        "youtube.com/watch?v=dQw4w9WgXcQ",
        "dQw4w9WgXcQ",
    ],
)
def test_extract_youtube_video_id(url):
    assert extract_youtube_video_id(url) == "dQw4w9WgXcQ"


@pytest.mark.parametrize("url", ["", "https://vimeo.com/123456", "https://www.youtube.com/watch?v=short", "not a url"])
def test_extract_youtube_video_id_rejects(url):
    assert extract_youtube_video_id(url) is None


def test_youtube_urls():
    assert youtube_embed_url("abc") == "https://www.youtube.com/embed/abc"
    assert youtube_thumbnail_url("abc") == "https://img.youtube.com/vi/abc/hqdefault.jpg"


def test_slugify():
    assert slugify("Drought in Canada: 2023!") == "drought-in-canada-2023"
    assert slugify("--Already--Slugged--") == "already-slugged"
    assert slugify("???") == ""


def test_title_from_filename():
    assert title_from_filename("drought_reading-2023.pdf") == "Drought Reading 2023"
    assert title_from_filename("Forest__Fires.PDF") == "Forest Fires"


def test_has_enough_text():
    assert not has_enough_text(None)
    assert not has_enough_text("   short   ")
    assert has_enough_text("x" * 50)


def _oembed_returns(monkeypatch, response):
    real_client = httpx.AsyncClient
    transport = httpx.MockTransport(lambda request: response)
    monkeypatch.setattr(httpx, "AsyncClient", lambda **kwargs: real_client(transport=transport, **kwargs))


def test_fetch_youtube_title(monkeypatch):
    _oembed_returns(monkeypatch, httpx.Response(200, json={"title": "  Drought Explained "}))
    assert asyncio.run(fetch_youtube_title("dQw4w9WgXcQ")) == "Drought Explained"


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, json=["not", "an", "object"]),
        httpx.Response(200, text="<html>nope</html>"),
        httpx.Response(404, json={"title": "ignored"}),
        httpx.Response(200, json={"title": None}),
    ],
)
def test_fetch_youtube_title_falls_back(monkeypatch, response):
    _oembed_returns(monkeypatch, response)
    assert asyncio.run(fetch_youtube_title("dQw4w9WgXcQ")) == DEFAULT_VIDEO_TITLE
