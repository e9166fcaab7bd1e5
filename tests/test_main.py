import pytest
from fastapi.testclient import TestClient

from activity_backend import main
from activity_backend.activity_repo import AssetDir, InMemoryActivityRepo

from conftest import DROUGHT_DOC, FULL_DOC, FakeClient


@pytest.fixture
def repo(monkeypatch):
    repo = InMemoryActivityRepo(
        {"drought-q1-comprehension": DROUGHT_DOC, "drought-q2-comparison": FULL_DOC},
        protected=["drought-q1-comprehension", "drought-q2-comparison"],
    )
    monkeypatch.setattr(main, "activity_repo", repo)
    return repo


@pytest.fixture
def assets(monkeypatch, tmp_path):
    assets = AssetDir(tmp_path / "assets")
    monkeypatch.setattr(main, "asset_dir", assets)
    return assets


@pytest.fixture
def client(repo, assets):
    return TestClient(main.app)


def use_model(monkeypatch, fake):
    monkeypatch.setattr(main, "get_client", lambda: fake)


def test_health(client):
    assert client.get("/health").json() == {"ok": True}


def test_list_activities_returns_summaries(client):
    r = client.get("/api/activities")

    assert r.status_code == 200
    data = r.json()
    assert [a["slug"] for a in data] == ["drought-q1-comprehension", "drought-q2-comparison"]
    assert data[0] == {
        "slug": "drought-q1-comprehension",
        "title": "drought-q1-comprehension",
        "thumbnail": "",
        "topics": [],
        "questionText": "How did drought affect forestry?",
        "tag": "Comprehension",
        "askedBy": "Jamie",
    }


def test_get_activity(client):
    r = client.get("/api/activities/drought-q2-comparison")

    assert r.status_code == 200
    data = r.json()
    assert data["characterPositions"]["jamie"]["status"] == "GREEN"
    assert data["rubric"]["understanding"] == {"2": "Lists facts", "4": "Explains causes clearly"}
    assert data["rubric"]["evidence"] is None
    assert data["checklist"][0] == {"id": "analogy", "label": "Use an analogy"}


def test_get_activity_without_rubric(client):
    assert client.get("/api/activities/drought-q1-comprehension").json()["rubric"] is None


def test_get_unknown_activity_is_404(client):
    r = client.get("/api/activities/nope")
    assert r.status_code == 404
    assert r.json() == {"detail": "Activity not found"}


def test_unparsable_activity_is_500_but_listing_survives(client, repo):
    repo.save("broken", "---\ntitle: [oops\n---\n# Question\nQ\n")

    r = client.get("/api/activities/broken")
    assert r.status_code == 500
    assert r.json() == {"detail": "Failed to load activity"}

    listing = client.get("/api/activities")
    assert listing.status_code == 200
    assert "broken" not in [a["slug"] for a in listing.json()]


def test_generate_activity_saves_document(client, repo, monkeypatch):
    use_model(monkeypatch, FakeClient(text=DROUGHT_DOC))

    r = client.post("/api/generate-activity", json={"readingText": "Some reading.", "title": "Drought Q1 Comprehension"})

    assert r.status_code == 200
    assert r.json()["slug"] == "drought-q1-comprehension-2"
    assert repo.read("drought-q1-comprehension-2") == DROUGHT_DOC.strip()


def test_generate_activity_model_failure_is_500(client, monkeypatch):
    use_model(monkeypatch, FakeClient(error=RuntimeError("quota")))
    r = client.post("/api/generate-activity", json={"readingText": "Some reading.", "title": "T"})
    assert r.status_code == 500


def test_upload_pdf_rejects_other_files(client):
    r = client.post("/api/upload-pdf", files={"pdf": ("notes.txt", b"hello", "text/plain")})
    assert r.status_code == 400


def test_upload_pdf_generates_activities(client, repo, assets, monkeypatch):
    """
    GIVEN: A PDF whose text extracts fine and a model that returns a valid document.
    WHEN:  It is uploaded.
    THEN:  Three activities are saved and returned with the stored PDF path.
    """
    monkeypatch.setattr(main, "extract_pdf_text", lambda data: "Drought reading text. " * 10)
    use_model(monkeypatch, FakeClient(text=DROUGHT_DOC))

    r = client.post("/api/upload-pdf", files={"pdf": ("Forest_Fires.pdf", b"%PDF-1.4 fake", "application/pdf")})

    assert r.status_code == 200
    data = r.json()
    assert data["pdfPath"] == "/assets/forest-fires.pdf"
    assert [a["slug"] for a in data["activities"]] == [
        "forest-fires-q1-comprehension",
        "forest-fires-q2-comparison",
        "forest-fires-q3-analysis",
    ]
    assert "forest-fires-q3-analysis" in repo.list_slugs()
    assert (assets.directory / "forest-fires.pdf").read_bytes() == b"%PDF-1.4 fake"


def test_upload_pdf_without_text_is_400(client, monkeypatch):
    monkeypatch.setattr(main, "extract_pdf_text", lambda data: "  ")
    r = client.post("/api/upload-pdf", files={"pdf": ("scan.pdf", b"%PDF", "application/pdf")})
    assert r.status_code == 400


def test_upload_youtube_sets_thumbnail(client, monkeypatch):
    async def fake_title(video_id):
        return "Drought Explained"

    monkeypatch.setattr(main, "fetch_youtube_transcript", lambda video_id: "Transcript words. " * 10)
    monkeypatch.setattr(main, "fetch_youtube_title", fake_title)
    use_model(monkeypatch, FakeClient(text=DROUGHT_DOC))

    r = client.post("/api/upload-youtube", json={"url": "https://youtu.be/dQw4w9WgXcQ"})

    assert r.status_code == 200
    data = r.json()
    assert data["youtubeEmbedUrl"] == "https://www.youtube.com/embed/dQw4w9WgXcQ"
    assert data["thumbnailUrl"] == "https://img.youtube.com/vi/dQw4w9WgXcQ/hqdefault.jpg"
    assert len(data["activities"]) == 3
    assert all(a["thumbnail"] == data["thumbnailUrl"] for a in data["activities"])
    assert data["activities"][0]["slug"] == "drought-explained-q1-comprehension"


def test_upload_youtube_invalid_url_is_400(client):
    assert client.post("/api/upload-youtube", json={"url": "https://vimeo.com/1"}).status_code == 400


def test_check_answer_uses_model(client, monkeypatch):
    grade = {"level": 4, "feedback": "Nice work."}
    fake = FakeClient(json_data={d: grade for d in ("content", "understanding", "connections", "evidence")})
    use_model(monkeypatch, fake)

    r = client.post("/api/check-answer", json={"answer": "Fires spread.", "activitySlug": "drought-q2-comparison"})

    assert r.status_code == 200
    assert r.json()["content"] == grade
    assert "Level 2: Lists facts" in fake.prompts[0]


def test_check_answer_falls_back_to_keywords(client, monkeypatch):
    use_model(monkeypatch, FakeClient(error=RuntimeError("offline")))

    r = client.post("/api/check-answer", json={"answer": "A wildfire led to evacuation.", "activitySlug": "drought-q1-comprehension"})

    assert r.status_code == 200
    assert r.json()["content"] == {"level": 2, "feedback": "2 of 2 key themes identified."}


def test_chat(client, monkeypatch):
    fake = FakeClient(json_data={
        "jamie": {"message": "Cool!", "updatedOpinion": "Fires.", "status": "GREEN", "thoughtProcess": "ok"},
        "thomas": {"message": "Numbers?", "updatedOpinion": "Unsure.", "status": "RED", "thoughtProcess": "hmm"},
        "checklist": {"analogy": False, "example": False, "story": False},
        "facts": [],
    })
    use_model(monkeypatch, fake)

    r = client.post("/api/chat", json={
        "messages": [{"role": "user", "content": "Wildfires were everywhere."}],
        "agentState": {},
        "activitySlug": "drought-q1-comprehension",
    })

    assert r.status_code == 200
    assert r.json()["responses"][1] == {"character": "thomas", "message": "Numbers?"}
    assert "1. Wildfires" in fake.prompts[0]


def test_chat_bad_model_output_is_500(client, monkeypatch):
    use_model(monkeypatch, FakeClient(json_data={"oops": True}))
    r = client.post("/api/chat", json={"messages": [{"role": "user", "content": "hi"}]})
    assert r.status_code == 500


def test_reset_session(client, repo, assets):
    repo.save("generated-q1-analysis", DROUGHT_DOC)
    assets.save("generated.pdf", b"%PDF")

    r = client.post("/api/reset-session")

    assert r.json() == {"deleted": 2}
    assert repo.list_slugs() == ["drought-q1-comprehension", "drought-q2-comparison"]


def test_generated_document_that_cannot_parse_is_not_saved(client, repo, monkeypatch):
    """
    GIVEN: A model that returns a document whose front matter is not valid YAML.
    WHEN:  An activity is generated from it.
    THEN:  The route fails, nothing is written and the listing still loads.
    """
    bad = '---\ntitle: "He said "hi" today"\n---\n' + DROUGHT_DOC
    use_model(monkeypatch, FakeClient(text=bad))

    r = client.post("/api/generate-activity", json={"readingText": "Some reading.", "title": "T"})

    assert r.status_code == 500
    assert repo.list_slugs() == ["drought-q1-comprehension", "drought-q2-comparison"]
    assert client.get("/api/activities").status_code == 200


def test_upload_pdf_skips_unparsable_generations(client, repo, monkeypatch, caplog):
    monkeypatch.setattr(main, "extract_pdf_text", lambda data: "Drought reading text. " * 10)
    use_model(monkeypatch, FakeClient(text="---\ntitle: [oops\n---\n# Question\nQ\n"))

    r = client.post("/api/upload-pdf", files={"pdf": ("broken.pdf", b"%PDF", "application/pdf")})

    assert r.status_code == 500
    assert not any(s.startswith("broken") for s in repo.list_slugs())
    discarded = [rec.getMessage() for rec in caplog.records if "Discarded" in rec.getMessage()]
    assert [m.split()[3] for m in discarded] == ["comprehension", "comparison", "analysis"]


def test_upload_same_pdf_twice_keeps_both_files(client, repo, assets, monkeypatch):
    """
    GIVEN: Two different PDFs uploaded under the same filename.
    WHEN:  Both uploads succeed.
    THEN:  Each keeps its own stored file and its own activities.
    """
    monkeypatch.setattr(main, "extract_pdf_text", lambda data: "Drought reading text. " * 10)
    use_model(monkeypatch, FakeClient(text=DROUGHT_DOC))

    first = client.post("/api/upload-pdf", files={"pdf": ("reading.pdf", b"FIRST", "application/pdf")}).json()
    second = client.post("/api/upload-pdf", files={"pdf": ("reading.pdf", b"SECOND", "application/pdf")}).json()

    assert first["pdfPath"] == "/assets/reading.pdf"
    assert second["pdfPath"] == "/assets/reading-2.pdf"
    assert (assets.directory / "reading.pdf").read_bytes() == b"FIRST"
    assert (assets.directory / "reading-2.pdf").read_bytes() == b"SECOND"
    assert second["activities"][0]["slug"] == "reading-q1-comprehension-2"
