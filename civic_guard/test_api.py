"""
Test the HTTP API through FastAPI's TestClient
The container is rebuilt per test with AI disabled; tests plug in mocked
collaborators where they need them.
"""
from unittest.mock import AsyncMock, Mock

import pytest
from fastapi.testclient import TestClient

from civic_guard.agent.form import MISSING_EVIDENCE, MISSING_FIELDS
from civic_guard.api.deps import AppContainer
from civic_guard.conftest import SUMMARY_REPLY, fake_openai, jpeg_data_uri
from civic_guard.domain.models import GpsFix
from civic_guard.domain.store import IssueStore
from civic_guard.infrastructure.ai import CivicAssistant, ReportSummarizer
from civic_guard.infrastructure.ai.assistant import FALLBACK_REPLY
from civic_guard.infrastructure.devices import MediaDeviceAdapter, ReplayCamera, ReplayMicrophone, StaticGeolocation
from civic_guard.infrastructure.locations import load_village_boundaries
from civic_guard.main import app
from civic_guard.seed_data import build_demo_state

VIDEO = {"data_uri": "data:video/webm;base64,AAAA", "duration_seconds": 12}
FORM = {
    "title": "Pothole on Main St",
    "category": "Roads",
    "urgency": "Medium",
    "description": "Deep pothole near the bus stop",
    "district": "Coimbatore",
    "panchayat": "Kinathukadavu",
    "village": "Arasampalayam",
    "street": "Main St",
}


@pytest.fixture
def container(settings, catalog):
    store = IssueStore(build_demo_state(), "leader@civic.com")
    return AppContainer(settings, store, catalog, load_village_boundaries())


@pytest.fixture
def client(container):
    with TestClient(app) as test_client:
        app.state.container = container
        yield test_client


def login_leader(client):
    response = client.post("/api/v1/users/login", json={"name": "K. Murugan", "email": "leader@civic.com"})
    assert response.json()["role"] == "leader"


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"


# --- Users ---

def test_login_and_profile(client):
    response = client.post(
        "/api/v1/users/login",
        json={"name": "Lakshmi", "email": "lakshmi@example.com", "district": "Coimbatore",
              "panchayat": "Sulur", "village": "Pattanam", "street": "North Street"},
    )
    assert response.status_code == 200
    assert response.json()["role"] == "citizen"

    response = client.patch("/api/v1/users/me", json={"street": "South Street"})
    assert response.json()["street"] == "South Street"
    notifications = client.get("/api/v1/users/me/notifications").json()
    assert notifications[0]["message"] == "Your profile has been updated successfully!"


def test_leaderboard_sorted_by_points(client):
    points = [u["points"] for u in client.get("/api/v1/users/leaderboard").json()]
    assert points == sorted(points, reverse=True)


# --- Issues ---

def test_feed_defaults_to_user_district(client):
    issues = client.get("/api/v1/issues/").json()
    assert issues
    assert all(i["location"]["district"] == "Coimbatore" for i in issues)


def test_feed_search_and_sort(client):
    issues = client.get("/api/v1/issues/", params={"district": "all", "sort": "most_voted"}).json()
    votes = [i["upvotes"] for i in issues]
    assert votes == sorted(votes, reverse=True)


def test_manual_report_created(client):
    response = client.post(
        "/api/v1/issues/",
        json={"form": FORM, "photos": [{"data_uri": jpeg_data_uri()}], "video": VIDEO},
    )

    assert response.status_code == 201
    issue = response.json()
    assert issue["status"] == "Pending"
    assert issue["upvotes"] == 0
    assert len(issue["images"]) == 1
    assert issue["video"] == VIDEO["data_uri"]
    assert issue["image_analyses"][0]["status"] == "Unknown"
    assert client.get("/api/v1/issues/").json()[0]["id"] == issue["id"]


def test_manual_report_requires_fields(client):
    form = dict(FORM, title="  ")
    response = client.post("/api/v1/issues/", json={"form": form, "photos": [{"data_uri": jpeg_data_uri()}], "video": VIDEO})
    assert response.status_code == 422
    assert response.json()["detail"] == MISSING_FIELDS


def test_manual_report_requires_video(client):
    response = client.post("/api/v1/issues/", json={"form": FORM, "photos": [{"data_uri": jpeg_data_uri()}]})
    assert response.status_code == 422
    assert response.json()["detail"] == MISSING_EVIDENCE


def test_manual_report_rejects_long_video(client):
    video = dict(VIDEO, duration_seconds=45)
    response = client.post("/api/v1/issues/", json={"form": FORM, "photos": [{"data_uri": jpeg_data_uri()}], "video": video})
    assert response.status_code == 422
    assert response.json()["field"] == "video"


def test_manual_report_rejects_fourth_photo(client):
    photos = [{"data_uri": jpeg_data_uri()}] * 4
    response = client.post("/api/v1/issues/", json={"form": FORM, "photos": photos, "video": VIDEO})
    assert response.status_code == 422
    assert response.json()["field"] == "photos"


def test_edit_keeps_existing_evidence(client):
    created = client.post(
        "/api/v1/issues/",
        json={"form": FORM, "photos": [{"data_uri": jpeg_data_uri()}], "video": VIDEO},
    ).json()

    response = client.put(f"/api/v1/issues/{created['id']}", json={"form": dict(FORM, title="Pothole still there")})

    assert response.status_code == 200
    assert response.json()["title"] == "Pothole still there"
    assert response.json()["images"] == created["images"]


def test_vote_is_idempotent(client):
    issue = client.get("/api/v1/issues/").json()[0]
    client.post(f"/api/v1/issues/{issue['id']}/vote")
    response = client.post(f"/api/v1/issues/{issue['id']}/vote")
    assert response.json()["upvotes"] == issue["upvotes"] + 1


def test_unknown_issue_is_404(client):
    assert client.get("/api/v1/issues/424242").status_code == 404


def test_status_update_needs_leader(client):
    issue = client.get("/api/v1/issues/").json()[0]
    response = client.patch(f"/api/v1/issues/{issue['id']}/status", json={"status": "Received"})
    assert response.status_code == 403


def test_leader_resolves_with_proof(client, container):
    login_leader(client)
    pending = next(i for i in container.store.state.issues if i.status.value == "Pending")

    response = client.patch(f"/api/v1/issues/{pending.id}/status", json={"status": "Resolved"})
    assert response.status_code == 422

    response = client.patch(
        f"/api/v1/issues/{pending.id}/status",
        json={"status": "Resolved", "resolution_proof": {"image": jpeg_data_uri(), "description": "Cleared"}},
    )
    assert response.status_code == 200
    assert response.json()["resolution_proof"]["description"] == "Cleared"

    response = client.patch(f"/api/v1/issues/{pending.id}/status", json={"status": "Received"})
    assert response.status_code == 409


# --- Forum ---

def test_forum_post_and_comment(client):
    post = client.post("/api/v1/forum/posts", json={"title": "Bus shelter", "content": "Needed at the junction"})
    assert post.status_code == 201
    post_id = post.json()["id"]

    comment = client.post(f"/api/v1/forum/posts/{post_id}/comments", json={"content": "Agreed"})
    assert comment.status_code == 201

    detail = client.get(f"/api/v1/forum/posts/{post_id}").json()
    assert [c["comment"]["content"] for c in detail["comments"]] == ["Agreed"]
    assert detail["author"]["id"] == post.json()["author_id"]


# --- Map ---

def test_choropleth_and_counts(client):
    counts = client.get("/api/v1/map/panchayat-counts").json()
    assert all(value > 0 for value in counts.values())

    collection = client.get("/api/v1/map/choropleth").json()
    assert collection["type"] == "FeatureCollection"
    assert all("fill_color" in f["properties"] for f in collection["features"])


def test_console_is_leader_only(client):
    assert client.get("/api/v1/map/console").status_code == 403

    login_leader(client)
    console = client.get("/api/v1/map/console").json()
    assert console["panchayat"] == "Kinathukadavu"
    assert all(entry["issue"]["location"]["panchayat"] == "Kinathukadavu" for entry in console["issues"])
    assert all(entry["recommended_team"] for entry in console["issues"])


# --- Guided report ---

def walk_to_evidence(client, session_id):
    base = f"/api/v1/reports/sessions/{session_id}"
    client.post(f"{base}/language", json={"language": "en"})
    for value in ("Coimbatore", "Kinathukadavu", "Arasampalayam", "Main St"):
        client.post(f"{base}/input", json={"value": value})
    client.post(f"{base}/skip")
    for value in ("Pothole on Main St", "Roads", "Medium", "Deep pothole near the bus stop"):
        client.post(f"{base}/input", json={"value": value})
    return base


def test_guided_report_flow(client, container):
    container.summarizer = ReportSummarizer(fake_openai(SUMMARY_REPLY), "gpt-4o-mini")
    session = client.post("/api/v1/reports/sessions")
    assert session.status_code == 201
    assert session.json()["stage"] == "language"
    base = walk_to_evidence(client, session.json()["session_id"])

    view = client.post(f"{base}/photos", json={"data_uri": jpeg_data_uri()}).json()
    assert view["evidence"]["photo_count"] == 1
    view = client.put(f"{base}/video", json=VIDEO).json()
    assert view["evidence"]["has_video"]

    view = client.post(f"{base}/summary").json()
    assert view["stage"] == "summary"
    assert view["summary"]["urgencyLevel"] == "Medium"

    first = client.post(f"{base}/confirm")
    second = client.post(f"{base}/confirm")
    assert first.status_code == 201
    assert first.json()["id"] == second.json()["id"]
    assert client.get(base).json()["stage"] == "completed"

    assert client.delete(base).status_code == 204
    assert client.get(base).status_code == 404


def test_guided_report_speech_no_match(client):
    session_id = client.post("/api/v1/reports/sessions").json()["session_id"]
    base = f"/api/v1/reports/sessions/{session_id}"
    client.post(f"{base}/language", json={"language": "en"})

    view = client.post(f"{base}/speech", json={"transcript": "xyzzy"}).json()

    assert view["stage"] == "district"
    assert "xyzzy" in view["transcript"][-1]["content"]


def test_guided_report_summary_without_ai_returns_to_evidence(client):
    session_id = client.post("/api/v1/reports/sessions").json()["session_id"]
    base = walk_to_evidence(client, session_id)
    client.post(f"{base}/photos", json={"data_uri": jpeg_data_uri()})
    client.put(f"{base}/video", json=VIDEO)

    view = client.post(f"{base}/summary").json()

    assert view["stage"] == "evidence"
    assert view["last_error"]


def test_guided_report_rejects_out_of_order_events(client):
    session_id = client.post("/api/v1/reports/sessions").json()["session_id"]
    response = client.post(f"/api/v1/reports/sessions/{session_id}/confirm")
    assert response.status_code == 409


# --- Assistant ---

def test_assistant_without_ai_apologises(client):
    response = client.post("/api/v1/assistant/chat", json={"message": "How do I vote?"})
    assert response.json()["reply"] == FALLBACK_REPLY


def test_assistant_reply(client, container):
    container.assistant = CivicAssistant(fake_openai("Tap the upvote arrow on an issue."), "gpt-4o-mini")
    response = client.post("/api/v1/assistant/chat", json={"message": "How do I vote?", "language": "en"})
    assert response.json()["reply"] == "Tap the upvote arrow on an issue."


def test_assistant_welcome_localized(client):
    assert "CivicGPT" in client.get("/api/v1/assistant/welcome", params={"language": "en"}).json()["reply"]


# --- Server-side capture and dictation ---

def replay_devices():
    return MediaDeviceAdapter(
        camera=ReplayCamera(fps=30),
        microphone=ReplayMicrophone(chunk_seconds=0.01),
        geolocation=StaticGeolocation(GpsFix(lat=10.95, lng=76.98, accuracy=6.0)),
    )


def test_uploaded_photo_is_stamped(client):
    upload = jpeg_data_uri(color=(255, 255, 255), size=(640, 480))
    issue = client.post(
        "/api/v1/issues/",
        json={"form": FORM, "photos": [{"data_uri": upload}], "video": VIDEO},
    ).json()

    assert issue["images"][0] != upload
    assert issue["images"][0].startswith("data:image/jpeg;base64,")


def test_manual_report_rejects_unreadable_photo(client):
    response = client.post(
        "/api/v1/issues/",
        json={"form": FORM, "photos": [{"data_uri": "data:image/jpeg;base64,AAAA"}], "video": VIDEO},
    )
    assert response.status_code == 422
    assert response.json()["field"] == "photos"


def test_evidence_locked_after_summary(client, container):
    container.summarizer = ReportSummarizer(fake_openai(SUMMARY_REPLY), "gpt-4o-mini")
    session_id = client.post("/api/v1/reports/sessions").json()["session_id"]
    base = walk_to_evidence(client, session_id)
    client.post(f"{base}/photos", json={"data_uri": jpeg_data_uri()})
    client.put(f"{base}/video", json=VIDEO)
    assert client.post(f"{base}/summary").json()["stage"] == "summary"

    assert client.post(f"{base}/photos", json={"data_uri": jpeg_data_uri()}).status_code == 409
    assert client.delete(f"{base}/video").status_code == 409

    issue = client.post(f"{base}/confirm").json()
    assert len(issue["images"]) == len(issue["image_analyses"]) == 1


def test_capture_through_session_devices(client, container):
    container.device_factory = replay_devices
    session_id = client.post("/api/v1/reports/sessions").json()["session_id"]
    base = walk_to_evidence(client, session_id)

    view = client.post(f"{base}/photos/capture").json()
    assert view["evidence"]["photo_count"] == 1
    assert view["photos"][0]["gps"]["lat"] == 10.95

    assert client.post(f"{base}/video/start").status_code == 200
    view = client.post(f"{base}/video/stop").json()
    assert view["evidence"]["has_video"]

    client.post(f"{base}/audio/start")
    view = client.post(f"{base}/audio/stop").json()
    assert view["stage"] == "evidence"

    assert client.delete(base).status_code == 204
    assert container.sessions == {}


def test_capture_without_devices_is_rejected(client):
    session_id = client.post("/api/v1/reports/sessions").json()["session_id"]
    base = walk_to_evidence(client, session_id)

    assert client.post(f"{base}/photos/capture").status_code == 409


def test_dictation_through_whisper(client, container):
    whisper = Mock()
    whisper.audio.transcriptions.create = AsyncMock(return_value="pollachi")
    container.device_factory = replay_devices
    container.whisper_client = whisper
    session_id = client.post("/api/v1/reports/sessions").json()["session_id"]
    base = f"/api/v1/reports/sessions/{session_id}"
    client.post(f"{base}/language", json={"language": "ta"})

    assert client.post(f"{base}/speech/listen").status_code == 200
    view = client.post(f"{base}/speech/listen/stop").json()

    assert view["stage"] == "panchayat"
    assert view["fields"]["district"] == "Pollachi"
    assert whisper.audio.transcriptions.create.call_args.kwargs["language"] == "ta"


def test_dictation_unavailable_without_whisper(client):
    session_id = client.post("/api/v1/reports/sessions").json()["session_id"]
    base = f"/api/v1/reports/sessions/{session_id}"
    client.post(f"{base}/language", json={"language": "en"})

    assert client.post(f"{base}/speech/listen").status_code == 409
