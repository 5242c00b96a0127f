"""
Test the guided report session end to end
In-memory camera, microphone, geolocation and speech; mocked OpenAI replies
"""
import asyncio

import pytest
from PIL import Image
from structlog.testing import capture_logs

from civic_guard.agent import ReportSession, Stage, t
from civic_guard.conftest import SUMMARY_REPLY, fake_openai, jpeg_data_uri
from civic_guard.domain.errors import InvalidTransitionError, ValidationError
from civic_guard.domain.models import GpsFix, IssueStatus, Language, Urgency, VideoEvidence
from civic_guard.infrastructure.ai import EmotionAnalyzer, ReportSummarizer
from civic_guard.infrastructure.devices import (
    MediaDeviceAdapter,
    ReplayCamera,
    ReplayMicrophone,
    ScriptedSpeechRecognizer,
    StaticGeolocation,
)
from civic_guard.infrastructure.media import decode_image, from_data_uri
from civic_guard.infrastructure.media.overlay import layout_for

FIX = GpsFix(lat=10.95, lng=76.98, accuracy=6.0)
VIDEO = VideoEvidence(data_uri="data:video/x-motion-jpeg;base64,AAAA", duration_seconds=4.0, frame_count=4)


def make_session(store, catalog, settings, summary_reply=SUMMARY_REPLY, geolocation=None, emotion=None, speech=None):
    camera = ReplayCamera(frames=[Image.new("RGB", (160, 120), (70, 70, 70))])
    devices = MediaDeviceAdapter(
        camera=camera,
        microphone=ReplayMicrophone(chunk_seconds=0.01),
        geolocation=geolocation,
    )
    return ReportSession(
        store,
        catalog,
        settings,
        devices=devices,
        summarizer=ReportSummarizer(fake_openai(summary_reply), "gpt-4o-mini"),
        emotion=emotion,
        speech=speech,
        # one camera frame == one second of video
        monotonic=lambda: float(camera.opened[-1].frames_read) if camera.opened else 0.0,
    )


def answer_questions(session: ReportSession) -> None:
    session.select_language(Language.EN)
    session.submit("Coimbatore")
    session.submit("Kinathukadavu")
    session.submit("Arasampalayam")
    session.submit("Main St")
    session.skip()
    session.submit("Pothole on Main St")
    session.submit("Roads")
    session.submit("Medium")
    session.submit("Deep pothole near the bus stop")
    assert session.stage == Stage.EVIDENCE


async def test_pothole_report_end_to_end(store, catalog, settings):
    session = make_session(store, catalog, settings, geolocation=StaticGeolocation(FIX))
    before = len(store.state.issues)
    answer_questions(session)

    photo = await session.capture_photo()
    assert photo is not None and photo.gps == FIX

    await session.start_video()
    await session.video_recorder.wait()
    video = await session.stop_video()
    assert video.duration_seconds == 30.0
    assert session.video_recorder.auto_stopped

    state = await session.request_summary()
    assert state.stage == Stage.SUMMARY
    assert state.summary.urgency_level == "Medium"

    issue = await session.confirm()

    assert len(store.state.issues) == before + 1
    assert store.state.issues[0].id == issue.id
    assert issue.status == IssueStatus.PENDING
    assert issue.upvotes == 0
    assert len(issue.images) == 1
    assert issue.video is not None
    assert issue.urgency == Urgency.MEDIUM
    assert issue.location.lat == FIX.lat
    assert issue.location.village == "Arasampalayam"
    assert issue.description == SUMMARY_REPLY["issueDescription"]
    assert session.stage == Stage.COMPLETED
    assert session.state.transcript[-1].content == t(Language.EN, "completed")

    await session.close()
    assert session.devices.live_handles == []


async def test_double_confirm_creates_one_issue(store, catalog, settings):
    session = make_session(store, catalog, settings)
    answer_questions(session)
    session.add_photo(jpeg_data_uri())
    session.set_video(VIDEO)
    await session.request_summary()
    before = len(store.state.issues)

    first, second = await asyncio.gather(session.confirm(), session.confirm())

    assert first.id == second.id
    assert len(store.state.issues) == before + 1
    assert (await session.confirm()).id == first.id


async def test_summary_requires_photo_and_video(store, catalog, settings):
    session = make_session(store, catalog, settings)
    answer_questions(session)
    session.add_photo(jpeg_data_uri())

    with pytest.raises(ValidationError):
        await session.request_summary()
    assert session.stage == Stage.EVIDENCE


async def test_summary_failure_returns_to_evidence(store, catalog, settings):
    session = make_session(store, catalog, settings, summary_reply="this is not json")
    answer_questions(session)
    session.add_photo(jpeg_data_uri())
    session.set_video(VIDEO)

    state = await session.request_summary()

    assert state.stage == Stage.EVIDENCE
    assert state.last_error == t(Language.EN, "ai_error")
    with pytest.raises(InvalidTransitionError):
        await session.confirm()


async def test_emotion_failure_does_not_block_summary(store, catalog, settings):
    emotion = EmotionAnalyzer(fake_openai(ConnectionError("down")), "gpt-4o-audio-preview")
    session = make_session(store, catalog, settings, emotion=emotion)
    answer_questions(session)
    session.add_photo(jpeg_data_uri())
    session.set_video(VIDEO)
    await session.start_audio()
    await asyncio.sleep(0.05)
    await session.stop_audio()

    state = await session.request_summary()

    assert state.stage == Stage.SUMMARY
    assert session.emotion_analysis is None


async def test_distressed_voice_escalates_urgency(store, catalog, settings):
    emotion = EmotionAnalyzer(fake_openai({"sentiment": "Distressed", "urgencyScore": 9}), "gpt-4o-audio-preview")
    session = make_session(store, catalog, settings, emotion=emotion)
    answer_questions(session)
    session.add_photo(jpeg_data_uri())
    session.set_video(VIDEO)
    await session.start_audio()
    await asyncio.sleep(0.05)
    await session.stop_audio()

    await session.request_summary()
    issue = await session.confirm()

    assert issue.emotion_analysis.sentiment == "Distressed"
    assert issue.urgency == Urgency.HIGH


async def test_low_accuracy_gps_fallback_at_submission(store, catalog, settings):
    geolocation = StaticGeolocation(FIX)
    session = make_session(store, catalog, settings, geolocation=geolocation)
    answer_questions(session)
    session.add_photo(jpeg_data_uri())
    session.set_video(VIDEO)
    await session.request_summary()

    issue = await session.confirm()

    assert geolocation.requests == [False]
    assert issue.location.lat == FIX.lat


async def test_issue_saved_without_any_gps(store, catalog, settings):
    session = make_session(store, catalog, settings)
    answer_questions(session)
    session.add_photo(jpeg_data_uri())
    session.set_video(VIDEO)
    await session.request_summary()

    issue = await session.confirm()

    assert issue.location.lat is None
    assert issue.location.lng is None


async def test_photo_capture_respects_cap(store, catalog, settings):
    session = make_session(store, catalog, settings)
    answer_questions(session)

    photos = [await session.capture_photo() for _ in range(4)]

    assert all(p is not None for p in photos[:3])
    assert photos[3] is None
    assert session.gps_warning is not None
    assert session.devices.live_handles == []


async def test_edit_keeps_evidence(store, catalog, settings):
    session = make_session(store, catalog, settings)
    answer_questions(session)
    session.add_photo(jpeg_data_uri())
    session.set_video(VIDEO)
    await session.request_summary()

    session.edit()

    assert session.stage == Stage.DISTRICT
    assert session.evidence.snapshot().photo_count == 1
    assert session.evidence.video is not None


async def test_speech_recognizer_drives_select_stage(store, catalog, settings):
    speech = ScriptedSpeechRecognizer(["pollachi"])
    session = make_session(store, catalog, settings, speech=speech)
    session.select_language(Language.TA)

    await session.start_listening()
    while session.is_listening:
        await asyncio.sleep(0.01)
    await session.stop_listening()

    assert speech.language_codes == ["ta-IN"]
    assert session.stage == Stage.PANCHAYAT
    assert session.state.fields.district == "Pollachi"


async def test_close_mid_recording_releases_devices(store, catalog, settings):
    session = make_session(store, catalog, settings)
    answer_questions(session)
    camera = session.devices.camera
    microphone = session.devices.microphone
    session.monotonic = None
    await session.start_video()
    await session.start_audio()

    await session.close()

    assert camera.live_streams == []
    assert microphone.live_streams == []
    assert session.devices.live_handles == []


async def test_stage_change_is_logged_with_trigger(store, catalog, settings):
    session = make_session(store, catalog, settings)

    with capture_logs() as logs:
        session.select_language(Language.EN)

    assert session.stage == Stage.DISTRICT
    entry = next(e for e in logs if e["event"] == "report_stage_changed")
    assert entry["trigger"] == "select_language"
    assert (entry["from_stage"], entry["to_stage"]) == ("language", "district")


async def test_evidence_is_frozen_after_summary(store, catalog, settings):
    session = make_session(store, catalog, settings)
    answer_questions(session)
    photo = session.add_photo(jpeg_data_uri())
    session.set_video(VIDEO)
    await session.request_summary()

    with pytest.raises(InvalidTransitionError):
        session.add_photo(jpeg_data_uri())
    with pytest.raises(InvalidTransitionError):
        session.remove_photo(photo.entry_id)
    with pytest.raises(InvalidTransitionError):
        session.remove_video()

    issue = await session.confirm()
    assert len(issue.images) == len(issue.image_analyses) == 1
    assert issue.video is not None


async def test_confirm_rechecks_evidence(store, catalog, settings):
    session = make_session(store, catalog, settings)
    answer_questions(session)
    session.add_photo(jpeg_data_uri())
    session.set_video(VIDEO)
    await session.request_summary()
    session.evidence.clear_video()
    before = len(store.state.issues)

    with pytest.raises(ValidationError):
        await session.confirm()

    assert len(store.state.issues) == before
    assert session.issue is None
    assert session.stage == Stage.SUMMARY


async def test_uploaded_photo_gets_overlay(store, catalog, settings):
    session = make_session(store, catalog, settings)
    answer_questions(session)
    upload = jpeg_data_uri(color=(255, 255, 255), size=(640, 480))

    photo = await session.upload_photo(upload, gps=FIX)

    assert photo.data_uri != upload
    assert photo.gps == FIX
    image = decode_image(from_data_uri(photo.data_uri)[1])
    padding = int(layout_for(image.size, ["x"]).padding)
    assert max(image.getpixel((640 - padding - 3, 480 - padding - 3))) < 200
    assert min(image.getpixel((2, 2))) > 230


async def test_uploaded_photo_must_be_an_image(store, catalog, settings):
    session = make_session(store, catalog, settings)
    answer_questions(session)

    with pytest.raises(ValidationError) as exc:
        await session.upload_photo("data:image/jpeg;base64,AAAA")

    assert exc.value.field == "photos"
    assert session.evidence.snapshot().photo_count == 0


async def test_photo_upload_outside_evidence_stage_rejected(store, catalog, settings):
    session = make_session(store, catalog, settings)
    session.select_language(Language.EN)

    with pytest.raises(InvalidTransitionError):
        await session.upload_photo(jpeg_data_uri())
    with pytest.raises(InvalidTransitionError):
        await session.capture_photo()
