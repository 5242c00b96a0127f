"""Reports API - Guided report sessions with the conversational agent"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from ...agent import ConversationState, EvidenceSnapshot, ReportFields, ReportSession, stage_options
from ...agent.machine import Turn
from ...domain.errors import InvalidTransitionError, ValidationError
from ...domain.models import (
    AudioEvidence,
    GeneratedSummary,
    GpsFix,
    ImageAnalysis,
    Issue,
    Language,
)
from ...infrastructure.media import from_data_uri
from ..deps import AppContainer, get_container
from .issues import PhotoUpload, VideoUpload, check_data_uri, video_from_upload

router = APIRouter()


class PhotoView(BaseModel):
    entry_id: str
    gps: Optional[GpsFix] = None
    pending: bool
    analysis: Optional[ImageAnalysis] = None


class SessionView(BaseModel):
    session_id: str
    stage: str
    language: Language
    prompt: Optional[str] = None
    options: Optional[List[str]] = None
    fields: ReportFields
    transcript: List[Turn]
    pending_input: str = ""
    last_error: Optional[str] = None
    summary: Optional[GeneratedSummary] = None
    evidence: EvidenceSnapshot
    photos: List[PhotoView]
    gps_warning: Optional[str] = None
    issue_id: Optional[int] = None


class LanguageRequest(BaseModel):
    language: Language


class InputRequest(BaseModel):
    value: Optional[str] = None


class SpeechRequest(BaseModel):
    transcript: str
    is_final: bool = True


class AudioUpload(BaseModel):
    data_uri: str


def session_view(session: ReportSession) -> SessionView:
    state: ConversationState = session.state
    return SessionView(
        session_id=session.session_id,
        stage=state.stage.value,
        language=state.language,
        prompt=state.prompt(),
        options=stage_options(state, session.catalog),
        fields=state.fields,
        transcript=state.transcript,
        pending_input=state.pending_input,
        last_error=state.last_error,
        summary=state.summary,
        evidence=session.evidence.snapshot(),
        photos=[
            PhotoView(entry_id=p.entry_id, gps=p.gps, pending=p.is_pending, analysis=p.analysis)
            for p in session.evidence.photos
        ],
        gps_warning=session.gps_warning,
        issue_id=session.issue.id if session.issue else None,
    )


def get_report_session(
    session_id: str,
    container: AppContainer = Depends(get_container),
) -> ReportSession:
    return container.get_session(session_id)


@router.post("/sessions", response_model=SessionView, status_code=201)
async def start_session(container: AppContainer = Depends(get_container)):
    """Start a guided report; location fields are prefilled from the user's profile"""
    return session_view(container.open_session())


@router.get("/sessions/{session_id}", response_model=SessionView)
async def get_session(session: ReportSession = Depends(get_report_session)):
    return session_view(session)


@router.post("/sessions/{session_id}/language", response_model=SessionView)
async def select_language(request: LanguageRequest, session: ReportSession = Depends(get_report_session)):
    session.select_language(request.language)
    return session_view(session)


@router.post("/sessions/{session_id}/input", response_model=SessionView)
async def submit_input(request: InputRequest, session: ReportSession = Depends(get_report_session)):
    """Typed or selected value for the current stage"""
    session.submit(request.value)
    return session_view(session)


@router.post("/sessions/{session_id}/skip", response_model=SessionView)
async def skip_stage(session: ReportSession = Depends(get_report_session)):
    """Optional stages only (landmark)"""
    session.skip()
    return session_view(session)


@router.post("/sessions/{session_id}/speech", response_model=SessionView)
async def speech_transcript(request: SpeechRequest, session: ReportSession = Depends(get_report_session)):
    """
    Recognised speech from the client
    Interim transcripts update the pending input; a final transcript is
    matched against the stage's options and advances, or re-prompts.
    """
    session.hear(request.transcript, request.is_final)
    return session_view(session)


@router.post("/sessions/{session_id}/speech/audio", response_model=SessionView)
async def speech_audio(
    upload: AudioUpload,
    session: ReportSession = Depends(get_report_session),
    container: AppContainer = Depends(get_container),
):
    """Recorded utterance, transcribed with Whisper and handled as a final transcript"""
    if container.transcriber is None:
        raise InvalidTransitionError("Speech recognition is not available")
    check_data_uri(upload.data_uri, "audio")
    _, wav = from_data_uri(upload.data_uri)
    transcript = await container.transcriber.transcribe(wav, session.state.language.speech_code)
    if not transcript:
        session.state = session.state.model_copy(update={"last_error": "Speech could not be recognised"})
        return session_view(session)
    session.hear(transcript, is_final=True)
    return session_view(session)


@router.post("/sessions/{session_id}/speech/listen", response_model=SessionView)
async def start_listening(session: ReportSession = Depends(get_report_session)):
    """Dictate the current answer through the session microphone"""
    await session.start_listening()
    return session_view(session)


@router.post("/sessions/{session_id}/speech/listen/stop", response_model=SessionView)
async def stop_listening(session: ReportSession = Depends(get_report_session)):
    """Ends dictation; the utterance is transcribed and handled as a final transcript"""
    await session.stop_listening()
    return session_view(session)


@router.post("/sessions/{session_id}/photos", response_model=SessionView)
async def add_photo(upload: PhotoUpload, session: ReportSession = Depends(get_report_session)):
    """Adds a photo and starts its analysis; ignored once 3 photos are held"""
    check_data_uri(upload.data_uri, "photos")
    await session.upload_photo(upload.data_uri, upload.gps, upload.timestamp)
    return session_view(session)


@router.post("/sessions/{session_id}/photos/capture", response_model=SessionView)
async def capture_photo(session: ReportSession = Depends(get_report_session)):
    """Take a photo with the session camera; the caption overlay is burned in"""
    await session.capture_photo()
    return session_view(session)


@router.delete("/sessions/{session_id}/photos/{entry_id}", response_model=SessionView)
async def remove_photo(entry_id: str, session: ReportSession = Depends(get_report_session)):
    session.remove_photo(entry_id)
    return session_view(session)


@router.put("/sessions/{session_id}/video", response_model=SessionView)
async def set_video(
    upload: VideoUpload,
    session: ReportSession = Depends(get_report_session),
    container: AppContainer = Depends(get_container),
):
    session.set_video(video_from_upload(upload, container.settings.video_max_seconds))
    return session_view(session)


@router.delete("/sessions/{session_id}/video", response_model=SessionView)
async def remove_video(session: ReportSession = Depends(get_report_session)):
    session.remove_video()
    return session_view(session)


@router.post("/sessions/{session_id}/video/start", response_model=SessionView)
async def start_video(session: ReportSession = Depends(get_report_session)):
    """Record with the session camera and microphone; stops on its own at the cap"""
    await session.start_video()
    return session_view(session)


@router.post("/sessions/{session_id}/video/stop", response_model=SessionView)
async def stop_video(session: ReportSession = Depends(get_report_session)):
    await session.stop_video()
    return session_view(session)


@router.post("/sessions/{session_id}/audio/start", response_model=SessionView)
async def start_audio(session: ReportSession = Depends(get_report_session)):
    await session.start_audio()
    return session_view(session)


@router.post("/sessions/{session_id}/audio/stop", response_model=SessionView)
async def stop_audio(session: ReportSession = Depends(get_report_session)):
    await session.stop_audio()
    return session_view(session)


@router.put("/sessions/{session_id}/audio", response_model=SessionView)
async def set_audio(upload: AudioUpload, session: ReportSession = Depends(get_report_session)):
    """Voice clip for emotion analysis"""
    check_data_uri(upload.data_uri, "audio")
    mime_type, data = from_data_uri(upload.data_uri)
    if not mime_type.startswith("audio/"):
        raise ValidationError("Voice clip must be an audio file", field="audio")
    session.set_audio(AudioEvidence(data=data, mime_type=mime_type, data_uri=upload.data_uri))
    return session_view(session)


@router.post("/sessions/{session_id}/summary", response_model=SessionView)
async def request_summary(session: ReportSession = Depends(get_report_session)):
    """Generate the AI summary; on failure the session is back at the evidence stage"""
    await session.request_summary()
    return session_view(session)


@router.post("/sessions/{session_id}/confirm", response_model=Issue, status_code=201)
async def confirm_report(session: ReportSession = Depends(get_report_session)):
    """Create the issue. Confirming again returns the same issue."""
    return await session.confirm()


@router.post("/sessions/{session_id}/edit", response_model=SessionView)
async def edit_report(session: ReportSession = Depends(get_report_session)):
    session.edit()
    return session_view(session)


@router.delete("/sessions/{session_id}", status_code=204)
async def close_session(session_id: str, container: AppContainer = Depends(get_container)):
    """Release every device and cancel outstanding work for the session"""
    await container.close_session(session_id)
    return Response(status_code=204)
