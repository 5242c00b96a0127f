"""
Report Session - One guided report conversation

Owns the conversation state, the evidence being collected and every device
handle acquired on its behalf. The state machine stays pure; this class runs
the side effects around it (capture, speech, summary, emotion, issue creation)
and feeds their outcomes back in as events.
"""
import asyncio
import uuid
from datetime import datetime
from typing import Callable, Optional

import structlog

from ..config import Settings
from ..domain.errors import CivicGuardError, InvalidTransitionError, RemoteServiceError, ValidationError
from ..domain.models import (
    AudioEvidence,
    EmotionAnalysis,
    GpsFix,
    Issue,
    Language,
    PhotoEvidence,
    ReportSource,
    VideoEvidence,
)
from ..domain.state import utcnow
from ..domain.store import IssueStore
from ..infrastructure.ai import AuthenticityClassifier, EmotionAnalyzer, ReportSummarizer, build_report_text
from ..infrastructure.devices import MediaDeviceAdapter, SpeechRecognizer
from ..infrastructure.locations import LocationCatalog
from ..infrastructure.media import AudioRecorder, PhotoCapture, VideoRecorder, stamp_photo
from .evidence_store import EvidenceStore
from .fields import build_draft, validate_evidence, validate_fields
from .machine import (
    Confirm,
    ConversationState,
    Edit,
    Event,
    RequestSummary,
    SelectLanguage,
    Skip,
    SpeechTranscript,
    Stage,
    SubmitValue,
    SummaryFailed,
    SummaryReady,
    initial_state,
    reduce,
)

logger = structlog.get_logger()


class ReportSession:
    """Manages a single guided report from language choice to submission"""

    def __init__(
        self,
        store: IssueStore,
        catalog: LocationCatalog,
        settings: Settings,
        devices: Optional[MediaDeviceAdapter] = None,
        classifier: Optional[AuthenticityClassifier] = None,
        summarizer: Optional[ReportSummarizer] = None,
        emotion: Optional[EmotionAnalyzer] = None,
        speech: Optional[SpeechRecognizer] = None,
        clock: Callable[[], datetime] = utcnow,
        monotonic: Optional[Callable[[], float]] = None,
        session_id: Optional[str] = None,
    ):
        self.session_id = session_id or uuid.uuid4().hex
        self.store = store
        self.catalog = catalog
        self.settings = settings
        self.devices = devices or MediaDeviceAdapter()
        self.summarizer = summarizer
        self.emotion = emotion
        self.speech = speech
        self.clock = clock
        self.monotonic = monotonic

        self.state: ConversationState = initial_state(store.current_user, catalog)
        self.evidence = EvidenceStore(classifier, settings.max_photos)
        self.emotion_analysis: Optional[EmotionAnalysis] = None
        self.issue: Optional[Issue] = None
        self.gps_warning: Optional[str] = None

        self.video_recorder: Optional[VideoRecorder] = None
        self.audio_recorder: Optional[AudioRecorder] = None
        self._video_task: Optional[asyncio.Task] = None
        self._audio_task: Optional[asyncio.Task] = None
        self._listen_task: Optional[asyncio.Task] = None
        self._confirm_lock = asyncio.Lock()
        self.running = True

    @property
    def stage(self) -> Stage:
        return self.state.stage

    @property
    def is_listening(self) -> bool:
        return self._listen_task is not None and not self._listen_task.done()

    def dispatch(self, event: Event) -> ConversationState:
        previous = self.state.stage
        self.state = reduce(self.state, event, self.catalog)
        if self.state.stage != previous:
            logger.info(
                "report_stage_changed",
                session_id=self.session_id,
                trigger=event.kind,
                from_stage=previous.value,
                to_stage=self.state.stage.value,
            )
        return self.state

    # --- Conversation ---

    def select_language(self, language: Language) -> ConversationState:
        return self.dispatch(SelectLanguage(language=language))

    def submit(self, value: Optional[str] = None) -> ConversationState:
        return self.dispatch(SubmitValue(value=value))

    def skip(self) -> ConversationState:
        return self.dispatch(Skip())

    def hear(self, transcript: str, is_final: bool = True) -> ConversationState:
        return self.dispatch(SpeechTranscript(transcript=transcript, is_final=is_final))

    async def start_listening(self) -> None:
        if self.speech is None:
            raise InvalidTransitionError("Speech recognition is not available.")
        if self.is_listening:
            return
        if self.state.field_name is None:
            raise InvalidTransitionError(f"Nothing to dictate during the {self.stage.value} stage.")
        self._listen_task = asyncio.create_task(self._listen(self.state.language.speech_code))

    async def _listen(self, language_code: str) -> None:
        logger.info("speech_listening", session_id=self.session_id, language=language_code)
        try:
            async for result in self.speech.listen(language_code):
                self.hear(result.transcript, result.is_final)
        except CivicGuardError as e:
            # stage moved on or the microphone is unavailable
            logger.warning("speech_session_ended", session_id=self.session_id, error=str(e))

    async def stop_listening(self) -> ConversationState:
        if self.speech is not None:
            await self.speech.stop()
        if self._listen_task is not None:
            await self._listen_task
            self._listen_task = None
        return self.state

    # --- Evidence ---

    def _require_evidence_stage(self) -> None:
        if self.stage != Stage.EVIDENCE:
            raise InvalidTransitionError(f"Evidence can't be changed during the {self.stage.value} stage.")

    async def capture_photo(self) -> Optional[PhotoEvidence]:
        """Live capture with overlay; None when the photo cap is reached"""
        self._require_evidence_stage()
        if len(self.evidence.photos) >= self.evidence.max_photos:
            return None
        async with PhotoCapture(
            self.devices,
            gps_timeout=self.settings.photo_gps_timeout_seconds,
            timezone=self.settings.display_timezone,
            clock=self.clock,
        ) as camera:
            photo = await camera.capture(self.state.fields.location())
        self.gps_warning = photo.gps_warning
        return self.evidence.add_photo(photo.data_uri, photo.gps, photo.timestamp)

    def add_photo(
        self,
        data_uri: str,
        gps: Optional[GpsFix] = None,
        timestamp: Optional[datetime] = None,
    ) -> Optional[PhotoEvidence]:
        """Photo that already carries its overlay"""
        self._require_evidence_stage()
        return self.evidence.add_photo(data_uri, gps, timestamp or self.clock())

    async def upload_photo(
        self,
        data_uri: str,
        gps: Optional[GpsFix] = None,
        timestamp: Optional[datetime] = None,
    ) -> Optional[PhotoEvidence]:
        """Client-side photo; the location/GPS/time overlay is burned in before it is kept"""
        self._require_evidence_stage()
        if len(self.evidence.photos) >= self.evidence.max_photos:
            return None
        timestamp = timestamp or self.clock()
        try:
            stamped = await stamp_photo(
                data_uri, self.state.fields.location(), gps, timestamp, self.settings.display_timezone
            )
        except ValueError as e:
            raise ValidationError(f"Photo could not be read: {e}", field="photos")
        return self.add_photo(stamped, gps, timestamp)

    def remove_photo(self, entry_id: str) -> bool:
        self._require_evidence_stage()
        return self.evidence.remove_photo(entry_id)

    async def start_video(self) -> Optional[str]:
        """Start recording; returns the GPS warning, if any"""
        self._require_evidence_stage()
        if self.video_recorder is not None and self.video_recorder.is_recording:
            raise InvalidTransitionError("A video is already being recorded.")
        recorder = VideoRecorder(
            self.devices,
            max_seconds=self.settings.video_max_seconds,
            gps_timeout=self.settings.photo_gps_timeout_seconds,
            timezone=self.settings.display_timezone,
            clock=self.clock,
            monotonic=self.monotonic,
        )
        await recorder.start(self.state.fields.location())
        self.video_recorder = recorder
        self.gps_warning = recorder.gps_warning
        # the clip lands in the evidence store even when the hard cap stops it
        self._video_task = asyncio.create_task(self._collect_video(recorder))
        return recorder.gps_warning

    async def _collect_video(self, recorder: VideoRecorder) -> VideoEvidence:
        video = await recorder.wait()
        self.evidence.set_video(video)
        logger.info(
            "video_evidence_ready",
            session_id=self.session_id,
            frames=video.frame_count,
            seconds=round(video.duration_seconds, 1),
            auto_stopped=recorder.auto_stopped,
        )
        return video

    async def stop_video(self) -> VideoEvidence:
        if self._video_task is None:
            raise InvalidTransitionError("No video is being recorded.")
        self.video_recorder.stop()
        video = await self._video_task
        self._video_task = None
        return video

    def set_video(self, video: VideoEvidence) -> None:
        self._require_evidence_stage()
        self.evidence.set_video(video)

    def remove_video(self) -> None:
        self._require_evidence_stage()
        self.evidence.clear_video()

    async def start_audio(self) -> None:
        if self.audio_recorder is not None and self.audio_recorder.is_recording:
            raise InvalidTransitionError("A voice clip is already being recorded.")
        recorder = AudioRecorder(
            self.devices,
            max_seconds=self.settings.audio_max_seconds,
            monotonic=self.monotonic,
        )
        await recorder.start()
        self.audio_recorder = recorder
        self._audio_task = asyncio.create_task(self._collect_audio(recorder))

    async def _collect_audio(self, recorder: AudioRecorder) -> AudioEvidence:
        audio = await recorder.wait()
        self.evidence.set_audio(audio)
        return audio

    async def stop_audio(self) -> AudioEvidence:
        if self._audio_task is None:
            raise InvalidTransitionError("No voice clip is being recorded.")
        self.audio_recorder.stop()
        audio = await self._audio_task
        self._audio_task = None
        return audio

    def set_audio(self, audio: AudioEvidence) -> None:
        self.evidence.set_audio(audio)

    # --- Summary / submission ---

    async def _analyze_emotion(self) -> Optional[EmotionAnalysis]:
        audio = self.evidence.audio
        if audio is None or self.emotion is None:
            return None
        try:
            return await self.emotion.analyze(audio.data, audio.mime_type)
        except Exception as e:
            logger.warning("emotion_analysis_skipped", session_id=self.session_id, error=str(e))
            return None

    async def _summarize(self):
        if self.summarizer is None:
            raise RemoteServiceError("summary", "summarization is not configured")
        draft = build_draft(ReportSource.AGENT, self.state.fields, self.evidence)
        return await self.summarizer.summarize(build_report_text(draft))

    async def request_summary(self) -> ConversationState:
        """
        Evidence -> Processing -> Summary. A summarization failure returns to
        Evidence with the localized error; emotion analysis never blocks.
        """
        self.dispatch(RequestSummary(evidence=self.evidence.snapshot()))

        emotion, summary = await asyncio.gather(
            self._analyze_emotion(),
            self._summarize(),
            return_exceptions=True,
        )
        self.emotion_analysis = emotion if isinstance(emotion, EmotionAnalysis) else None

        if isinstance(summary, BaseException):
            logger.error("report_summary_failed", session_id=self.session_id, error=str(summary))
            return self.dispatch(SummaryFailed(message=str(summary)))
        return self.dispatch(SummaryReady(summary=summary))

    async def _final_gps(self) -> Optional[GpsFix]:
        gps = self.evidence.best_gps()
        if gps is not None:
            return gps
        gps, warning = await self.devices.try_locate(
            timeout=self.settings.fallback_gps_timeout_seconds,
            high_accuracy=False,
        )
        if gps is None:
            logger.warning("issue_saved_without_gps", session_id=self.session_id, reason=warning)
        return gps

    async def confirm(self) -> Issue:
        """Create the issue. Confirming again returns the same issue."""
        async with self._confirm_lock:
            if self.issue is not None:
                return self.issue
            if self.stage != Stage.SUMMARY:
                self.dispatch(Confirm())  # raises for any other stage

            fields = validate_fields(self.state.fields, self.catalog)
            validate_evidence(self.evidence.snapshot())
            draft = build_draft(
                ReportSource.AGENT,
                fields,
                self.evidence,
                gps=await self._final_gps(),
                emotion=self.emotion_analysis,
                summary=self.state.summary,
            )
            self.issue = self.store.add_issue(draft)
            self.dispatch(Confirm())
            return self.issue

    def edit(self) -> ConversationState:
        return self.dispatch(Edit())

    async def close(self) -> None:
        """Release everything the session acquired (navigating away)"""
        if not self.running:
            return
        self.running = False
        logger.info("report_session_closing", session_id=self.session_id, stage=self.stage.value)

        if self.speech is not None:
            await self.speech.stop()
        if self._listen_task is not None:
            self._listen_task.cancel()
            await asyncio.gather(self._listen_task, return_exceptions=True)

        for recorder in (self.video_recorder, self.audio_recorder):
            if recorder is not None:
                await recorder.cancel()
        for task in (self._video_task, self._audio_task):
            if task is not None:
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)

        await self.devices.release_all()
        await self.evidence.aclose()
