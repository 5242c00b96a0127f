"""Shared API dependencies: the application container and its collaborators"""
from typing import Callable, Dict, Optional

import structlog
from fastapi import Depends, Request
from openai import AsyncOpenAI

from ..agent import EvidenceStore, ReportSession
from ..config import Settings
from ..domain.errors import AuthorizationError, NotFoundError
from ..domain.models import User, UserRole
from ..domain.store import IssueStore
from ..infrastructure.ai import (
    AuthenticityClassifier,
    CivicAssistant,
    EmotionAnalyzer,
    ReportSummarizer,
    WhisperSpeechRecognizer,
    build_openai_client,
    build_whisper_client,
)
from ..infrastructure.devices import MediaDeviceAdapter
from ..infrastructure.locations import LocationCatalog, VillageBoundaries

logger = structlog.get_logger()


class AppContainer:
    """Everything a request handler needs, built once at startup"""

    def __init__(
        self,
        settings: Settings,
        store: IssueStore,
        catalog: LocationCatalog,
        boundaries: VillageBoundaries,
        openai_client: Optional[AsyncOpenAI] = None,
        whisper_client: Optional[AsyncOpenAI] = None,
    ):
        self.settings = settings
        self.store = store
        self.catalog = catalog
        self.boundaries = boundaries
        self.sessions: Dict[str, ReportSession] = {}
        # device providers for server-side capture; none are attached by default
        self.device_factory: Callable[[], MediaDeviceAdapter] = MediaDeviceAdapter
        self.whisper_client = whisper_client

        self.classifier: Optional[AuthenticityClassifier] = None
        self.summarizer: Optional[ReportSummarizer] = None
        self.emotion: Optional[EmotionAnalyzer] = None
        self.assistant: Optional[CivicAssistant] = None
        self.transcriber: Optional[WhisperSpeechRecognizer] = None

        if openai_client is not None:
            self.classifier = AuthenticityClassifier(
                openai_client, settings.openai_model, retries=settings.classifier_retries
            )
            self.summarizer = ReportSummarizer(openai_client, settings.openai_model)
            self.emotion = EmotionAnalyzer(openai_client, settings.openai_audio_model)
            self.assistant = CivicAssistant(openai_client, settings.openai_model)
        if whisper_client is not None:
            # uploaded clips only; nothing is recorded through it
            self.transcriber = WhisperSpeechRecognizer(
                MediaDeviceAdapter(), whisper_client, settings.whisper_model
            )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        store: IssueStore,
        catalog: LocationCatalog,
        boundaries: VillageBoundaries,
    ) -> "AppContainer":
        if not settings.openai_api_key:
            logger.warning("openai_not_configured", detail="AI summaries and analysis are disabled")
            return cls(settings, store, catalog, boundaries)
        return cls(
            settings,
            store,
            catalog,
            boundaries,
            openai_client=build_openai_client(settings),
            whisper_client=build_whisper_client(settings),
        )

    def evidence_store(self) -> EvidenceStore:
        return EvidenceStore(self.classifier, self.settings.max_photos)

    def speech_recognizer(self, devices: MediaDeviceAdapter) -> Optional[WhisperSpeechRecognizer]:
        if self.whisper_client is None:
            return None
        return WhisperSpeechRecognizer(devices, self.whisper_client, self.settings.whisper_model)

    def open_session(self) -> ReportSession:
        devices = self.device_factory()
        session = ReportSession(
            self.store,
            self.catalog,
            self.settings,
            devices=devices,
            speech=self.speech_recognizer(devices),
            classifier=self.classifier,
            summarizer=self.summarizer,
            emotion=self.emotion,
        )
        self.sessions[session.session_id] = session
        logger.info("report_session_opened", session_id=session.session_id, open_sessions=len(self.sessions))
        return session

    def get_session(self, session_id: str) -> ReportSession:
        session = self.sessions.get(session_id)
        if session is None:
            raise NotFoundError(f"Report session {session_id} not found")
        return session

    async def close_session(self, session_id: str) -> None:
        session = self.sessions.pop(session_id, None)
        if session is None:
            raise NotFoundError(f"Report session {session_id} not found")
        await session.close()

    async def aclose(self) -> None:
        for session_id in list(self.sessions):
            await self.close_session(session_id)


def get_container(request: Request) -> AppContainer:
    return request.app.state.container


def get_store(container: AppContainer = Depends(get_container)) -> IssueStore:
    return container.store


def get_current_user(store: IssueStore = Depends(get_store)) -> User:
    return store.current_user


def require_leader(user: User = Depends(get_current_user)) -> User:
    if user.role != UserRole.LEADER:
        raise AuthorizationError("Only panchayat leaders can access this resource")
    return user
