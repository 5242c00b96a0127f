"""
Evidence Store
Photos, video and voice clip for the report being composed.

Each photo is keyed by a stable entry id. Its authenticity analysis runs in
the background and is written back by that id, so removing a photo while its
analysis is in flight can never attach the late result to another photo.
"""
import asyncio
import uuid
from datetime import datetime
from typing import Callable, Dict, List, Optional

import structlog
from pydantic import BaseModel

from ..domain.models import (
    AudioEvidence,
    GpsFix,
    ImageAnalysis,
    PhotoEvidence,
    VideoEvidence,
)
from ..domain.state import utcnow
from ..infrastructure.ai.authenticity import AuthenticityClassifier, unknown_analysis
from ..infrastructure.media.encoding import from_data_uri

logger = structlog.get_logger()

MAX_PHOTOS = 3


class EvidenceSnapshot(BaseModel):
    photo_count: int = 0
    has_video: bool = False
    has_audio: bool = False
    all_analyses_done: bool = True


class EvidenceStore:
    def __init__(
        self,
        classifier: Optional[AuthenticityClassifier] = None,
        max_photos: int = MAX_PHOTOS,
    ):
        self.classifier = classifier
        self.max_photos = max_photos
        self._photos: Dict[str, PhotoEvidence] = {}  # insertion ordered
        self._tasks: Dict[str, asyncio.Task] = {}
        self.video: Optional[VideoEvidence] = None
        self.audio: Optional[AudioEvidence] = None
        self._listeners: List[Callable[[PhotoEvidence], None]] = []

    # --- Photos ---

    @property
    def photos(self) -> List[PhotoEvidence]:
        return list(self._photos.values())

    def get_photo(self, entry_id: str) -> Optional[PhotoEvidence]:
        return self._photos.get(entry_id)

    def on_analysis(self, listener: Callable[[PhotoEvidence], None]) -> None:
        self._listeners.append(listener)

    def add_photo(
        self,
        data_uri: str,
        gps: Optional[GpsFix] = None,
        timestamp: Optional[datetime] = None,
    ) -> Optional[PhotoEvidence]:
        """Add a photo and start its analysis. At capacity this is a no-op returning None."""
        if len(self._photos) >= self.max_photos:
            logger.info("photo_capacity_reached", max_photos=self.max_photos)
            return None

        entry = PhotoEvidence(
            entry_id=uuid.uuid4().hex,
            data_uri=data_uri,
            gps=gps,
            timestamp=timestamp or utcnow(),
        )
        self._photos[entry.entry_id] = entry

        if self.classifier is None:
            self.resolve(entry.entry_id, unknown_analysis("Authenticity analysis is not configured."))
        else:
            self._tasks[entry.entry_id] = asyncio.create_task(self._analyze(entry.entry_id, data_uri))

        logger.info("photo_added", entry_id=entry.entry_id, count=len(self._photos), gps=gps is not None)
        return self._photos.get(entry.entry_id, entry)

    async def _analyze(self, entry_id: str, data_uri: str) -> None:
        try:
            mime_type, image_bytes = from_data_uri(data_uri)
            analysis = await self.classifier.classify(image_bytes, mime_type)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("photo_analysis_crashed", entry_id=entry_id, error=str(e))
            analysis = unknown_analysis("Authenticity analysis failed.")
        self.resolve(entry_id, analysis)

    def resolve(self, entry_id: str, analysis: ImageAnalysis) -> bool:
        """Attach an analysis result. Results for removed photos are dropped."""
        photo = self._photos.get(entry_id)
        if photo is None:
            logger.info("late_analysis_discarded", entry_id=entry_id, status=analysis.status.value)
            return False

        updated = photo.model_copy(update={"analysis": analysis})
        self._photos[entry_id] = updated
        logger.info(
            "photo_analysis_resolved",
            entry_id=entry_id,
            status=analysis.status.value,
            confidence=analysis.confidence,
        )
        for listener in list(self._listeners):
            listener(updated)
        return True

    def remove_photo(self, entry_id: str) -> bool:
        """Removes the entry; an in-flight analysis keeps running and is discarded on arrival"""
        removed = self._photos.pop(entry_id, None)
        if removed:
            logger.info("photo_removed", entry_id=entry_id, count=len(self._photos))
        return removed is not None

    @property
    def all_analyses_done(self) -> bool:
        return all(not p.is_pending for p in self._photos.values())

    async def wait_for_analyses(self, timeout: Optional[float] = None) -> bool:
        pending = [
            task for entry_id, task in self._tasks.items()
            if entry_id in self._photos and not task.done()
        ]
        if pending:
            await asyncio.wait(pending, timeout=timeout)
        return self.all_analyses_done

    def image_analyses(self) -> List[ImageAnalysis]:
        return [p.analysis for p in self._photos.values() if p.analysis is not None]

    def photo_uris(self) -> List[str]:
        return [p.data_uri for p in self._photos.values()]

    def best_gps(self) -> Optional[GpsFix]:
        """First photo that has a fix, else the video's"""
        for photo in self._photos.values():
            if photo.gps is not None:
                return photo.gps
        return self.video.gps if self.video else None

    # --- Video / audio ---

    def set_video(self, video: VideoEvidence) -> None:
        self.video = video

    def clear_video(self) -> None:
        self.video = None

    def set_audio(self, audio: AudioEvidence) -> None:
        self.audio = audio

    def clear_audio(self) -> None:
        self.audio = None

    def snapshot(self) -> EvidenceSnapshot:
        return EvidenceSnapshot(
            photo_count=len(self._photos),
            has_video=self.video is not None,
            has_audio=self.audio is not None,
            all_analyses_done=self.all_analyses_done,
        )

    async def aclose(self) -> None:
        """Cancel outstanding analyses (session teardown)"""
        for task in self._tasks.values():
            if not task.done():
                task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks.values(), return_exceptions=True)
        self._tasks.clear()
