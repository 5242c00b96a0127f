"""Transient evidence captured for an in-progress report"""
from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel

from .issue import ImageAnalysis


class GpsFix(SQLModel):
    lat: float
    lng: float
    accuracy: float = 0.0


class PhotoEvidence(SQLModel):
    entry_id: str  # stable key; analysis results are matched on this, never on position
    data_uri: str
    gps: Optional[GpsFix] = None
    timestamp: datetime
    analysis: Optional[ImageAnalysis] = None  # None while pending

    @property
    def is_pending(self) -> bool:
        return self.analysis is None


class VideoEvidence(SQLModel):
    data_uri: str
    mime_type: str = "video/x-motion-jpeg"
    gps: Optional[GpsFix] = None
    duration_seconds: float = 0.0
    frame_count: int = 0
    audio_track: Optional[str] = None  # WAV data URI recorded alongside the frames


class AudioEvidence(SQLModel):
    data: bytes
    mime_type: str = "audio/wav"
    data_uri: str
