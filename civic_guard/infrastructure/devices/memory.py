"""In-memory device providers - deterministic frames, coordinates and transcripts"""
import asyncio
from typing import AsyncIterator, List, Optional, Sequence, Union

from PIL import Image

from ...domain.errors import (
    DeviceUnavailable,
    GeolocationError,
    GeolocationErrorCode,
    PermissionDenied,
)
from ...domain.models import GpsFix
from .base import Facing, SpeechResult


class ReplayVideoStream:
    def __init__(self, frames: Sequence[Image.Image], fps: Optional[float] = None):
        self.frames = list(frames)
        self.fps = fps
        self.width, self.height = self.frames[0].size
        self.frames_read = 0
        self.stopped = False

    async def read_frame(self) -> Image.Image:
        if self.stopped:
            raise DeviceUnavailable("Camera stream has been stopped", kind="camera")
        await asyncio.sleep(1 / self.fps if self.fps else 0)
        frame = self.frames[self.frames_read % len(self.frames)]
        self.frames_read += 1
        return frame.copy()

    def stop(self) -> None:
        self.stopped = True


class ReplayCamera:
    """
    Camera that loops over the given frames. With no frames it produces a
    plain grey 640x480 picture.
    """

    def __init__(
        self,
        frames: Optional[Sequence[Image.Image]] = None,
        fps: Optional[float] = None,
        permission_denied: bool = False,
        unavailable: bool = False,
    ):
        self.frames = list(frames) if frames else [Image.new("RGB", (640, 480), (128, 128, 128))]
        self.fps = fps
        self.permission_denied = permission_denied
        self.unavailable = unavailable
        self.opened: List[ReplayVideoStream] = []

    async def open(self, facing: Facing = Facing.ENVIRONMENT) -> ReplayVideoStream:
        if self.permission_denied:
            raise PermissionDenied(
                "Camera permission was denied. To take a photo, please grant permission in your browser's settings.",
                kind="camera",
            )
        if self.unavailable:
            raise DeviceUnavailable("Could not access camera: no device found", kind="camera")
        stream = ReplayVideoStream(self.frames, self.fps)
        self.opened.append(stream)
        return stream

    @property
    def live_streams(self) -> List[ReplayVideoStream]:
        return [s for s in self.opened if not s.stopped]


class ReplayAudioStream:
    def __init__(self, chunks: Sequence[bytes], sample_rate: int, chunk_seconds: Optional[float]):
        self.chunks = list(chunks)
        self.sample_rate = sample_rate
        self.channels = 1
        self.chunk_seconds = chunk_seconds
        self.position = 0
        self.stopped = False

    async def read_chunk(self) -> bytes:
        if self.stopped:
            raise DeviceUnavailable("Microphone stream has been stopped", kind="microphone")
        await asyncio.sleep(self.chunk_seconds or 0)
        chunk = self.chunks[self.position % len(self.chunks)]
        self.position += 1
        return chunk

    def stop(self) -> None:
        self.stopped = True


class ReplayMicrophone:
    """Microphone that loops over PCM chunks (100 ms of silence by default)"""

    def __init__(
        self,
        chunks: Optional[Sequence[bytes]] = None,
        sample_rate: int = 16000,
        chunk_seconds: Optional[float] = None,
        permission_denied: bool = False,
    ):
        self.sample_rate = sample_rate
        self.chunks = list(chunks) if chunks else [b"\x00\x00" * (sample_rate // 10)]
        self.chunk_seconds = chunk_seconds
        self.permission_denied = permission_denied
        self.opened: List[ReplayAudioStream] = []

    async def open(self) -> ReplayAudioStream:
        if self.permission_denied:
            raise PermissionDenied("Microphone permission was denied.", kind="microphone")
        stream = ReplayAudioStream(self.chunks, self.sample_rate, self.chunk_seconds)
        self.opened.append(stream)
        return stream

    @property
    def live_streams(self) -> List[ReplayAudioStream]:
        return [s for s in self.opened if not s.stopped]


class StaticGeolocation:
    """Returns a fixed position, or fails with the given error code"""

    def __init__(
        self,
        fix: Optional[GpsFix] = None,
        error: Optional[GeolocationErrorCode] = None,
        delay: float = 0.0,
    ):
        self.fix = fix
        self.error = error
        self.delay = delay
        self.requests: List[bool] = []  # high_accuracy flag per request

    async def current_position(self, high_accuracy: bool = True) -> GpsFix:
        self.requests.append(high_accuracy)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise GeolocationError(self.error)
        if self.fix is None:
            raise GeolocationError(GeolocationErrorCode.POSITION_UNAVAILABLE)
        return self.fix


class ScriptedSpeechRecognizer:
    """Plays back a script of results. Bare strings are treated as final transcripts."""

    def __init__(self, script: Optional[Sequence[Union[str, SpeechResult]]] = None):
        self.script = [
            SpeechResult(transcript=item, is_final=True) if isinstance(item, str) else item
            for item in (script or [])
        ]
        self.language_codes: List[str] = []
        self.stopped = False

    async def listen(self, language_code: str) -> AsyncIterator[SpeechResult]:
        self.language_codes.append(language_code)
        self.stopped = False
        for result in self.script:
            if self.stopped:
                break
            await asyncio.sleep(0)
            yield result

    async def stop(self) -> None:
        self.stopped = True
