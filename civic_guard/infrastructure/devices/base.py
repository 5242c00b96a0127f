"""
Device capability interfaces.

Camera, microphone, geolocation and speech recognition are reached only
through these protocols so the capture and agent code can run against real
hardware bridges or the in-memory providers in `memory.py`.
"""
from typing import AsyncIterator, Optional, Protocol, runtime_checkable
from enum import Enum

from PIL import Image
from pydantic import BaseModel

from ...domain.models import GpsFix


class DeviceKind(str, Enum):
    CAMERA = "camera"
    MICROPHONE = "microphone"
    GEOLOCATION = "geolocation"


class Facing(str, Enum):
    ENVIRONMENT = "environment"
    USER = "user"


@runtime_checkable
class VideoStream(Protocol):
    width: int
    height: int

    async def read_frame(self) -> Image.Image:
        """Next frame; waits for the source at its own pace"""
        ...

    def stop(self) -> None:
        ...


@runtime_checkable
class AudioStream(Protocol):
    sample_rate: int
    channels: int

    async def read_chunk(self) -> bytes:
        """Next block of signed 16-bit little-endian PCM"""
        ...

    def stop(self) -> None:
        ...


class Camera(Protocol):
    async def open(self, facing: Facing = Facing.ENVIRONMENT) -> VideoStream:
        """Raises PermissionDenied / DeviceUnavailable"""
        ...


class Microphone(Protocol):
    async def open(self) -> AudioStream:
        ...


class Geolocation(Protocol):
    async def current_position(self, high_accuracy: bool = True) -> GpsFix:
        """Single-shot fix; raises GeolocationError"""
        ...


class SpeechResult(BaseModel):
    transcript: str
    is_final: bool = False


class SpeechRecognizer(Protocol):
    def listen(self, language_code: str) -> AsyncIterator[SpeechResult]:
        """Interim results followed by at most one final result per utterance"""
        ...

    async def stop(self) -> None:
        ...


class DeviceHandle:
    """A live acquisition. Must be handed back to MediaDeviceAdapter.release()."""

    def __init__(self, handle_id: str, kind: DeviceKind, stream=None, fix: Optional[GpsFix] = None):
        self.handle_id = handle_id
        self.kind = kind
        self.stream = stream
        self.fix = fix
        self.released = False

    def __repr__(self) -> str:
        state = "released" if self.released else "live"
        return f"<DeviceHandle {self.kind.value} {self.handle_id} {state}>"
