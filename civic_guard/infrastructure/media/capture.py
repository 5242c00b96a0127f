"""
Evidence capture: photo, video and audio recorders.

Every recorder releases the devices it acquired on every exit path: normal
stop, hard duration cap, error or cancellation.
"""
import asyncio
import io
import logging
from datetime import datetime
from typing import Callable, List, Optional
from zoneinfo import ZoneInfo

from pydantic import BaseModel

from ...domain.models import GpsFix, VideoEvidence, AudioEvidence, DraftLocation
from ...domain.state import utcnow
from ..devices import DeviceHandle, DeviceKind, GpsContext, MediaDeviceAdapter
from .encoding import (
    JPEG_MIME,
    MJPEG_MIME,
    WAV_MIME,
    as_image,
    decode_image,
    encode_jpeg,
    from_data_uri,
    pcm_duration,
    pcm_rms,
    pcm_to_wav,
    to_data_uri,
)
from .overlay import OverlayCaptions, compose_overlay

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "Asia/Kolkata"


class CapturedPhoto(BaseModel):
    data_uri: str
    gps: Optional[GpsFix] = None
    timestamp: datetime
    gps_warning: Optional[str] = None


def _captions(location: DraftLocation, gps: Optional[GpsFix], moment: datetime, tz: ZoneInfo) -> OverlayCaptions:
    return OverlayCaptions.build(
        timestamp=moment.astimezone(tz),
        gps=gps,
        district=location.district,
        panchayat=location.panchayat,
        village=location.village,
    )


class PhotoCapture:
    """
    Live photo capture.

        async with PhotoCapture(devices) as camera:
            photo = await camera.capture(location)
    """

    def __init__(
        self,
        devices: MediaDeviceAdapter,
        gps_timeout: float = 10.0,
        timezone: str = DEFAULT_TIMEZONE,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.devices = devices
        self.gps_timeout = gps_timeout
        self.tz = ZoneInfo(timezone)
        self.clock = clock
        self.handle: Optional[DeviceHandle] = None

    async def open(self) -> None:
        self.handle = await self.devices.acquire(DeviceKind.CAMERA)

    async def close(self) -> None:
        await self.devices.release(self.handle)
        self.handle = None

    async def __aenter__(self) -> "PhotoCapture":
        await self.open()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    async def capture(self, location: DraftLocation) -> CapturedPhoto:
        if self.handle is None or self.handle.released:
            await self.open()

        frame = as_image(await self.handle.stream.read_frame())
        timestamp = self.clock()

        # High-accuracy single shot; the photo is kept even without a fix
        gps, warning = await self.devices.try_locate(
            timeout=self.gps_timeout, high_accuracy=True, context=GpsContext.PHOTO
        )

        loop = asyncio.get_running_loop()
        jpeg = await loop.run_in_executor(
            None,
            lambda: encode_jpeg(compose_overlay(frame, _captions(location, gps, timestamp, self.tz))),
        )
        logger.info(f"Photo captured ({len(jpeg)} bytes, gps={'yes' if gps else 'no'})")
        return CapturedPhoto(
            data_uri=to_data_uri(jpeg, JPEG_MIME),
            gps=gps,
            timestamp=timestamp,
            gps_warning=warning,
        )


async def stamp_photo(
    data_uri: str,
    location: DraftLocation,
    gps: Optional[GpsFix],
    timestamp: datetime,
    timezone: str = DEFAULT_TIMEZONE,
) -> str:
    """
    Burn the caption overlay into an uploaded photo.
    Returns a JPEG data URI; raises ValueError when the upload is not an image.
    """
    _, data = from_data_uri(data_uri)
    frame = decode_image(data)
    tz = ZoneInfo(timezone)

    loop = asyncio.get_running_loop()
    jpeg = await loop.run_in_executor(
        None,
        lambda: encode_jpeg(compose_overlay(frame, _captions(location, gps, timestamp, tz))),
    )
    logger.info(f"Uploaded photo stamped ({len(jpeg)} bytes, gps={'yes' if gps else 'no'})")
    return to_data_uri(jpeg, JPEG_MIME)


class MotionJpegSink:
    """Collects composited frames as a Motion-JPEG byte stream"""

    def __init__(self, quality: int = 80):
        self.quality = quality
        self.frame_count = 0
        self._buffer = io.BytesIO()

    def write(self, frame) -> None:
        self._buffer.write(encode_jpeg(frame, self.quality))
        self.frame_count += 1

    def getvalue(self) -> bytes:
        return self._buffer.getvalue()


class TimedRecorder:
    """
    Start/stop recorder with a hard duration cap.

    The cap is enforced twice: a loop timer that sets the stop flag, and an
    elapsed-time check on every iteration (which also works with a fake clock).
    """

    kinds: List[DeviceKind] = []

    def __init__(
        self,
        devices: MediaDeviceAdapter,
        max_seconds: float,
        monotonic: Optional[Callable[[], float]] = None,
    ):
        self.devices = devices
        self.max_seconds = max_seconds
        self._monotonic = monotonic
        self._handles: List[DeviceHandle] = []
        self._stop = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self._started_at = 0.0
        self.auto_stopped = False

    def _now(self) -> float:
        return self._monotonic() if self._monotonic else asyncio.get_running_loop().time()

    def elapsed(self) -> float:
        return self._now() - self._started_at if self._task else 0.0

    @property
    def is_recording(self) -> bool:
        return self._task is not None and not self._task.done()

    def _should_stop(self) -> bool:
        if self._stop.is_set():
            return True
        if self.elapsed() >= self.max_seconds:
            self.auto_stopped = True
            return True
        return False

    async def _acquire(self) -> None:
        try:
            for kind in self.kinds:
                self._handles.append(await self.devices.acquire(kind))
        except Exception:
            await self._release()
            raise

    async def _release(self) -> None:
        for handle in self._handles:
            await self.devices.release(handle)
        self._handles = []

    def _handle(self, kind: DeviceKind) -> DeviceHandle:
        return next(h for h in self._handles if h.kind == kind)

    async def _begin(self) -> None:
        self._stop = asyncio.Event()
        self.auto_stopped = False
        self._started_at = self._now()
        self._task = asyncio.create_task(self._run())

    async def _run(self):
        loop = asyncio.get_running_loop()

        def hard_stop():
            self.auto_stopped = True
            self._stop.set()

        timer = loop.call_later(self.max_seconds, hard_stop)
        try:
            return await self._record()
        finally:
            timer.cancel()
            await self._release()

    async def _record(self):
        raise NotImplementedError

    def stop(self) -> None:
        self._stop.set()

    async def wait(self):
        if self._task is None:
            raise RuntimeError("Recorder was never started")
        return await self._task

    async def cancel(self) -> None:
        """Abandon the recording (navigating away); devices are still released"""
        if self._task is None:
            await self._release()
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.warning(f"Recorder ended with error during cancel: {e}")


class VideoRecorder(TimedRecorder):
    """
    Records the camera with the overlay burned into every frame.

    GPS and location captions are fixed at start; the time-of-day line is
    recomputed per frame. Frames are pulled as fast as the source delivers
    them, there is no fixed frame clock.
    """

    kinds = [DeviceKind.CAMERA, DeviceKind.MICROPHONE]

    def __init__(
        self,
        devices: MediaDeviceAdapter,
        max_seconds: float = 30.0,
        gps_timeout: float = 10.0,
        timezone: str = DEFAULT_TIMEZONE,
        clock: Callable[[], datetime] = utcnow,
        monotonic: Optional[Callable[[], float]] = None,
        jpeg_quality: int = 80,
    ):
        super().__init__(devices, max_seconds, monotonic)
        self.gps_timeout = gps_timeout
        self.tz = ZoneInfo(timezone)
        self.clock = clock
        self.jpeg_quality = jpeg_quality
        self.location = DraftLocation()
        self.gps: Optional[GpsFix] = None
        self.gps_warning: Optional[str] = None
        self.sink: Optional[MotionJpegSink] = None
        self._audio_chunks: List[bytes] = []

    async def start(self, location: DraftLocation) -> None:
        if self.is_recording:
            raise RuntimeError("Recording already in progress")
        await self._acquire()

        self.location = location
        self.gps, self.gps_warning = await self.devices.try_locate(
            timeout=self.gps_timeout, high_accuracy=True, context=GpsContext.VIDEO
        )
        self.sink = MotionJpegSink(self.jpeg_quality)
        self._audio_chunks = []
        await self._begin()
        logger.info(f"Video recording started (cap {self.max_seconds}s)")

    async def _capture_audio(self) -> None:
        stream = self._handle(DeviceKind.MICROPHONE).stream
        while not self._stop.is_set():
            self._audio_chunks.append(await stream.read_chunk())

    async def _record(self) -> VideoEvidence:
        loop = asyncio.get_running_loop()
        camera = self._handle(DeviceKind.CAMERA).stream
        audio_task = asyncio.create_task(self._capture_audio())

        try:
            while not self._should_stop():
                frame = as_image(await camera.read_frame())
                captions = _captions(self.location, self.gps, self.clock(), self.tz)
                composed = await loop.run_in_executor(None, compose_overlay, frame, captions)
                self.sink.write(composed)
        finally:
            self._stop.set()
            audio_task.cancel()
            try:
                await audio_task
            except asyncio.CancelledError:
                pass

        duration = min(self.elapsed(), self.max_seconds)
        logger.info(
            f"Video recording finished: {self.sink.frame_count} frames, {duration:.1f}s"
            + (" (hard cap)" if self.auto_stopped else "")
        )
        audio_stream = self._handle(DeviceKind.MICROPHONE).stream
        audio_track = None
        if self._audio_chunks:
            audio_track = to_data_uri(pcm_to_wav(self._audio_chunks, audio_stream.sample_rate), WAV_MIME)

        return VideoEvidence(
            data_uri=to_data_uri(self.sink.getvalue(), MJPEG_MIME),
            mime_type=MJPEG_MIME,
            gps=self.gps,
            duration_seconds=duration,
            frame_count=self.sink.frame_count,
            audio_track=audio_track,
        )


class AudioRecorder(TimedRecorder):
    """Voice clip for emotion analysis; microphone only, capped at 120 s"""

    kinds = [DeviceKind.MICROPHONE]

    def __init__(
        self,
        devices: MediaDeviceAdapter,
        max_seconds: float = 120.0,
        monotonic: Optional[Callable[[], float]] = None,
    ):
        super().__init__(devices, max_seconds, monotonic)
        self.peak_rms = 0.0

    async def start(self) -> None:
        if self.is_recording:
            raise RuntimeError("Recording already in progress")
        await self._acquire()
        self.peak_rms = 0.0
        await self._begin()

    async def _record(self) -> AudioEvidence:
        stream = self._handle(DeviceKind.MICROPHONE).stream
        chunks: List[bytes] = []
        while not self._should_stop():
            chunk = await stream.read_chunk()
            chunks.append(chunk)
            self.peak_rms = max(self.peak_rms, pcm_rms(chunk))

        wav = pcm_to_wav(chunks, stream.sample_rate, stream.channels)
        seconds = pcm_duration(sum(len(c) for c in chunks), stream.sample_rate, stream.channels)
        logger.info(f"Audio clip recorded: {seconds:.1f}s of audio, peak rms {self.peak_rms:.0f}")
        return AudioEvidence(data=wav, mime_type=WAV_MIME, data_uri=to_data_uri(wav, WAV_MIME))
