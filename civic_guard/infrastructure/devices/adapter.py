"""
Media Device Adapter
Acquisition, lifetime and teardown of camera / microphone / geolocation.

Only one camera stream may be live at a time: acquiring the camera again
releases the previous handle first.
"""
import asyncio
import logging
import uuid
from typing import Dict, Optional, Tuple

from ...domain.errors import (
    CaptureError,
    GeolocationError,
    GeolocationErrorCode,
    Unsupported,
)
from ...domain.models import GpsFix
from .base import Camera, DeviceHandle, DeviceKind, Facing, Geolocation, Microphone

logger = logging.getLogger(__name__)

DEFAULT_GPS_TIMEOUT = 10.0


class GpsContext:
    PHOTO = "photo"
    VIDEO = "video"


# User-facing geolocation failure messages; the capture always continues
GPS_ERROR_MESSAGES = {
    GpsContext.PHOTO: {
        GeolocationErrorCode.PERMISSION_DENIED: "GPS permission denied. Please enable location access for this site in your browser settings. The photo was captured without location data.",
        GeolocationErrorCode.POSITION_UNAVAILABLE: "Your location is currently unavailable. This might be due to a poor signal. The photo was captured without location data.",
        GeolocationErrorCode.TIMEOUT: "Getting your location timed out. Try moving to an open area with a clear view of the sky. The photo was captured without location data.",
        None: "Could not get GPS location. The photo was captured without location data.",
    },
    GpsContext.VIDEO: {
        GeolocationErrorCode.PERMISSION_DENIED: "GPS permission denied. Please enable location access for this site in your browser settings. Recording will start without location data.",
        GeolocationErrorCode.POSITION_UNAVAILABLE: "Your location is currently unavailable, possibly due to poor signal. Recording will start without location data.",
        GeolocationErrorCode.TIMEOUT: "Getting your location timed out. Try moving to an open area. Recording will start without location data.",
        None: "Could not get GPS location. Recording will start without location data.",
    },
}


def gps_error_message(error: Exception, context: str = GpsContext.PHOTO) -> str:
    code = error.code if isinstance(error, GeolocationError) else None
    return GPS_ERROR_MESSAGES[context][code]


class MediaDeviceAdapter:
    """Wraps the device providers and tracks every live handle"""

    def __init__(
        self,
        camera: Optional[Camera] = None,
        microphone: Optional[Microphone] = None,
        geolocation: Optional[Geolocation] = None,
    ):
        self.camera = camera
        self.microphone = microphone
        self.geolocation = geolocation
        self._handles: Dict[str, DeviceHandle] = {}
        self._camera_handle: Optional[DeviceHandle] = None

    @property
    def live_handles(self) -> list:
        return [h for h in self._handles.values() if not h.released]

    async def acquire(
        self,
        kind: DeviceKind,
        facing: Facing = Facing.ENVIRONMENT,
        timeout: float = DEFAULT_GPS_TIMEOUT,
        high_accuracy: bool = True,
    ) -> DeviceHandle:
        """
        Acquire a device.

        Camera and microphone return a handle bound to a live stream.
        Geolocation is single-shot: the handle carries the fix and holds
        no hardware.
        """
        handle_id = uuid.uuid4().hex[:12]

        if kind == DeviceKind.GEOLOCATION:
            fix = await self.locate(timeout=timeout, high_accuracy=high_accuracy)
            return DeviceHandle(handle_id, kind, fix=fix)

        if kind == DeviceKind.CAMERA:
            if self.camera is None:
                raise Unsupported("Your browser does not support camera access.", kind=kind.value)
            if self._camera_handle and not self._camera_handle.released:
                logger.info(f"Releasing previous camera stream {self._camera_handle.handle_id}")
                await self.release(self._camera_handle)
            stream = await self.camera.open(facing=facing)
        elif kind == DeviceKind.MICROPHONE:
            if self.microphone is None:
                raise Unsupported("Your browser does not support microphone access.", kind=kind.value)
            stream = await self.microphone.open()
        else:
            raise Unsupported(f"Unknown device kind: {kind}")

        handle = DeviceHandle(handle_id, kind, stream=stream)
        self._handles[handle_id] = handle
        if kind == DeviceKind.CAMERA:
            self._camera_handle = handle
        logger.info(f"Acquired {kind.value} ({handle_id})")
        return handle

    async def release(self, handle: Optional[DeviceHandle]) -> None:
        """Stop the hardware behind a handle. Safe to call more than once."""
        if handle is None or handle.released:
            return
        handle.released = True
        self._handles.pop(handle.handle_id, None)
        if self._camera_handle is handle:
            self._camera_handle = None
        if handle.stream is not None:
            try:
                handle.stream.stop()
            except Exception as e:
                logger.warning(f"Error stopping {handle.kind.value} stream: {e}")
        logger.info(f"Released {handle.kind.value} ({handle.handle_id})")

    async def release_all(self) -> None:
        for handle in list(self._handles.values()):
            await self.release(handle)

    async def locate(self, timeout: float = DEFAULT_GPS_TIMEOUT, high_accuracy: bool = True) -> GpsFix:
        if self.geolocation is None:
            raise GeolocationError(GeolocationErrorCode.POSITION_UNAVAILABLE, "Geolocation is not supported")
        try:
            return await asyncio.wait_for(
                self.geolocation.current_position(high_accuracy=high_accuracy),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            raise GeolocationError(GeolocationErrorCode.TIMEOUT, f"No position within {timeout}s")

    async def try_locate(
        self,
        timeout: float = DEFAULT_GPS_TIMEOUT,
        high_accuracy: bool = True,
        context: str = GpsContext.PHOTO,
    ) -> Tuple[Optional[GpsFix], Optional[str]]:
        """Best-effort fix for a capture: (fix, None) or (None, user-facing warning)"""
        try:
            return await self.locate(timeout=timeout, high_accuracy=high_accuracy), None
        except CaptureError as e:
            code = getattr(e, "code", None)
            logger.warning(f"Could not get GPS location for {context}: {code} {e}")
            return None, gps_error_message(e, context)
