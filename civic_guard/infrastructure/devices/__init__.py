"""Device capabilities: camera, microphone, geolocation, speech"""
from .base import (
    DeviceKind,
    DeviceHandle,
    Facing,
    Camera,
    Microphone,
    Geolocation,
    SpeechRecognizer,
    SpeechResult,
    VideoStream,
    AudioStream,
)
from .adapter import MediaDeviceAdapter, GpsContext, gps_error_message
from .memory import (
    ReplayCamera,
    ReplayMicrophone,
    StaticGeolocation,
    ScriptedSpeechRecognizer,
)

__all__ = [
    "DeviceKind",
    "DeviceHandle",
    "Facing",
    "Camera",
    "Microphone",
    "Geolocation",
    "SpeechRecognizer",
    "SpeechResult",
    "VideoStream",
    "AudioStream",
    "MediaDeviceAdapter",
    "GpsContext",
    "gps_error_message",
    "ReplayCamera",
    "ReplayMicrophone",
    "StaticGeolocation",
    "ScriptedSpeechRecognizer",
]
