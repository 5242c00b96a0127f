"""Overlay compositing and evidence capture"""
from .overlay import OverlayCaptions, compose_overlay, format_timestamp, gps_line, location_line
from .capture import PhotoCapture, CapturedPhoto, VideoRecorder, AudioRecorder, MotionJpegSink, stamp_photo
from .encoding import decode_image, encode_jpeg, to_data_uri, from_data_uri

__all__ = [
    "OverlayCaptions",
    "compose_overlay",
    "format_timestamp",
    "gps_line",
    "location_line",
    "PhotoCapture",
    "CapturedPhoto",
    "VideoRecorder",
    "AudioRecorder",
    "MotionJpegSink",
    "stamp_photo",
    "decode_image",
    "encode_jpeg",
    "to_data_uri",
    "from_data_uri",
]
