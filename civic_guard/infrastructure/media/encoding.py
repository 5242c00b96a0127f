"""Frame / audio encoding helpers and data-URI conversion"""
import base64
import io
import wave
from typing import Iterable, Tuple, Union

import numpy as np
from PIL import Image

JPEG_MIME = "image/jpeg"
MJPEG_MIME = "video/x-motion-jpeg"
WAV_MIME = "audio/wav"


def as_image(frame: Union[Image.Image, np.ndarray]) -> Image.Image:
    """Camera bridges may hand over numpy arrays (H, W, 3) instead of PIL images"""
    if isinstance(frame, np.ndarray):
        return Image.fromarray(frame.astype(np.uint8)).convert("RGB")
    return frame


def encode_jpeg(image: Image.Image, quality: int = 92) -> bytes:
    buffer = io.BytesIO()
    image.convert("RGB").save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()


def to_data_uri(data: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def from_data_uri(uri: str) -> Tuple[str, bytes]:
    """Split 'data:<mime>;base64,<payload>' into (mime, bytes). Bare base64 is accepted too."""
    if uri.startswith("data:") and "," in uri:
        header, payload = uri.split(",", 1)
        mime_type = header[5:].split(";")[0] or "application/octet-stream"
    else:
        mime_type, payload = "application/octet-stream", uri
    return mime_type, base64.b64decode(payload)


def pcm_to_wav(chunks: Iterable[bytes], sample_rate: int, channels: int = 1) -> bytes:
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav:
        wav.setnchannels(channels)
        wav.setsampwidth(2)  # 16-bit signed PCM
        wav.setframerate(sample_rate)
        for chunk in chunks:
            wav.writeframes(chunk)
    return buffer.getvalue()


def pcm_duration(byte_count: int, sample_rate: int, channels: int = 1) -> float:
    return byte_count / (2 * channels * sample_rate)


def pcm_rms(chunk: bytes) -> float:
    if len(chunk) < 2:
        return 0.0
    audio = np.frombuffer(chunk[: len(chunk) // 2 * 2], dtype='<i2').astype(np.float32)
    return float(np.sqrt(np.mean(audio ** 2)))


def decode_image(data: bytes) -> Image.Image:
    """Uploaded photo bytes as an RGB image; ValueError when they are not an image"""
    try:
        with Image.open(io.BytesIO(data)) as image:
            return image.convert("RGB")
    except OSError as e:
        raise ValueError(f"not a readable image: {e}")
