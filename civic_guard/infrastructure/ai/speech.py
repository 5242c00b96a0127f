"""
Whisper speech recognizer
Records the microphone until stopped, then transcribes the utterance with
OpenAI Whisper and emits a single final result.
"""
import asyncio
import io
from typing import AsyncIterator, List, Optional

import structlog
from openai import AsyncOpenAI

from ..devices import DeviceKind, MediaDeviceAdapter, SpeechResult
from ..media.encoding import pcm_to_wav

logger = structlog.get_logger()


class WhisperSpeechRecognizer:
    def __init__(
        self,
        devices: MediaDeviceAdapter,
        client: AsyncOpenAI,
        model: str = "whisper-1",
        max_seconds: float = 30.0,
    ):
        self.devices = devices
        self.client = client
        self.model = model
        self.max_seconds = max_seconds
        self._stop = asyncio.Event()

    async def stop(self) -> None:
        self._stop.set()

    async def _record(self) -> Optional[bytes]:
        handle = await self.devices.acquire(DeviceKind.MICROPHONE)
        stream = handle.stream
        chunks: List[bytes] = []
        try:
            loop = asyncio.get_running_loop()
            deadline = loop.time() + self.max_seconds
            while not self._stop.is_set() and loop.time() < deadline:
                chunks.append(await stream.read_chunk())
        finally:
            await self.devices.release(handle)
        if not chunks:
            return None
        return pcm_to_wav(chunks, stream.sample_rate, stream.channels)

    async def transcribe(self, wav_bytes: bytes, language_code: str) -> Optional[str]:
        try:
            audio_file = io.BytesIO(wav_bytes)
            audio_file.name = "speech.wav"

            transcript = await self.client.audio.transcriptions.create(
                model=self.model,
                file=audio_file,
                language=language_code.split("-")[0],
                response_format="text",
            )
            logger.info(
                "speech_transcribed",
                length_bytes=len(wav_bytes),
                transcript_preview=transcript[:50] if transcript else None,
            )
            return transcript.strip() if transcript else None
        except Exception as e:
            logger.error("transcription_failed", error=str(e))
            return None

    async def listen(self, language_code: str) -> AsyncIterator[SpeechResult]:
        self._stop = asyncio.Event()
        wav = await self._record()
        if wav is None:
            return
        transcript = await self.transcribe(wav, language_code)
        if transcript:
            yield SpeechResult(transcript=transcript, is_final=True)
