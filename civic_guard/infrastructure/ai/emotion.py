"""
Emotion Recognition
Reads frustration / urgency from the tone of a recorded voice clip.
"""
import base64

import structlog
from openai import AsyncOpenAI
from pydantic import BaseModel, ConfigDict, Field

from ...domain.models import EmotionAnalysis
from .client import complete_json

logger = structlog.get_logger()

SERVICE = "emotion"

EMOTION_PROMPT = (
    "Analyze the user's voice in this audio clip. Describe their emotional state (e.g., calm, "
    "frustrated, angry, distressed). Based on their tone, rate the urgency of the issue on a scale "
    "from 1 (very low) to 10 (very high). Return ONLY a JSON object with 'sentiment' (string) and "
    "'urgencyScore' (number) keys."
)

AUDIO_FORMATS = {
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/wave": "wav",
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
}


class _EmotionReply(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sentiment: str
    urgency_score: float = Field(alias="urgencyScore")


class EmotionAnalyzer:
    def __init__(self, client: AsyncOpenAI, model: str):
        self.client = client
        self.model = model

    async def analyze(self, audio_bytes: bytes, mime_type: str = "audio/wav") -> EmotionAnalysis:
        """Raises RemoteServiceError; callers treat the result as an optional enrichment"""
        audio_format = AUDIO_FORMATS.get(mime_type.split(";")[0].strip(), "wav")
        messages = [
            {
                "role": "user",
                "content": [
                    {
                        "type": "input_audio",
                        "input_audio": {
                            "data": base64.b64encode(audio_bytes).decode("ascii"),
                            "format": audio_format,
                        },
                    },
                    {"type": "text", "text": EMOTION_PROMPT},
                ],
            }
        ]
        # Audio models do not accept JSON mode; the reply is parsed leniently instead
        reply = await complete_json(self.client, SERVICE, self.model, messages, _EmotionReply, json_mode=False)
        score = min(10.0, max(1.0, reply.urgency_score))
        logger.info("emotion_analyzed", sentiment=reply.sentiment, urgency_score=score)
        return EmotionAnalysis(sentiment=reply.sentiment, urgency_score=score)
