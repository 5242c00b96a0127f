"""
AI Truth Detector
Classifies an evidence photo as Authentic, Manipulated or AI-Generated.
"""
from typing import Literal

import structlog
from openai import AsyncOpenAI
from pydantic import BaseModel, Field

from ...domain.errors import RemoteServiceError
from ...domain.models import AuthenticityStatus, ImageAnalysis
from ..media.encoding import JPEG_MIME, to_data_uri
from .client import complete_json

logger = structlog.get_logger()

SERVICE = "authenticity"

SYSTEM_PROMPT = """You are a digital image forensics expert for a civic reporting app.
Citizens attach photos of local problems (potholes, garbage, broken lights, water leaks).
Decide whether the photo is an unaltered camera capture, a manipulated/edited photo,
or an AI-generated image. A timestamp/GPS caption box in the bottom-right corner is
added by the app itself and is NOT a sign of manipulation.

Return ONLY a JSON object:
{"status": "Authentic" | "Manipulated" | "AI-Generated", "confidence": number between 0 and 1, "reasoning": "one or two sentences"}"""


class _Verdict(BaseModel):
    status: Literal["Authentic", "Manipulated", "AI-Generated"]
    confidence: float = Field(ge=0.0, le=1.0)
    reasoning: str = ""


def unknown_analysis(reason: str) -> ImageAnalysis:
    return ImageAnalysis(status=AuthenticityStatus.UNKNOWN, confidence=0.0, reasoning=reason)


class AuthenticityClassifier:
    """One remote call per image; transient failures are retried, then reported as Unknown"""

    def __init__(self, client: AsyncOpenAI, model: str, retries: int = 1):
        self.client = client
        self.model = model
        self.retries = retries

    async def classify_once(self, image_bytes: bytes, mime_type: str = JPEG_MIME) -> ImageAnalysis:
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": "Analyze this evidence photo."},
                    {"type": "image_url", "image_url": {"url": to_data_uri(image_bytes, mime_type)}},
                ],
            },
        ]
        verdict = await complete_json(self.client, SERVICE, self.model, messages, _Verdict)
        return ImageAnalysis(
            status=AuthenticityStatus(verdict.status),
            confidence=verdict.confidence,
            reasoning=verdict.reasoning,
        )

    async def classify(self, image_bytes: bytes, mime_type: str = JPEG_MIME) -> ImageAnalysis:
        """Never raises: after the retry budget is spent the result is Unknown"""
        last_error = None
        for attempt in range(self.retries + 1):
            try:
                analysis = await self.classify_once(image_bytes, mime_type)
                logger.info(
                    "image_classified",
                    status=analysis.status.value,
                    confidence=analysis.confidence,
                    attempt=attempt + 1,
                )
                return analysis
            except RemoteServiceError as e:
                last_error = e
                logger.warning("image_classification_failed", attempt=attempt + 1, error=str(e))

        logger.error("image_classification_gave_up", attempts=self.retries + 1, error=str(last_error))
        return unknown_analysis("Authenticity could not be verified: the analysis service did not respond.")
