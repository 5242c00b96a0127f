"""
OpenAI-compatible client shared by every AI collaborator.

Structured replies are requested in JSON mode and validated into pydantic
models. Transport errors, empty replies and malformed JSON all surface as
RemoteServiceError so callers have a single failure to handle.
"""
import json
import re
from typing import Any, Dict, List, Optional, Type, TypeVar

import structlog
from openai import AsyncOpenAI
from pydantic import BaseModel, ValidationError as PydanticValidationError

from ...config import Settings
from ...domain.errors import RemoteServiceError

logger = structlog.get_logger()

ModelT = TypeVar("ModelT", bound=BaseModel)

_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def build_openai_client(settings: Settings) -> AsyncOpenAI:
    return AsyncOpenAI(
        api_key=settings.openai_api_key or "not-configured",
        base_url=settings.openai_base_url,
        timeout=settings.openai_timeout_seconds,
    )


def build_whisper_client(settings: Settings) -> AsyncOpenAI:
    # Whisper needs a direct OpenAI key; falls back to the main key
    return AsyncOpenAI(
        api_key=settings.openai_whisper_key or settings.openai_api_key or "not-configured",
        base_url="https://api.openai.com/v1",
        timeout=settings.openai_timeout_seconds,
    )


def parse_json_reply(service: str, text: Optional[str], schema: Type[ModelT]) -> ModelT:
    """Parse a model reply (optionally wrapped in a ```json fence) into `schema`"""
    if not text or not text.strip():
        raise RemoteServiceError(service, "empty response")
    cleaned = _FENCE.sub("", text.strip())
    try:
        return schema.model_validate(json.loads(cleaned))
    except (json.JSONDecodeError, PydanticValidationError) as e:
        logger.error("ai_reply_malformed", service=service, error=str(e), preview=cleaned[:120])
        raise RemoteServiceError(service, f"malformed response: {e}") from e


async def complete_text(
    client: AsyncOpenAI,
    service: str,
    model: str,
    messages: List[Dict[str, Any]],
    json_mode: bool = False,
    temperature: float = 0.2,
) -> str:
    params: Dict[str, Any] = {
        "model": model,
        "messages": messages,
        "temperature": temperature,
    }
    if json_mode:
        params["response_format"] = {"type": "json_object"}

    try:
        response = await client.chat.completions.create(**params)
    except Exception as e:
        logger.error("ai_request_failed", service=service, model=model, error=str(e))
        raise RemoteServiceError(service, str(e)) from e

    if not response.choices:
        raise RemoteServiceError(service, "no choices in response")
    return response.choices[0].message.content or ""


async def complete_json(
    client: AsyncOpenAI,
    service: str,
    model: str,
    messages: List[Dict[str, Any]],
    schema: Type[ModelT],
    json_mode: bool = True,
) -> ModelT:
    text = await complete_text(client, service, model, messages, json_mode=json_mode, temperature=0.1)
    return parse_json_reply(service, text, schema)
