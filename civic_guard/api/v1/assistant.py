"""Assistant API - CivicGPT help chat"""
from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ...domain.models import Language
from ...infrastructure.ai import FALLBACK_REPLY
from ...infrastructure.ai.assistant import WELCOME
from ..deps import AppContainer, get_container

router = APIRouter()


class ChatTurn(BaseModel):
    role: str
    content: str


class ChatRequest(BaseModel):
    message: str
    language: Language = Language.EN
    history: List[ChatTurn] = Field(default_factory=list)


class ChatReply(BaseModel):
    reply: str


@router.get("/welcome", response_model=ChatReply)
async def welcome(language: Language = Language.EN):
    return ChatReply(reply=WELCOME[language])


@router.post("/chat", response_model=ChatReply)
async def chat(request: ChatRequest, container: AppContainer = Depends(get_container)):
    """Answers questions about using the app; never fails, falls back to an apology"""
    if container.assistant is None:
        return ChatReply(reply=FALLBACK_REPLY)
    reply = await container.assistant.reply(
        request.message,
        request.language,
        [turn.model_dump() for turn in request.history],
    )
    return ChatReply(reply=reply)
