from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

MAX_MESSAGES = 50
MAX_MESSAGE_CHARS = 10_000

ChatRole = Literal["user", "assistant"]


class ChatMessage(BaseModel):
    role: ChatRole
    content: str = Field(min_length=1, max_length=MAX_MESSAGE_CHARS)


class ChatRequest(BaseModel):
    messages: list[ChatMessage] = Field(min_length=1, max_length=MAX_MESSAGES)


class ConversationCreate(BaseModel):
    """A completed turn as reported by the chat client."""

    message: str = Field(min_length=1, max_length=MAX_MESSAGE_CHARS)
    response: str


class ConversationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    message: str
    response: str
    sentiment_score: float | None
    created_at: datetime
