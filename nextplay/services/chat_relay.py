from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx
from pydantic import ValidationError

from nextplay.core.exceptions import InvalidInput
from nextplay.models.chat import MAX_MESSAGES, ChatMessage, ChatRequest
from nextplay.services.auth_service import AuthenticatedUser, JwtAuthProvider
from nextplay.services.gateway_client import AiGatewayClient

logger = logging.getLogger(__name__)


COACH_SYSTEM_PROMPT = """You are a compassionate mental health coach for athletes facing career-ending transitions.

Your role is to:
- Provide empathetic support and validate their grief and loss
- Help them discover transferable skills from their athletic career
- Guide them toward finding new purpose and identity beyond sport
- Use sports metaphors when appropriate to connect with their background
- Encourage small, actionable steps forward
- Remind them that their worth extends far beyond their sport

Keep responses 2-4 paragraphs. Be warm, encouraging, and never minimize their loss. Focus on hope without toxic positivity."""


def validate_chat_request(body: Any) -> list[ChatMessage]:
    """Validate a raw ``{"messages": [...]}`` body.

    Over-length content is rejected rather than truncated.
    """
    if not isinstance(body, dict):
        raise InvalidInput("Invalid request: messages array required")
    try:
        return ChatRequest.model_validate(body).messages
    except ValidationError as e:
        raise InvalidInput(_describe_validation_error(e)) from None


def _describe_validation_error(error: ValidationError) -> str:
    first = error.errors()[0]
    loc = first.get("loc", ())
    kind = first.get("type", "")

    if len(loc) <= 1:
        if kind in {"too_short", "too_long"}:
            return f"Messages must be between 1-{MAX_MESSAGES} items"
        return "Invalid request: messages array required"

    index = loc[1]
    if kind == "string_too_long":
        return f"Message at index {index} exceeds length limit"
    return f"Invalid message at index {index}"


def build_upstream_messages(messages: list[ChatMessage]) -> list[dict[str, str]]:
    return [{"role": "system", "content": COACH_SYSTEM_PROMPT}] + [
        {"role": m.role, "content": m.content} for m in messages
    ]


class RelayedStream:
    """An open upstream response, exposed as the caller's response body."""

    def __init__(self, response: httpx.Response, user: AuthenticatedUser):
        self._response = response
        self.user = user

    async def iter_bytes(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self._response.aiter_bytes():
                yield chunk
        except httpx.HTTPError:
            # Propagate so the response is aborted, not ended cleanly.
            logger.warning("Upstream stream broke for user %s", self.user.id)
            raise
        finally:
            await self._response.aclose()


class ChatRelayService:
    def __init__(self, gateway: AiGatewayClient, auth_provider: JwtAuthProvider):
        self._gateway = gateway
        self._auth = auth_provider

    async def open(self, body: Any, authorization: str | None) -> RelayedStream:
        # 1) Shape checks, before any upstream call
        messages = validate_chat_request(body)

        # 2) Caller identity
        user = self._auth.resolve(authorization)

        # 3) Upstream stream
        logger.info("Relaying chat turn for user %s (%d messages)", user.id, len(messages))
        response = await self._gateway.open_chat_stream(build_upstream_messages(messages))
        return RelayedStream(response, user)
