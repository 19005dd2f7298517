"""Client side of a coach chat turn.

``CoachChatSession`` talks to the API over HTTP exactly like the web app does:
it posts the history to the chat relay, renders the streamed reply into a
placeholder assistant message as deltas arrive, and, once the stream finishes,
records the turn through the conversations endpoint.

A failed turn leaves no trace: the placeholder is removed, one notification is
emitted and the error is raised to the caller. Nothing is persisted.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

import httpx

from nextplay.core.exceptions import (
    InvalidInput,
    NextPlayError,
    StreamInterrupted,
    error_for_status,
)
from nextplay.models.chat import MAX_MESSAGE_CHARS, MAX_MESSAGES
from nextplay.services.stream_decoder import decode_stream

logger = logging.getLogger(__name__)

CHAT_PATH = "/api/v1/chat"
CONVERSATIONS_PATH = "/api/v1/conversations"


@dataclass(eq=False)
class TurnMessage:
    role: str
    content: str


Notifier = Callable[[str], None]
UpdateListener = Callable[[TurnMessage], None]


def _log_notification(message: str) -> None:
    logger.warning("Coach chat: %s", message)


class CoachChatSession:
    def __init__(
        self,
        http: httpx.AsyncClient,
        access_token: str,
        *,
        idle_timeout: float | None = 60.0,
        notify: Notifier | None = None,
        on_update: UpdateListener | None = None,
    ):
        self._http = http
        self._token = access_token
        self._idle_timeout = idle_timeout
        self._notify = notify or _log_notification
        self._on_update = on_update
        self.messages: list[TurnMessage] = []
        self.in_flight = False

    @property
    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._token}"}

    async def send(self, text: str) -> TurnMessage:
        """Run one turn; returns the completed assistant message."""
        if self.in_flight:
            raise InvalidInput("Please wait for the current reply to finish")
        text = text.strip()
        if not text:
            raise InvalidInput("Message cannot be empty")
        if len(text) > MAX_MESSAGE_CHARS:
            raise InvalidInput("Message is too long")

        self.in_flight = True
        self.messages.append(TurnMessage(role="user", content=text))
        # Earlier replies can exceed the relay's per-message limit; clip them.
        history = [
            {"role": m.role, "content": m.content[:MAX_MESSAGE_CHARS]}
            for m in self.messages[-MAX_MESSAGES:]
            if m.content
        ]
        placeholder = TurnMessage(role="assistant", content="")
        self.messages.append(placeholder)

        try:
            reply = await self._stream_reply(history, placeholder)
        except Exception as e:
            self._discard(placeholder)
            if isinstance(e, NextPlayError):
                self._notify(e.message)
            raise
        finally:
            self.in_flight = False

        placeholder.content = reply
        await self._record_turn(text, reply)
        return placeholder

    async def _stream_reply(self, history: list[dict], placeholder: TurnMessage) -> str:
        def apply_delta(_delta: str, assembled: str) -> None:
            placeholder.content = assembled
            if self._on_update is not None:
                self._on_update(placeholder)

        try:
            async with self._http.stream(
                "POST", CHAT_PATH, json={"messages": history}, headers=self._headers
            ) as response:
                if response.status_code != 200:
                    body = (await response.aread()).decode("utf-8", errors="replace")
                    raise error_for_status(response.status_code, body)
                return await decode_stream(
                    response.aiter_bytes(),
                    on_delta=apply_delta,
                    idle_timeout=self._idle_timeout,
                )
        except httpx.HTTPError as e:
            raise StreamInterrupted() from e

    def _discard(self, placeholder: TurnMessage) -> None:
        if placeholder in self.messages:
            self.messages.remove(placeholder)

    async def _record_turn(self, message: str, reply: str) -> None:
        """Persist a completed turn. Failures are logged, not raised: the reply
        is already on screen."""
        try:
            response = await self._http.post(
                CONVERSATIONS_PATH,
                json={"message": message, "response": reply},
                headers=self._headers,
            )
            response.raise_for_status()
        except httpx.HTTPError:
            logger.exception("Failed to record conversation turn")
