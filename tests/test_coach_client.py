import json
import logging

import anyio
import httpx
import pytest
from conftest import make_token, sse_body
from sqlalchemy import select

from nextplay.core.exceptions import InvalidInput, RateLimited, StreamInterrupted
from nextplay.db.models import Conversation
from nextplay.services.coach_client import (
    CHAT_PATH,
    CONVERSATIONS_PATH,
    CoachChatSession,
    TurnMessage,
)


class BrokenStream(httpx.AsyncByteStream):
    """Sends one chunk, then the connection drops."""

    def __init__(self, first: bytes):
        self.first = first

    async def __aiter__(self):
        yield self.first
        raise httpx.ReadError("connection reset by peer")


def _sse_response() -> httpx.Response:
    return httpx.Response(
        200,
        content=sse_body("Hello", ", I", " hear you."),
        headers={"content-type": "text/event-stream"},
    )


class FakeApi:
    """Answers the two endpoints the chat client talks to."""

    def __init__(self, chat_response=None, conversations_status: int = 201):
        self.chat_response = chat_response or _sse_response
        self.conversations_status = conversations_status
        self.chat_payloads: list[dict] = []
        self.recorded: list[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == CHAT_PATH:
            self.chat_payloads.append(json.loads(request.content))
            return self.chat_response()
        if request.url.path == CONVERSATIONS_PATH:
            self.recorded.append(json.loads(request.content))
            return httpx.Response(self.conversations_status, json={})
        return httpx.Response(404)

    def http(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=httpx.MockTransport(self), base_url="http://api.test"
        )


def _run_turn(session: CoachChatSession, text: str):
    async def run():
        return await session.send(text)

    return anyio.run(run)


def test_completed_turn_is_persisted_end_to_end(app, session_factory):
    async def run():
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
            session = CoachChatSession(http, make_token())
            return await session.send("I just got cut from the team")

    reply = anyio.run(run)

    assert reply.role == "assistant"
    assert reply.content == "Hello, champ."

    with session_factory() as db:
        rows = list(db.scalars(select(Conversation)))
    assert len(rows) == 1
    row = rows[0]
    assert row.user_id == "athlete-1"
    assert row.message == "I just got cut from the team"
    assert row.response == "Hello, champ."
    assert -1.0 <= row.sentiment_score <= 1.0
    assert row.sentiment_score < 0


def test_reply_renders_progressively():
    api = FakeApi()
    seen = []
    session = CoachChatSession(
        api.http(), "token", on_update=lambda message: seen.append(message.content)
    )

    reply = _run_turn(session, "I retired today")

    assert seen == ["Hello", "Hello, I", "Hello, I hear you."]
    assert reply.content == "Hello, I hear you."
    assert [(m.role, m.content) for m in session.messages] == [
        ("user", "I retired today"),
        ("assistant", "Hello, I hear you."),
    ]
    assert api.recorded == [{"message": "I retired today", "response": "Hello, I hear you."}]
    assert not session.in_flight


def test_interrupted_stream_discards_placeholder_and_persists_nothing():
    api = FakeApi(
        chat_response=lambda: httpx.Response(
            200, stream=BrokenStream(sse_body("Hello, I", done=False))
        )
    )
    notices = []
    session = CoachChatSession(api.http(), "token", notify=notices.append)

    with pytest.raises(StreamInterrupted):
        _run_turn(session, "I feel lost")

    assert [m.role for m in session.messages] == ["user"]
    assert notices == [StreamInterrupted.default_message]
    assert api.recorded == []
    assert not session.in_flight


def test_rate_limited_turn_surfaces_message_and_persists_nothing():
    api = FakeApi(
        chat_response=lambda: httpx.Response(
            429, json={"error": "Rate limit exceeded. Please try again later."}
        )
    )
    notices = []
    session = CoachChatSession(api.http(), "token", notify=notices.append)

    with pytest.raises(RateLimited):
        _run_turn(session, "hello")

    assert notices == ["Rate limit exceeded. Please try again later."]
    assert api.recorded == []


def test_bad_request_uses_server_message():
    api = FakeApi(
        chat_response=lambda: httpx.Response(
            400, json={"error": "Messages must be between 1-50 items"}
        )
    )
    notices = []
    session = CoachChatSession(api.http(), "token", notify=notices.append)

    with pytest.raises(InvalidInput):
        _run_turn(session, "hello")

    assert notices == ["Messages must be between 1-50 items"]


def test_persistence_failure_is_logged_not_raised(caplog):
    api = FakeApi(conversations_status=500)
    session = CoachChatSession(api.http(), "token")

    with caplog.at_level(logging.ERROR, logger="nextplay.services.coach_client"):
        reply = _run_turn(session, "Had a good day")

    assert reply.content == "Hello, I hear you."
    assert len(api.recorded) == 1
    assert "Failed to record conversation turn" in caplog.text


def test_history_is_capped_and_skips_empty_messages():
    api = FakeApi()
    session = CoachChatSession(api.http(), "token")
    for i in range(60):
        role = "user" if i % 2 == 0 else "assistant"
        session.messages.append(TurnMessage(role=role, content=f"m{i}"))
    session.messages.append(TurnMessage(role="assistant", content=""))

    _run_turn(session, "latest")

    sent = api.chat_payloads[0]["messages"]
    assert len(sent) <= 50
    assert sent[-1] == {"role": "user", "content": "latest"}
    assert all(m["content"] for m in sent)


def test_rejects_empty_or_overlong_text_without_request():
    api = FakeApi()
    session = CoachChatSession(api.http(), "token")

    for text in ("", "   ", "x" * 10_001):
        with pytest.raises(InvalidInput):
            _run_turn(session, text)

    assert api.chat_payloads == []
    assert session.messages == []


def test_one_turn_at_a_time():
    api = FakeApi()
    session = CoachChatSession(api.http(), "token")
    session.in_flight = True

    with pytest.raises(InvalidInput):
        _run_turn(session, "are you there?")

    assert api.chat_payloads == []


def test_long_earlier_reply_is_clipped_in_history():
    api = FakeApi()
    session = CoachChatSession(api.http(), "token")
    session.messages.append(TurnMessage(role="user", content="tell me everything"))
    session.messages.append(TurnMessage(role="assistant", content="y" * 10_001))

    reply = _run_turn(session, "thanks, what next?")

    assert reply.content == "Hello, I hear you."
    sent = api.chat_payloads[0]["messages"]
    assert sent[1] == {"role": "assistant", "content": "y" * 10_000}
    assert all(len(m["content"]) <= 10_000 for m in sent)


def test_long_earlier_reply_does_not_block_next_turn_end_to_end(app):
    async def run():
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
            session = CoachChatSession(http, make_token())
            session.messages.append(TurnMessage(role="user", content="tell me everything"))
            session.messages.append(TurnMessage(role="assistant", content="y" * 10_001))
            return await session.send("thanks, what next?")

    assert anyio.run(run).content == "Hello, champ."


def test_failing_update_listener_discards_placeholder():
    def broken_listener(message):
        raise RuntimeError("render failed")

    api = FakeApi()
    notices = []
    session = CoachChatSession(
        api.http(), "token", notify=notices.append, on_update=broken_listener
    )

    with pytest.raises(RuntimeError):
        _run_turn(session, "hello")

    assert [m.role for m in session.messages] == ["user"]
    assert notices == []
    assert api.recorded == []
    assert not session.in_flight
