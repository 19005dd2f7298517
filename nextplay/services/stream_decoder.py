"""Incremental decoder for chat-completion event streams.

The relay passes the gateway's ``text/event-stream`` body through untouched, so
the consumer sees network chunks with arbitrary boundaries: a ``data:`` line, a
JSON payload or even a UTF-8 character can be split across two reads.
``SseDeltaDecoder`` turns those chunks into text deltas and gives the same
output however the bytes are chunked.

It is a small state machine:

- ``awaiting_bytes``: no complete frame is buffered; feed more bytes.
- ``frame_ready``: at least one newline-terminated line is buffered.
- ``done``: the ``[DONE]`` sentinel was seen; further input is ignored.

A ``data:`` line whose payload does not parse stays at the front of the
buffer and the decoder waits for more bytes. Once the next line is complete
the two are joined and parsed again, which recovers a payload broken by a
stray newline. If the next line starts a new frame the fragment can never
complete and is dropped.
"""

from __future__ import annotations

import asyncio
import codecs
import json
import logging
from collections.abc import AsyncIterable, Callable
from enum import Enum
from typing import Any

import httpx

from nextplay.core.exceptions import StreamInterrupted

logger = logging.getLogger(__name__)

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"

DeltaCallback = Callable[[str, str], None]


class DecoderState(str, Enum):
    AWAITING_BYTES = "awaiting_bytes"
    FRAME_READY = "frame_ready"
    DONE = "done"


class _Wait:
    pass


_WAIT = _Wait()


class SseDeltaDecoder:
    def __init__(self) -> None:
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self.state = DecoderState.AWAITING_BYTES
        self.text = ""

    @property
    def done(self) -> bool:
        return self.state is DecoderState.DONE

    @property
    def pending(self) -> str:
        """Buffered text not yet consumed as a frame."""
        return self._buffer

    def feed(self, chunk: bytes) -> list[str]:
        """Add a network chunk; return the deltas it completed, in order."""
        if self.state is DecoderState.DONE:
            return []
        self._buffer += self._utf8.decode(chunk)
        if "\n" in self._buffer:
            self.state = DecoderState.FRAME_READY
        return self._drain()

    def finish(self) -> None:
        """Mark end of input. A trailing partial line is discarded."""
        if self._buffer.strip():
            logger.debug("Discarding %d unterminated bytes at end of stream", len(self._buffer))
        self._buffer = ""
        self._utf8.reset()
        if self.state is not DecoderState.DONE:
            self.state = DecoderState.AWAITING_BYTES

    def _drain(self) -> list[str]:
        deltas: list[str] = []
        while self.state is DecoderState.FRAME_READY:
            newline = self._buffer.find("\n")
            if newline < 0:
                self.state = DecoderState.AWAITING_BYTES
                break

            line = _strip_cr(self._buffer[:newline])
            rest = self._buffer[newline + 1 :]

            payload = _frame_payload(line)
            if payload is None:
                self._buffer = rest
                continue

            if payload == DONE_SENTINEL:
                self._buffer = rest
                self.state = DecoderState.DONE
                break

            record = _parse_payload(payload)
            if record is None:
                joined = _join_continuation(line, rest)
                if joined is _WAIT:
                    # Line stays at the front of the buffer, newline included.
                    self.state = DecoderState.AWAITING_BYTES
                    break
                if joined is None:
                    logger.warning("Dropping unparseable stream frame: %.200s", line)
                    self._buffer = rest
                else:
                    self._buffer = joined
                continue

            self._buffer = rest
            delta = _delta_text(record)
            if delta:
                self.text += delta
                deltas.append(delta)
        return deltas


def _strip_cr(line: str) -> str:
    return line[:-1] if line.endswith("\r") else line


def _frame_payload(line: str) -> str | None:
    if not line.strip() or line.startswith(":"):
        return None
    if not line.startswith(DATA_PREFIX):
        return None
    return line[len(DATA_PREFIX) :].strip()


def _parse_payload(payload: str) -> Any | None:
    try:
        return json.loads(payload)
    except ValueError:
        return None


def _join_continuation(line: str, rest: str) -> str | None | _Wait:
    newline = rest.find("\n")
    if newline < 0:
        return _WAIT
    next_line = _strip_cr(rest[:newline])
    if not next_line.strip() or next_line.startswith((DATA_PREFIX, ":")):
        return None
    # A space is JSON whitespace: the joined payload parses as the unbroken one.
    return line + " " + next_line + "\n" + rest[newline + 1 :]


def _delta_text(record: Any) -> str:
    if not isinstance(record, dict):
        return ""
    choices = record.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""
    first = choices[0]
    if not isinstance(first, dict):
        return ""
    delta = first.get("delta")
    if not isinstance(delta, dict):
        return ""
    content = delta.get("content")
    return content if isinstance(content, str) else ""


async def decode_stream(
    chunks: AsyncIterable[bytes],
    *,
    on_delta: DeltaCallback | None = None,
    idle_timeout: float | None = None,
) -> str:
    """Consume ``chunks`` until ``[DONE]`` or end of input; return the full text.

    ``on_delta`` receives each delta and the text assembled so far. A transport
    failure, or no bytes for ``idle_timeout`` seconds, raises
    ``StreamInterrupted``; the partial text is not returned in that case.
    """
    decoder = SseDeltaDecoder()
    iterator = chunks.__aiter__()
    try:
        while not decoder.done:
            try:
                chunk = await asyncio.wait_for(iterator.__anext__(), timeout=idle_timeout)
            except StopAsyncIteration:
                break
            except asyncio.TimeoutError as e:
                raise StreamInterrupted(
                    "The coach stopped responding. Please try again.",
                    partial=decoder.text,
                ) from e
            except (httpx.HTTPError, httpx.StreamError, OSError) as e:
                raise StreamInterrupted(partial=decoder.text) from e

            # One chunk can carry several deltas; report each with its own prefix.
            assembled = decoder.text
            for delta in decoder.feed(chunk):
                assembled += delta
                if on_delta is not None:
                    on_delta(delta, assembled)
    finally:
        aclose = getattr(iterator, "aclose", None)
        if aclose is not None:
            await aclose()

    decoder.finish()
    return decoder.text
