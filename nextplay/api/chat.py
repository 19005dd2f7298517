import logging

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import StreamingResponse

from nextplay.core.exceptions import InvalidInput
from nextplay.dependencies import get_chat_relay_service
from nextplay.services.chat_relay import ChatRelayService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/chat")
async def chat_endpoint(
    request: Request,
    authorization: str | None = Header(default=None),
    relay: ChatRelayService = Depends(get_chat_relay_service),
) -> StreamingResponse:
    """
    Relay a coach chat turn to the AI gateway.

    The body is ``{"messages": [{"role", "content"}, ...]}``. On success the
    gateway's event stream is passed through unchanged; errors are rendered as
    ``{"error": ...}`` by the app's NextPlayError handler.
    """
    try:
        body = await request.json()
    except ValueError:
        raise InvalidInput("Invalid request: body must be JSON") from None

    stream = await relay.open(body, authorization)
    return StreamingResponse(
        stream.iter_bytes(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
