from fastapi import APIRouter, Query, Request
from fastapi.responses import StreamingResponse

from nextplay.dependencies import CurrentUser, Feed
from nextplay.services.change_feed import change_event_stream

router = APIRouter()


@router.get("/changes")
async def stream_changes(
    request: Request,
    user: CurrentUser,
    feed: Feed,
    table: str | None = Query(default=None),
) -> StreamingResponse:
    """Live notifications for the caller's own rows, as server-sent events."""
    return StreamingResponse(
        change_event_stream(
            feed,
            user_id=user.id,
            table=table,
            is_disconnected=request.is_disconnected,
        ),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )
