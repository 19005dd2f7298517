from fastapi import APIRouter, Query

from nextplay.dependencies import CurrentUser, DbSession, Feed
from nextplay.models.chat import ConversationCreate, ConversationRead
from nextplay.services.conversation_service import ConversationService

router = APIRouter()


@router.post("/conversations", response_model=ConversationRead, status_code=201)
def save_conversation(
    request: ConversationCreate,
    user: CurrentUser,
    db: DbSession,
    feed: Feed,
) -> ConversationRead:
    """
    Record one completed coach chat turn.

    Called by the chat client after the reply stream finished. The sentiment
    score is computed here from ``message``; records are never edited.
    """
    conversation = ConversationService(db, feed).save_turn(
        user=user,
        message=request.message,
        response=request.response,
    )
    return ConversationRead.model_validate(conversation)


@router.get("/conversations", response_model=list[ConversationRead])
def list_conversations(
    user: CurrentUser,
    db: DbSession,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> list[ConversationRead]:
    rows = ConversationService(db).list_for_user(user, limit=limit, offset=offset)
    return [ConversationRead.model_validate(r) for r in rows]
