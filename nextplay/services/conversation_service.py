from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from nextplay.db.models import Conversation
from nextplay.services.auth_service import AuthenticatedUser
from nextplay.services.change_feed import ChangeEvent, ChangeFeed
from nextplay.services.sentiment import score_sentiment

logger = logging.getLogger(__name__)


class ConversationService:
    """Service for persisting completed chat turns."""

    def __init__(self, db: Session, change_feed: ChangeFeed | None = None):
        self._db = db
        self._feed = change_feed

    def save_turn(
        self,
        user: AuthenticatedUser,
        message: str,
        response: str,
    ) -> Conversation:
        """
        Store one completed turn with the sentiment score of ``message``.

        Args:
            user: Identity the turn belongs to
            message: The user's outbound text, exactly as sent
            response: The fully assembled assistant reply

        Returns:
            The stored Conversation row
        """
        conversation = Conversation(
            user_id=user.id,
            message=message,
            response=response,
            sentiment_score=score_sentiment(message),
        )
        try:
            self._db.add(conversation)
            self._db.commit()
            self._db.refresh(conversation)
        except Exception as e:
            self._db.rollback()
            logger.exception(f"Failed to save conversation for user {user.id}: {e}")
            raise

        logger.info(
            f"Saved conversation {conversation.id} "
            f"(user={user.id}, sentiment={conversation.sentiment_score})"
        )

        if self._feed is not None:
            self._feed.publish(
                ChangeEvent(
                    table="conversations",
                    event="INSERT",
                    user_id=user.id,
                    record={
                        "id": conversation.id,
                        "sentiment_score": conversation.sentiment_score,
                    },
                )
            )
        return conversation

    def list_for_user(
        self,
        user: AuthenticatedUser,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Conversation]:
        stmt = (
            select(Conversation)
            .where(Conversation.user_id == user.id)
            .order_by(Conversation.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(self._db.scalars(stmt))

    def count_for_user(self, user: AuthenticatedUser) -> int:
        stmt = select(func.count()).select_from(Conversation).where(
            Conversation.user_id == user.id
        )
        return self._db.scalar(stmt) or 0
