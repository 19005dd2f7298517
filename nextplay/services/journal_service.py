from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from nextplay.db.models import JournalEntry
from nextplay.models.journal import JournalEntryCreate, MoodPoint, MoodTrend
from nextplay.services.auth_service import AuthenticatedUser
from nextplay.services.change_feed import ChangeEvent, ChangeFeed

logger = logging.getLogger(__name__)

# Number of most recent entries plotted on the mood chart.
MOOD_TREND_WINDOW = 30


class JournalService:
    def __init__(self, db: Session, change_feed: ChangeFeed | None = None):
        self._db = db
        self._feed = change_feed

    def create_entry(
        self, user: AuthenticatedUser, data: JournalEntryCreate
    ) -> JournalEntry:
        entry = JournalEntry(user_id=user.id, **data.model_dump())
        try:
            self._db.add(entry)
            self._db.commit()
            self._db.refresh(entry)
        except Exception:
            self._db.rollback()
            logger.exception("Failed to save journal entry for user %s", user.id)
            raise

        logger.info("Saved journal entry %s (mood=%s)", entry.id, entry.mood_rating)
        if self._feed is not None:
            self._feed.publish(
                ChangeEvent(
                    table="journal_entries",
                    event="INSERT",
                    user_id=user.id,
                    record={"id": entry.id, "mood_rating": entry.mood_rating},
                )
            )
        return entry

    def list_entries(self, user: AuthenticatedUser) -> list[JournalEntry]:
        """Newest entry_date first."""
        stmt = (
            select(JournalEntry)
            .where(JournalEntry.user_id == user.id)
            .order_by(JournalEntry.entry_date.desc(), JournalEntry.created_at.desc())
        )
        return list(self._db.scalars(stmt))

    def count_entries(self, user: AuthenticatedUser) -> int:
        stmt = select(func.count()).select_from(JournalEntry).where(
            JournalEntry.user_id == user.id
        )
        return self._db.scalar(stmt) or 0

    def average_mood(self, user: AuthenticatedUser) -> float:
        """Mean mood over all entries, one decimal; 0 without entries."""
        stmt = select(func.avg(JournalEntry.mood_rating)).where(
            JournalEntry.user_id == user.id
        )
        avg = self._db.scalar(stmt)
        if avg is None:
            return 0.0
        return float(Decimal(str(avg)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))

    def mood_trend(self, user: AuthenticatedUser) -> MoodTrend:
        entries = self.list_entries(user)
        recent = list(reversed(entries[:MOOD_TREND_WINDOW]))
        return MoodTrend(
            points=[MoodPoint(entry_date=e.entry_date, mood=e.mood_rating) for e in recent],
            average_mood=self.average_mood(user),
            entry_count=len(entries),
        )
