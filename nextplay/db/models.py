from __future__ import annotations

import uuid
from datetime import date, datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    SmallInteger,
    String,
    Text,
    false,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from nextplay.db.base import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class Profile(Base):
    """Onboarding profile; ``id`` is the auth identity's subject."""

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    email: Mapped[str] = mapped_column(Text, nullable=False)
    full_name: Mapped[str] = mapped_column(Text, nullable=False)
    former_sport: Mapped[str] = mapped_column(Text, nullable=False)
    career_end_reason: Mapped[str] = mapped_column(Text, nullable=False)
    career_end_date: Mapped[date] = mapped_column(Date, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class JournalEntry(Base):
    __tablename__ = "journal_entries"
    __table_args__ = (
        CheckConstraint("mood_rating BETWEEN 1 AND 10", name="ck_journal_mood_rating"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )

    entry_date: Mapped[date] = mapped_column(Date, nullable=False)
    mood_rating: Mapped[int] = mapped_column(SmallInteger, nullable=False)

    gratitude_1: Mapped[str] = mapped_column(Text, nullable=False)
    gratitude_2: Mapped[str] = mapped_column(Text, nullable=False)
    gratitude_3: Mapped[str] = mapped_column(Text, nullable=False)
    challenge_faced: Mapped[str] = mapped_column(Text, nullable=False)
    small_win: Mapped[str] = mapped_column(Text, nullable=False)
    tomorrow_goal: Mapped[str] = mapped_column(Text, nullable=False)
    private_notes: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class CareerExploration(Base):
    __tablename__ = "career_explorations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )

    career_field: Mapped[str] = mapped_column(Text, nullable=False)
    interest_level: Mapped[int | None] = mapped_column(Integer)
    notes: Mapped[str | None] = mapped_column(Text)
    # "exploring", "researching", "pursuing", ...
    status: Mapped[str | None] = mapped_column(
        Text, default="exploring", server_default="exploring"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class Conversation(Base):
    """One completed chat turn. Written once, never updated."""

    __tablename__ = "conversations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )

    message: Mapped[str] = mapped_column(Text, nullable=False)
    response: Mapped[str] = mapped_column(Text, nullable=False)
    # Lexicon score of ``message`` in [-1, 1]
    sentiment_score: Mapped[float | None] = mapped_column(Float)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class SuccessStory(Base):
    __tablename__ = "success_stories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    athlete_name: Mapped[str] = mapped_column(Text, nullable=False)
    former_sport: Mapped[str] = mapped_column(Text, nullable=False)
    career_end_year: Mapped[int] = mapped_column(Integer, nullable=False)
    new_career_path: Mapped[str] = mapped_column(Text, nullable=False)
    story_summary: Mapped[str] = mapped_column(Text, nullable=False)
    key_lesson: Mapped[str] = mapped_column(Text, nullable=False)
    is_featured: Mapped[bool | None] = mapped_column(
        Boolean, default=False, server_default=false()
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
