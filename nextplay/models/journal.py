from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field


class JournalEntryCreate(BaseModel):
    entry_date: date = Field(default_factory=date.today)
    mood_rating: int = Field(default=7, ge=1, le=10)

    gratitude_1: str = Field(min_length=1)
    gratitude_2: str = Field(min_length=1)
    gratitude_3: str = Field(min_length=1)
    challenge_faced: str = Field(min_length=1)
    small_win: str = Field(min_length=1)
    tomorrow_goal: str = Field(min_length=1)
    private_notes: str | None = None


class JournalEntryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    entry_date: date
    mood_rating: int
    gratitude_1: str
    gratitude_2: str
    gratitude_3: str
    challenge_faced: str
    small_win: str
    tomorrow_goal: str
    private_notes: str | None = None
    created_at: datetime


class MoodPoint(BaseModel):
    entry_date: date
    mood: int


class MoodTrend(BaseModel):
    points: list[MoodPoint] = Field(default_factory=list)
    average_mood: float = 0.0
    entry_count: int = 0


class DashboardStats(BaseModel):
    journal_count: int = 0
    conversation_count: int = 0
    average_mood: float = 0.0
