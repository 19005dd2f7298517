from fastapi import APIRouter

from nextplay.dependencies import CurrentUser, DbSession, Feed
from nextplay.models.journal import (
    DashboardStats,
    JournalEntryCreate,
    JournalEntryRead,
    MoodTrend,
)
from nextplay.services.conversation_service import ConversationService
from nextplay.services.journal_service import JournalService

router = APIRouter()


@router.post("/journal-entries", response_model=JournalEntryRead, status_code=201)
def create_journal_entry(
    request: JournalEntryCreate,
    user: CurrentUser,
    db: DbSession,
    feed: Feed,
) -> JournalEntryRead:
    entry = JournalService(db, feed).create_entry(user, request)
    return JournalEntryRead.model_validate(entry)


@router.get("/journal-entries", response_model=list[JournalEntryRead])
def list_journal_entries(user: CurrentUser, db: DbSession) -> list[JournalEntryRead]:
    entries = JournalService(db).list_entries(user)
    return [JournalEntryRead.model_validate(e) for e in entries]


@router.get("/journal-entries/mood-trend", response_model=MoodTrend)
def mood_trend(user: CurrentUser, db: DbSession) -> MoodTrend:
    """Latest 30 moods in chronological order plus the all-time average."""
    return JournalService(db).mood_trend(user)


@router.get("/dashboard/stats", response_model=DashboardStats)
def dashboard_stats(user: CurrentUser, db: DbSession) -> DashboardStats:
    journal = JournalService(db)
    return DashboardStats(
        journal_count=journal.count_entries(user),
        conversation_count=ConversationService(db).count_for_user(user),
        average_mood=journal.average_mood(user),
    )
