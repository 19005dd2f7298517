from nextplay.db.base import Base
from nextplay.db.engine import get_engine
from nextplay.db.init_db import init_db
from nextplay.db.models import (
    CareerExploration,
    Conversation,
    JournalEntry,
    Profile,
    SuccessStory,
)
from nextplay.db.session import get_db_session, get_sessionmaker

__all__ = [
    "Base",
    "CareerExploration",
    "Conversation",
    "JournalEntry",
    "Profile",
    "SuccessStory",
    "get_db_session",
    "get_engine",
    "get_sessionmaker",
    "init_db",
]
