from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from nextplay.db.models import SuccessStory


class StoryService:
    """Read-only access to the success-story library."""

    def __init__(self, db: Session):
        self._db = db

    def list_stories(self) -> list[SuccessStory]:
        """Featured stories first, then the most recent career endings."""
        stmt = select(SuccessStory).order_by(
            SuccessStory.is_featured.desc().nulls_last(),
            SuccessStory.career_end_year.desc(),
        )
        return list(self._db.scalars(stmt))
