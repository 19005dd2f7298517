from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class SuccessStoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    athlete_name: str
    former_sport: str
    career_end_year: int
    new_career_path: str
    story_summary: str
    key_lesson: str
    is_featured: bool | None = False
    created_at: datetime
