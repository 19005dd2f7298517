from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field


class ProfileCreate(BaseModel):
    full_name: str = Field(min_length=1)
    former_sport: str = Field(min_length=1)
    # "injury", "age", "performance", "personal", "other"
    career_end_reason: str = Field(min_length=1)
    career_end_date: date


class ProfileRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    full_name: str
    former_sport: str
    career_end_reason: str
    career_end_date: date
    created_at: datetime
