from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CareerSuggestionRequest(BaseModel):
    former_sport: str = Field(min_length=1, max_length=200)
    career_end_reason: str = Field(min_length=1, max_length=200)


class CareerSuggestion(BaseModel):
    career_field: str
    reasoning: str
    interest_level: int = Field(ge=1, le=10)
    next_steps: str


class CareerSuggestionResponse(BaseModel):
    suggestions: list[CareerSuggestion] = Field(default_factory=list)


class CareerExplorationCreate(BaseModel):
    career_field: str = Field(min_length=1)
    interest_level: int | None = Field(default=None, ge=1, le=10)
    notes: str | None = None
    status: str = "exploring"


class CareerExplorationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    career_field: str
    interest_level: int | None = None
    notes: str | None = None
    status: str | None = None
    created_at: datetime
