from __future__ import annotations

import json
import logging
from typing import Any

from langchain_core.prompts import PromptTemplate
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.orm import Session

from nextplay.core.exceptions import UpstreamError
from nextplay.db.models import CareerExploration
from nextplay.models.career import (
    CareerExplorationCreate,
    CareerSuggestion,
    CareerSuggestionResponse,
)
from nextplay.services.auth_service import AuthenticatedUser
from nextplay.services.change_feed import ChangeEvent, ChangeFeed
from nextplay.services.gateway_client import AiGatewayClient

logger = logging.getLogger(__name__)


_SYSTEM_PROMPT = (
    "You are a career counselor who specializes in helping former professional "
    "athletes find fulfilling second careers. You know which skills transfer "
    "from elite sport (discipline, teamwork, performing under pressure, "
    "coachability, leadership) and which fields value them."
)

_SUGGESTION_PROMPT = PromptTemplate.from_template(
    """Suggest 3 to 5 realistic career paths for a former athlete.

Former sport: {former_sport}
Why their career ended: {career_end_reason}

Rules:
- Tie every suggestion to skills built in their sport.
- Respect physical limits implied by the reason their career ended.
- interest_level is your estimate (1-10) of how well the field fits them.
- next_steps are 2-3 concrete actions they can take this month.
"""
)

SUGGEST_CAREERS_TOOL: dict[str, Any] = {
    "type": "function",
    "function": {
        "name": "suggest_careers",
        "description": "Return career suggestions for a former athlete.",
        "parameters": {
            "type": "object",
            "properties": {
                "suggestions": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "career_field": {"type": "string"},
                            "reasoning": {"type": "string"},
                            "interest_level": {"type": "integer", "minimum": 1, "maximum": 10},
                            "next_steps": {"type": "string"},
                        },
                        "required": ["career_field", "reasoning", "interest_level", "next_steps"],
                        "additionalProperties": False,
                    },
                }
            },
            "required": ["suggestions"],
            "additionalProperties": False,
        },
    },
}


class CareerSuggestionService:
    def __init__(self, gateway: AiGatewayClient):
        self._gateway = gateway

    async def suggest(
        self, former_sport: str, career_end_reason: str
    ) -> CareerSuggestionResponse:
        messages = [
            {"role": "system", "content": _SYSTEM_PROMPT},
            {
                "role": "user",
                "content": _SUGGESTION_PROMPT.format(
                    former_sport=former_sport,
                    career_end_reason=career_end_reason,
                ),
            },
        ]
        data = await self._gateway.complete(
            messages,
            tools=[SUGGEST_CAREERS_TOOL],
            tool_choice={"type": "function", "function": {"name": "suggest_careers"}},
        )
        return CareerSuggestionResponse(suggestions=parse_suggestions(data))


def parse_suggestions(data: dict[str, Any]) -> list[CareerSuggestion]:
    """Pull the ``suggest_careers`` tool arguments out of a completion body."""
    try:
        message = data["choices"][0]["message"]
        call = message["tool_calls"][0]["function"]
        arguments = call["arguments"]
        if isinstance(arguments, str):
            arguments = json.loads(arguments)
        raw = arguments["suggestions"]
        return [CareerSuggestion.model_validate(item) for item in raw]
    except (KeyError, IndexError, TypeError, ValueError, ValidationError) as e:
        logger.error("Unusable career suggestion payload: %s", e)
        raise UpstreamError(body=json.dumps(data)[:2000]) from e


def exploration_from_suggestion(suggestion: CareerSuggestion) -> CareerExplorationCreate:
    return CareerExplorationCreate(
        career_field=suggestion.career_field,
        interest_level=suggestion.interest_level,
        notes=f"{suggestion.reasoning}\n\nNext Steps:\n{suggestion.next_steps}",
        status="exploring",
    )


class CareerExplorationService:
    def __init__(self, db: Session, change_feed: ChangeFeed | None = None):
        self._db = db
        self._feed = change_feed

    def create(
        self, user: AuthenticatedUser, data: CareerExplorationCreate
    ) -> CareerExploration:
        exploration = CareerExploration(user_id=user.id, **data.model_dump())
        try:
            self._db.add(exploration)
            self._db.commit()
            self._db.refresh(exploration)
        except Exception:
            self._db.rollback()
            logger.exception("Failed to save career exploration for user %s", user.id)
            raise

        logger.info("Saved career exploration %s (%s)", exploration.id, exploration.career_field)
        if self._feed is not None:
            self._feed.publish(
                ChangeEvent(
                    table="career_explorations",
                    event="INSERT",
                    user_id=user.id,
                    record={"id": exploration.id, "career_field": exploration.career_field},
                )
            )
        return exploration

    def list_for_user(self, user: AuthenticatedUser) -> list[CareerExploration]:
        stmt = (
            select(CareerExploration)
            .where(CareerExploration.user_id == user.id)
            .order_by(CareerExploration.created_at.desc())
        )
        return list(self._db.scalars(stmt))
