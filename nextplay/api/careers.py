import logging

from fastapi import APIRouter, Depends

from nextplay.dependencies import CurrentUser, DbSession, Feed, get_gateway_client
from nextplay.models.career import (
    CareerExplorationCreate,
    CareerExplorationRead,
    CareerSuggestion,
    CareerSuggestionRequest,
    CareerSuggestionResponse,
)
from nextplay.services.career_service import (
    CareerExplorationService,
    CareerSuggestionService,
    exploration_from_suggestion,
)
from nextplay.services.gateway_client import AiGatewayClient

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/career-suggestions", response_model=CareerSuggestionResponse)
async def career_suggestions(
    request: CareerSuggestionRequest,
    user: CurrentUser,
    gateway: AiGatewayClient = Depends(get_gateway_client),
) -> CareerSuggestionResponse:
    """Ask the AI gateway for career paths that fit the athlete's background."""
    response = await CareerSuggestionService(gateway).suggest(
        former_sport=request.former_sport,
        career_end_reason=request.career_end_reason,
    )
    logger.info(
        "Generated %d career suggestions for user %s",
        len(response.suggestions),
        user.id,
    )
    return response


@router.post(
    "/career-explorations", response_model=CareerExplorationRead, status_code=201
)
def create_career_exploration(
    request: CareerExplorationCreate,
    user: CurrentUser,
    db: DbSession,
    feed: Feed,
) -> CareerExplorationRead:
    exploration = CareerExplorationService(db, feed).create(user, request)
    return CareerExplorationRead.model_validate(exploration)


@router.post(
    "/career-explorations/from-suggestion",
    response_model=CareerExplorationRead,
    status_code=201,
)
def save_suggestion(
    request: CareerSuggestion,
    user: CurrentUser,
    db: DbSession,
    feed: Feed,
) -> CareerExplorationRead:
    exploration = CareerExplorationService(db, feed).create(
        user, exploration_from_suggestion(request)
    )
    return CareerExplorationRead.model_validate(exploration)


@router.get("/career-explorations", response_model=list[CareerExplorationRead])
def list_career_explorations(
    user: CurrentUser, db: DbSession
) -> list[CareerExplorationRead]:
    rows = CareerExplorationService(db).list_for_user(user)
    return [CareerExplorationRead.model_validate(r) for r in rows]
