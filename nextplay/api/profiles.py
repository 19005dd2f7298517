from fastapi import APIRouter

from nextplay.core.exceptions import NotFound
from nextplay.dependencies import CurrentUser, DbSession
from nextplay.models.profile import ProfileCreate, ProfileRead
from nextplay.services.profile_service import ProfileService

router = APIRouter()


@router.post("/profiles", response_model=ProfileRead, status_code=201)
def complete_onboarding(
    request: ProfileCreate,
    user: CurrentUser,
    db: DbSession,
) -> ProfileRead:
    profile = ProfileService(db).create_profile(user, request)
    return ProfileRead.model_validate(profile)


@router.get("/profiles/me", response_model=ProfileRead)
def get_my_profile(user: CurrentUser, db: DbSession) -> ProfileRead:
    profile = ProfileService(db).get_profile(user)
    if profile is None:
        raise NotFound("Profile not found")
    return ProfileRead.model_validate(profile)
