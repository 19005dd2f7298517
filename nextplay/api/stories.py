from fastapi import APIRouter

from nextplay.dependencies import DbSession
from nextplay.models.story import SuccessStoryRead
from nextplay.services.story_service import StoryService

router = APIRouter()


@router.get("/success-stories", response_model=list[SuccessStoryRead])
def list_success_stories(db: DbSession) -> list[SuccessStoryRead]:
    """Public, read-only library: featured stories first."""
    return [SuccessStoryRead.model_validate(s) for s in StoryService(db).list_stories()]
