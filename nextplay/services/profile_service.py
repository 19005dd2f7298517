from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from nextplay.core.exceptions import InvalidInput
from nextplay.db.models import Profile
from nextplay.models.profile import ProfileCreate
from nextplay.services.auth_service import AuthenticatedUser

logger = logging.getLogger(__name__)


class ProfileService:
    def __init__(self, db: Session):
        self._db = db

    def get_profile(self, user: AuthenticatedUser) -> Profile | None:
        return self._db.get(Profile, user.id)

    def create_profile(self, user: AuthenticatedUser, data: ProfileCreate) -> Profile:
        """Onboarding: one profile per identity, keyed by the identity's id."""
        if self.get_profile(user) is not None:
            raise InvalidInput("Profile already exists")

        profile = Profile(id=user.id, email=user.email or "", **data.model_dump())
        try:
            self._db.add(profile)
            self._db.commit()
            self._db.refresh(profile)
        except Exception:
            self._db.rollback()
            logger.exception("Failed to create profile for user %s", user.id)
            raise

        logger.info("Created profile for user %s (sport=%s)", user.id, profile.former_sport)
        return profile
