from __future__ import annotations

import logging
from dataclasses import dataclass

from jose import JWTError, jwt

from nextplay.core.exceptions import Unauthorized
from nextplay.core.settings import Settings, get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthenticatedUser:
    id: str
    email: str | None = None


class JwtAuthProvider:
    """Resolves access tokens issued by the managed auth backend (HS256)."""

    def __init__(self, settings: Settings | None = None):
        self._settings = settings or get_settings()

    def verify_token(self, token: str) -> AuthenticatedUser:
        if not self._settings.auth_jwt_secret:
            raise RuntimeError("AUTH_JWT_SECRET is not configured")
        audience = self._settings.auth_jwt_audience or None
        try:
            claims = jwt.decode(
                token,
                self._settings.auth_jwt_secret,
                algorithms=["HS256"],
                audience=audience,
                options={"verify_aud": bool(audience)},
            )
        except JWTError as e:
            logger.info("Rejected access token: %s", e)
            raise Unauthorized() from e

        subject = claims.get("sub")
        if not subject:
            raise Unauthorized()
        return AuthenticatedUser(id=str(subject), email=claims.get("email"))

    def resolve(self, authorization: str | None) -> AuthenticatedUser:
        """Resolve an ``Authorization: Bearer <token>`` header value."""
        if not authorization:
            raise Unauthorized("Authorization header required")
        try:
            scheme, token = authorization.split()
        except ValueError:
            raise Unauthorized("Invalid authorization header format") from None
        if scheme.lower() != "bearer":
            raise Unauthorized("Invalid authorization header format")
        return self.verify_token(token)
