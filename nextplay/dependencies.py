from __future__ import annotations

from collections.abc import Generator
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from nextplay.core.settings import get_settings
from nextplay.db.session import get_db_session
from nextplay.services.auth_service import AuthenticatedUser, JwtAuthProvider
from nextplay.services.change_feed import ChangeFeed
from nextplay.services.chat_relay import ChatRelayService
from nextplay.services.gateway_client import AiGatewayClient


def get_db() -> Generator[Session, None, None]:
    yield from get_db_session()


@lru_cache
def get_gateway_client() -> AiGatewayClient:
    return AiGatewayClient(settings=get_settings())


@lru_cache
def get_auth_provider() -> JwtAuthProvider:
    return JwtAuthProvider(settings=get_settings())


@lru_cache
def get_change_feed() -> ChangeFeed:
    return ChangeFeed()


def get_chat_relay_service(
    gateway: AiGatewayClient = Depends(get_gateway_client),
    auth_provider: JwtAuthProvider = Depends(get_auth_provider),
) -> ChatRelayService:
    return ChatRelayService(gateway=gateway, auth_provider=auth_provider)


def get_current_user(
    authorization: Annotated[str | None, Header()] = None,
    auth_provider: JwtAuthProvider = Depends(get_auth_provider),
) -> AuthenticatedUser:
    return auth_provider.resolve(authorization)


CurrentUser = Annotated[AuthenticatedUser, Depends(get_current_user)]
DbSession = Annotated[Session, Depends(get_db)]
Feed = Annotated[ChangeFeed, Depends(get_change_feed)]
