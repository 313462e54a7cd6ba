from __future__ import annotations

from functools import lru_cache
from typing import Annotated

import structlog
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from examprep.core.config import get_settings
from examprep.services.explanation_cache import ExplanationCache
from examprep.services.gateway_auth import (
    AdminRequiredError,
    CallerIdentity,
    GatewayGuard,
    GatewayRejectedError,
    parse_caller_identity,
    require_admin,
)

logger = structlog.get_logger(__name__)


@lru_cache(maxsize=8)
def _gateway_guard(token: str, allowlist: str, trusted_proxies: str) -> GatewayGuard:
    return GatewayGuard.from_config(token=token, allowlist=allowlist, trusted_proxies=trusted_proxies)


def get_session_factory(request: Request) -> async_sessionmaker[AsyncSession]:
    return request.app.state.session_factory


def get_explanation_cache(request: Request) -> ExplanationCache:
    return request.app.state.explanation_cache


def require_internal_access(request: Request) -> None:
    settings = get_settings()
    guard = _gateway_guard(
        settings.internal_api_token,
        settings.internal_api_allowlist,
        settings.internal_api_trusted_proxies,
    )
    peer_host = request.client.host if request.client is not None else None
    try:
        guard.check(peer_host=peer_host, headers=request.headers)
    except GatewayRejectedError as exc:
        logger.warning("internal_auth_failed", reason=exc.reason, peer_host=peer_host, path=request.url.path)
        raise


def current_caller(request: Request) -> CallerIdentity:
    return parse_caller_identity(request.headers)


def current_user_id(caller: Annotated[CallerIdentity, Depends(current_caller)]) -> int:
    return caller.user_id


def current_admin_id(caller: Annotated[CallerIdentity, Depends(current_caller)]) -> int:
    try:
        return require_admin(caller)
    except AdminRequiredError:
        logger.warning("admin_access_denied", user_id=caller.user_id, role=caller.role)
        raise


SessionFactory = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)]
UserId = Annotated[int, Depends(current_user_id)]
AdminId = Annotated[int, Depends(current_admin_id)]
Cache = Annotated[ExplanationCache, Depends(get_explanation_cache)]
