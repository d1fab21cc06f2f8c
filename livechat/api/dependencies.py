"""Request Dependencies — service lookup, bearer auth and admin auth.

Invariants:
    - get_current_nickname only proves the token is valid; services re-check
      the live account before acting
    - Admin access requires X-Admin-Token equal (constant-time) to the
      configured ADMIN_TOKEN; an empty configured token rejects everyone

Design Decisions:
    - Services read from app.state (built by the lifespan) instead of module
      globals, so tests can install their own container
"""

import hmac
import logging

from fastapi import Header, Query, Request

from livechat.core.domain_types import Nickname
from livechat.core.errors import AuthError, AuthorizationError
from livechat.services.container import ServiceContainer

logger = logging.getLogger(__name__)


def get_services(request: Request) -> ServiceContainer:
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise RuntimeError("Services not initialized")
    return services


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_current_nickname(
    request: Request,
    authorization: str | None = Header(None),
) -> Nickname:
    token = _bearer_token(authorization)
    if token is None:
        raise AuthError("Missing auth token", "MISSING_TOKEN")
    return get_services(request).chat.authenticate_token(token)


def get_stream_nickname(
    request: Request,
    token: str | None = Query(None),
    authorization: str | None = Header(None),
) -> Nickname:
    """EventSource cannot set headers, so streams also accept ?token=."""
    raw = token or _bearer_token(authorization)
    if not raw:
        raise AuthError("Invalid token", "INVALID_TOKEN")
    return get_services(request).chat.authenticate_token(raw)


def require_admin(
    request: Request,
    x_admin_token: str | None = Header(None),
) -> None:
    expected = get_services(request).settings.admin_token
    supplied = x_admin_token or ""
    if not expected or not hmac.compare_digest(
        supplied.encode("utf-8"), expected.encode("utf-8"),
    ):
        logger.warning(
            "Admin request rejected",
            extra={"path": request.url.path, "error_code": "ADMIN_UNAUTHORIZED"},
        )
        raise AuthorizationError("Unauthorized", "ADMIN_UNAUTHORIZED", 401)
