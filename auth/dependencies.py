"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Two credential types are accepted, each on its own endpoints:
  1. Authorization: Bearer <access token> -- users, via get_current_user_id().
  2. Authorization: ApiKey <key>          -- the Polka payment webhook, via
                                             require_polka_key().

Both raise core.errors.AuthenticationFailure, which api/main.py renders as a
generic 401.

Layer rule: no imports from api/ or chirps/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import hmac
import logging
from uuid import UUID

from fastapi import Request

from auth.bearer import AUTHORIZATION_HEADER, CredentialError, get_api_key
from auth.session import SessionManager
from core.errors import AuthenticationFailure

logger = logging.getLogger("chirpy.auth")


def get_sessions(request: Request) -> SessionManager:
    return request.app.state.sessions


def get_current_user_id(request: Request) -> UUID:
    """Require a valid bearer access token and return its user id.

    Use as a FastAPI dependency:
        @router.post("/chirps")
        async def route(user_id: UUID = Depends(get_current_user_id)): ...
    """
    sessions: SessionManager = request.app.state.sessions
    return sessions.validate_access(request.headers.get(AUTHORIZATION_HEADER))


def require_polka_key(request: Request) -> None:
    """Require `Authorization: ApiKey <POLKA_KEY>`.

    compare_digest keeps the comparison constant-time. An unset POLKA_KEY
    rejects every request.
    """
    expected: str = request.app.state.settings.polka_key
    try:
        presented = get_api_key(request.headers)
    except CredentialError as exc:
        logger.debug("Webhook API key header rejected: %s", exc)
        raise AuthenticationFailure() from exc
    if not expected or not hmac.compare_digest(presented.encode(), expected.encode()):
        logger.debug("Webhook API key mismatch")
        raise AuthenticationFailure()
