"""
api/routes/users.py -- Account and session REST endpoints.

Routes:
  POST /api/users    -- register; 201
  PUT  /api/users    -- replace own email + password (bearer access token)
  POST /api/login    -- password login; returns access + refresh tokens
  POST /api/refresh  -- bearer refresh token -> new access token
  POST /api/revoke   -- bearer refresh token -> revoked; 204

Security:
  Login returns the same generic 401 for unknown email and wrong password,
  and SessionManager spends the same bcrypt work on both paths.
  Token responses carry Cache-Control: no-store.
  /revoke answers 204 whether or not the token existed.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from api.models import LoginRequest, LoginResponse, TokenResponse, UserCreate, UserResponse, UserUpdate
from auth.bearer import AUTHORIZATION_HEADER
from auth.dependencies import get_current_user_id, get_sessions
from auth.session import SessionManager

# Auth policy:
# - POST /api/users:    public
# - PUT  /api/users:    requires access token (get_current_user_id)
# - POST /api/login:    public
# - POST /api/refresh:  requires refresh token (checked by SessionManager.refresh)
# - POST /api/revoke:   requires a parseable bearer header (SessionManager.revoke)
router = APIRouter()


@router.post("/users", response_model=UserResponse, status_code=201)
def create_user(body: UserCreate, sessions: SessionManager = Depends(get_sessions)) -> UserResponse:
    """Register a new account. 409 if the email is already registered."""
    user = sessions.register(body.email, body.password)
    return UserResponse.from_user(user)


@router.put("/users", response_model=UserResponse)
def update_user(
    body: UserUpdate,
    user_id: UUID = Depends(get_current_user_id),
    sessions: SessionManager = Depends(get_sessions),
) -> UserResponse:
    """Replace the caller's email and password. Refresh tokens are not revoked."""
    user = sessions.update_credentials(user_id, body.email, body.password)
    return UserResponse.from_user(user)


@router.post("/login", response_model=LoginResponse)
def login(body: LoginRequest, sessions: SessionManager = Depends(get_sessions)) -> JSONResponse:
    """Authenticate with email and password; return both tokens."""
    result = sessions.login(body.email, body.password, body.expires_in_seconds)
    user = UserResponse.from_user(result.user)
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            **user.model_dump(),
            token=result.access_token,
            refresh_token=result.refresh_token,
        ).model_dump(mode="json"),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/refresh", response_model=TokenResponse)
def refresh(request: Request, sessions: SessionManager = Depends(get_sessions)) -> JSONResponse:
    """Mint a new access token from the bearer refresh token."""
    token = sessions.refresh(request.headers.get(AUTHORIZATION_HEADER))
    resp = JSONResponse(status_code=200, content=TokenResponse(token=token).model_dump())
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/revoke", status_code=204)
def revoke(request: Request, sessions: SessionManager = Depends(get_sessions)) -> Response:
    """Revoke the bearer refresh token."""
    sessions.revoke(request.headers.get(AUTHORIZATION_HEADER))
    return Response(status_code=204)
