"""
API request and response models for Chirpy REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
chirps/models.py, which own the internal domain representation. Route
handlers map between the two.

Every request body is validated field-by-field here before a route sees it;
hashed passwords never appear in any response model.
"""

from enum import Enum
from typing import Annotated, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

from auth.models import User
from auth.passwords import MAX_PASSWORD_BYTES
from chirps.models import Chirp

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class SortEnum(str, Enum):
    asc = "asc"
    desc = "desc"


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

Email = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]


class Credentials(BaseModel):
    """Email + password pair shared by registration and profile update.

    Surrounding whitespace is stripped from the email only; passwords are
    taken byte for byte.
    """

    email: Email
    password: str = Field(min_length=1)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        """bcrypt only accepts 72 bytes; reject longer input instead of failing at hash time."""
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
        return value


class UserCreate(Credentials):
    """Request body for POST /api/users."""


class UserUpdate(Credentials):
    """Request body for PUT /api/users."""


class LoginRequest(BaseModel):
    """Request body for POST /api/login.

    expires_in_seconds is optional. Values above the server ceiling (1h by
    default), zero and negatives all fall back to the ceiling.
    """

    email: Email
    password: str = Field(min_length=1)
    expires_in_seconds: Optional[int] = None


class ChirpCreate(BaseModel):
    """Request body for POST /api/chirps. Length is checked by the route (400)."""

    body: str = Field(min_length=1)


class PolkaWebhookData(BaseModel):
    user_id: str = ""


class PolkaWebhook(BaseModel):
    """Request body for POST /api/polka/webhooks."""

    event: str
    data: PolkaWebhookData = Field(default_factory=PolkaWebhookData)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Public view of a user -- never includes the password hash."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    created_at: str
    updated_at: str
    email: str
    is_chirpy_red: bool

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            created_at=user.created_at or "",
            updated_at=user.updated_at or "",
            email=user.email,
            is_chirpy_red=user.is_chirpy_red,
        )


class LoginResponse(UserResponse):
    """Response for POST /api/login: the user plus both tokens."""

    token: str
    refresh_token: str


class TokenResponse(BaseModel):
    """Response for POST /api/refresh."""

    model_config = ConfigDict(frozen=True)

    token: str


class ChirpResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    created_at: str
    updated_at: str
    body: str
    user_id: UUID

    @classmethod
    def from_chirp(cls, chirp: Chirp) -> "ChirpResponse":
        return cls(
            id=chirp.id,
            created_at=chirp.created_at,
            updated_at=chirp.updated_at,
            body=chirp.body,
            user_id=chirp.user_id,
        )


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/healthz."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
