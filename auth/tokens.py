"""
auth/tokens.py -- Access-token codec and refresh-token generation.

Security design decisions:
  Access tokens: python-jose with HS256. Claims are exactly iss, sub, iat and
       exp. The signing secret is passed in by the caller (SessionManager gets
       it from Settings at construction) -- nothing here reads config.
       validate_access_token() always verifies the signature before reading a
       claim; there is no decode-without-verify path.

       Tokens are stateless: validity is a function of signature and expiry
       only. They cannot be revoked individually, which is why their lifetime
       is capped short and revocation lives on the refresh token instead.

  Expiry: iat and exp are written as fractional NumericDates (RFC 7519
       allows non-integer values), so two tokens minted for the same user in
       the same second still differ. jose only compares whole seconds, so on
       top of its check we require time.time() < exp with full precision; a
       token is never accepted at or past its expiry instant.

  Refresh tokens: secrets.token_hex(32) gives 256 bits from the OS CSPRNG,
       rendered as 64 lowercase hex characters. Uniqueness relies on that
       entropy alone; the store does no collision handling.

Layer rule: no imports from api/, chirps/, or core/.
"""

from __future__ import annotations

import logging
import secrets
import time
from datetime import datetime, timedelta, timezone
from uuid import UUID

from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError

logger = logging.getLogger("chirpy.auth.tokens")

ISSUER = "chirpy"
_ALGORITHM = "HS256"

_DECODE_OPTIONS = {
    "require_iat": True,
    "require_exp": True,
    "require_iss": True,
    "require_sub": True,
}

REFRESH_TOKEN_BYTES = 32


class InvalidToken(Exception):
    """The access token failed validation. The message is for logs only."""


class TokenExpired(InvalidToken):
    """The access token verified but its exp claim has passed."""


class GenerationFailure(Exception):
    """The OS entropy source failed while generating a refresh token."""


# ---------------------------------------------------------------------------
# Access tokens (JWT)
# ---------------------------------------------------------------------------


def create_access_token(user_id: UUID, secret: str, expires_in: timedelta) -> str:
    """Encode a signed JWT asserting user_id until now + expires_in.

    Args:
        user_id:    Identity stored as the sub claim.
        secret:     HMAC key. Must be the same key validate_access_token() gets.
        expires_in: Token lifetime. Callers clamp it; this function does not.
    """
    now = datetime.now(timezone.utc)
    claims = {
        "iss": ISSUER,
        "sub": str(user_id),
        "iat": now.timestamp(),
        "exp": (now + expires_in).timestamp(),
    }
    return jwt.encode(claims, secret, algorithm=_ALGORITHM)


def validate_access_token(token: str, secret: str) -> UUID:
    """Verify token under secret and return the user id from its sub claim.

    Raises TokenExpired if exp has passed, InvalidToken for any other failure
    (bad signature, wrong algorithm, wrong issuer, missing claim, sub that is
    not a UUID).
    """
    try:
        claims = jwt.decode(
            token,
            secret,
            algorithms=[_ALGORITHM],
            issuer=ISSUER,
            options=_DECODE_OPTIONS,
        )
    except ExpiredSignatureError as exc:
        raise TokenExpired("access token expired") from exc
    except JWTError as exc:
        raise InvalidToken(f"access token rejected: {exc}") from exc

    try:
        expires_at = float(claims["exp"])
    except (TypeError, ValueError) as exc:
        raise InvalidToken("exp claim is not a number") from exc
    if expires_at <= time.time():
        raise TokenExpired("access token expired")

    try:
        return UUID(claims["sub"])
    except (TypeError, ValueError) as exc:
        raise InvalidToken("subject claim is not a valid user id") from exc


# ---------------------------------------------------------------------------
# Refresh tokens (opaque)
# ---------------------------------------------------------------------------


def make_refresh_token() -> str:
    """Return 256 random bits as a 64-character lowercase hex string."""
    try:
        return secrets.token_hex(REFRESH_TOKEN_BYTES)
    except (OSError, NotImplementedError) as exc:
        raise GenerationFailure("entropy source unavailable") from exc
