"""
auth/refresh.py -- Refresh-token lifecycle on top of UserStore.

A refresh token is one of:
  active   -- revoked_at is NULL and now < expires_at
  expired  -- now >= expires_at (row stays; reads filter it out)
  revoked  -- revoked_at is set (terminal)

Only active tokens resolve to an owner. Store exceptions are wrapped in
StorageFailure and never retried here; SessionManager surfaces them as 500s.

Layer rule: no imports from api/, chirps/, or core/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from auth.models import RefreshToken
from auth.store import UserStore, to_iso
from auth.tokens import make_refresh_token

logger = logging.getLogger("chirpy.auth.refresh")


class StorageFailure(Exception):
    """The backing store raised while reading or writing a refresh token."""


class RefreshTokenRejected(Exception):
    """The token is unknown, revoked, or expired. The message is for logs only."""


class RefreshTokenNotFound(Exception):
    """revoke() was called with a token that has no record."""


class RefreshTokenIssuer:
    """Generates, persists, resolves and revokes refresh tokens."""

    def __init__(self, store: UserStore, ttl: timedelta = timedelta(days=60)) -> None:
        self.store = store
        self.ttl = ttl

    def generate(self) -> str:
        return make_refresh_token()

    def expiry_from(self, issued_at: datetime) -> datetime:
        return issued_at + self.ttl

    def store_token(self, token: str, user_id: UUID, expires_at: datetime) -> RefreshToken:
        """Persist a new refresh-token row for user_id."""
        record = RefreshToken(
            token=token,
            user_id=user_id,
            created_at=to_iso(datetime.now(timezone.utc)),
            expires_at=to_iso(expires_at),
        )
        try:
            self.store.insert_refresh_token(record)
        except SQLAlchemyError as exc:
            raise StorageFailure("could not persist refresh token") from exc
        return record

    def issue(self, user_id: UUID) -> RefreshToken:
        """Generate and persist a token that expires ttl from now."""
        token = self.generate()
        return self.store_token(token, user_id, self.expiry_from(datetime.now(timezone.utc)))

    def resolve_active_owner(self, token: str) -> UUID:
        """Return the owner of an active token; raise RefreshTokenRejected otherwise."""
        try:
            owner = self.store.find_active_refresh_token_owner(token)
        except SQLAlchemyError as exc:
            raise StorageFailure("could not read refresh token") from exc
        if owner is None:
            raise RefreshTokenRejected("refresh token unknown, revoked, or expired")
        return owner

    def revoke(self, token: str) -> None:
        """Revoke token. Idempotent: revoking a revoked token is a no-op.

        Raises RefreshTokenNotFound if there is no such token.
        """
        try:
            found = self.store.revoke_refresh_token(token)
        except SQLAlchemyError as exc:
            raise StorageFailure("could not revoke refresh token") from exc
        if not found:
            raise RefreshTokenNotFound("no refresh token with that value")
