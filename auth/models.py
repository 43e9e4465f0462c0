"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in chirps/models.py -- dataclasses own domain shape; stores and routes do the
work.

Layer rule: no imports from api/, chirps/, or core/.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass
class User:
    """A registered account.

    hashed_password is a bcrypt hash. It is compared, never read back as
    plaintext, and never serialized into an API response.
    """

    email: str
    hashed_password: str
    id: UUID | None = None
    is_chirpy_red: bool = False
    created_at: str | None = None
    updated_at: str | None = None


@dataclass
class RefreshToken:
    """A persisted refresh token -- one row per login.

    token is the 64-char hex value handed to the client. It is the primary key,
    so lookup by token is O(1). revoked_at is None until an explicit revoke;
    once set it never changes. expires_at is fixed at creation.

    All timestamps are ISO 8601 UTC strings with microsecond precision, so
    lexicographic comparison in SQL matches chronological order.
    """

    token: str
    user_id: UUID
    expires_at: str
    created_at: str | None = None
    updated_at: str | None = None
    revoked_at: str | None = None

    @property
    def is_revoked(self) -> bool:
        return self.revoked_at is not None
