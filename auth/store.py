"""
auth/store.py -- SQLAlchemy Core persistence layer for auth entities.

Pattern: Repository + Data Mapper (same as chirps/store.py).
UserStore is the repository; _row_to_user / _row_to_refresh_token are the
mappers. Route and session code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

Refresh-token atomicity:
  find_active_refresh_token_owner() is one SELECT that applies the
  "revoked_at IS NULL AND expires_at > now" filter in SQL, and
  revoke_refresh_token() is one UPDATE guarded by "revoked_at IS NULL". A
  revoke racing a refresh on the same row therefore lands in one of two
  states: the refresh read the row before the UPDATE committed (and succeeds)
  or after (and fails). A revoked row is never re-stamped.

Timestamps are ISO 8601 UTC strings with fixed microsecond precision, so
string comparison in SQL is chronological comparison.

Layer rule: no imports from api/, chirps/, or core/.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from uuid import UUID, uuid4

from sqlalchemy import Boolean, Column, MetaData, String, Table, Text, create_engine, event, select
from sqlalchemy.engine import Engine

from auth.models import RefreshToken, User

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'chirpy.db'}"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(36), primary_key=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("is_chirpy_red", Boolean, nullable=False, server_default="0"),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

_refresh_tokens = Table(
    "refresh_tokens",
    _metadata,
    Column("token", String(64), primary_key=True),  # 64 hex chars
    Column("user_id", String(36), nullable=False, index=True),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    Column("expires_at", String(32), nullable=False),
    Column("revoked_at", String(32)),  # NULL until revoked; terminal once set
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def to_iso(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _now_iso() -> str:
    return to_iso(datetime.now(timezone.utc))


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User and RefreshToken entities.

    Usage:
        store = UserStore()
        user = store.create_user(User(email="a@b.com", hashed_password=hash_password("secret")))
        store.insert_refresh_token(RefreshToken(token=t, user_id=user.id, expires_at=exp))
        owner = store.find_active_refresh_token_owner(t)
        store.close()
    """

    def __init__(self, db_url: str = _DEFAULT_DB_URL) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # User queries
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> User:
        """Insert a new user and return it with id and timestamps filled in.

        Raises sqlalchemy.exc.IntegrityError if the email is already taken.
        Callers map that to a 409.
        """
        now = _now_iso()
        user_id = user.id or uuid4()
        with self.engine.connect() as conn:
            conn.execute(
                _users.insert().values(
                    id=str(user_id),
                    email=user.email,
                    hashed_password=user.hashed_password,
                    is_chirpy_red=user.is_chirpy_red,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
        return User(
            id=user_id,
            email=user.email,
            hashed_password=user.hashed_password,
            is_chirpy_red=user.is_chirpy_red,
            created_at=now,
            updated_at=now,
        )

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by exact email. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: UUID) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == str(user_id))).fetchone()
        return _row_to_user(row) if row is not None else None

    def update_credentials(self, user_id: UUID, email: str, hashed_password: str) -> User | None:
        """Replace email and password hash. Returns the updated user, or None if absent.

        Raises sqlalchemy.exc.IntegrityError if the new email belongs to
        another account. Outstanding refresh tokens are left untouched.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.update()
                .where(_users.c.id == str(user_id))
                .values(email=email, hashed_password=hashed_password, updated_at=_now_iso())
            )
            conn.commit()
        if result.rowcount == 0:
            return None
        return self.get_by_id(user_id)

    def upgrade_to_chirpy_red(self, user_id: UUID) -> bool:
        """Flag a user as a Chirpy Red member. Returns False if the user does not exist."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.update()
                .where(_users.c.id == str(user_id))
                .values(is_chirpy_red=True, updated_at=_now_iso())
            )
            conn.commit()
        return result.rowcount > 0

    def delete_all_users(self) -> int:
        """Delete every user and every refresh token. Dev-only reset path."""
        with self.engine.connect() as conn:
            conn.execute(_refresh_tokens.delete())
            result = conn.execute(_users.delete())
            conn.commit()
        return result.rowcount

    # ------------------------------------------------------------------
    # Refresh token queries
    # ------------------------------------------------------------------

    def insert_refresh_token(self, token: RefreshToken) -> None:
        """Persist a freshly issued refresh token."""
        now = _now_iso()
        with self.engine.connect() as conn:
            conn.execute(
                _refresh_tokens.insert().values(
                    token=token.token,
                    user_id=str(token.user_id),
                    created_at=token.created_at or now,
                    updated_at=now,
                    expires_at=token.expires_at,
                    revoked_at=None,
                )
            )
            conn.commit()

    def find_refresh_token(self, token: str) -> RefreshToken | None:
        """Return the raw record regardless of its state, or None if absent."""
        with self.engine.connect() as conn:
            row = conn.execute(_refresh_tokens.select().where(_refresh_tokens.c.token == token)).fetchone()
        return _row_to_refresh_token(row) if row is not None else None

    def find_active_refresh_token_owner(self, token: str, now: datetime | None = None) -> UUID | None:
        """Return the owning user id if token exists, is not revoked and has not expired."""
        moment = to_iso(now) if now is not None else _now_iso()
        with self.engine.connect() as conn:
            row = conn.execute(
                select(_refresh_tokens.c.user_id).where(
                    (_refresh_tokens.c.token == token)
                    & (_refresh_tokens.c.revoked_at.is_(None))
                    & (_refresh_tokens.c.expires_at > moment)
                )
            ).fetchone()
        return UUID(row.user_id) if row is not None else None

    def revoke_refresh_token(self, token: str) -> bool:
        """Stamp revoked_at on an unrevoked token.

        Returns True if the token exists (whether this call revoked it or it
        was already revoked), False if there is no such token.
        """
        now = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _refresh_tokens.update()
                .where((_refresh_tokens.c.token == token) & (_refresh_tokens.c.revoked_at.is_(None)))
                .values(revoked_at=now, updated_at=now)
            )
            conn.commit()
        if result.rowcount > 0:
            return True
        return self.find_refresh_token(token) is not None

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=UUID(row.id),
        email=row.email,
        hashed_password=row.hashed_password,
        is_chirpy_red=bool(row.is_chirpy_red),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_refresh_token(row) -> RefreshToken:
    return RefreshToken(
        token=row.token,
        user_id=UUID(row.user_id),
        created_at=row.created_at,
        updated_at=row.updated_at,
        expires_at=row.expires_at,
        revoked_at=row.revoked_at,
    )
