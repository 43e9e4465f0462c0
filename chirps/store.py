"""
chirps/store.py -- SQLAlchemy-backed persistence layer for chirps.

Uses SQLAlchemy Core (not ORM) so the dataclass in chirps/models.py remains
the authoritative domain representation.

Pattern: Repository + Data Mapper. ChirpStore is the repository; _row_to_chirp
is the mapper. Route handlers never touch SQL directly.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = ChirpStore()                               # SQLite default
    store = ChirpStore("postgresql://user:pw@host/db") # PostgreSQL
    chirp = store.create_chirp(Chirp(body="hello", user_id=uid))
    chirps = store.list_chirps(author_id=uid, descending=True)
    store.close()
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import Column, MetaData, String, Table, Text, create_engine, event
from sqlalchemy.engine import Engine

from chirps.models import Chirp

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'chirpy.db'}"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_chirps = Table(
    "chirps",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("body", Text, nullable=False),
    Column("user_id", String(36), nullable=False, index=True),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode. Set per-connection; PRAGMAs are not inherited."""
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class ChirpStore:
    def __init__(self, db_url: str = _DEFAULT_DB_URL) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            # Route handlers run in FastAPI's thread pool, so one pooled
            # connection may be used from several threads.
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        metadata.create_all(self.engine)

    def create_chirp(self, chirp: Chirp) -> Chirp:
        """Insert a chirp and return it with id and timestamps filled in."""
        now = _now_iso()
        chirp_id = chirp.id or uuid4()
        with self.engine.connect() as conn:
            conn.execute(
                _chirps.insert().values(
                    id=str(chirp_id),
                    body=chirp.body,
                    user_id=str(chirp.user_id),
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
        return Chirp(id=chirp_id, body=chirp.body, user_id=chirp.user_id, created_at=now, updated_at=now)

    def get_chirp(self, chirp_id: UUID) -> Optional[Chirp]:
        """Look up a chirp by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_chirps.select().where(_chirps.c.id == str(chirp_id))).fetchone()
        return _row_to_chirp(row) if row is not None else None

    def list_chirps(self, author_id: Optional[UUID] = None, descending: bool = False) -> list[Chirp]:
        """Return chirps ordered by creation time, optionally for one author."""
        query = _chirps.select()
        if author_id is not None:
            query = query.where(_chirps.c.user_id == str(author_id))
        order = _chirps.c.created_at.desc() if descending else _chirps.c.created_at.asc()
        with self.engine.connect() as conn:
            rows = conn.execute(query.order_by(order)).fetchall()
        return [_row_to_chirp(r) for r in rows]

    def delete_chirp(self, chirp_id: UUID) -> bool:
        """Delete one chirp. Returns False if it did not exist."""
        with self.engine.connect() as conn:
            result = conn.execute(_chirps.delete().where(_chirps.c.id == str(chirp_id)))
            conn.commit()
        return result.rowcount > 0

    def delete_all_chirps(self) -> int:
        """Delete every chirp. Dev-only reset path."""
        with self.engine.connect() as conn:
            result = conn.execute(_chirps.delete())
            conn.commit()
        return result.rowcount

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_chirp(row) -> Chirp:
    return Chirp(
        id=UUID(row.id),
        body=row.body,
        user_id=UUID(row.user_id),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
