"""
chirps/models.py -- Domain dataclass for a posted chirp.

Pure data container with zero logic. Length limits and the profanity filter
live in chirps/filters.py; persistence lives in chirps/store.py.
"""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID


@dataclass
class Chirp:
    """A short post owned by one user.

    id is None before the record is written to the database.
    body is stored already cleaned (see chirps/filters.clean_profanity).
    """

    body: str
    user_id: UUID
    id: Optional[UUID] = None
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""
