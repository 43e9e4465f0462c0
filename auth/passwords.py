"""
auth/passwords.py -- One-way password hashing and verification.

bcrypt is used directly rather than through passlib: passlib's internal
wrap-bug detection builds a password longer than 72 bytes, which bcrypt 5
rejects. bcrypt.gensalt() draws a fresh random salt per call and embeds it in
the output, so hashing the same password twice yields different hashes.

checkpw() compares in constant time. A wrong password returns False; only a
hash that bcrypt cannot parse raises (MalformedHash).

Layer rule: no imports from api/, chirps/, or core/.
"""

from __future__ import annotations

import logging

import bcrypt

logger = logging.getLogger("chirpy.auth.passwords")

# bcrypt only looks at the first 72 bytes of input; bcrypt >= 5 refuses
# longer input outright. The API layer validates this limit up front.
MAX_PASSWORD_BYTES = 72


class HashingFailure(Exception):
    """The hashing primitive failed (oversized input, resource exhaustion)."""


class MalformedHash(Exception):
    """The stored value is not a bcrypt hash."""


def hash_password(password: str) -> str:
    """Return a salted bcrypt hash of the given plaintext password."""
    try:
        return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")
    except (ValueError, MemoryError) as exc:
        raise HashingFailure(str(exc)) from exc


def verify_password(hashed: str, password: str) -> bool:
    """Return True if password matches hashed, False on mismatch.

    Raises MalformedHash if hashed is not a parseable bcrypt hash.
    """
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError as exc:
        # bcrypt raises ValueError("Invalid salt") for unparseable hashes.
        # Oversized passwords cannot match anything we stored, so they are a mismatch.
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            return False
        raise MalformedHash("stored password hash is not a valid bcrypt hash") from exc
