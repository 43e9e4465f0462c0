"""
auth/session.py -- Login, token refresh, revocation and credential updates.

SessionManager is the only place that knows the policy:
  - access tokens live at most Settings.access_token_ttl_seconds (1h default);
    a client-requested lifetime is clamped to that ceiling
  - refresh tokens live Settings.refresh_token_ttl_days (60 days default) and
    are never rotated -- /refresh mints a new access token only
  - one refresh-token row per login; concurrent sessions per user are allowed

Failure mapping (this is the boundary -- nothing below it raises ChirpyError):
  bad password / unknown email / any token or header problem
      -> AuthenticationFailure with a generic message. The specific cause is
         logged at DEBUG and never reaches the client.
  hashing, RNG or storage errors
      -> InternalFailure, logged with traceback. Never retried.

Session states per login:
  Unauthenticated -> Authenticated (login)
  Authenticated -> AccessExpired (access token exp passes)
  AccessExpired -> Authenticated (refresh)
  any -> RefreshExpiredOrRevoked (revoke, or refresh token exp passes; terminal)

Known gap: update_credentials() does not revoke refresh tokens issued before
the password change. Tests pin this behaviour; see DESIGN.md.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.bearer import CredentialError, parse_authorization
from auth.models import User
from auth.passwords import HashingFailure, MalformedHash, hash_password, verify_password
from auth.refresh import RefreshTokenIssuer, RefreshTokenNotFound, RefreshTokenRejected, StorageFailure
from auth.store import UserStore
from auth.tokens import GenerationFailure, InvalidToken, create_access_token, validate_access_token
from core.config import Settings
from core.errors import AuthenticationFailure, Conflict, InternalFailure, NotFound

logger = logging.getLogger("chirpy.auth.session")

BAD_CREDENTIALS = "Incorrect email or password"


@dataclass(frozen=True)
class LoginResult:
    access_token: str
    refresh_token: str
    user: User


class SessionManager:
    """Composes the hasher, token codec, refresh issuer and header parser.

    Usage:
        sessions = SessionManager(settings, user_store)
        result = sessions.login("a@b.com", "secret1")
        user_id = sessions.validate_access(request.headers.get("Authorization"))
    """

    def __init__(self, settings: Settings, store: UserStore) -> None:
        self.store = store
        self._secret = settings.jwt_secret
        self._max_access_seconds = settings.access_token_ttl_seconds
        self.max_access_ttl = timedelta(seconds=self._max_access_seconds)
        self.refresh_tokens = RefreshTokenIssuer(store, ttl=timedelta(days=settings.refresh_token_ttl_days))
        # Unknown emails are verified against this hash so the response time
        # does not reveal whether an account exists.
        self._dummy_hash = self.hash_password("chirpy_timing_dummy")

    # ------------------------------------------------------------------
    # Passwords
    # ------------------------------------------------------------------

    def hash_password(self, password: str) -> str:
        try:
            return hash_password(password)
        except HashingFailure as exc:
            logger.exception("Password hashing failed")
            raise InternalFailure() from exc

    def verify_password(self, hashed: str, password: str) -> bool:
        try:
            return verify_password(hashed, password)
        except MalformedHash as exc:
            logger.exception("Stored password hash is malformed")
            raise InternalFailure() from exc

    # ------------------------------------------------------------------
    # Registration and login
    # ------------------------------------------------------------------

    def register(self, email: str, password: str) -> User:
        """Create an account. Raises Conflict if the email is taken."""
        hashed = self.hash_password(password)
        try:
            return self.store.create_user(User(email=email, hashed_password=hashed))
        except IntegrityError as exc:
            raise Conflict("A user with that email already exists.") from exc
        except SQLAlchemyError as exc:
            logger.exception("Could not create user")
            raise InternalFailure() from exc

    def access_ttl(self, requested_seconds: int | None = None) -> timedelta:
        """Clamp a client-requested access-token lifetime to the configured ceiling."""
        if requested_seconds is None or requested_seconds <= 0:
            return self.max_access_ttl
        # Clamp as ints; timedelta overflows on very large values.
        return timedelta(seconds=min(requested_seconds, self._max_access_seconds))

    def login(self, email: str, password: str, expires_in_seconds: int | None = None) -> LoginResult:
        """Verify credentials and issue an access token plus a stored refresh token.

        Unknown email and wrong password produce the same AuthenticationFailure,
        after the same amount of bcrypt work.
        """
        try:
            user = self.store.get_by_email(email)
        except SQLAlchemyError as exc:
            logger.exception("User lookup failed during login")
            raise InternalFailure() from exc

        if user is None:
            self.verify_password(self._dummy_hash, password)
            logger.debug("Login rejected: unknown email")
            raise AuthenticationFailure(BAD_CREDENTIALS)
        if not self.verify_password(user.hashed_password, password):
            logger.debug("Login rejected: password mismatch for user %s", user.id)
            raise AuthenticationFailure(BAD_CREDENTIALS)

        # Mint the access token first so a failure here stores no refresh token.
        access = create_access_token(user.id, self._secret, self.access_ttl(expires_in_seconds))
        try:
            refresh = self.refresh_tokens.issue(user.id)
        except (GenerationFailure, StorageFailure) as exc:
            logger.exception("Refresh token issuance failed for user %s", user.id)
            raise InternalFailure() from exc

        logger.info("User %s logged in", user.id)
        return LoginResult(access_token=access, refresh_token=refresh.token, user=user)

    # ------------------------------------------------------------------
    # Token operations (raw Authorization header in, identity out)
    # ------------------------------------------------------------------

    def _credential(self, header_value: str | None) -> str:
        try:
            return parse_authorization(header_value, "Bearer")
        except CredentialError as exc:
            logger.debug("Authorization header rejected: %s", exc)
            raise AuthenticationFailure() from exc

    def validate_access(self, header_value: str | None) -> UUID:
        """Return the user id asserted by a valid bearer access token."""
        token = self._credential(header_value)
        try:
            return validate_access_token(token, self._secret)
        except InvalidToken as exc:
            logger.debug("Access token rejected: %s", exc)
            raise AuthenticationFailure() from exc

    def refresh(self, header_value: str | None) -> str:
        """Mint a new access token from a bearer refresh token. The refresh token is not rotated."""
        token = self._credential(header_value)
        try:
            user_id = self.refresh_tokens.resolve_active_owner(token)
        except RefreshTokenRejected as exc:
            logger.debug("Refresh rejected: %s", exc)
            raise AuthenticationFailure() from exc
        except StorageFailure as exc:
            logger.exception("Refresh token lookup failed")
            raise InternalFailure() from exc
        return create_access_token(user_id, self._secret, self.max_access_ttl)

    def revoke(self, header_value: str | None) -> None:
        """Revoke a bearer refresh token.

        Succeeds whether or not the token exists, so the response never reveals
        token validity. Only an unparseable header is rejected.
        """
        token = self._credential(header_value)
        try:
            self.refresh_tokens.revoke(token)
        except RefreshTokenNotFound:
            logger.debug("Revoke called with unknown refresh token")
        except StorageFailure as exc:
            logger.exception("Refresh token revocation failed")
            raise InternalFailure() from exc

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    def update_credentials(self, user_id: UUID, email: str, password: str) -> User:
        """Replace a user's email and password.

        user_id must come from validate_access() -- the route resolves it as a
        dependency so a missing token is rejected before the body is read.
        The new password is re-hashed before it is stored. Existing refresh
        tokens stay valid.
        """
        hashed = self.hash_password(password)
        try:
            user = self.store.update_credentials(user_id, email, hashed)
        except IntegrityError as exc:
            raise Conflict("A user with that email already exists.") from exc
        except SQLAlchemyError as exc:
            logger.exception("Could not update user %s", user_id)
            raise InternalFailure() from exc
        if user is None:
            raise NotFound("User not found.")
        return user
