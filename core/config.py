"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for Chirpy happen here. No module should call
os.getenv() or os.environ.get() directly -- the ASGI entry point calls
get_settings() once and hands the Settings object to create_app(), which
passes it (or the values it needs) to every component it constructs.

Design patterns used:
  Immutable config object: model_config sets frozen=True, so the signing
      secret and the webhook API key cannot change after process start. There
      is no rotation support; a new secret requires a restart.

  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call. Only asgi.py uses it. Tests build Settings(...) directly.

  field_validator on jwt_secret: implements the DEBUG-conditional secret
      policy. Dev mode generates a key with a warning, production mode refuses
      to start without one.

Security notes:
  JWT_SECRET shorter than 32 chars is rejected outright. HS256 signing relies
  on key entropy -- a short key weakens every access token.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/, or chirps/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("chirpy.config")

_ROOT = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file.

    Environment variable name mapping: field names are uppercased automatically.
    E.g. `jwt_secret` reads from JWT_SECRET, `db_url` reads from DB_URL.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    # "dev" unlocks POST /admin/reset. Anything else is treated as production.
    platform: str = "prod"
    db_url: str = f"sqlite:///{_ROOT / 'chirpy.db'}"
    static_dir: str = str(_ROOT / "static")

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    # Must be declared after `debug`: the validator reads it from info.data.
    jwt_secret: str = Field(default="", validate_default=True)
    # Empty string means the Polka webhook rejects every call.
    polka_key: str = ""
    # Ceiling for access-token lifetime. Client-requested values are clamped to it.
    access_token_ttl_seconds: int = Field(default=3600, gt=0)
    refresh_token_ttl_days: int = Field(default=60, gt=0)

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @field_validator("jwt_secret")
    @classmethod
    def validate_jwt_secret(cls, value: str, info: ValidationInfo) -> str:
        """Enforce the JWT_SECRET policy.

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Access tokens will not survive restart -- acceptable for local dev.

        Production mode (DEBUG=false or not set): refuse to start if
            JWT_SECRET is missing.

        Both modes: reject keys shorter than 32 characters.
        """
        if not value:
            if info.data.get("debug"):
                logger.warning("Using auto-generated JWT_SECRET. Access tokens will not persist across restarts.")
                return secrets.token_hex(32)
            raise ValueError(
                "JWT_SECRET is required in production mode. "
                "Set JWT_SECRET in your environment or .env file. "
                "To run in development mode, set DEBUG=true."
            )
        if len(value) < 32:
            raise ValueError("JWT_SECRET must be at least 32 characters.")
        return value

    @property
    def is_dev(self) -> bool:
        return self.platform.lower() == "dev"


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide Settings instance.

    Uses lru_cache so Settings() is instantiated exactly once. Only the ASGI
    entry point should call this; everything else receives Settings through
    create_app().

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
