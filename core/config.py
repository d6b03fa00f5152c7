"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for gatekeep happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. This is
      the official FastAPI dependency injection pattern for config.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. bcrypt_rounds -> BCRYPT_ROUNDS). Type coercion is built in.

  @field_validator: Range checks run at startup so a bad value fails the
      process immediately instead of failing the first request that needs it.

Layer rule: core/ is the kernel. This module may not import from api/, web/,
auth/, or cache/.
"""

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("gatekeep.config")

_ROOT = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    auth_db_url: str = f"sqlite:///{_ROOT / 'auth' / 'gatekeep_auth.db'}"
    # bcrypt work factor. 10 matches the cost the service has always used;
    # tests drop it to 4 (the bcrypt minimum) for speed.
    bcrypt_rounds: int = 10

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    session_cookie_name: str = "session_id"
    # 0 = sessions live until logout or restart.
    session_ttl_seconds: int = 0
    secure_cookies: bool = False

    # ------------------------------------------------------------------
    # /data cache
    # ------------------------------------------------------------------

    data_cache_path: str = str(_ROOT / "cache" / "gatekeep_cache.db")
    data_cache_ttl_seconds: float = 60.0

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @field_validator("bcrypt_rounds")
    @classmethod
    def validate_bcrypt_rounds(cls, value: int) -> int:
        """bcrypt.gensalt() only accepts cost factors 4..31."""
        if not 4 <= value <= 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31.")
        return value

    @field_validator("session_ttl_seconds")
    @classmethod
    def validate_session_ttl(cls, value: int) -> int:
        if value < 0:
            raise ValueError("SESSION_TTL_SECONDS must be 0 (no expiry) or positive.")
        return value

    @field_validator("data_cache_ttl_seconds")
    @classmethod
    def validate_cache_ttl(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("DATA_CACHE_TTL_SECONDS must be positive.")
        return value


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    Uses lru_cache so Settings() is instantiated exactly once -- at first call.
    All modules should call get_settings() rather than constructing Settings() directly.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
