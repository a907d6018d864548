"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for UniDirectory happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. secret_key -> SECRET_KEY, db_host -> DB_HOST).

  @model_validator(mode="after"): dev mode (DEBUG=true) generates a session
      secret with a warning, production mode refuses to start without one.

Database location, in priority order:
  1. DATABASE_URL -- any SQLAlchemy URL, used verbatim.
  2. DB_HOST (+ DB_DRIVER, DB_USER, DB_PASSWORD, DB_NAME) -- composed with
     sqlalchemy.engine.URL so credentials are escaped correctly.
  3. A local SQLite file next to this package.

Layer rule: core/ is the kernel. This module may not import from api/, web/,
auth/, or directory/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL

logger = logging.getLogger("unidirectory.config")

_DEFAULT_SQLITE_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'unidirectory.db'}"

# Ten years. The deployed directory kept sessions alive "forever"; a long
# finite value keeps that behaviour while still giving expires_at a meaning.
_DEFAULT_SESSION_SECONDS = 10 * 365 * 24 * 60 * 60


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
    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    secret_key: str = ""

    # ------------------------------------------------------------------
    # Server
    # ------------------------------------------------------------------

    host: str = "127.0.0.1"
    port: int = 8000
    allowed_hosts: list[str] = ["*"]
    max_body_bytes: int = 5 * 1024 * 1024  # 5 MB

    # ------------------------------------------------------------------
    # Document store
    # ------------------------------------------------------------------

    database_url: str = ""
    db_driver: str = "postgresql"
    db_user: str = ""
    db_password: str = ""
    db_host: str = ""
    db_name: str = "unidirectory"

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    session_cookie_name: str = "unidirectory_session"
    session_expire_seconds: int = _DEFAULT_SESSION_SECONDS
    secure_cookies: bool = False
    login_rate_limit: str = "10/minute"

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    default_picture: str = "/static/dp.svg"

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Enforce the SECRET_KEY policy.

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Sessions will not survive restart -- acceptable for local dev.

        Production mode: refuse to start if SECRET_KEY is missing. Session
            cookies are signed with it; a random key per process would log
            everybody out on every restart.

        Both modes: reject keys shorter than 32 characters.
        """
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning(
                    "WARNING: Using auto-generated SECRET_KEY. " "Sessions will not persist across restarts."
                )
            else:
                raise ValueError(
                    "SECRET_KEY is required in production mode. "
                    "Set SECRET_KEY in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        if self.session_expire_seconds <= 0:
            raise ValueError("SESSION_EXPIRE_SECONDS must be positive.")
        return self

    @property
    def resolved_database_url(self) -> str:
        """Return the SQLAlchemy URL the stores should connect to."""
        if self.database_url:
            return self.database_url
        if self.db_host:
            return URL.create(
                self.db_driver,
                username=self.db_user or None,
                password=self.db_password or None,
                host=self.db_host,
                database=self.db_name,
            ).render_as_string(hide_password=False)
        return _DEFAULT_SQLITE_URL


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
