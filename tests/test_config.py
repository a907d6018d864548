"""Unit tests for core/config.py -- SECRET_KEY policy and database URL resolution."""

import pytest
from pydantic import ValidationError

from core.config import Settings

GOOD_KEY = "k" * 32


def _settings(**kwargs) -> Settings:
    return Settings(_env_file=None, **kwargs)


class TestSecretKey:
    def test_debug_generates_key(self):
        settings = _settings(debug=True, secret_key="")
        assert len(settings.secret_key) >= 32

    def test_production_requires_key(self):
        with pytest.raises(ValidationError, match="SECRET_KEY is required"):
            _settings(debug=False, secret_key="")

    def test_short_key_rejected_even_in_debug(self):
        with pytest.raises(ValidationError, match="at least 32"):
            _settings(debug=True, secret_key="short")

    def test_non_positive_expiry_rejected(self):
        with pytest.raises(ValidationError):
            _settings(secret_key=GOOD_KEY, session_expire_seconds=0)

    def test_default_session_lifetime_is_years(self):
        assert _settings(secret_key=GOOD_KEY).session_expire_seconds >= 365 * 24 * 60 * 60


class TestDatabaseUrl:
    def test_explicit_url_wins(self):
        settings = _settings(secret_key=GOOD_KEY, database_url="sqlite:///x.db", db_host="db.internal")
        assert settings.resolved_database_url == "sqlite:///x.db"

    def test_composed_from_parts(self):
        settings = _settings(
            secret_key=GOOD_KEY,
            database_url="",
            db_host="db.internal",
            db_user="dir",
            db_password="p@ss/word",
            db_name="members",
        )
        url = settings.resolved_database_url
        assert url.startswith("postgresql://dir:")
        assert "p%40ss%2Fword" in url
        assert url.endswith("@db.internal/members")

    def test_falls_back_to_local_sqlite(self):
        settings = _settings(secret_key=GOOD_KEY, database_url="", db_host="")
        assert settings.resolved_database_url.startswith("sqlite:///")
        assert settings.resolved_database_url.endswith("unidirectory.db")
