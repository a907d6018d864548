"""
tests/conftest.py -- Shared test fixtures for UniDirectory.

This module provides:
  - user_store / credentials / sessions / programme_store / profiles /
    directory: function-scoped services over private in-memory SQLite DBs
    for unit tests
  - web_client: TestClient with follow_redirects=False over a seeded app
  - login(): sign in through POST /login and return the session cookie

Design: the integration DB is a named shared-memory SQLite URI (not plain
:memory:) because TestClient runs sync route handlers in a thread pool, and
the three stores each hold their own engine. A plain :memory: DB is
per-connection and would present a blank schema to each worker thread. The
name gets a uuid suffix so modules never see each other's rows.

The DEBUG env var must be set before any auth module import so get_settings()
auto-generates SECRET_KEY in dev mode rather than raising ValueError.
"""

from __future__ import annotations

import asyncio
import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set DEBUG before any auth/core import so get_settings() can
# auto-generate SECRET_KEY in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.main import attach_services, close_services
from asgi import app
from auth.credentials import CredentialStore, ProfileFields
from auth.sessions import SessionManager
from auth.store import UserStore
from core.config import get_settings
from core.limiter import limiter
from directory.models import Programme
from directory.profiles import ProfileService
from directory.queries import DirectoryQueryService
from directory.store import ProgrammeStore

PASSWORD = "correct-horse-9"
COOKIE = get_settings().session_cookie_name

# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------

PROGRAMME_ROWS = [
    ("Science", "Physics", "BSc Physics"),
    ("Science", "Physics", "BSc Physics"),
    ("Science", "Physics", "MSc Astrophysics"),
    ("Science", "Chemistry", "BSc Chemistry"),
    ("Science", "Chemistry", "BSc Chemistry"),
    ("Engineering", "Civil", "BEng Civil Engineering"),
    ("Humanities", "History", "BA History"),
]


def make_fields(username: str, **overrides) -> ProfileFields:
    values = {
        "username": username,
        "email": f"{username.lower()}@example.edu",
        "first_name": username.capitalize(),
        "last_name": "Tester",
        "faculty": "Science",
        "department": "Physics",
        "programme": "BSc Physics",
        "graduating_year": 2026,
    }
    values.update(overrides)
    return ProfileFields(**values)


def seed_directory(credentials: CredentialStore, programmes: ProgrammeStore) -> None:
    """Register four members and load the programme reference rows."""
    credentials.register(make_fields("alice"), PASSWORD)
    credentials.register(make_fields("bob", department="Chemistry", programme="BSc Chemistry"), PASSWORD)
    credentials.register(
        make_fields("carol", faculty="Engineering", department="Civil", programme="BEng Civil Engineering"),
        PASSWORD,
    )
    # Lowercase faculty on purpose: filters are exact-match.
    credentials.register(make_fields("dave", faculty="science"), PASSWORD)
    programmes.add_programmes([Programme(*row) for row in PROGRAMME_ROWS])


# ---------------------------------------------------------------------------
# Unit-test fixtures -- private in-memory DBs, one per test
# ---------------------------------------------------------------------------


@pytest.fixture
def user_store() -> Generator[UserStore, None, None]:
    store = UserStore("sqlite:///:memory:")
    yield store
    store.close()


@pytest.fixture
def credentials(user_store: UserStore) -> CredentialStore:
    return CredentialStore(user_store, default_picture="/static/dp.svg")


@pytest.fixture
def sessions(credentials: CredentialStore) -> Generator[SessionManager, None, None]:
    manager = SessionManager("sqlite:///:memory:", credentials, expire_seconds=3600)
    yield manager
    manager.close()


@pytest.fixture
def programme_store() -> Generator[ProgrammeStore, None, None]:
    store = ProgrammeStore("sqlite:///:memory:")
    store.add_programmes([Programme(*row) for row in PROGRAMME_ROWS])
    yield store
    store.close()


@pytest.fixture
def profiles(user_store: UserStore, credentials: CredentialStore) -> ProfileService:
    return ProfileService(user_store, credentials)


@pytest.fixture
def directory(user_store: UserStore, credentials: CredentialStore, programme_store: ProgrammeStore):
    credentials.register(make_fields("alice"), PASSWORD)
    credentials.register(make_fields("bob", department="Chemistry", programme="BSc Chemistry"), PASSWORD)
    credentials.register(make_fields("carol", faculty="Engineering", department="Civil"), PASSWORD)
    credentials.register(make_fields("dave", faculty="science"), PASSWORD)
    credentials.register(make_fields("erin", faculty="Science Faculty"), PASSWORD)
    return DirectoryQueryService(user_store, programme_store)


# ---------------------------------------------------------------------------
# Integration fixtures -- the real ASGI app over a seeded shared-memory DB
# ---------------------------------------------------------------------------


def _patch_lifespan(db_url: str):
    """Return an async context manager that replaces the real lifespan.

    Wires services for the test DB into app.state. The purge_task is a
    long-sleeping coroutine so shutdown has a real asyncio.Task to cancel.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        attach_services(app, db_url)
        seed_directory(app.state.credentials, app.state.programme_store)
        app.state.purge_task = asyncio.create_task(asyncio.sleep(99999))
        yield
        app.state.purge_task.cancel()
        close_services(app)

    return test_lifespan


@pytest.fixture(scope="module")
def web_client() -> Generator[TestClient, None, None]:
    """Yield a TestClient for the assembled app (API + web UI).

    follow_redirects=False is essential: web tests assert on redirect
    *locations*, which are invisible once the client follows them.
    The login rate limiter is disabled so many logins per module are fine.
    """
    db_url = f"sqlite:///file:test_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"
    app.router.lifespan_context = _patch_lifespan(db_url)
    limiter.enabled = False
    with TestClient(app, follow_redirects=False, raise_server_exceptions=True) as client:
        yield client
    limiter.enabled = True


def login(client: TestClient, username: str = "alice", password: str = PASSWORD) -> dict[str, str]:
    """Sign in through the real form handler and return {cookie_name: value}.

    The client's own cookie jar is cleared afterwards so tests that want to
    be anonymous stay anonymous; pass the returned dict explicitly.
    """
    resp = client.post("/login", data={"username": username, "password": password})
    assert resp.status_code == 302, resp.text
    value = resp.cookies.get(COOKIE)
    client.cookies.clear()
    assert value, f"login for {username!r} did not set {COOKIE}"
    return {COOKIE: value}


@pytest.fixture
def login_as(web_client: TestClient):
    """Fixture form of login() bound to the module's web_client."""

    def _login(username: str = "alice", password: str = PASSWORD) -> dict[str, str]:
        return login(web_client, username, password)

    return _login


@pytest.fixture
def profile_fields():
    """Factory fixture: profile_fields("alice", faculty="Arts") -> ProfileFields."""
    return make_fields


@pytest.fixture
def member_password() -> str:
    return PASSWORD
