"""
auth/sessions.py -- Session Manager: token issue, resolution, and teardown.

Sessions are rows in the same database as users, keyed by the HMAC of the raw
token (see auth/tokens.hash_session_token). The row holds only the username;
resolve_session() re-fetches the live User through the Credential Store on
every call, so profile edits are visible immediately and a session whose user
has gone away resolves to nothing.

Each login creates its own row. A member signed in from two browsers has two
independent sessions; ending one leaves the other alive.

Lifecycle: created in the app lifespan, closed at shutdown. purge_expired()
is driven by the background task in api/main.py.

Layer rule: no imports from api/, web/, or directory/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import Column, MetaData, String, Table
from sqlalchemy.engine import Engine

from auth.credentials import CredentialStore
from auth.models import Session, User
from auth.tokens import generate_session_token, hash_session_token
from core.database import make_engine, store_errors
from core.errors import NotFound

logger = logging.getLogger("unidirectory.auth")

_metadata = MetaData()

_sessions = Table(
    "sessions",
    _metadata,
    Column("token_hash", String(64), primary_key=True),  # HMAC-SHA256 hex
    Column("username", String(64), nullable=False, index=True),
    Column("created_at", String(32), nullable=False),
    Column("expires_at", String(32), nullable=False, index=True),
)


class SessionManager:
    """Issue, resolve and end login sessions.

    Usage:
        sessions = SessionManager(db_url, credentials, expire_seconds=3600)
        token = sessions.start_session(user)
        user = sessions.resolve_session(token)   # User or None
        sessions.end_session(token)
        sessions.close()
    """

    def __init__(self, db_url: str, credentials: CredentialStore, expire_seconds: int) -> None:
        self.engine: Engine = make_engine(db_url)
        self._credentials = credentials
        self._expire_seconds = expire_seconds
        with store_errors("create sessions schema"):
            _metadata.create_all(self.engine)

    def start_session(self, user: User) -> str:
        """Persist a new session for user and return the raw token."""
        token = generate_session_token()
        now = datetime.now(timezone.utc)
        with store_errors("start session"), self.engine.connect() as conn:
            conn.execute(
                _sessions.insert().values(
                    token_hash=hash_session_token(token),
                    username=user.username,
                    created_at=now.isoformat(timespec="microseconds"),
                    expires_at=(now + timedelta(seconds=self._expire_seconds)).isoformat(timespec="microseconds"),
                )
            )
            conn.commit()
        logger.info("Session started for %s", user.username)
        return token

    def get_session(self, token: str) -> Session | None:
        """Return the stored session row for token, ignoring expiry."""
        with store_errors("get session"), self.engine.connect() as conn:
            row = conn.execute(_sessions.select().where(_sessions.c.token_hash == hash_session_token(token))).fetchone()
        if row is None:
            return None
        return Session(
            token_hash=row.token_hash,
            username=row.username,
            created_at=row.created_at,
            expires_at=row.expires_at,
        )

    def resolve_session(self, token: str | None) -> User | None:
        """Return the live User bound to token, or None if missing/unknown/expired."""
        if not token:
            return None
        session = self.get_session(token)
        if session is None:
            return None
        if datetime.fromisoformat(session.expires_at) <= datetime.now(timezone.utc):
            self.end_session(token)
            return None
        try:
            return self._credentials.find_by_username(session.username)
        except NotFound:
            return None

    def end_session(self, token: str) -> None:
        """Delete the session. Unknown tokens are ignored."""
        with store_errors("end session"), self.engine.connect() as conn:
            result = conn.execute(_sessions.delete().where(_sessions.c.token_hash == hash_session_token(token)))
            conn.commit()
        if result.rowcount:
            logger.info("Session ended")

    def purge_expired(self) -> int:
        """Delete all expired sessions. Returns number of rows removed."""
        cutoff = datetime.now(timezone.utc).isoformat(timespec="microseconds")
        with store_errors("purge sessions"), self.engine.connect() as conn:
            result = conn.execute(_sessions.delete().where(_sessions.c.expires_at <= cutoff))
            conn.commit()
        return result.rowcount

    def close(self) -> None:
        self.engine.dispose()
