"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and services do
the work; these only own the shape.

Layer rule: no imports from api/, web/, or directory/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A registered directory member: identity, profile and credential.

    username is stored lowercased; the Credential Store normalizes it before
    every write and lookup. hashed_password is the bcrypt digest (salt
    included) and must never leave the server -- api/models.UserPublic is the
    only shape that is serialized to clients.

    faculty/department/programme are free-text copies chosen at registration,
    not references into the programmes table.
    """

    username: str
    email: str
    first_name: str
    last_name: str
    faculty: str
    department: str
    programme: str
    graduating_year: int
    picture: str = ""
    biography: str = ""
    featured_works: str = ""
    sm_facebook: str = ""
    sm_twitter: str = ""
    sm_instagram: str = ""
    sm_linkedin: str = ""
    hashed_password: str | None = None
    id: int | None = None
    created_at: str | None = None


@dataclass
class Session:
    """A server-side login session.

    token_hash is HMAC-SHA256(SECRET_KEY, raw_token); the raw token only ever
    exists in the client's cookie. username is the serialized user reference
    used to re-fetch the live User on every request.
    """

    token_hash: str
    username: str
    created_at: str
    expires_at: str


@dataclass(frozen=True)
class AuthenticatedContext:
    """Proof that the current request carries a valid session.

    Produced by the auth gate (auth/dependencies.py) and handed explicitly to
    the handlers that need an identity.
    """

    user: User
    session_token: str

    @property
    def username(self) -> str:
        return self.user.username
