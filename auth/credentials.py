"""
auth/credentials.py -- Credential Store: registration, lookup, verification.

A stateless service over UserStore. It owns the two rules that must hold no
matter which route calls it:

  - usernames are normalized (stripped, lowercased) before every write and
    lookup, so "Alice" and "alice" are the same account;
  - a failed login looks the same whether the username exists or not --
    same exception, same message, and bcrypt runs in both cases so timing is
    equalized too.

Layer rule: no imports from api/, web/, or directory/.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from auth.models import User
from auth.store import UserStore
from auth.tokens import _DUMMY_HASH, hash_password, verify_password
from core.errors import AuthenticationFailure, NotFound

logger = logging.getLogger("unidirectory.auth")


def normalize_username(username: str) -> str:
    return username.strip().lower()


@dataclass
class ProfileFields:
    """Everything a new member supplies at registration, except the password."""

    username: str
    email: str
    first_name: str
    last_name: str
    faculty: str
    department: str
    programme: str
    graduating_year: int
    picture: str = ""
    sm_facebook: str = ""
    sm_twitter: str = ""
    sm_instagram: str = ""
    sm_linkedin: str = ""


class CredentialStore:
    """Register members and check their passwords.

    Usage:
        creds = CredentialStore(user_store, default_picture="/static/dp.svg")
        user = creds.register(ProfileFields(...), "s3cret-pass")
        user = creds.verify_credentials("alice", "s3cret-pass")
    """

    def __init__(self, users: UserStore, default_picture: str = "") -> None:
        self._users = users
        self._default_picture = default_picture

    def register(self, fields: ProfileFields, raw_password: str) -> User:
        """Create a new member with an empty biography and featured works.

        Raises DuplicateUsernameError when the normalized username is taken.
        """
        user = User(
            username=normalize_username(fields.username),
            email=fields.email.strip(),
            first_name=fields.first_name.strip(),
            last_name=fields.last_name.strip(),
            faculty=fields.faculty,
            department=fields.department,
            programme=fields.programme,
            graduating_year=fields.graduating_year,
            picture=fields.picture or self._default_picture,
            biography="",
            featured_works="",
            sm_facebook=fields.sm_facebook,
            sm_twitter=fields.sm_twitter,
            sm_instagram=fields.sm_instagram,
            sm_linkedin=fields.sm_linkedin,
            hashed_password=hash_password(raw_password),
        )
        user.id = self._users.create_user(user)
        logger.info("Registered user %s", user.username)
        return user

    def find_by_username(self, username: str) -> User:
        """Return the member with this username. Raises NotFound."""
        user = self._users.get_by_username(normalize_username(username))
        if user is None:
            raise NotFound(f"No user named {normalize_username(username)!r}")
        return user

    def verify_credentials(self, username: str, raw_password: str) -> User:
        """Return the member if the password matches, else raise AuthenticationFailure.

        Always runs bcrypt whether or not the user exists:
        - Unknown username: bcrypt runs against _DUMMY_HASH
        - Wrong password: bcrypt runs against the real digest
        """
        user = self._users.get_by_username(normalize_username(username))
        if user is None or not user.hashed_password:
            # Equalize timing -- do NOT return early before running bcrypt
            verify_password(raw_password, _DUMMY_HASH)
            raise AuthenticationFailure()
        if not verify_password(raw_password, user.hashed_password):
            raise AuthenticationFailure()
        return user
