"""
directory/profiles.py -- Profile Service: read and self-edit member profiles.

Members can change exactly two things about themselves after registration:
the biography and the featured works. Each edit is one single-column UPDATE,
so changing one never disturbs the other (or anything else on the record).
Content is free text; the only bound is the request body ceiling enforced in
api/main.py.
"""

from __future__ import annotations

import logging

from auth.credentials import CredentialStore
from auth.models import AuthenticatedContext, User
from auth.store import UserStore
from core.errors import NotFound

logger = logging.getLogger("unidirectory.directory")


class ProfileService:
    def __init__(self, users: UserStore, credentials: CredentialStore) -> None:
        self._users = users
        self._credentials = credentials

    def get_own_profile(self, ctx: AuthenticatedContext) -> User:
        """Return the caller's current record, re-read from the store."""
        return self._credentials.find_by_username(ctx.username)

    def get_public_profile(self, username: str) -> User:
        """Return any member's profile by username. Raises NotFound."""
        return self._credentials.find_by_username(username)

    def update_biography(self, ctx: AuthenticatedContext, text: str) -> None:
        self._update(ctx, "biography", text)

    def update_featured_works(self, ctx: AuthenticatedContext, text: str) -> None:
        self._update(ctx, "featured_works", text)

    def _update(self, ctx: AuthenticatedContext, field: str, text: str) -> None:
        if not self._users.update_profile_field(ctx.username, field, text):
            # Session outlived its user.
            raise NotFound(f"No user named {ctx.username!r}")
        logger.info("Updated %s for %s (%d chars)", field, ctx.username, len(text))
