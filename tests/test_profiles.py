"""Unit tests for directory/profiles.py -- reading and self-editing profiles.

The key property: each edit is a single-field partial write. Updating the
biography must leave featured works untouched, and vice versa.
"""

from dataclasses import replace

import pytest

from auth.models import AuthenticatedContext
from core.errors import NotFound


@pytest.fixture
def alice_ctx(credentials, profile_fields, member_password) -> AuthenticatedContext:
    user = credentials.register(profile_fields("alice"), member_password)
    return AuthenticatedContext(user=user, session_token="test-token")


class TestReads:
    def test_get_own_profile(self, profiles, alice_ctx):
        assert profiles.get_own_profile(alice_ctx).username == "alice"

    def test_get_public_profile_of_another_member(self, profiles, credentials, profile_fields, member_password, alice_ctx):
        credentials.register(profile_fields("bob"), member_password)
        assert profiles.get_public_profile("bob").first_name == "Bob"

    def test_get_public_profile_is_case_insensitive(self, profiles, alice_ctx):
        assert profiles.get_public_profile("ALICE").username == "alice"

    def test_unknown_profile_raises_not_found(self, profiles, alice_ctx):
        with pytest.raises(NotFound):
            profiles.get_public_profile("ghost")


class TestEdits:
    def test_update_biography_leaves_featured_works_unchanged(self, profiles, alice_ctx):
        profiles.update_featured_works(alice_ctx, "Thesis on dark matter")
        before = profiles.get_own_profile(alice_ctx)

        profiles.update_biography(alice_ctx, "hello")

        after = profiles.get_own_profile(alice_ctx)
        assert after.biography == "hello"
        assert after.featured_works == before.featured_works == "Thesis on dark matter"

    def test_update_featured_works_leaves_biography_unchanged(self, profiles, alice_ctx):
        profiles.update_biography(alice_ctx, "I like telescopes")

        profiles.update_featured_works(alice_ctx, "Poster, 2025")

        after = profiles.get_own_profile(alice_ctx)
        assert after.featured_works == "Poster, 2025"
        assert after.biography == "I like telescopes"

    def test_edit_does_not_touch_structured_fields(self, profiles, alice_ctx):
        before = profiles.get_own_profile(alice_ctx)
        profiles.update_biography(alice_ctx, "new bio")
        after = profiles.get_own_profile(alice_ctx)
        assert (after.email, after.faculty, after.graduating_year, after.hashed_password) == (
            before.email,
            before.faculty,
            before.graduating_year,
            before.hashed_password,
        )

    def test_biography_is_full_replace(self, profiles, alice_ctx):
        profiles.update_biography(alice_ctx, "first version")
        profiles.update_biography(alice_ctx, "")
        assert profiles.get_own_profile(alice_ctx).biography == ""

    def test_edit_for_vanished_user_raises_not_found(self, profiles, alice_ctx):
        ghost = AuthenticatedContext(user=replace(alice_ctx.user, username="ghost"), session_token="t")
        with pytest.raises(NotFound):
            profiles.update_biography(ghost, "boo")


def test_store_refuses_non_editable_fields(user_store, alice_ctx):
    with pytest.raises(ValueError):
        user_store.update_profile_field("alice", "faculty", "Arts")
