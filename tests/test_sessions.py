"""Unit tests for auth/sessions.py -- the session lifecycle.

Covers:
- start -> resolve returns the member; end -> resolve returns None
- missing, unknown and expired tokens resolve to None
- each login gets an independent session
- resolve re-reads the live record rather than a snapshot
- only an HMAC of the token is stored
- purge_expired() removes stale rows and keeps live ones
"""

from auth.sessions import SessionManager


def _member(credentials, profile_fields, member_password, username="alice"):
    return credentials.register(profile_fields(username), member_password)


class TestLifecycle:
    def test_start_then_resolve_returns_user(self, sessions, credentials, profile_fields, member_password):
        user = _member(credentials, profile_fields, member_password)
        token = sessions.start_session(user)
        resolved = sessions.resolve_session(token)
        assert resolved is not None
        assert resolved.username == "alice"

    def test_end_session_makes_token_unresolvable(self, sessions, credentials, profile_fields, member_password):
        user = _member(credentials, profile_fields, member_password)
        token = sessions.start_session(user)
        sessions.end_session(token)
        assert sessions.resolve_session(token) is None

    def test_ending_unknown_token_is_a_no_op(self, sessions):
        sessions.end_session("never-issued")

    def test_missing_and_unknown_tokens_resolve_to_none(self, sessions):
        assert sessions.resolve_session(None) is None
        assert sessions.resolve_session("") is None
        assert sessions.resolve_session("not-a-real-token") is None

    def test_tokens_are_unique_and_unguessable_length(self, sessions, credentials, profile_fields, member_password):
        user = _member(credentials, profile_fields, member_password)
        tokens = {sessions.start_session(user) for _ in range(5)}
        assert len(tokens) == 5
        assert all(len(t) >= 40 for t in tokens)


class TestIndependentSessions:
    def test_two_logins_are_independent(self, sessions, credentials, profile_fields, member_password):
        user = _member(credentials, profile_fields, member_password)
        laptop = sessions.start_session(user)
        phone = sessions.start_session(user)
        sessions.end_session(laptop)
        assert sessions.resolve_session(laptop) is None
        assert sessions.resolve_session(phone).username == "alice"


class TestLiveRecord:
    def test_resolve_sees_profile_changes(self, sessions, credentials, user_store, profile_fields, member_password):
        user = _member(credentials, profile_fields, member_password)
        token = sessions.start_session(user)
        user_store.update_profile_field("alice", "biography", "updated after login")
        assert sessions.resolve_session(token).biography == "updated after login"


class TestStorage:
    def test_only_token_hash_is_stored(self, sessions, credentials, profile_fields, member_password):
        user = _member(credentials, profile_fields, member_password)
        token = sessions.start_session(user)
        row = sessions.get_session(token)
        assert row is not None
        assert row.token_hash != token
        assert len(row.token_hash) == 64
        assert row.username == "alice"


class TestExpiry:
    def test_expired_session_resolves_to_none_and_is_removed(self, credentials, profile_fields, member_password):
        user = _member(credentials, profile_fields, member_password)
        manager = SessionManager("sqlite:///:memory:", credentials, expire_seconds=-1)
        try:
            token = manager.start_session(user)
            assert manager.get_session(token) is not None
            assert manager.resolve_session(token) is None
            assert manager.get_session(token) is None
        finally:
            manager.close()

    def test_purge_expired_keeps_live_sessions(self, credentials, profile_fields, member_password):
        user = _member(credentials, profile_fields, member_password)
        manager = SessionManager("sqlite:///:memory:", credentials, expire_seconds=-1)
        try:
            manager.start_session(user)
            manager.start_session(user)
            manager._expire_seconds = 3600
            live = manager.start_session(user)
            assert manager.purge_expired() == 2
            assert manager.resolve_session(live).username == "alice"
        finally:
            manager.close()
