"""Unit tests for auth/tokens.py -- password digests and the signed session cookie."""

from jose import jwt

from auth.tokens import (
    decode_session_cookie,
    encode_session_cookie,
    generate_session_token,
    hash_password,
    hash_session_token,
    verify_password,
)


class TestPasswords:
    def test_verify_accepts_matching_password(self):
        digest = hash_password("s3cret-pass")
        assert verify_password("s3cret-pass", digest)

    def test_verify_rejects_wrong_password(self):
        digest = hash_password("s3cret-pass")
        assert not verify_password("s3cret-pasS", digest)

    def test_malformed_digest_is_a_mismatch(self):
        assert not verify_password("anything", "not-a-bcrypt-digest")


class TestSessionCookie:
    def test_cookie_carries_the_raw_token(self):
        token = generate_session_token()
        assert decode_session_cookie(encode_session_cookie(token)) == token

    def test_cookie_signed_with_another_key_is_rejected(self):
        forged = jwt.encode({"sid": "stolen"}, "x" * 64, algorithm="HS256")
        assert decode_session_cookie(forged) is None

    def test_tampered_cookie_is_rejected(self):
        head, _payload, signature = encode_session_cookie(generate_session_token()).split(".")
        _head, other_payload, _signature = encode_session_cookie(generate_session_token()).split(".")
        tampered = ".".join([head, other_payload, signature])
        assert decode_session_cookie(tampered) is None

    def test_garbage_cookie_is_rejected(self):
        assert decode_session_cookie("definitely-not-a-jwt") is None


def test_token_hash_is_deterministic_and_not_the_token():
    token = generate_session_token()
    assert hash_session_token(token) == hash_session_token(token)
    assert hash_session_token(token) != token
