"""
auth/tokens.py -- Password hashing, session tokens, and the session cookie.

Security design decisions:
  Passwords: bcrypt directly (no passlib wrapper). bcrypt embeds a random
       salt in every digest, so the stored value is the whole credential.
       The _DUMMY_HASH constant lets the Credential Store run bcrypt even when
       the username does not exist, so response time does not reveal which
       usernames are registered.

  Session tokens: secrets.token_urlsafe(32) -- 256 bits of entropy. The
       server stores HMAC-SHA256(SECRET_KEY, token) rather than the token, so
       a copy of the sessions table cannot be replayed as cookies.

  Session cookie: the raw token is wrapped in a JWT (python-jose, HS256)
       signed with SECRET_KEY. A tampered or foreign cookie fails signature
       verification and is treated as "no session" before any DB lookup.

Layer rule: no imports from api/, web/, or directory/. Import from core/ is
allowed.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt

from core.config import get_settings

logger = logging.getLogger("unidirectory.auth")

# ---------------------------------------------------------------------------
# Config -- read once at module load via the lru_cache singleton
# ---------------------------------------------------------------------------

_settings = get_settings()

_ALGORITHM = "HS256"

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a salted bcrypt digest of the given plaintext password.

    bcrypt only looks at the first 72 bytes. The registration form caps
    passwords at 255 characters; longer multi-byte passwords are truncated by
    bcrypt itself, which is a known and accepted limitation.
    """
    return bcrypt.hashpw(plain.encode("utf-8")[:72], bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt digest."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8")[:72], hashed.encode("utf-8"))
    except ValueError:
        # Malformed digest in the DB -- treat as a mismatch, never as a match.
        logger.warning("Stored password digest could not be parsed")
        return False


# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("unidirectory_timing_dummy")


# ---------------------------------------------------------------------------
# Session tokens
# ---------------------------------------------------------------------------


def generate_session_token() -> str:
    """Return a new unguessable session token (256 bits, URL-safe)."""
    return secrets.token_urlsafe(32)


def hash_session_token(raw_token: str) -> str:
    """Return HMAC-SHA256(SECRET_KEY, raw_token) as a hex string.

    Deterministic, so the session row can be found by an indexed equality
    lookup on every request.
    """
    return hmac.new(
        _settings.secret_key.encode(),
        raw_token.encode(),
        hashlib.sha256,
    ).hexdigest()


# ---------------------------------------------------------------------------
# Signed cookie encode / decode
# ---------------------------------------------------------------------------


def encode_session_cookie(raw_token: str, expire_seconds: int = 0) -> str:
    """Sign raw_token into a compact JWT suitable for a cookie value."""
    duration = expire_seconds if expire_seconds > 0 else _settings.session_expire_seconds
    payload = {
        "sid": raw_token,
        "exp": datetime.now(timezone.utc) + timedelta(seconds=duration),
    }
    return jwt.encode(payload, _settings.secret_key, algorithm=_ALGORITHM)


def decode_session_cookie(value: str) -> str | None:
    """Verify a session cookie and return the raw token, or None on any failure."""
    try:
        payload = jwt.decode(value, _settings.secret_key, algorithms=[_ALGORITHM])
    except JWTError:
        return None
    sid = payload.get("sid")
    return sid if isinstance(sid, str) and sid else None


# ---------------------------------------------------------------------------
# Cookie helpers
# ---------------------------------------------------------------------------


def set_session_cookie(response, raw_token: str) -> None:
    """Write the signed session cookie on the response.

    httponly=True: JS cannot read the cookie (XSS mitigation).
    samesite="lax": not sent on cross-site POSTs (CSRF mitigation for forms).
    secure: only sent over HTTPS when SECURE_COOKIES=true.
    max_age: matches the server-side session expiry.
    """
    response.set_cookie(
        _settings.session_cookie_name,
        value=encode_session_cookie(raw_token),
        httponly=True,
        samesite="lax",
        secure=_settings.secure_cookies,
        max_age=_settings.session_expire_seconds,
    )


def clear_session_cookie(response) -> None:
    response.delete_cookie(_settings.session_cookie_name)


def read_session_cookie(request) -> str | None:
    """Return the raw session token carried by the request, if any and valid."""
    value = request.cookies.get(_settings.session_cookie_name)
    if not value:
        return None
    return decode_session_cookie(value)
