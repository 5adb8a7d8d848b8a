"""
auth/tokens.py -- JWT, password hashing, refresh token and header utilities.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with JWT_SECRET and carry
       iss="chirpy", sub=<user UUID>, iat and exp. Verification returns None on
       any failure -- the dependency layer turns that into a 401.

  Passwords: bcrypt directly. The _DUMMY_HASH constant enables timing
       equalization in authenticate_user() so response time does not reveal
       whether an email is registered.

  Refresh tokens: secrets.token_hex(32) gives 256 bits of entropy. We store
       HMAC-SHA256(JWT_SECRET, raw_token) so lookup is O(1) by primary key and
       the raw value never touches the database.

Layer rule: no imports from api/, web/, or chirps/. Import from core/ is
allowed -- core/ is the kernel and has no reverse dependencies.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING
from uuid import UUID

import bcrypt
from jose import JWTError, jwt

from core.config import get_settings

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("chirpy.auth")

_settings = get_settings()

_ALGORITHM = "HS256"
_ISSUER = "chirpy"

# bcrypt only looks at the first 72 bytes and bcrypt>=5 refuses longer input.
MAX_PASSWORD_BYTES = 72

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    Raises ValueError for passwords longer than 72 UTF-8 bytes. The API layer
    rejects those at validation time, so this only fires for direct callers.
    """
    encoded = plain.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise ValueError(f"password exceeds {MAX_PASSWORD_BYTES} bytes")
    return bcrypt.hashpw(encoded, bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed hash or over-long password.
        return False


# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("chirpy_timing_dummy")


def authenticate_user(store: UserStore, email: str, password: str) -> User | None:
    """Authenticate an email/password login with timing equalization.

    Always runs bcrypt whether or not the email exists:
    - Unknown email: bcrypt runs against _DUMMY_HASH (same cost as real check)
    - Wrong password: bcrypt runs against the real hash (same cost)

    Returns the User on success, None on any failure.
    """
    user = store.get_by_email(email)
    if user is None:
        verify_password(password, _DUMMY_HASH)
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_access_token(user_id: UUID, expire_seconds: int = 0, secret_key: str | None = None) -> str:
    """Encode a signed JWT for user_id.

    Args:
        user_id:        The user's UUID, stored as the subject claim.
        expire_seconds: Token lifetime. If 0 (default), uses
                        Settings.access_token_expire_seconds.
        secret_key:     Signing key. Defaults to Settings.jwt_secret.
    """
    duration = expire_seconds if expire_seconds > 0 else _settings.access_token_expire_seconds
    now = datetime.now(timezone.utc)
    payload = {
        "iss": _ISSUER,
        "sub": str(user_id),
        "iat": now,
        "exp": now + timedelta(seconds=duration),
    }
    return jwt.encode(payload, secret_key or _settings.jwt_secret, algorithm=_ALGORITHM)


def decode_access_token(token: str, secret_key: str | None = None) -> UUID | None:
    """Verify a JWT and return its subject as a UUID, or None on any failure.

    Signature, algorithm, issuer and expiry are all checked by jose, and a
    token missing exp, iat or sub is refused. A token whose subject is not a
    UUID is rejected here rather than at lookup time.
    """
    try:
        payload = jwt.decode(
            token,
            secret_key or _settings.jwt_secret,
            algorithms=[_ALGORITHM],
            issuer=_ISSUER,
            options={"require_exp": True, "require_iat": True, "require_sub": True},
        )
    except JWTError as exc:
        logger.info("Rejected access token: %s", exc)
        return None
    try:
        return UUID(payload["sub"])
    except (KeyError, TypeError, ValueError):
        return None


# ---------------------------------------------------------------------------
# Refresh tokens
# ---------------------------------------------------------------------------


def generate_refresh_token() -> str:
    """Return 32 random bytes as 64 hex characters."""
    return secrets.token_hex(32)


def hash_refresh_token(raw_token: str) -> str:
    """Return HMAC-SHA256(JWT_SECRET, raw_token) as a hex string.

    Deterministic, so the store can look tokens up by hash. Without
    JWT_SECRET an attacker holding the database cannot forge a matching raw
    token.
    """
    return hmac.new(
        _settings.jwt_secret.encode(),
        raw_token.encode(),
        hashlib.sha256,
    ).hexdigest()


def refresh_token_expiry() -> str:
    """ISO 8601 expiry timestamp for a refresh token issued now."""
    expires = datetime.now(timezone.utc) + timedelta(days=_settings.refresh_token_expire_days)
    return expires.isoformat(timespec="microseconds")


# ---------------------------------------------------------------------------
# Authorization header parsing
# ---------------------------------------------------------------------------


def _get_authorization(headers: Mapping[str, str], scheme: str) -> str | None:
    value = headers.get("Authorization") or headers.get("authorization") or ""
    prefix = f"{scheme} "
    # Auth schemes are case-insensitive (RFC 7235).
    if value[: len(prefix)].lower() != prefix.lower():
        return None
    credential = value[len(prefix) :].strip()
    return credential or None


def get_bearer_token(headers: Mapping[str, str]) -> str | None:
    """Extract the token from "Authorization: Bearer <token>". None if absent."""
    return _get_authorization(headers, "Bearer")


def get_api_key(headers: Mapping[str, str]) -> str | None:
    """Extract the key from "Authorization: ApiKey <key>". None if absent."""
    return _get_authorization(headers, "ApiKey")
