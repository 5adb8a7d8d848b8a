"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in chirps/models.py -- dataclasses own domain shape; stores and routes do the
work.

Layer rule: no imports from api/, web/, or chirps/.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass
class User:
    """A registered Chirpy account.

    email is the login identifier and is unique across the users table.
    is_chirpy_red flips to True when Polka reports a successful upgrade.
    """

    id: UUID
    email: str
    hashed_password: str
    created_at: str  # ISO 8601, set by store on insert
    updated_at: str
    is_chirpy_red: bool = False


@dataclass
class RefreshToken:
    """A long-lived, opaque credential used to mint new access tokens.

    Security design:
    - token_hash is HMAC-SHA256(JWT_SECRET, raw_token). The raw token is
      returned once at login and never persisted, so a leaked database does
      not leak usable refresh tokens.
    - revoked_at is None while the token is usable. Revocation is a soft
      delete: the row stays for auditing, lookups ignore it.
    """

    token_hash: str
    user_id: UUID
    expires_at: str
    created_at: str
    updated_at: str
    revoked_at: str | None = None
