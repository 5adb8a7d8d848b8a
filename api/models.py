"""
API request and response models for Chirpy REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
chirps/models.py, which own the internal domain representation. Route
handlers map between the two.

hashed_password and refresh token hashes never appear in any response model.
"""

from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from auth.models import User
from auth.tokens import MAX_PASSWORD_BYTES
from chirps.models import Chirp

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+$"

UPGRADE_EVENT = "user.upgraded"


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class Credentials(BaseModel):
    """Email + password pair shared by registration, login, and PUT /api/users."""

    email: str = Field(min_length=3, max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(min_length=1)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        """bcrypt rejects input over 72 bytes; multi-byte characters count in full."""
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
        return value


class UserCreate(Credentials):
    """Request body for POST /api/users."""


class UserUpdate(Credentials):
    """Request body for PUT /api/users. Both fields are replaced."""


class LoginRequest(Credentials):
    """Request body for POST /api/login."""


class ChirpCreate(BaseModel):
    """Request body for POST /api/chirps and POST /api/validate_chirp.

    The 140-character limit is NOT a Field constraint: over-long chirps get a
    400 "chirp_too_long" from the route, not a generic 422. An empty body is
    accepted.
    """

    body: str


class PolkaWebhookData(BaseModel):
    """Payload of a "user.upgraded" event."""

    user_id: UUID


class PolkaWebhook(BaseModel):
    """Request body for POST /api/polka/webhooks.

    data stays loosely typed: its shape depends on the event, and only
    "user.upgraded" payloads are parsed (as PolkaWebhookData).
    """

    event: str
    data: dict[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Public view of a user account."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    email: str
    created_at: str
    updated_at: str
    is_chirpy_red: bool

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            created_at=user.created_at,
            updated_at=user.updated_at,
            is_chirpy_red=user.is_chirpy_red,
        )


class LoginResponse(UserResponse):
    """Response for POST /api/login: the user plus both credentials.

    token is the short-lived JWT; refresh_token is the opaque 60-day token,
    shown once and stored only as a hash.
    """

    token: str
    refresh_token: str


class TokenResponse(BaseModel):
    """Response for POST /api/refresh."""

    model_config = ConfigDict(frozen=True)

    token: str


class ChirpResponse(BaseModel):
    """Public view of a chirp."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    body: str
    user_id: UUID
    created_at: str
    updated_at: str

    @classmethod
    def from_chirp(cls, chirp: Chirp) -> "ChirpResponse":
        """Factory Method: the domain-to-transport mapping lives next to the model."""
        return cls(
            id=chirp.id,
            body=chirp.body,
            user_id=chirp.user_id,
            created_at=chirp.created_at,
            updated_at=chirp.updated_at,
        )


class ValidateChirpResponse(BaseModel):
    """Response for POST /api/validate_chirp."""

    model_config = ConfigDict(frozen=True)

    cleaned_body: str


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail
