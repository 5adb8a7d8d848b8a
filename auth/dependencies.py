"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Two credential types reach the API:
  1. Authorization: Bearer <jwt>  -- users acting on their own resources.
  2. Authorization: ApiKey <key>  -- Polka calling the upgrade webhook.

Refresh tokens also travel as Bearer credentials, but only to /api/refresh
and /api/revoke, which parse them directly with get_bearer_token().

try_get_current_user() is the soft variant (returns None on failure).
get_current_user() wraps it and raises HTTP 401 if unauthenticated.
require_polka_key() raises HTTP 401 unless the ApiKey matches POLKA_KEY.

Layer rule: no imports from web/ or chirps/.
  auth/dependencies.py may import from fastapi (for HTTPException/Request)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import hmac
import logging

from fastapi import HTTPException, Request

from auth.models import User
from auth.tokens import decode_access_token, get_api_key, get_bearer_token
from core.config import get_settings

logger = logging.getLogger("chirpy.auth")


def try_get_current_user(request: Request) -> User | None:
    """Authenticate the request from its Bearer JWT.

    Returns the User on success, None on any failure. A valid token for a
    user that has since been deleted is treated as unauthenticated.
    """
    token = get_bearer_token(request.headers)
    if not token:
        return None
    user_id = decode_access_token(token)
    if user_id is None:
        return None
    return request.app.state.user_store.get_by_id(user_id)


def get_current_user(request: Request) -> User:
    """Require authentication. Raises HTTP 401 if the request is not authenticated.

    Use as a FastAPI dependency:
        @router.post("/chirps")
        def route(user: User = Depends(get_current_user)): ...
    """
    user = try_get_current_user(request)
    if user is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required."},
        )
    return user


def require_polka_key(request: Request) -> None:
    """Require the Polka webhook API key. Raises HTTP 401 on mismatch.

    compare_digest keeps the comparison constant-time. An unset POLKA_KEY
    rejects every request instead of matching an empty header.
    """
    expected = get_settings().polka_key
    provided = get_api_key(request.headers)
    if not expected or not provided or not hmac.compare_digest(provided.encode(), expected.encode()):
        logger.warning("Rejected webhook call with missing or invalid API key")
        raise HTTPException(
            status_code=401,
            detail={"code": "invalid_api_key", "message": "Invalid or missing API key."},
        )
