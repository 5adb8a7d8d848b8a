"""
api/routes/auth.py -- Account and session REST endpoints.

Routes:
  POST /api/users     -- register; returns the new user (201)
  PUT  /api/users     -- change own email and password (requires JWT)
  POST /api/login     -- password login; returns JWT + refresh token
  POST /api/refresh   -- exchange a refresh token for a new JWT
  POST /api/revoke    -- revoke a refresh token (204)

Security:
  POST /login is rate-limited per IP (Settings.login_rate_limit).
  authenticate_user() provides timing equalization -- use it, never inline.
  Cache-Control: no-store on every response that carries a credential.
  PUT /users takes the user id from the JWT, never from the body, so a user
  can only ever change their own account.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from api.limiter import limiter
from api.models import LoginRequest, LoginResponse, TokenResponse, UserCreate, UserResponse, UserUpdate
from auth.dependencies import get_current_user
from auth.models import User
from auth.store import UserStore
from auth.tokens import (
    authenticate_user,
    create_access_token,
    generate_refresh_token,
    get_bearer_token,
    hash_password,
    hash_refresh_token,
    refresh_token_expiry,
)
from core.config import get_settings

logger = logging.getLogger("chirpy.api.auth")

# Auth policy:
# - POST /api/users:    public -- registration
# - PUT  /api/users:    requires JWT (get_current_user)
# - POST /api/login:    public, rate limited
# - POST /api/refresh:  refresh token as Bearer credential
# - POST /api/revoke:   refresh token as Bearer credential
router = APIRouter()


def _email_taken() -> HTTPException:
    return HTTPException(
        status_code=409,
        detail={"code": "email_taken", "message": "An account with that email already exists."},
    )


def _require_refresh_token(request: Request) -> str:
    token = get_bearer_token(request.headers)
    if token is None:
        raise HTTPException(
            status_code=400,
            detail={"code": "missing_token", "message": "Authorization: Bearer <refresh_token> header required."},
        )
    return token


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


@router.post("/users", response_model=UserResponse, status_code=201)
def create_user(request: Request, body: UserCreate) -> UserResponse:
    """Register a new account. The password is stored as a bcrypt hash only."""
    user_store: UserStore = request.app.state.user_store
    try:
        user = user_store.create_user(body.email, hash_password(body.password))
    except IntegrityError as exc:
        raise _email_taken() from exc
    logger.info("Registered user %s", user.id)
    return UserResponse.from_user(user)


@router.put("/users", response_model=UserResponse)
def update_user(
    request: Request,
    body: UserUpdate,
    current_user: User = Depends(get_current_user),
) -> UserResponse:
    """Replace the authenticated user's email and password."""
    user_store: UserStore = request.app.state.user_store
    try:
        updated = user_store.update_credentials(current_user.id, body.email, hash_password(body.password))
    except IntegrityError as exc:
        raise _email_taken() from exc
    if updated is None:
        # Deleted between authentication and update.
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required."},
        )
    return UserResponse.from_user(updated)


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


@router.post("/login", response_model=LoginResponse)
@limiter.limit(lambda: get_settings().login_rate_limit)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password; issue an access and a refresh token.

    Returns the same generic error for an unknown email and a wrong password
    ("bad_credentials") to avoid leaking which emails are registered.
    """
    user_store: UserStore = request.app.state.user_store
    user = authenticate_user(user_store, body.email, body.password)
    if user is None:
        logger.info("Failed login attempt")
        resp = JSONResponse(
            status_code=401,
            content={"error": {"code": "bad_credentials", "message": "Incorrect email or password."}},
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp

    access_token = create_access_token(user.id)
    refresh_token = generate_refresh_token()
    user_store.create_refresh_token(user.id, hash_refresh_token(refresh_token), refresh_token_expiry())
    logger.info("User %s logged in", user.id)

    public = UserResponse.from_user(user)
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            **public.model_dump(),
            token=access_token,
            refresh_token=refresh_token,
        ).model_dump(mode="json"),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/refresh", response_model=TokenResponse)
def refresh(request: Request, response: Response) -> TokenResponse:
    """Issue a new access token for a valid, unrevoked, unexpired refresh token.

    The refresh token itself is not rotated; it stays valid until it expires
    or is revoked.
    """
    raw_token = _require_refresh_token(request)
    user_store: UserStore = request.app.state.user_store
    user = user_store.get_user_from_refresh_token(hash_refresh_token(raw_token))
    if user is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "invalid_refresh_token", "message": "Refresh token is invalid, expired, or revoked."},
        )
    response.headers["Cache-Control"] = "no-store"
    return TokenResponse(token=create_access_token(user.id))


@router.post("/revoke", status_code=204)
def revoke(request: Request) -> Response:
    """Revoke a refresh token.

    Idempotent: unknown and already-revoked tokens also get 204, so the
    endpoint cannot be used to probe which tokens exist.
    """
    raw_token = _require_refresh_token(request)
    user_store: UserStore = request.app.state.user_store
    if user_store.revoke_refresh_token(hash_refresh_token(raw_token)):
        logger.info("Refresh token revoked")
    return Response(status_code=204)
