"""
api/routes/chirps.py -- Chirp REST endpoints.

Routes:
  POST   /api/chirps                 -- post a chirp (requires JWT)
  GET    /api/chirps                 -- list chirps; ?author_id= and ?sort=asc|desc
  GET    /api/chirps/{chirp_id}      -- single chirp
  DELETE /api/chirps/{chirp_id}      -- delete own chirp (requires JWT, ownership checked)
  POST   /api/validate_chirp         -- length check + profanity filter, no write

Ownership: DELETE loads the chirp first and compares chirp.user_id with the
authenticated user. 404 for a missing chirp, 403 for someone else's.
"""

from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from api.models import ChirpCreate, ChirpResponse, ValidateChirpResponse
from auth.dependencies import get_current_user
from auth.models import User
from chirps.store import ChirpStore
from chirps.validation import ChirpTooLongError, validate_chirp

logger = logging.getLogger("chirpy.api.chirps")

router = APIRouter()


def _validated_body(body: str) -> str:
    try:
        return validate_chirp(body)
    except ChirpTooLongError as exc:
        raise HTTPException(
            status_code=400,
            detail={"code": "chirp_too_long", "message": "Chirp is too long", "detail": str(exc)},
        ) from exc


def _chirp_not_found() -> HTTPException:
    return HTTPException(
        status_code=404,
        detail={"code": "not_found", "message": "Chirp not found."},
    )


@router.post("/chirps", response_model=ChirpResponse, status_code=201)
def create_chirp(
    request: Request,
    body: ChirpCreate,
    current_user: User = Depends(get_current_user),
) -> ChirpResponse:
    """Post a chirp as the authenticated user. The stored body is the cleaned one."""
    chirp_store: ChirpStore = request.app.state.chirp_store
    chirp = chirp_store.create_chirp(current_user.id, _validated_body(body.body))
    return ChirpResponse.from_chirp(chirp)


@router.get("/chirps", response_model=list[ChirpResponse])
def list_chirps(
    request: Request,
    author_id: Optional[str] = None,
    sort: str = "asc",
) -> list[ChirpResponse]:
    """List chirps by creation time.

    sort=desc returns newest first; any other value falls back to ascending.
    author_id is parsed here rather than typed as UUID so a malformed value
    gets a 400 instead of a validation 422.
    """
    author: UUID | None = None
    if author_id:
        try:
            author = UUID(author_id)
        except ValueError as exc:
            raise HTTPException(
                status_code=400,
                detail={"code": "invalid_author_id", "message": "author_id must be a UUID."},
            ) from exc
    chirp_store: ChirpStore = request.app.state.chirp_store
    chirps = chirp_store.list_chirps(author_id=author, descending=sort.lower() == "desc")
    return [ChirpResponse.from_chirp(c) for c in chirps]


@router.get("/chirps/{chirp_id}", response_model=ChirpResponse)
def get_chirp(request: Request, chirp_id: UUID) -> ChirpResponse:
    chirp_store: ChirpStore = request.app.state.chirp_store
    chirp = chirp_store.get_chirp(chirp_id)
    if chirp is None:
        raise _chirp_not_found()
    return ChirpResponse.from_chirp(chirp)


@router.delete("/chirps/{chirp_id}", status_code=204)
def delete_chirp(
    request: Request,
    chirp_id: UUID,
    current_user: User = Depends(get_current_user),
) -> Response:
    """Delete a chirp owned by the authenticated user."""
    chirp_store: ChirpStore = request.app.state.chirp_store
    chirp = chirp_store.get_chirp(chirp_id)
    if chirp is None:
        raise _chirp_not_found()
    if chirp.user_id != current_user.id:
        logger.warning("User %s tried to delete chirp %s owned by %s", current_user.id, chirp.id, chirp.user_id)
        raise HTTPException(
            status_code=403,
            detail={"code": "forbidden", "message": "You can only delete your own chirps."},
        )
    chirp_store.delete_chirp(chirp_id)
    return Response(status_code=204)


@router.post("/validate_chirp", response_model=ValidateChirpResponse)
def validate_chirp_route(body: ChirpCreate) -> ValidateChirpResponse:
    """Run the chirp rules without storing anything."""
    return ValidateChirpResponse(cleaned_body=_validated_body(body.body))
