"""
api/routes/webhooks.py -- Inbound webhooks from Polka, the payment provider.

Routes:
  POST /api/polka/webhooks -- "user.upgraded" marks the user as Chirpy Red

Polka authenticates with "Authorization: ApiKey <POLKA_KEY>" (router-level
dependency). Events we do not handle are acknowledged with 204 so Polka stops
retrying them, whatever their data looks like. An unknown user_id is a 404,
which Polka treats as retryable.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from api.models import UPGRADE_EVENT, PolkaWebhook, PolkaWebhookData
from auth.dependencies import require_polka_key
from auth.store import UserStore

logger = logging.getLogger("chirpy.api.webhooks")

router = APIRouter(dependencies=[Depends(require_polka_key)])


@router.post("/polka/webhooks", status_code=204)
def polka_webhook(request: Request, body: PolkaWebhook) -> Response:
    if body.event != UPGRADE_EVENT:
        logger.info("Ignoring Polka event %r", body.event)
        return Response(status_code=204)

    try:
        data = PolkaWebhookData.model_validate(body.data)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors(include_url=False)) from exc

    user_store: UserStore = request.app.state.user_store
    if not user_store.upgrade_to_chirpy_red(data.user_id):
        raise HTTPException(
            status_code=404,
            detail={"code": "not_found", "message": "User not found."},
        )
    logger.info("User %s upgraded to Chirpy Red", data.user_id)
    return Response(status_code=204)
