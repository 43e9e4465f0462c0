"""
api/routes/webhooks.py -- Polka payment-provider webhook.

Route:
  POST /api/polka/webhooks -- requires `Authorization: ApiKey <POLKA_KEY>`

Only "user.upgraded" events do anything; every other event is acknowledged
with 204 so Polka does not retry it.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Request, Response

from api.models import PolkaWebhook
from auth.dependencies import require_polka_key
from auth.store import UserStore
from core.errors import NotFound, ValidationFailure

UPGRADE_EVENT = "user.upgraded"

router = APIRouter()


@router.post("/polka/webhooks", status_code=204, dependencies=[Depends(require_polka_key)])
def polka_webhook(request: Request, body: PolkaWebhook) -> Response:
    if body.event != UPGRADE_EVENT:
        return Response(status_code=204)
    try:
        user_id = UUID(body.data.user_id)
    except ValueError as exc:
        raise ValidationFailure("Invalid user ID") from exc
    user_store: UserStore = request.app.state.user_store
    if not user_store.upgrade_to_chirpy_red(user_id):
        raise NotFound("User not found.")
    return Response(status_code=204)
