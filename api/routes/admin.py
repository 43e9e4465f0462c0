"""
api/routes/admin.py -- Operator endpoints.

Routes:
  GET  /admin/metrics -- HTML page with the fileserver hit count
  POST /admin/reset   -- zero hits and wipe users, refresh tokens and chirps;
                         only when PLATFORM=dev, 403 otherwise
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, PlainTextResponse

from auth.store import UserStore
from chirps.store import ChirpStore
from core.errors import AuthorizationFailure
from core.metrics import HitCounter

logger = logging.getLogger("chirpy.api.admin")

_METRICS_TEMPLATE = """<html>
  <body>
    <h1>Welcome, Chirpy Admin</h1>
    <p>Chirpy has been visited {hits} times!</p>
  </body>
</html>"""

router = APIRouter()


@router.get("/metrics", response_class=HTMLResponse)
async def metrics(request: Request) -> HTMLResponse:
    hits: HitCounter = request.app.state.hits
    return HTMLResponse(_METRICS_TEMPLATE.format(hits=hits.value))


@router.post("/reset", response_class=PlainTextResponse)
def reset(request: Request) -> PlainTextResponse:
    if not request.app.state.settings.is_dev:
        raise AuthorizationFailure("Reset is only allowed in dev environment.")
    request.app.state.hits.reset()
    user_store: UserStore = request.app.state.user_store
    chirp_store: ChirpStore = request.app.state.chirp_store
    users = user_store.delete_all_users()
    chirps = chirp_store.delete_all_chirps()
    logger.warning("Database reset: %d users and %d chirps deleted", users, chirps)
    return PlainTextResponse("Hits reset to 0 and database reset to empty")
