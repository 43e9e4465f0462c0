"""
api/routes/chirps.py -- Chirp REST endpoints.

Routes:
  POST   /api/chirps             -- create (bearer access token); 201
  GET    /api/chirps             -- list; ?author_id=<uuid>&sort=desc (anything else: asc)
  GET    /api/chirps/{chirp_id}  -- detail
  DELETE /api/chirps/{chirp_id}  -- delete own chirp (bearer access token); 204

Bodies longer than 140 characters are a 400; profane words are masked
before the chirp is stored. Deleting someone else's chirp is a 403.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Request, Response

from api.models import ChirpCreate, ChirpResponse, SortEnum
from auth.dependencies import get_current_user_id
from chirps.filters import clean_profanity, is_too_long
from chirps.models import Chirp
from chirps.store import ChirpStore
from core.errors import AuthorizationFailure, NotFound, ValidationFailure

router = APIRouter()


def _parse_uuid(value: str, message: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise ValidationFailure(message) from exc


@router.post("/chirps", response_model=ChirpResponse, status_code=201)
def create_chirp(
    request: Request,
    body: ChirpCreate,
    user_id: UUID = Depends(get_current_user_id),
) -> ChirpResponse:
    if is_too_long(body.body):
        raise ValidationFailure("Chirp is too long")
    store: ChirpStore = request.app.state.chirp_store
    chirp = store.create_chirp(Chirp(body=clean_profanity(body.body), user_id=user_id))
    return ChirpResponse.from_chirp(chirp)


@router.get("/chirps", response_model=list[ChirpResponse])
def list_chirps(
    request: Request,
    author_id: Optional[str] = None,
    sort: str = SortEnum.asc.value,
) -> list[ChirpResponse]:
    """List chirps by creation time, oldest first unless sort=desc.

    Any other sort value falls back to ascending.
    """
    author = _parse_uuid(author_id, "Invalid author ID") if author_id else None
    store: ChirpStore = request.app.state.chirp_store
    chirps = store.list_chirps(author_id=author, descending=sort == SortEnum.desc.value)
    return [ChirpResponse.from_chirp(c) for c in chirps]


@router.get("/chirps/{chirp_id}", response_model=ChirpResponse)
def get_chirp(request: Request, chirp_id: str) -> ChirpResponse:
    store: ChirpStore = request.app.state.chirp_store
    chirp = store.get_chirp(_parse_uuid(chirp_id, "Invalid chirp ID"))
    if chirp is None:
        raise NotFound("Chirp not found")
    return ChirpResponse.from_chirp(chirp)


@router.delete("/chirps/{chirp_id}", status_code=204)
def delete_chirp(
    request: Request,
    chirp_id: str,
    user_id: UUID = Depends(get_current_user_id),
) -> Response:
    """Delete a chirp. Only its author may delete it."""
    store: ChirpStore = request.app.state.chirp_store
    chirp = store.get_chirp(_parse_uuid(chirp_id, "Invalid chirp ID"))
    if chirp is None:
        raise NotFound("Chirp not found")
    if chirp.user_id != user_id:
        raise AuthorizationFailure("You can only delete your own chirps")
    store.delete_chirp(chirp.id)
    return Response(status_code=204)
