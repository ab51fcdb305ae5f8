from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from venue_sync.auth.deps import get_current_user, get_sync_context
from venue_sync.auth.guards import require_venue_manager
from venue_sync.core.errors import NotFound
from venue_sync.models import User, VenueRequest
from venue_sync.routers.serialize import request_out
from venue_sync.services import requests
from venue_sync.services.context import SyncContext

router = APIRouter(prefix="/venue-requests", tags=["venue-requests"])


class DenyIn(BaseModel):
    reason: str = Field("", max_length=2000)


def _venue_id_of(ctx: SyncContext, request_id: int) -> int:
    request = ctx.db.get(VenueRequest, request_id)
    if request is None:
        raise NotFound("Request not found")
    return request.venue_id


@router.post("/{request_id}/cancel")
def cancel_request(
    request_id: int,
    ctx: SyncContext = Depends(get_sync_context),
):
    # requester check happens in the service
    return request_out(requests.cancel_venue_request(ctx, request_id=request_id))


@router.post("/{request_id}/approve")
def approve_request(
    request_id: int,
    ctx: SyncContext = Depends(get_sync_context),
    user: User = Depends(get_current_user),
):
    require_venue_manager(ctx.db, venue_id=_venue_id_of(ctx, request_id), user=user)
    return request_out(requests.approve_restaurant_request(ctx, request_id=request_id))


@router.post("/{request_id}/deny")
def deny_request(
    request_id: int,
    payload: DenyIn,
    ctx: SyncContext = Depends(get_sync_context),
    user: User = Depends(get_current_user),
):
    require_venue_manager(ctx.db, venue_id=_venue_id_of(ctx, request_id), user=user)
    return request_out(requests.deny_restaurant_request(ctx, request_id=request_id, reason=payload.reason))
