from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from venue_sync.auth.deps import get_current_user, get_sync_context
from venue_sync.auth.guards import is_super_admin, require_restaurant_owner, require_super_admin
from venue_sync.models import RequestStatus, Restaurant, User, Venue
from venue_sync.routers.serialize import request_out, restaurant_out, sync_status_out, venue_out
from venue_sync.services import association, discovery, eligibility, requests
from venue_sync.services.context import SyncContext

router = APIRouter(prefix="/restaurants", tags=["restaurants"])

DASHBOARD_STATUSES = (RequestStatus.PENDING, RequestStatus.APPROVED, RequestStatus.DENIED)


# ---------- Schemas ----------

class JoinRequestIn(BaseModel):
    venue_id: int = Field(..., gt=0)
    message: str = Field("", max_length=2000)


class SyncIn(BaseModel):
    venue_id: int = Field(..., gt=0)
    sync_reason: str = Field("Manual sync", max_length=500)


class UnsyncIn(BaseModel):
    reason: str = Field("Left venue", max_length=500)


# ---------- Helpers ----------

def _require_owner_or_current_venue_manager(ctx: SyncContext, *, restaurant_id: int, user: User) -> None:
    if is_super_admin(user):
        return
    restaurant = ctx.db.get(Restaurant, restaurant_id)
    if restaurant is None or restaurant.owner_user_id == user.id:
        return
    if restaurant.venue_id is not None:
        venue = ctx.db.get(Venue, restaurant.venue_id)
        if venue is not None and venue.manager_user_id == user.id:
            return
    raise HTTPException(status_code=403, detail="Forbidden")


# ---------- Routes ----------

@router.get("/{restaurant_id}/eligibility/{venue_id}")
def get_eligibility(
    restaurant_id: int,
    venue_id: int,
    ctx: SyncContext = Depends(get_sync_context),
    user: User = Depends(get_current_user),
):
    require_restaurant_owner(ctx.db, restaurant_id=restaurant_id, user=user)
    result = eligibility.check_eligibility(ctx, restaurant_id=restaurant_id, venue_id=venue_id)
    return {"eligible": result.eligible, "reasons": result.reasons}


@router.get("/{restaurant_id}/available-venues")
def available_venues(
    restaurant_id: int,
    include_nearby: bool = Query(default=False),
    limit: int | None = Query(default=None, ge=1, le=500),
    ctx: SyncContext = Depends(get_sync_context),
    user: User = Depends(get_current_user),
):
    require_restaurant_owner(ctx.db, restaurant_id=restaurant_id, user=user)
    venues = discovery.get_available_venues_for_restaurant(
        ctx, restaurant_id=restaurant_id, limit=limit, include_nearby=include_nearby
    )
    return [venue_out(v) for v in venues]


@router.get("/{restaurant_id}/sync-status")
def sync_status(
    restaurant_id: int,
    ctx: SyncContext = Depends(get_sync_context),
    user: User = Depends(get_current_user),
):
    require_restaurant_owner(ctx.db, restaurant_id=restaurant_id, user=user)
    return sync_status_out(association.get_restaurant_sync_status(ctx, restaurant_id=restaurant_id))


@router.get("/{restaurant_id}/requests")
def list_requests(
    restaurant_id: int,
    include_cancelled: bool = Query(default=False),
    limit: int | None = Query(default=None, ge=1, le=500),
    ctx: SyncContext = Depends(get_sync_context),
    user: User = Depends(get_current_user),
):
    require_restaurant_owner(ctx.db, restaurant_id=restaurant_id, user=user)
    statuses = None if include_cancelled else DASHBOARD_STATUSES
    rows = requests.get_restaurant_requests(ctx, restaurant_id=restaurant_id, statuses=statuses, limit=limit)
    return [request_out(r) for r in rows]


@router.post("/{restaurant_id}/requests", status_code=201)
def create_request(
    restaurant_id: int,
    payload: JoinRequestIn,
    ctx: SyncContext = Depends(get_sync_context),
    user: User = Depends(get_current_user),
):
    require_restaurant_owner(ctx.db, restaurant_id=restaurant_id, user=user)
    request = requests.request_to_join_venue(
        ctx, restaurant_id=restaurant_id, venue_id=payload.venue_id, message=payload.message
    )
    return request_out(request)


@router.post("/{restaurant_id}/sync")
def sync_to_venue(
    restaurant_id: int,
    payload: SyncIn,
    ctx: SyncContext = Depends(get_sync_context),
    user: User = Depends(require_super_admin),
):
    restaurant = association.sync_restaurant_to_venue(
        ctx, restaurant_id=restaurant_id, venue_id=payload.venue_id, sync_reason=payload.sync_reason
    )
    return restaurant_out(restaurant)


@router.post("/{restaurant_id}/unsync")
def unsync_from_venue(
    restaurant_id: int,
    payload: UnsyncIn,
    ctx: SyncContext = Depends(get_sync_context),
    user: User = Depends(get_current_user),
):
    _require_owner_or_current_venue_manager(ctx, restaurant_id=restaurant_id, user=user)
    restaurant = association.unsync_restaurant_from_venue(ctx, restaurant_id=restaurant_id, reason=payload.reason)
    return restaurant_out(restaurant)
