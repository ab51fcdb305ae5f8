from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy import select

from venue_sync.auth.deps import get_current_user, get_sync_context
from venue_sync.auth.guards import require_venue_manager
from venue_sync.models import InvitationStatus, RequestStatus, User, VenueActivity
from venue_sync.routers.serialize import activity_out, invitation_out, request_out, restaurant_out
from venue_sync.services import entities, invitations, requests
from venue_sync.services.context import SyncContext

router = APIRouter(prefix="/venues", tags=["venues"])


# ---------- Schemas ----------

class InvitationCreateIn(BaseModel):
    restaurant_name: str = Field(..., min_length=1, max_length=200)
    contact_email: str = Field(..., min_length=3, max_length=255)
    personal_message: str = Field("", max_length=2000)


# ---------- Routes ----------

@router.get("/{venue_id}/requests")
def list_venue_requests(
    venue_id: int,
    status: RequestStatus | None = Query(default=None),
    limit: int | None = Query(default=None, ge=1, le=500),
    ctx: SyncContext = Depends(get_sync_context),
    user: User = Depends(get_current_user),
):
    require_venue_manager(ctx.db, venue_id=venue_id, user=user)
    entities.require_venue(ctx, venue_id)
    statuses = [status] if status else None
    rows = requests.get_venue_requests(ctx, venue_id=venue_id, statuses=statuses, limit=limit)
    return [request_out(r) for r in rows]


@router.get("/{venue_id}/restaurants")
def list_venue_restaurants(
    venue_id: int,
    ctx: SyncContext = Depends(get_sync_context),
    user: User = Depends(get_current_user),
):
    require_venue_manager(ctx.db, venue_id=venue_id, user=user)
    entities.require_venue(ctx, venue_id)
    return [restaurant_out(r) for r in entities.list_venue_restaurants(ctx, venue_id)]


@router.get("/{venue_id}/invitations")
def list_venue_invitations(
    venue_id: int,
    status: InvitationStatus | None = Query(default=None),
    limit: int | None = Query(default=None, ge=1, le=500),
    ctx: SyncContext = Depends(get_sync_context),
    user: User = Depends(get_current_user),
):
    require_venue_manager(ctx.db, venue_id=venue_id, user=user)
    entities.require_venue(ctx, venue_id)
    rows = invitations.get_venue_invitations(
        ctx, venue_id=venue_id, status=status.value if status else None, limit=limit
    )
    return [invitation_out(i) for i in rows]


@router.post("/{venue_id}/invitations", status_code=201)
def create_invitation(
    venue_id: int,
    payload: InvitationCreateIn,
    ctx: SyncContext = Depends(get_sync_context),
    user: User = Depends(get_current_user),
):
    require_venue_manager(ctx.db, venue_id=venue_id, user=user)
    created = invitations.create_venue_invitation(
        ctx,
        venue_id=venue_id,
        restaurant_name=payload.restaurant_name,
        contact_email=payload.contact_email,
        personal_message=payload.personal_message,
    )
    return invitation_out(created.invitation, link=created.invitation_link)


@router.get("/{venue_id}/activity")
def list_venue_activity(
    venue_id: int,
    limit: int = Query(default=50, ge=1, le=500),
    ctx: SyncContext = Depends(get_sync_context),
    user: User = Depends(get_current_user),
):
    require_venue_manager(ctx.db, venue_id=venue_id, user=user)
    rows = ctx.db.scalars(
        select(VenueActivity)
        .where(VenueActivity.venue_id == venue_id)
        .order_by(VenueActivity.created_at.desc(), VenueActivity.id.desc())
        .limit(limit)
    ).all()
    return [activity_out(a) for a in rows]
