from __future__ import annotations

import hmac

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from venue_sync.auth.deps import get_current_user, get_sync_context
from venue_sync.auth.guards import is_super_admin, require_restaurant_owner, require_venue_manager
from venue_sync.models import User, VenueInvitation
from venue_sync.routers.serialize import invitation_out
from venue_sync.services import invitations
from venue_sync.services.context import SyncContext

router = APIRouter(prefix="/invitations", tags=["invitations"])


class AcceptIn(BaseModel):
    restaurant_id: int = Field(..., gt=0)
    invite_code: str = Field(..., min_length=1, max_length=16)


class DeclineIn(BaseModel):
    invite_code: str = Field(..., min_length=1, max_length=16)


def _require_code(invitation: VenueInvitation, code: str, user: User) -> None:
    # the code is what proves the caller received the invitation
    if is_super_admin(user):
        return
    given = invitations.normalize_invite_code(code)
    if not hmac.compare_digest(given.encode(), (invitation.invite_code or "").encode()):
        raise HTTPException(status_code=403, detail="Invalid invitation code")


@router.get("/by-code/{code}")
def get_by_code(
    code: str,
    ctx: SyncContext = Depends(get_sync_context),
):
    invitation = invitations.validate_invite_code(ctx, code=code)
    if invitation is None:
        raise HTTPException(status_code=404, detail="Invitation not found or expired")
    return invitation_out(invitation)


@router.post("/{invitation_id}/accept")
def accept(
    invitation_id: int,
    payload: AcceptIn,
    ctx: SyncContext = Depends(get_sync_context),
    user: User = Depends(get_current_user),
):
    invitation = invitations.get_invitation(ctx, invitation_id)
    _require_code(invitation, payload.invite_code, user)
    require_restaurant_owner(ctx.db, restaurant_id=payload.restaurant_id, user=user)
    accepted = invitations.accept_venue_invitation(
        ctx, invitation_id=invitation_id, restaurant_id=payload.restaurant_id
    )
    return invitation_out(accepted)


@router.post("/{invitation_id}/decline")
def decline(
    invitation_id: int,
    payload: DeclineIn,
    ctx: SyncContext = Depends(get_sync_context),
    user: User = Depends(get_current_user),
):
    invitation = invitations.get_invitation(ctx, invitation_id)
    _require_code(invitation, payload.invite_code, user)
    return invitation_out(invitations.decline_venue_invitation(ctx, invitation_id=invitation_id))


@router.post("/{invitation_id}/cancel")
def cancel(
    invitation_id: int,
    ctx: SyncContext = Depends(get_sync_context),
    user: User = Depends(get_current_user),
):
    invitation = invitations.get_invitation(ctx, invitation_id)
    require_venue_manager(ctx.db, venue_id=invitation.venue_id, user=user)
    return invitation_out(invitations.cancel_invitation(ctx, invitation_id=invitation_id))
