"""Restaurant <-> venue association.

Approval of a request, acceptance of an invitation and a manual admin sync all
end in the same compound write: the source record leaves ``pending`` and the
restaurant gets its venue columns. Both halves go into one transaction; if
anything fails in between, neither is visible.

Restaurant.venue_id non-null <=> venue_status == 'active' <=> joined_venue_at
is the latest transition timestamp. Nothing outside this module writes those
columns.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy import or_, select, update

from venue_sync.core.errors import (
    AlreadyAssociated,
    AlreadyTerminal,
    CapacityExceeded,
    ConflictingAssociation,
    Expired,
    NotAssociated,
    NotFound,
)
from venue_sync.core.sanitize import sanitize_input
from venue_sync.core.timing import timed
from venue_sync.models import (
    InvitationStatus,
    RequestStatus,
    Restaurant,
    SyncMethod,
    Venue,
    VenueInvitation,
    VenueRequest,
)
from venue_sync.models.enums import ASSOCIATION_ACTIVE
from venue_sync.services import entities
from venue_sync.services.activity import log_restaurant, log_venue
from venue_sync.services.context import as_utc
from venue_sync.services.transitions import PENDING, commit_transition, transition_pending

log = logging.getLogger("vedi.association")


@dataclass(frozen=True)
class _Source:
    model: Any
    record_id: int
    to_status: str
    values: dict[str, Any]


@dataclass
class SyncStatus:
    is_associated: bool = False
    venue_id: int | None = None
    venue_name: str | None = None
    joined_at: datetime | None = None
    sync_method: str | None = None
    status: str | None = None
    pending_requests: list[VenueRequest] = field(default_factory=list)
    error: str | None = None


# ---------- internals ----------

def _lock_venue(ctx, venue_id: int) -> None:
    # serializes joins per venue on backends with row locks; SQLite ignores it
    ctx.db.execute(select(Venue.id).where(Venue.id == venue_id).with_for_update())


def _check_capacity(ctx, venue: Venue, restaurant_id: int) -> None:
    if not venue.max_restaurants:
        return
    others = entities.count_venue_restaurants(ctx, venue.id, excluding_restaurant_id=restaurant_id)
    if others >= venue.max_restaurants:
        raise CapacityExceeded(f"Venue {venue.id} already has {others} of {venue.max_restaurants} restaurants")


def _bind_restaurant(
    ctx,
    *,
    restaurant_id: int,
    venue: Venue,
    sync_method: SyncMethod,
    joined_at: datetime,
    allow_same_venue: bool,
    sync_reason: str | None = None,
) -> None:
    if allow_same_venue:
        free = or_(Restaurant.venue_id.is_(None), Restaurant.venue_id == venue.id)
    else:
        free = Restaurant.venue_id.is_(None)

    res = ctx.db.execute(
        update(Restaurant)
        .where(Restaurant.id == restaurant_id, free)
        .values(
            venue_id=venue.id,
            venue_name=venue.name,
            venue_address=venue.address,
            venue_status=ASSOCIATION_ACTIVE,
            sync_method=sync_method.value,
            sync_reason=sync_reason,
            joined_venue_at=joined_at,
            updated_at=joined_at,
        )
        .execution_options(synchronize_session=False)
    )
    if res.rowcount == 1:
        return

    row = ctx.db.execute(select(Restaurant.venue_id).where(Restaurant.id == restaurant_id)).one_or_none()
    if row is None:
        raise NotFound("Restaurant not found")
    if not allow_same_venue:
        raise AlreadyAssociated(f"Restaurant is already associated with venue {row.venue_id}")
    raise ConflictingAssociation(f"Restaurant has already joined another venue ({row.venue_id})")


def _associate(
    ctx,
    *,
    restaurant_id: int,
    venue: Venue,
    sync_method: SyncMethod,
    allow_same_venue: bool,
    source: _Source | None = None,
    sync_reason: str | None = None,
) -> None:
    now = ctx.now()
    try:
        _lock_venue(ctx, venue.id)
        if source is not None:
            transition_pending(ctx, source.model, source.record_id, to_status=source.to_status, values=source.values)
        _bind_restaurant(
            ctx,
            restaurant_id=restaurant_id,
            venue=venue,
            sync_method=sync_method,
            joined_at=now,
            allow_same_venue=allow_same_venue,
            sync_reason=sync_reason,
        )
        # after the first write, so the count is taken under the write lock
        _check_capacity(ctx, venue, restaurant_id)
        ctx.db.commit()
    except Exception:
        ctx.db.rollback()
        raise


def _require_request(ctx, request_id: int) -> VenueRequest:
    request = ctx.db.get(VenueRequest, request_id, populate_existing=True)
    if request is None:
        raise NotFound("Request not found")
    return request


def _require_invitation(ctx, invitation_id: int) -> VenueInvitation:
    invitation = ctx.db.get(VenueInvitation, invitation_id, populate_existing=True)
    if invitation is None:
        raise NotFound("Invitation not found")
    return invitation


def is_expired(ctx, invitation: VenueInvitation) -> bool:
    expires_at = as_utc(invitation.expires_at)
    return expires_at is not None and ctx.now() > expires_at


def expire_invitation(ctx, invitation_id: int) -> bool:
    """Flip a pending invitation to ``expired``. Losing the race to another transition is fine."""
    try:
        commit_transition(
            ctx,
            VenueInvitation,
            invitation_id,
            to_status=InvitationStatus.EXPIRED.value,
            values={"expired_at": ctx.now()},
        )
    except AlreadyTerminal as e:
        log.info("invitation_id=%s already left pending: %s", invitation_id, e)
        return False
    log.info("invitation expired invitation_id=%s", invitation_id)
    return True


# ---------- entry points ----------

def approve_restaurant_request(ctx, *, request_id: int) -> VenueRequest:
    """Venue side: approve a pending join request and attach the restaurant."""
    with timed("approve_restaurant_request"):
        request = _require_request(ctx, request_id)
        if request.status != PENDING:
            raise AlreadyTerminal(f"Request is already {request.status}", status=request.status)

        restaurant = entities.require_restaurant(ctx, request.restaurant_id)
        if restaurant.venue_id is not None and restaurant.venue_id != request.venue_id:
            # left pending on purpose: someone has to resolve it by hand
            raise ConflictingAssociation(
                f"Restaurant has already joined another venue ({restaurant.venue_name or restaurant.venue_id})"
            )
        venue = entities.require_venue(ctx, request.venue_id)

        _associate(
            ctx,
            restaurant_id=restaurant.id,
            venue=venue,
            sync_method=SyncMethod.RESTAURANT_REQUEST,
            allow_same_venue=True,
            source=_Source(
                model=VenueRequest,
                record_id=request_id,
                to_status=RequestStatus.APPROVED.value,
                values={"approved_at": ctx.now(), "approved_by_user_id": ctx.actor_user_id},
            ),
        )
        request = _require_request(ctx, request_id)
        log.info(
            "request approved request_id=%s restaurant_id=%s venue_id=%s",
            request.id, request.restaurant_id, request.venue_id,
        )

    log_venue(
        ctx,
        request.venue_id,
        type="restaurant",
        title="Restaurant Request Approved",
        description=f"{request.restaurant_name} has been approved and joined the venue",
        metadata={
            "restaurantId": request.restaurant_id,
            "restaurantName": request.restaurant_name,
            "requestId": request.id,
            "syncMethod": SyncMethod.RESTAURANT_REQUEST.value,
        },
    )
    log_restaurant(
        ctx,
        request.restaurant_id,
        type="venue",
        title="Joined Venue",
        description=f"Successfully joined {venue.name}",
        metadata={"venueId": request.venue_id, "venueName": venue.name, "requestId": request.id},
    )
    return _require_request(ctx, request_id)


def accept_venue_invitation(ctx, *, invitation_id: int, restaurant_id: int) -> VenueInvitation:
    """Restaurant side: accept an invitation and join the inviting venue.

    Status and expiry are checked again here even if the code was validated
    earlier; the client may be holding a stale copy.
    """
    with timed("accept_venue_invitation"):
        invitation = _require_invitation(ctx, invitation_id)
        if invitation.status != PENDING:
            raise AlreadyTerminal(f"Invitation is already {invitation.status}", status=invitation.status)
        if is_expired(ctx, invitation):
            expire_invitation(ctx, invitation_id)
            raise Expired("Invitation has expired")

        restaurant = entities.require_restaurant(ctx, restaurant_id)
        if restaurant.venue_id is not None:
            raise AlreadyAssociated(
                f"Restaurant is already associated with venue: {restaurant.venue_name or restaurant.venue_id}"
            )
        venue = entities.require_venue(ctx, invitation.venue_id)

        _associate(
            ctx,
            restaurant_id=restaurant_id,
            venue=venue,
            sync_method=SyncMethod.VENUE_INVITATION,
            allow_same_venue=False,
            source=_Source(
                model=VenueInvitation,
                record_id=invitation_id,
                to_status=InvitationStatus.ACCEPTED.value,
                values={
                    "accepted_at": ctx.now(),
                    "accepted_by_user_id": ctx.actor_user_id,
                    "restaurant_id": restaurant_id,
                },
            ),
        )
        invitation = _require_invitation(ctx, invitation_id)
        restaurant_name = entities.require_restaurant(ctx, restaurant_id).name
        log.info(
            "invitation accepted invitation_id=%s restaurant_id=%s venue_id=%s",
            invitation.id, restaurant_id, invitation.venue_id,
        )

    log_venue(
        ctx,
        invitation.venue_id,
        type="restaurant",
        title="Restaurant Joined via Invitation",
        description=f"{restaurant_name} has accepted the invitation and joined the venue",
        metadata={
            "restaurantId": restaurant_id,
            "restaurantName": restaurant_name,
            "invitationId": invitation.id,
            "syncMethod": SyncMethod.VENUE_INVITATION.value,
        },
    )
    log_restaurant(
        ctx,
        restaurant_id,
        type="venue",
        title="Accepted Venue Invitation",
        description=f"Successfully joined {venue.name} via invitation",
        metadata={"venueId": invitation.venue_id, "venueName": venue.name, "invitationId": invitation.id},
    )
    return _require_invitation(ctx, invitation_id)


def sync_restaurant_to_venue(
    ctx, *, restaurant_id: int, venue_id: int, sync_reason: str = "Manual sync"
) -> Restaurant:
    """Admin action: attach a restaurant to a venue without a request or invitation."""
    with timed("sync_restaurant_to_venue"):
        restaurant = entities.require_restaurant(ctx, restaurant_id)
        venue = entities.require_venue(ctx, venue_id)
        if restaurant.venue_id is not None and restaurant.venue_id != venue_id:
            raise ConflictingAssociation(
                f"Restaurant is already synced to venue: {restaurant.venue_name or restaurant.venue_id}"
            )

        reason = sanitize_input(sync_reason) or "Manual sync"
        _associate(
            ctx,
            restaurant_id=restaurant_id,
            venue=venue,
            sync_method=SyncMethod.MANUAL_SYNC,
            allow_same_venue=True,
            sync_reason=reason,
        )
        restaurant = entities.require_restaurant(ctx, restaurant_id)
        log.info("restaurant synced restaurant_id=%s venue_id=%s", restaurant_id, venue_id)

    log_venue(
        ctx,
        venue_id,
        type="restaurant",
        title="Restaurant Manually Synced",
        description=f"{restaurant.name} was manually synced to the venue",
        metadata={
            "restaurantId": restaurant_id,
            "restaurantName": restaurant.name,
            "syncMethod": SyncMethod.MANUAL_SYNC.value,
            "syncReason": reason,
        },
    )
    log_restaurant(
        ctx,
        restaurant_id,
        type="venue",
        title="Manually Synced to Venue",
        description=f"Manually synced to {venue.name}",
        metadata={"venueId": venue_id, "venueName": venue.name, "syncReason": reason},
    )
    return entities.require_restaurant(ctx, restaurant_id)


def unsync_restaurant_from_venue(ctx, *, restaurant_id: int, reason: str = "Left venue") -> Restaurant:
    """Detach a restaurant from its venue. Single-row write, no source record."""
    with timed("unsync_restaurant_from_venue"):
        restaurant = entities.require_restaurant(ctx, restaurant_id)
        if restaurant.venue_id is None:
            raise NotAssociated("Restaurant is not currently associated with any venue")

        previous_venue_id = restaurant.venue_id
        previous_venue_name = restaurant.venue_name
        reason = sanitize_input(reason) or "Left venue"
        now = ctx.now()
        try:
            res = ctx.db.execute(
                update(Restaurant)
                .where(Restaurant.id == restaurant_id, Restaurant.venue_id == previous_venue_id)
                .values(
                    venue_id=None,
                    venue_name=None,
                    venue_address=None,
                    venue_status=None,
                    left_venue_at=now,
                    unsync_reason=reason,
                    updated_at=now,
                )
                .execution_options(synchronize_session=False)
            )
            if res.rowcount != 1:
                raise NotAssociated("Restaurant left the venue concurrently")
            ctx.db.commit()
        except Exception:
            ctx.db.rollback()
            raise
        log.info("restaurant unsynced restaurant_id=%s venue_id=%s", restaurant_id, previous_venue_id)

    restaurant = entities.require_restaurant(ctx, restaurant_id)
    log_venue(
        ctx,
        previous_venue_id,
        type="restaurant",
        title="Restaurant Left Venue",
        description=f"{restaurant.name} has left the venue",
        metadata={"restaurantId": restaurant_id, "restaurantName": restaurant.name, "reason": reason},
    )
    log_restaurant(
        ctx,
        restaurant_id,
        type="venue",
        title="Left Venue",
        description=f"Left {previous_venue_name}",
        metadata={
            "previousVenueId": previous_venue_id,
            "previousVenueName": previous_venue_name,
            "reason": reason,
        },
    )
    return entities.require_restaurant(ctx, restaurant_id)


def get_restaurant_sync_status(ctx, *, restaurant_id: int) -> SyncStatus:
    """Association summary for dashboards. Degrades instead of raising."""
    try:
        restaurant = entities.require_restaurant(ctx, restaurant_id)
        status = SyncStatus(
            is_associated=restaurant.venue_id is not None,
            venue_id=restaurant.venue_id,
            venue_name=restaurant.venue_name,
            joined_at=restaurant.joined_venue_at,
            sync_method=restaurant.sync_method,
            status=restaurant.venue_status,
        )
    except Exception as e:
        log.warning("sync status unavailable restaurant_id=%s: %s", restaurant_id, e)
        return SyncStatus(error=str(e))

    if not status.is_associated:
        try:
            status.pending_requests = entities.list_requests(
                ctx,
                restaurant_id=restaurant_id,
                statuses=[RequestStatus.PENDING, RequestStatus.APPROVED, RequestStatus.DENIED],
            )
        except Exception as e:
            log.warning("could not load requests restaurant_id=%s: %s", restaurant_id, e)
            ctx.db.rollback()
    return status
