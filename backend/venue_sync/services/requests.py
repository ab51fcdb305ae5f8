from __future__ import annotations

import logging
from datetime import timedelta
from typing import Iterable

from sqlalchemy.exc import IntegrityError

from venue_sync.core.errors import AlreadyAssociated, DuplicateRequest, Forbidden, NotFound
from venue_sync.core.sanitize import sanitize_input
from venue_sync.core.timing import timed
from venue_sync.models import RequestStatus, VenueRequest
from venue_sync.services import entities
from venue_sync.services.activity import log_venue
from venue_sync.services.association import approve_restaurant_request  # noqa: F401
from venue_sync.services.transitions import commit_transition

log = logging.getLogger("vedi.requests")

NOT_PROVIDED = "Not provided"


def request_to_join_venue(ctx, *, restaurant_id: int, venue_id: int, message: str = "") -> VenueRequest:
    with timed("request_to_join_venue"):
        restaurant = entities.require_restaurant(ctx, restaurant_id)
        venue = entities.require_venue(ctx, venue_id)

        if restaurant.venue_id is not None:
            raise AlreadyAssociated(
                f"Restaurant is already associated with venue: {restaurant.venue_name or restaurant.venue_id}"
            )
        if entities.get_pending_request(ctx, restaurant_id=restaurant_id, venue_id=venue_id) is not None:
            raise DuplicateRequest("A request to join this venue is already pending")

        now = ctx.now()
        request = VenueRequest(
            restaurant_id=restaurant.id,
            restaurant_name=restaurant.name or "Unknown Restaurant",
            restaurant_email=restaurant.email or NOT_PROVIDED,
            restaurant_phone=restaurant.phone or NOT_PROVIDED,
            restaurant_cuisine=restaurant.cuisine_type or "Not specified",
            restaurant_address=restaurant.address or NOT_PROVIDED,
            restaurant_city=restaurant.city or NOT_PROVIDED,
            restaurant_state=restaurant.state or NOT_PROVIDED,
            venue_id=venue.id,
            venue_name=venue.name or "Unknown Venue",
            venue_address=venue.address or NOT_PROVIDED,
            venue_city=venue.city or NOT_PROVIDED,
            venue_state=venue.state or NOT_PROVIDED,
            status=RequestStatus.PENDING.value,
            message=sanitize_input(message),
            requested_at=now,
            requested_by_user_id=ctx.actor_user_id,
            expires_at=now + timedelta(days=ctx.settings.REQUEST_TTL_DAYS),
        )
        try:
            ctx.db.add(request)
            ctx.db.commit()
        except IntegrityError as e:
            ctx.db.rollback()
            # the partial unique index on pending pairs caught a concurrent request
            if entities.get_pending_request(ctx, restaurant_id=restaurant_id, venue_id=venue_id) is not None:
                raise DuplicateRequest("A request to join this venue is already pending")
            raise NotFound(f"Restaurant or venue disappeared: {e.orig}")
        ctx.db.refresh(request)
        log.info("join request created request_id=%s restaurant_id=%s venue_id=%s", request.id, restaurant_id, venue_id)

    log_venue(
        ctx,
        venue_id,
        type="request",
        title="New Restaurant Join Request",
        description=f"{request.restaurant_name} has requested to join the venue",
        metadata={"restaurantId": restaurant_id, "restaurantName": request.restaurant_name, "requestId": request.id},
    )
    return request


def cancel_venue_request(ctx, *, request_id: int) -> VenueRequest:
    """Restaurant side: withdraw a pending request. Only the original requester may."""
    with timed("cancel_venue_request"):
        request = ctx.db.get(VenueRequest, request_id, populate_existing=True)
        if request is None:
            raise NotFound("Request not found")
        if ctx.actor_user_id is None or request.requested_by_user_id != ctx.actor_user_id:
            raise Forbidden("You can only cancel your own requests")

        commit_transition(
            ctx,
            VenueRequest,
            request_id,
            to_status=RequestStatus.CANCELLED.value,
            values={"cancelled_at": ctx.now(), "cancelled_by_user_id": ctx.actor_user_id},
        )
        request = ctx.db.get(VenueRequest, request_id, populate_existing=True)
        log.info("join request cancelled request_id=%s", request_id)

    log_venue(
        ctx,
        request.venue_id,
        type="request",
        title="Restaurant Request Cancelled",
        description=f"{request.restaurant_name} cancelled their join request",
        metadata={"restaurantId": request.restaurant_id, "restaurantName": request.restaurant_name, "requestId": request_id},
    )
    return request


def deny_restaurant_request(ctx, *, request_id: int, reason: str = "") -> VenueRequest:
    with timed("deny_restaurant_request"):
        reason = sanitize_input(reason)
        commit_transition(
            ctx,
            VenueRequest,
            request_id,
            to_status=RequestStatus.DENIED.value,
            values={"denied_at": ctx.now(), "denied_by_user_id": ctx.actor_user_id, "denial_reason": reason},
        )
        request = ctx.db.get(VenueRequest, request_id, populate_existing=True)
        log.info("join request denied request_id=%s", request_id)

    log_venue(
        ctx,
        request.venue_id,
        type="request",
        title="Restaurant Request Denied",
        description=f"Request from {request.restaurant_name} was denied",
        metadata={
            "restaurantId": request.restaurant_id,
            "restaurantName": request.restaurant_name,
            "requestId": request_id,
            "reason": reason,
        },
    )
    return request


def get_restaurant_requests(
    ctx, *, restaurant_id: int, statuses: Iterable[str] | None = None, limit: int | None = None
) -> list[VenueRequest]:
    return entities.list_requests(ctx, restaurant_id=restaurant_id, statuses=statuses, limit=limit)


def get_venue_requests(
    ctx, *, venue_id: int, statuses: Iterable[str] | None = None, limit: int | None = None
) -> list[VenueRequest]:
    return entities.list_requests(ctx, venue_id=venue_id, statuses=statuses, limit=limit)


def get_pending_request_by_restaurant(ctx, *, restaurant_id: int, venue_id: int) -> VenueRequest | None:
    return entities.get_pending_request(ctx, restaurant_id=restaurant_id, venue_id=venue_id)
