"""Read/write access to restaurants and venues.

Association columns on Restaurant are off limits here; they change only
through services.association.
"""

from __future__ import annotations

from sqlalchemy import func, select

from venue_sync.core.errors import InvalidInput, NotFound
from venue_sync.models import Restaurant, RequestStatus, Venue, VenueRequest

ASSOCIATION_FIELDS = frozenset(
    {
        "venue_id",
        "venue_name",
        "venue_address",
        "venue_status",
        "sync_method",
        "sync_reason",
        "joined_venue_at",
        "left_venue_at",
        "unsync_reason",
    }
)

RESTAURANT_PROFILE_FIELDS = frozenset(
    {"name", "email", "phone", "cuisine_type", "address", "city", "state", "owner_user_id"}
)
VENUE_PROFILE_FIELDS = frozenset(
    {
        "name",
        "description",
        "address",
        "city",
        "state",
        "status",
        "max_restaurants",
        "require_approval",
        "manager_user_id",
    }
)


def get_restaurant(ctx, restaurant_id: int) -> Restaurant | None:
    return ctx.db.get(Restaurant, restaurant_id, populate_existing=True)


def get_venue(ctx, venue_id: int) -> Venue | None:
    return ctx.db.get(Venue, venue_id, populate_existing=True)


def require_restaurant(ctx, restaurant_id: int) -> Restaurant:
    restaurant = get_restaurant(ctx, restaurant_id)
    if restaurant is None:
        raise NotFound("Restaurant not found")
    return restaurant


def require_venue(ctx, venue_id: int) -> Venue:
    venue = get_venue(ctx, venue_id)
    if venue is None:
        raise NotFound("Venue not found")
    return venue


def get_restaurant_by_owner(ctx, owner_user_id: int) -> Restaurant | None:
    return ctx.db.execute(
        select(Restaurant).where(Restaurant.owner_user_id == owner_user_id).order_by(Restaurant.id).limit(1)
    ).scalar_one_or_none()


def get_venue_by_manager(ctx, manager_user_id: int) -> Venue | None:
    return ctx.db.execute(
        select(Venue).where(Venue.manager_user_id == manager_user_id).order_by(Venue.id).limit(1)
    ).scalar_one_or_none()


def list_venue_restaurants(ctx, venue_id: int) -> list[Restaurant]:
    return list(
        ctx.db.scalars(select(Restaurant).where(Restaurant.venue_id == venue_id).order_by(Restaurant.name)).all()
    )


def count_venue_restaurants(ctx, venue_id: int, *, excluding_restaurant_id: int | None = None) -> int:
    stmt = select(func.count(Restaurant.id)).where(Restaurant.venue_id == venue_id)
    if excluding_restaurant_id is not None:
        stmt = stmt.where(Restaurant.id != excluding_restaurant_id)
    return int(ctx.db.execute(stmt).scalar_one())


def list_venues(ctx, *, limit: int = 100) -> list[Venue]:
    return list(ctx.db.scalars(select(Venue).order_by(Venue.name).limit(limit)).all())


def get_pending_request(ctx, *, restaurant_id: int, venue_id: int) -> VenueRequest | None:
    return ctx.db.execute(
        select(VenueRequest)
        .where(
            VenueRequest.restaurant_id == restaurant_id,
            VenueRequest.venue_id == venue_id,
            VenueRequest.status == RequestStatus.PENDING.value,
        )
        .limit(1)
    ).scalar_one_or_none()


def _apply(obj, fields: dict, allowed: frozenset) -> None:
    blocked = set(fields) & ASSOCIATION_FIELDS
    if blocked:
        raise InvalidInput(f"Association fields are managed by sync operations: {', '.join(sorted(blocked))}")
    unknown = set(fields) - allowed
    if unknown:
        raise InvalidInput(f"Unknown fields: {', '.join(sorted(unknown))}")
    for key, value in fields.items():
        setattr(obj, key, value)


def update_restaurant(ctx, restaurant_id: int, **fields) -> Restaurant:
    restaurant = require_restaurant(ctx, restaurant_id)
    _apply(restaurant, fields, RESTAURANT_PROFILE_FIELDS)
    restaurant.updated_at = ctx.now()
    ctx.db.commit()
    ctx.db.refresh(restaurant)
    return restaurant


def update_venue(ctx, venue_id: int, **fields) -> Venue:
    venue = require_venue(ctx, venue_id)
    if "max_restaurants" in fields and fields["max_restaurants"] is not None and fields["max_restaurants"] < 1:
        raise InvalidInput("max_restaurants must be positive")
    _apply(venue, fields, VENUE_PROFILE_FIELDS)
    venue.updated_at = ctx.now()
    ctx.db.commit()
    ctx.db.refresh(venue)
    return venue


def list_requests(
    ctx,
    *,
    restaurant_id: int | None = None,
    venue_id: int | None = None,
    statuses=None,
    limit: int | None = None,
) -> list[VenueRequest]:
    stmt = select(VenueRequest)
    if restaurant_id is not None:
        stmt = stmt.where(VenueRequest.restaurant_id == restaurant_id)
    if venue_id is not None:
        stmt = stmt.where(VenueRequest.venue_id == venue_id)
    if statuses:
        stmt = stmt.where(VenueRequest.status.in_([str(getattr(s, "value", s)) for s in statuses]))
    stmt = stmt.order_by(VenueRequest.requested_at.desc(), VenueRequest.id.desc())
    if limit is not None:
        stmt = stmt.limit(limit)
    return list(ctx.db.scalars(stmt).all())
