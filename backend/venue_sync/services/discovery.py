from __future__ import annotations

import logging

from venue_sync.core.timing import timed
from venue_sync.models import Restaurant, Venue
from venue_sync.models.enums import JOINABLE_VENUE_STATUSES
from venue_sync.services import entities

log = logging.getLogger("vedi.discovery")


def is_listed(venue: Venue, restaurant: Restaurant | None) -> bool:
    if not (venue.name or "").strip():
        return False
    if restaurant is not None and restaurant.venue_id == venue.id:
        return False
    # status only hides a venue when it is set to something other than active/open
    if venue.status and venue.status not in JOINABLE_VENUE_STATUSES:
        return False
    return True


def _relevance_key(restaurant: Restaurant):
    city = (restaurant.city or "").lower()
    state = restaurant.state

    def key(venue: Venue):
        same_city = bool(venue.city) and venue.city.lower() == city
        same_state = venue.state == state
        return (not same_city, not same_state, (venue.name or "").lower())

    return key


def get_available_venues_for_restaurant(
    ctx, *, restaurant_id: int, limit: int | None = None, include_nearby: bool = False
) -> list[Venue]:
    """Venues this restaurant could browse and ask to join.

    Browse path: any failure yields an empty list instead of an error.
    """
    limit = limit or ctx.settings.DISCOVERY_PAGE_SIZE
    try:
        with timed("get_available_venues_for_restaurant"):
            restaurant = None
            try:
                restaurant = entities.get_restaurant(ctx, restaurant_id)
            except Exception as e:
                log.warning("could not load restaurant_id=%s, filtering without it: %s", restaurant_id, e)
                ctx.db.rollback()

            venues = [v for v in entities.list_venues(ctx, limit=limit) if is_listed(v, restaurant)]

            if include_nearby and restaurant is not None and restaurant.city:
                venues.sort(key=_relevance_key(restaurant))

            log.debug("available venues restaurant_id=%s count=%s", restaurant_id, len(venues))
            return venues
    except Exception as e:
        log.exception("venue discovery failed restaurant_id=%s: %s", restaurant_id, e)
        ctx.db.rollback()
        return []
