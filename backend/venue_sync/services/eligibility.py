from __future__ import annotations

import logging
from dataclasses import dataclass, field

from venue_sync.services import entities

log = logging.getLogger("vedi.eligibility")

REASON_RESTAURANT_NOT_FOUND = "Restaurant not found"
REASON_VENUE_NOT_FOUND = "Venue not found"
REASON_ALREADY_ASSOCIATED = "Restaurant is already associated with a venue"
REASON_AT_CAPACITY = "Venue has reached maximum number of restaurants"
REASON_PENDING_REQUEST = "A request to join this venue is already pending"
REASON_LOOKUP_FAILED = "Error checking eligibility"


@dataclass
class Eligibility:
    eligible: bool = True
    reasons: list[str] = field(default_factory=list)

    def reject(self, reason: str) -> None:
        self.eligible = False
        self.reasons.append(reason)


def check_eligibility(ctx, *, restaurant_id: int, venue_id: int) -> Eligibility:
    """Can this restaurant join this venue right now?

    Every check runs and every failing reason is reported. This is advisory,
    for gating UI; the association itself re-validates inside its transaction.
    Store errors make the answer "no" rather than raising.
    """
    result = Eligibility()
    try:
        restaurant = entities.get_restaurant(ctx, restaurant_id)
        venue = entities.get_venue(ctx, venue_id)

        if restaurant is None:
            result.reject(REASON_RESTAURANT_NOT_FOUND)
        elif restaurant.venue_id is not None:
            result.reject(REASON_ALREADY_ASSOCIATED)

        if venue is None:
            result.reject(REASON_VENUE_NOT_FOUND)
            return result

        if venue.max_restaurants:
            if entities.count_venue_restaurants(ctx, venue.id) >= venue.max_restaurants:
                result.reject(REASON_AT_CAPACITY)

        if venue.require_approval:
            pending = entities.get_pending_request(ctx, restaurant_id=restaurant_id, venue_id=venue.id)
            if pending is not None:
                result.reject(REASON_PENDING_REQUEST)
    except Exception as e:
        log.exception("eligibility lookup failed restaurant_id=%s venue_id=%s: %s", restaurant_id, venue_id, e)
        ctx.db.rollback()
        return Eligibility(eligible=False, reasons=[REASON_LOOKUP_FAILED])

    return result
