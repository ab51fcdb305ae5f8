"""Fire-and-forget activity log for venues and restaurants.

Records are written after the business transaction has committed. A failure
here is logged and dropped, it never reaches the caller.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from sqlalchemy.orm import Session

from venue_sync.models import RestaurantActivity, VenueActivity

log = logging.getLogger("vedi.activity")


class ActivitySink(Protocol):
    def record_venue(
        self,
        venue_id: int,
        *,
        type: str,
        title: str,
        description: str = "",
        metadata: dict[str, Any] | None = None,
        actor_user_id: int | None = None,
    ) -> None: ...

    def record_restaurant(
        self,
        restaurant_id: int,
        *,
        type: str,
        title: str,
        description: str = "",
        metadata: dict[str, Any] | None = None,
        actor_user_id: int | None = None,
    ) -> None: ...


class NullActivitySink:
    def record_venue(self, venue_id: int, **kwargs: Any) -> None:
        return None

    def record_restaurant(self, restaurant_id: int, **kwargs: Any) -> None:
        return None


class DatabaseActivitySink:
    def __init__(self, db: Session):
        self.db = db

    def _append(self, row: VenueActivity | RestaurantActivity) -> None:
        try:
            self.db.add(row)
            self.db.commit()
        except Exception as e:
            log.exception("activity write failed (%s %s): %s", type(row).__name__, row.title, e)
            self.db.rollback()

    def record_venue(
        self,
        venue_id: int,
        *,
        type: str,
        title: str,
        description: str = "",
        metadata: dict[str, Any] | None = None,
        actor_user_id: int | None = None,
    ) -> None:
        self._append(
            VenueActivity(
                venue_id=venue_id,
                type=type,
                title=title,
                description=description,
                meta=metadata or {},
                created_by_user_id=actor_user_id,
            )
        )

    def record_restaurant(
        self,
        restaurant_id: int,
        *,
        type: str,
        title: str,
        description: str = "",
        metadata: dict[str, Any] | None = None,
        actor_user_id: int | None = None,
    ) -> None:
        self._append(
            RestaurantActivity(
                restaurant_id=restaurant_id,
                type=type,
                title=title,
                description=description,
                meta=metadata or {},
                created_by_user_id=actor_user_id,
            )
        )


def log_venue(ctx, venue_id: int, **kwargs: Any) -> None:
    """Record venue activity through ctx.activity; never raises."""
    try:
        ctx.activity.record_venue(venue_id, actor_user_id=ctx.actor_user_id, **kwargs)
    except Exception as e:
        log.exception("venue activity dropped venue_id=%s: %s", venue_id, e)


def log_restaurant(ctx, restaurant_id: int, **kwargs: Any) -> None:
    """Record restaurant activity through ctx.activity; never raises."""
    try:
        ctx.activity.record_restaurant(restaurant_id, actor_user_id=ctx.actor_user_id, **kwargs)
    except Exception as e:
        log.exception("restaurant activity dropped restaurant_id=%s: %s", restaurant_id, e)
