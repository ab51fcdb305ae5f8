from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

from sqlalchemy.orm import Session

from venue_sync.core.config import Settings, settings as default_settings
from venue_sync.services.activity import ActivitySink, DatabaseActivitySink


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    # SQLite hands timezone-aware columns back naive
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class SyncContext:
    """Collaborators for one unit of work: the store session, the acting user,
    the activity sink and the clock. Built once per request."""

    db: Session
    actor_user_id: int | None = None
    activity: ActivitySink | None = None
    now: Callable[[], datetime] = utcnow
    settings: Settings = field(default_factory=lambda: default_settings)

    def __post_init__(self):
        if self.activity is None:
            object.__setattr__(self, "activity", DatabaseActivitySink(self.db))
