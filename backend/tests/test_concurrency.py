"""Two sessions on one file-backed SQLite database, interleaved at fixed points."""

import pytest
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import sessionmaker

from venue_sync.core.db import Base
from venue_sync.core.errors import CapacityExceeded, DuplicateRequest
from venue_sync.models import Restaurant, User, Venue, VenueRequest
from venue_sync.services import association, entities, requests
from venue_sync.services.activity import NullActivitySink
from venue_sync.services.context import SyncContext


@pytest.fixture
def file_sessionmaker(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'venue_sync.db'}")
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture
def sessions(file_sessionmaker):
    first, second = file_sessionmaker(), file_sessionmaker()
    try:
        yield first, second
    finally:
        first.close()
        second.close()


def _seed(db, *, max_restaurants=None, restaurants=1):
    owner = User(email="owner@example.com", full_name="Owner", system_role="NONE")
    db.add(owner)
    db.flush()
    venue = Venue(name="Harbor Food Hall", manager_user_id=owner.id, max_restaurants=max_restaurants)
    rows = [Restaurant(name=f"Kitchen {n}", owner_user_id=owner.id) for n in range(restaurants)]
    db.add(venue)
    db.add_all(rows)
    db.commit()
    return owner.id, venue.id, [r.id for r in rows]


def _ctx(db, actor_id):
    return SyncContext(db=db, actor_user_id=actor_id, activity=NullActivitySink())


def test_concurrent_duplicate_request_is_rejected(sessions, monkeypatch):
    db_a, db_b = sessions
    owner_id, venue_id, (restaurant_id,) = _seed(db_a)
    original = entities.get_pending_request
    raced = []

    def pending_then_race(ctx, **kwargs):
        found = original(ctx, **kwargs)
        if not raced:
            raced.append(True)
            # the other caller finishes its whole request in between
            requests.request_to_join_venue(_ctx(db_b, owner_id), restaurant_id=restaurant_id, venue_id=venue_id)
        return found

    monkeypatch.setattr(entities, "get_pending_request", pending_then_race)

    with pytest.raises(DuplicateRequest):
        requests.request_to_join_venue(_ctx(db_a, owner_id), restaurant_id=restaurant_id, venue_id=venue_id)

    pending = db_a.execute(
        select(func.count(VenueRequest.id)).where(
            VenueRequest.restaurant_id == restaurant_id,
            VenueRequest.venue_id == venue_id,
            VenueRequest.status == "pending",
        )
    ).scalar_one()
    assert pending == 1


def test_concurrent_joins_respect_capacity(sessions, monkeypatch):
    db_a, db_b = sessions
    owner_id, venue_id, (first_id, second_id) = _seed(db_a, max_restaurants=1, restaurants=2)
    original = association._bind_restaurant
    raced = []

    def race_then_bind(ctx, **kwargs):
        if not raced:
            raced.append(True)
            association.sync_restaurant_to_venue(_ctx(db_b, owner_id), restaurant_id=second_id, venue_id=venue_id)
        original(ctx, **kwargs)

    monkeypatch.setattr(association, "_bind_restaurant", race_then_bind)

    with pytest.raises(CapacityExceeded):
        association.sync_restaurant_to_venue(_ctx(db_a, owner_id), restaurant_id=first_id, venue_id=venue_id)

    joined = db_a.scalars(select(Restaurant.id).where(Restaurant.venue_id == venue_id)).all()
    assert joined == [second_id]
