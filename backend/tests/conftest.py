"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta, timezone
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from venue_sync.auth.deps import get_jwt_config
from venue_sync.auth.jwt_tokens import create_access_token
from venue_sync.core.db import Base, get_db
from venue_sync.main import app
from venue_sync.models import Restaurant, User, Venue
from venue_sync.services.context import SyncContext

# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite:///:memory:"


class Clock:
    """Settable UTC clock for SyncContext.now."""

    def __init__(self, start: datetime | None = None):
        self.current = start or datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Create a test database session."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def make_ctx(db_session: Session, clock: Clock):
    """Build a SyncContext acting as the given user (or nobody)."""

    def _make(actor: User | None = None, **kwargs) -> SyncContext:
        return SyncContext(
            db=db_session,
            actor_user_id=actor.id if actor is not None else None,
            now=kwargs.pop("now", clock),
            **kwargs,
        )

    return _make


@pytest.fixture
def make_user(db_session: Session):
    counter = {"n": 0}

    def _make(email: str | None = None, system_role: str = "NONE") -> User:
        counter["n"] += 1
        user = User(
            email=email or f"user{counter['n']}@example.com",
            full_name=f"User {counter['n']}",
            system_role=system_role,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture
def make_venue(db_session: Session):
    def _make(name: str = "Harbor Food Hall", **fields) -> Venue:
        fields.setdefault("address", "1 Pier Rd")
        fields.setdefault("city", "Portland")
        fields.setdefault("state", "OR")
        venue = Venue(name=name, **fields)
        db_session.add(venue)
        db_session.commit()
        db_session.refresh(venue)
        return venue

    return _make


@pytest.fixture
def make_restaurant(db_session: Session):
    def _make(name: str = "Noodle Bar", **fields) -> Restaurant:
        fields.setdefault("email", "noodles@example.com")
        fields.setdefault("phone", "+15035550100")
        fields.setdefault("cuisine_type", "Ramen")
        fields.setdefault("city", "Portland")
        fields.setdefault("state", "OR")
        restaurant = Restaurant(name=name, **fields)
        db_session.add(restaurant)
        db_session.commit()
        db_session.refresh(restaurant)
        return restaurant

    return _make


@pytest.fixture
def owner(make_user) -> User:
    return make_user("owner@example.com")


@pytest.fixture
def manager(make_user) -> User:
    return make_user("manager@example.com")


@pytest.fixture
def admin(make_user) -> User:
    return make_user("admin@example.com", system_role="SUPER_ADMIN")


@pytest.fixture
def venue(make_venue, manager) -> Venue:
    return make_venue(manager_user_id=manager.id)


@pytest.fixture
def restaurant(make_restaurant, owner) -> Restaurant:
    return make_restaurant(owner_user_id=owner.id)


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create a test client with database override."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    """Bearer headers for a user."""

    def _headers(user: User) -> dict:
        token = create_access_token(get_jwt_config(), user.id)
        return {"Authorization": f"Bearer {token}"}

    return _headers


def assert_association_invariant(restaurant: Restaurant) -> None:
    if restaurant.venue_id is not None:
        assert restaurant.venue_status == "active"
        assert restaurant.joined_venue_at is not None
        if restaurant.left_venue_at is not None:
            assert restaurant.joined_venue_at >= restaurant.left_venue_at
    else:
        assert restaurant.venue_status is None
        if restaurant.joined_venue_at is not None:
            assert restaurant.left_venue_at is not None
            assert restaurant.left_venue_at >= restaurant.joined_venue_at
