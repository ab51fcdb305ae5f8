from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, func, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from venue_sync.core.db import Base


class VenueRequest(Base):
    """Restaurant-initiated request to join a venue.

    The restaurant_* / venue_* display columns are a snapshot taken when the
    request was created. They are never refreshed and must not drive decisions;
    the live Restaurant.venue_id is the only authoritative association.
    """

    __tablename__ = "venue_requests"
    __table_args__ = (
        Index("ix_venue_requests_pair_status", "restaurant_id", "venue_id", "status"),
        Index(
            "uq_venue_requests_pending_pair",
            "restaurant_id",
            "venue_id",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    restaurant_id: Mapped[int] = mapped_column(ForeignKey("restaurants.id", ondelete="CASCADE"), index=True)
    venue_id: Mapped[int] = mapped_column(ForeignKey("venues.id", ondelete="CASCADE"), index=True)

    restaurant_name: Mapped[str] = mapped_column(String(200))
    restaurant_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    restaurant_phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    restaurant_cuisine: Mapped[str | None] = mapped_column(String(100), nullable=True)
    restaurant_address: Mapped[str | None] = mapped_column(String(300), nullable=True)
    restaurant_city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    restaurant_state: Mapped[str | None] = mapped_column(String(100), nullable=True)
    venue_name: Mapped[str] = mapped_column(String(200))
    venue_address: Mapped[str | None] = mapped_column(String(300), nullable=True)
    venue_city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    venue_state: Mapped[str | None] = mapped_column(String(100), nullable=True)

    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending", index=True)
    message: Mapped[str] = mapped_column(Text, nullable=False, default="")

    requested_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    requested_by_user_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    approved_by_user_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    denied_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    denied_by_user_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    denial_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_by_user_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    restaurant = relationship("Restaurant")
    venue = relationship("Venue")
