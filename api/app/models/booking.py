"""Booking model.

A booking reserves a court for a user over a half-open interval
[start_at, end_at). This is the core transactional entity in the system.
"""

import enum
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DDL, Enum, ForeignKey, Index, Numeric, event, func, text
from sqlalchemy.dialects.postgresql import ExcludeConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin, UTCDateTime


class BookingStatus(enum.StrEnum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class Booking(TimestampMixin, Base):
    __tablename__ = "bookings"

    id: Mapped[int] = mapped_column(primary_key=True)
    court_id: Mapped[int] = mapped_column(ForeignKey("courts.id"), nullable=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)

    # When: [start_at, end_at)
    start_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    end_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    # Status
    status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus, name="booking_status", values_callable=lambda e: [x.value for x in e]),
        default=BookingStatus.CONFIRMED,
        nullable=False,
    )
    cancelled_at: Mapped[datetime | None] = mapped_column(UTCDateTime)

    # Price charged, fixed at creation
    price_eur: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0.00"), nullable=False)
    applied_offer_id: Mapped[int | None] = mapped_column(ForeignKey("offers.id"))

    # Relationships
    court: Mapped["Court"] = relationship()
    user: Mapped["User"] = relationship(back_populates="bookings")
    applied_offer: Mapped["Offer | None"] = relationship()

    __table_args__ = (
        # Overlap range queries by court (availability, conflict check)
        Index("ix_bookings_court_range", "court_id", "start_at", "end_at"),
        # Fast lookups by user (my bookings)
        Index("ix_bookings_user", "user_id", "start_at"),
    )

    def __repr__(self) -> str:
        return f"<Booking {self.start_at}-{self.end_at} court={self.court_id}>"


# Prevent double-booking: no two confirmed bookings on a court may overlap.
# PostgreSQL only; needs btree_gist for the integer equality part.
Booking.__table__.append_constraint(
    ExcludeConstraint(
        (Booking.__table__.c.court_id, "="),
        (func.tstzrange(Booking.__table__.c.start_at, Booking.__table__.c.end_at, "[)"), "&&"),
        name="ex_bookings_no_overlap",
        using="gist",
        where=text("status = 'confirmed'"),
    ).ddl_if(dialect="postgresql")
)

event.listen(
    Base.metadata,
    "before_create",
    DDL("CREATE EXTENSION IF NOT EXISTS btree_gist").execute_if(dialect="postgresql"),
)


# Import for type hints
from app.models.court import Court  # noqa: E402
from app.models.user import User  # noqa: E402
from app.models.offer import Offer  # noqa: E402
