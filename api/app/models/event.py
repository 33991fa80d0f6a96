"""Event models.

An event is a group session played on one or more courts (EventCourt).
By default it occupies its courts for its whole [start_at, end_at) range;
explicit EventWindow rows narrow that occupancy on the days they cover.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin, UTCDateTime

if TYPE_CHECKING:
    from app.models.court import Court
    from app.models.user import User


class Event(TimestampMixin, Base):
    __tablename__ = "events"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    sport: Mapped[str | None] = mapped_column(String(50))
    description: Mapped[str | None] = mapped_column(Text)

    start_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    end_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    team_size: Mapped[int | None] = mapped_column()
    capacity_teams: Mapped[int | None] = mapped_column()

    # Relationships
    windows: Mapped[list["EventWindow"]] = relationship(
        back_populates="event", order_by="EventWindow.start_at", lazy="selectin"
    )
    courts: Mapped[list["Court"]] = relationship(secondary="event_courts", order_by="Court.id", lazy="raise")

    __table_args__ = (Index("ix_events_range", "start_at", "end_at"),)

    def __repr__(self) -> str:
        return f"<Event {self.title} {self.start_at}-{self.end_at}>"


class EventWindow(Base):
    """A sub-range of an event during which its courts are actually occupied."""

    __tablename__ = "event_windows"

    id: Mapped[int] = mapped_column(primary_key=True)
    event_id: Mapped[int] = mapped_column(ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    start_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    end_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    event: Mapped["Event"] = relationship(back_populates="windows")

    __table_args__ = (Index("ix_event_windows_event_range", "event_id", "start_at", "end_at"),)


class EventCourt(Base):
    __tablename__ = "event_courts"

    event_id: Mapped[int] = mapped_column(ForeignKey("events.id", ondelete="CASCADE"), primary_key=True)
    court_id: Mapped[int] = mapped_column(ForeignKey("courts.id", ondelete="CASCADE"), primary_key=True)

    __table_args__ = (Index("ix_event_courts_court", "court_id"),)


class EventRsvp(TimestampMixin, Base):
    """A user joining an event. One row per (event, user)."""

    __tablename__ = "event_rsvps"

    id: Mapped[int] = mapped_column(primary_key=True)
    event_id: Mapped[int] = mapped_column(ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)

    user: Mapped["User"] = relationship(lazy="raise")

    __table_args__ = (Index("ix_event_rsvps_event_user", "event_id", "user_id", unique=True),)
