"""Offer model.

An offer overrides a court's hourly price for a date range, optionally only
within an hour-of-day window. The override is either a percentage discount
or an absolute price (with the original price kept for display).
"""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, Index, Numeric, SmallInteger, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin, UTCDateTime

if TYPE_CHECKING:
    from app.models.court import Court


class Offer(TimestampMixin, Base):
    __tablename__ = "offers"

    id: Mapped[int] = mapped_column(primary_key=True)
    court_id: Mapped[int] = mapped_column(ForeignKey("courts.id"), nullable=False)
    title: Mapped[str | None] = mapped_column(String(200))
    description: Mapped[str | None] = mapped_column(Text)
    featured: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Validity: [starts_at, ends_at)
    starts_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    ends_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    # Optional local wall-clock hour window: [valid_hour_start, valid_hour_end)
    valid_hour_start: Mapped[int | None] = mapped_column(SmallInteger)
    valid_hour_end: Mapped[int | None] = mapped_column(SmallInteger)

    # Pricing override - an absolute price wins over discount_pct
    discount_pct: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    original_price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))

    # Relationships
    court: Mapped["Court"] = relationship(lazy="raise")

    __table_args__ = (Index("ix_offers_court_validity", "court_id", "starts_at", "ends_at"),)

    def __repr__(self) -> str:
        return f"<Offer {self.id} court={self.court_id} {self.starts_at}-{self.ends_at}>"
