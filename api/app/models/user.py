"""Player accounts.

A user is the authenticated principal: they own bookings and RSVP to events.
Email addresses are stored lower-cased, so lookups by email are case-insensitive
as long as the lookup value goes through the same normalisation.
"""

from typing import TYPE_CHECKING

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from app.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from app.models.booking import Booking


def normalise_email(value: str) -> str:
    return value.strip().lower()


class User(TimestampMixin, Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(254), unique=True, nullable=False, index=True)
    hashed_password: Mapped[str] = mapped_column(String(200), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50))

    bookings: Mapped[list["Booking"]] = relationship(back_populates="user", lazy="raise")

    @validates("email")
    def _normalise_email(self, key: str, value: str) -> str:
        return normalise_email(value)

    def __repr__(self) -> str:
        return f"<User {self.id} {self.email}>"
