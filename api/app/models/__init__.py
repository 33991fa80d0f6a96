"""ORM models. Importing this package registers every table on Base.metadata."""

from app.models.base import Base
from app.models.booking import Booking, BookingStatus
from app.models.court import Court
from app.models.event import Event, EventCourt, EventRsvp, EventWindow
from app.models.user import User
from app.models.offer import Offer

__all__ = [
    "Base",
    "User",
    "Court",
    "Offer",
    "Booking",
    "BookingStatus",
    "Event",
    "EventWindow",
    "EventCourt",
    "EventRsvp",
]
