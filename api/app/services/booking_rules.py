"""Booking rules enforcement and occupancy queries.

All booking validation logic lives here, separate from the route handlers.
Each rule returns a BookingViolation or None if the rule passes.

The loaders below fetch the rows the pure resolver needs (bookings, event
occupancy, offers) for a set of courts and a time window, using the
range condition start < window.end AND end > window.start.
"""

from collections import defaultdict
from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.booking import Booking, BookingStatus
from app.models.court import Court
from app.models.event import Event, EventCourt, EventWindow
from app.models.offer import Offer
from app.services.availability import Interval, day_span, event_occupancy, overlapping


class BookingViolation(Exception):
    """Raised when a booking rule is violated."""

    def __init__(self, rule: str, message: str):
        self.rule = rule
        self.message = message
        super().__init__(message)


# ---------------------------------------------------------------------------
# Loaders
# ---------------------------------------------------------------------------


async def load_booking_intervals(
    db: AsyncSession, court_ids: list[int], window: Interval
) -> dict[int, list[Interval]]:
    """Confirmed booking intervals per court that overlap window."""
    result = await db.execute(
        select(Booking.court_id, Booking.start_at, Booking.end_at).where(
            Booking.court_id.in_(court_ids),
            Booking.status == BookingStatus.CONFIRMED,
            Booking.start_at < window.end,
            Booking.end_at > window.start,
        )
    )
    by_court: dict[int, list[Interval]] = defaultdict(list)
    for court_id, start_at, end_at in result.all():
        by_court[court_id].append(Interval(start_at, end_at))
    return by_court


async def load_events(db: AsyncSession, court_ids: list[int], window: Interval) -> dict[int, list[Event]]:
    """Events (windows loaded) per court whose range or any window overlaps window."""
    result = await db.execute(
        select(EventCourt.court_id, Event)
        .join(Event, Event.id == EventCourt.event_id)
        .where(
            EventCourt.court_id.in_(court_ids),
            or_(
                and_(Event.start_at < window.end, Event.end_at > window.start),
                Event.windows.any(and_(EventWindow.start_at < window.end, EventWindow.end_at > window.start)),
            ),
        )
        .order_by(Event.id)
    )
    by_court: dict[int, list[Event]] = defaultdict(list)
    for court_id, ev in result.all():
        by_court[court_id].append(ev)
    return by_court


async def load_occupancy(
    db: AsyncSession, court_ids: list[int], interval: Interval, tz: ZoneInfo
) -> dict[int, list[Interval]]:
    """Every occupancy interval (bookings + events) per court on the local days interval touches."""
    span = day_span(interval, tz)
    bookings = await load_booking_intervals(db, court_ids, span)
    events = await load_events(db, court_ids, span)

    return {cid: bookings.get(cid, []) + event_occupancy(events.get(cid, []), span, tz) for cid in court_ids}


async def load_offers(db: AsyncSession, court_ids: list[int], window: Interval) -> dict[int, list[Offer]]:
    """Offers per court whose validity overlaps window, ordered by id."""
    result = await db.execute(
        select(Offer)
        .where(
            Offer.court_id.in_(court_ids),
            Offer.starts_at < window.end,
            Offer.ends_at > window.start,
        )
        .order_by(Offer.id)
    )
    by_court: dict[int, list[Offer]] = defaultdict(list)
    for offer in result.scalars().all():
        by_court[offer.court_id].append(offer)
    return by_court


async def lock_court(db: AsyncSession, court_id: int) -> Court | None:
    """Load an active court with SELECT ... FOR UPDATE.

    Holding the row lock until commit serialises concurrent booking attempts
    on the same court, so the conflict check and the insert cannot interleave.
    """
    result = await db.execute(
        select(Court).where(Court.id == court_id, Court.is_active.is_(True)).with_for_update()
    )
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


def validate_booking(interval: Interval, hours: int, max_hours: int) -> list[BookingViolation]:
    """Run the input rules and return a list of violations (empty = valid)."""
    violations: list[BookingViolation] = []

    # 1. Interval shape
    v = check_interval(interval)
    if v:
        # Nothing else is meaningful for an inverted interval
        return [v]

    # 2. Duration
    v = check_duration(interval, hours, max_hours)
    if v:
        violations.append(v)

    # 3. Not in the past
    v = check_not_in_past(interval)
    if v:
        violations.append(v)

    return violations


def check_interval(interval: Interval) -> BookingViolation | None:
    """End must be strictly after start."""
    if not interval.is_valid:
        return BookingViolation("invalid_interval", "Booking must end after it starts.")
    return None


def check_duration(interval: Interval, hours: int, max_hours: int) -> BookingViolation | None:
    """Both the charged hours and the time actually held must fit in max_hours."""
    held = interval.end - interval.start
    if not 1 <= hours <= max_hours or held > timedelta(hours=max_hours):
        return BookingViolation(
            "duration",
            f"Duration must be between 1 and {max_hours} hours.",
        )
    return None


def check_not_in_past(interval: Interval) -> BookingViolation | None:
    """Cannot book a slot that has already started."""
    if interval.start <= datetime.now(UTC):
        return BookingViolation("past_booking", "Cannot book a slot in the past.")
    return None


async def check_court_conflict(
    db: AsyncSession, court_id: int, interval: Interval, tz: ZoneInfo
) -> BookingViolation | None:
    """No booking may overlap a confirmed booking or an event occupancy window on the same court."""
    occupancy = await load_occupancy(db, [court_id], interval, tz)
    clashes = overlapping(interval, occupancy[court_id])

    if clashes:
        first = min(clashes, key=lambda i: i.start)
        return BookingViolation(
            "court_conflict",
            f"Court is unavailable from {first.start.astimezone(tz).strftime('%H:%M')} "
            f"to {first.end.astimezone(tz).strftime('%H:%M')}.",
        )

    return None
