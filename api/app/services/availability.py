"""Court availability: interval overlap and day-view slot generation.

Pure calculation module - no database, no async, no FastAPI dependencies.
All intervals are half-open [start, end) over timezone-aware instants.
Local dates and hours are turned into instants by building the local
datetime from its components in the venue zone and converting to UTC,
never by parsing date and time strings together.
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from zoneinfo import ZoneInfo

from app.services.pricing import effective_price_per_hour, round_money, select_offer

SLOT_MINUTES = 60


@dataclass(frozen=True, slots=True)
class Interval:
    start: datetime
    end: datetime

    @property
    def is_valid(self) -> bool:
        return self.start < self.end

    def overlaps(self, other: "Interval") -> bool:
        return overlaps(self, other)


def overlaps(a: Interval, b: Interval) -> bool:
    """Strict half-open overlap: touching intervals ([0,1) and [1,2)) do not overlap."""
    return a.start < b.end and b.start < a.end


def overlapping(reference: Interval, intervals: Iterable[Interval]) -> list[Interval]:
    """Return the intervals that overlap reference, in input order."""
    return [i for i in intervals if overlaps(reference, i)]


def local_hour_start(query_date: date, hour: int, tz: ZoneInfo) -> datetime:
    """The UTC instant at which local wall-clock hour `hour` begins on query_date."""
    return datetime(query_date.year, query_date.month, query_date.day, hour, tzinfo=tz).astimezone(UTC)


def hourly_interval(query_date: date, hour: int, duration_hours: int, tz: ZoneInfo) -> Interval:
    """[local hour start, +duration_hours) measured in elapsed time."""
    start = local_hour_start(query_date, hour, tz)
    return Interval(start, start + timedelta(hours=duration_hours))


def local_day_window(query_date: date, tz: ZoneInfo) -> Interval:
    """[local midnight, next local midnight) - 24h except on DST changeover days."""
    start = local_hour_start(query_date, 0, tz)
    end = local_hour_start(query_date + timedelta(days=1), 0, tz)
    return Interval(start, end)


def local_days(interval: Interval, tz: ZoneInfo) -> Iterator[Interval]:
    """Yield the local calendar day windows that interval touches."""
    day = interval.start.astimezone(tz).date()
    last = (interval.end - timedelta(microseconds=1)).astimezone(tz).date()
    while day <= last:
        yield local_day_window(day, tz)
        day += timedelta(days=1)


def day_span(interval: Interval, tz: ZoneInfo) -> Interval:
    """The whole local days covering interval, as one window."""
    days = list(local_days(interval, tz))
    return Interval(days[0].start, days[-1].end)


def event_occupancy(events: Iterable, span: Interval, tz: ZoneInfo) -> list[Interval]:
    """Occupancy windows of events over the local days in span.

    For each day, an event with windows on that day occupies exactly those
    windows; an event with none that day occupies its whole [start_at, end_at),
    provided that range reaches into the day at all.
    Events need start_at, end_at and windows (rows with start_at, end_at).
    """
    events = list(events)
    occupied: list[Interval] = []
    for day in local_days(span, tz):
        for ev in events:
            todays = overlapping(day, (Interval(w.start_at, w.end_at) for w in ev.windows))
            whole = Interval(ev.start_at, ev.end_at)
            if todays:
                occupied.extend(todays)
            elif overlaps(day, whole):
                occupied.append(whole)
    return occupied


def generate_slots(
    query_date: date,
    base_price,
    occupancy: list[Interval],
    offers: list,
    tz: ZoneInfo,
    first_hour: int = 7,
    last_hour: int = 23,
) -> list[dict]:
    """Generate the hourly slots for a court on query_date, first_hour..last_hour inclusive.

    Returns dicts with keys: hour, start_at, end_at, available, price_per_hour,
    effective_price_per_hour, active_offer. A slot is available iff no
    occupancy interval overlaps it. The offer is resolved at the slot start.
    """
    price_per_hour = round_money(base_price)
    slots: list[dict] = []

    for hour in range(first_hour, last_hour + 1):
        start = local_hour_start(query_date, hour, tz)
        slot = Interval(start, start + timedelta(minutes=SLOT_MINUTES))
        offer = select_offer(offers, slot.start, hour, base_price)

        slots.append(
            {
                "hour": hour,
                "start_at": slot.start,
                "end_at": slot.end,
                "available": not any(overlaps(slot, o) for o in occupancy),
                "price_per_hour": price_per_hour,
                "effective_price_per_hour": effective_price_per_hour(base_price, offer),
                "active_offer": offer,
            }
        )

    return slots


def annotate_price(base_price, offers: list, instant: datetime, tz: ZoneInfo) -> dict:
    """Base price, effective price and active offer for a slot starting at instant."""
    offer = select_offer(offers, instant, instant.astimezone(tz).hour, base_price)
    return {
        "price_per_hour": round_money(base_price),
        "effective_price_per_hour": effective_price_per_hour(base_price, offer),
        "active_offer": offer,
    }
