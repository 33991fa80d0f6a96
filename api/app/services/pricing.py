"""Pricing service: offer resolution and booking price derivation.

Pure calculation module. An offer is any object exposing the Offer model's
pricing attributes (id, starts_at, ends_at, valid_hour_start, valid_hour_end,
discount_pct, price), so unit tests can pass SimpleNamespace rows.

Money is Decimal throughout, rounded half-up to cents once per finalised
value: the per-hour rate is rounded, then rate x hours is rounded again.
"""

from collections.abc import Iterable
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

CENTS = Decimal("0.01")
HUNDRED = Decimal(100)


def to_decimal(value) -> Decimal:
    """Coerce a stored numeric (Decimal, int, float or None) to Decimal. None counts as zero."""
    if value is None:
        return Decimal(0)
    if isinstance(value, Decimal):
        return value
    # str() first so 17.5 stays 17.5 rather than its binary expansion
    return Decimal(str(value))


def round_money(value) -> Decimal:
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def offer_applies(offer, instant: datetime, hour: int) -> bool:
    """An offer applies when the instant lies in [starts_at, ends_at) and,
    if the offer is hour-bounded, the local hour lies in [valid_hour_start, valid_hour_end).

    A window with only one bound set is treated as unbounded.
    """
    if not (offer.starts_at <= instant < offer.ends_at):
        return False
    if offer.valid_hour_start is None or offer.valid_hour_end is None:
        return True
    return offer.valid_hour_start <= hour < offer.valid_hour_end


def effective_price_per_hour(base_price, offer=None) -> Decimal:
    """Hourly rate after the offer. An absolute offer price wins over discount_pct."""
    if offer is not None:
        if offer.price is not None:
            return round_money(offer.price)
        if offer.discount_pct is not None:
            return round_money(to_decimal(base_price) * (1 - to_decimal(offer.discount_pct) / HUNDRED))
    return round_money(base_price)


def select_offer(offers: Iterable, instant: datetime, hour: int, base_price):
    """Pick the single offer that prices a slot starting at instant.

    Offers do not stack. Among the applicable ones the cheapest effective
    hourly rate wins; equal rates fall back to the lowest offer id so the
    choice never depends on query order. Returns None when nothing applies.
    """
    eligible = [o for o in offers if offer_applies(o, instant, hour)]
    if not eligible:
        return None
    return min(eligible, key=lambda o: (effective_price_per_hour(base_price, o), o.id))


def calculate_booking_price(base_price, offer, hours: int) -> tuple[Decimal, Decimal]:
    """Return (effective_price_per_hour, total_price) for a booking of the given whole hours."""
    per_hour = effective_price_per_hour(base_price, offer)
    total = round_money(per_hour * hours)
    return per_hour, total


def duration_hours(start_at: datetime, end_at: datetime) -> int:
    """Whole hours charged for [start_at, end_at): rounded half-up, at least one."""
    hours = to_decimal((end_at - start_at) / timedelta(hours=1))
    return max(1, int(hours.quantize(Decimal(1), rounding=ROUND_HALF_UP)))
