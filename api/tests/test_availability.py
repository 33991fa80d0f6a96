"""Unit tests for the availability and pricing resolver (pure functions, no DB)."""

from datetime import UTC, date, datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace
from zoneinfo import ZoneInfo

from app.services.availability import (
    Interval,
    event_occupancy,
    generate_slots,
    hourly_interval,
    local_day_window,
    local_hour_start,
    overlapping,
    overlaps,
)
from app.services.booking_rules import validate_booking
from app.services.pricing import (
    calculate_booking_price,
    duration_hours,
    effective_price_per_hour,
    offer_applies,
    round_money,
    select_offer,
)

TZ = ZoneInfo("Europe/Zagreb")
DAY = date(2030, 6, 3)


def _t(hour: int, minute: int = 0, day: date = DAY) -> datetime:
    return local_hour_start(day, hour, TZ) + timedelta(minutes=minute)


def _offer(id=1, hours=None, discount_pct=None, price=None, starts_at=None, ends_at=None):
    start_hour, end_hour = hours or (None, None)
    return SimpleNamespace(
        id=id,
        starts_at=starts_at or datetime(2020, 1, 1, tzinfo=UTC),
        ends_at=ends_at or datetime(2035, 1, 1, tzinfo=UTC),
        valid_hour_start=start_hour,
        valid_hour_end=end_hour,
        discount_pct=discount_pct,
        price=price,
    )


class TestOverlap:
    def test_overlap_is_symmetric(self):
        a = Interval(_t(10), _t(11, 30))
        b = Interval(_t(11), _t(12))
        assert overlaps(a, b) is True
        assert overlaps(b, a) is True

    def test_interval_overlaps_itself(self):
        a = Interval(_t(10), _t(11))
        assert a.overlaps(a)

    def test_touching_intervals_do_not_overlap(self):
        assert overlaps(Interval(_t(10), _t(11)), Interval(_t(11), _t(12))) is False

    def test_containment_overlaps(self):
        assert overlaps(Interval(_t(9), _t(13)), Interval(_t(10), _t(11)))

    def test_overlapping_keeps_input_order(self):
        ref = Interval(_t(10), _t(12))
        rows = [Interval(_t(11), _t(13)), Interval(_t(8), _t(9)), Interval(_t(9), _t(10, 30))]
        assert overlapping(ref, rows) == [rows[0], rows[2]]

    def test_empty_interval_is_invalid(self):
        assert Interval(_t(10), _t(10)).is_valid is False


class TestLocalTime:
    def test_hour_start_is_utc(self):
        # CEST is UTC+2 in June
        assert _t(7) == datetime(2030, 6, 3, 5, tzinfo=UTC)

    def test_day_window_on_dst_days(self):
        spring = local_day_window(date(2030, 3, 31), TZ)
        autumn = local_day_window(date(2030, 10, 27), TZ)
        assert spring.end - spring.start == timedelta(hours=23)
        assert autumn.end - autumn.start == timedelta(hours=25)

    def test_hourly_interval_counts_elapsed_hours(self):
        interval = hourly_interval(date(2030, 3, 31), 1, 2, TZ)
        assert interval.end - interval.start == timedelta(hours=2)
        assert interval.end.astimezone(TZ).hour == 4


class TestOfferResolution:
    def test_hour_window_is_half_open(self):
        offer = _offer(hours=(18, 22))
        assert offer_applies(offer, _t(17), 17) is False
        assert offer_applies(offer, _t(18), 18) is True
        assert offer_applies(offer, _t(21), 21) is True
        assert offer_applies(offer, _t(22), 22) is False

    def test_validity_end_is_exclusive(self):
        offer = _offer(starts_at=_t(10), ends_at=_t(12))
        assert offer_applies(offer, _t(10), 10) is True
        assert offer_applies(offer, _t(12), 12) is False

    def test_single_hour_bound_is_ignored(self):
        offer = SimpleNamespace(**{**vars(_offer()), "valid_hour_start": 18})
        assert offer_applies(offer, _t(9), 9) is True

    def test_cheapest_offer_wins(self):
        ten_pct = _offer(id=1, discount_pct=Decimal("10"))
        flat = _offer(id=2, price=Decimal("15.00"))
        assert select_offer([ten_pct, flat], _t(10), 10, Decimal("20.00")) is flat

    def test_equal_price_falls_back_to_lowest_id(self):
        late = _offer(id=5, discount_pct=Decimal("25"))
        early = _offer(id=3, price=Decimal("15.00"))
        assert select_offer([late, early], _t(10), 10, Decimal("20.00")) is early
        assert select_offer([early, late], _t(10), 10, Decimal("20.00")) is early

    def test_no_applicable_offer(self):
        assert select_offer([_offer(hours=(18, 22))], _t(10), 10, Decimal("20.00")) is None


class TestPricing:
    def test_discount(self):
        offer = _offer(discount_pct=Decimal("25"))
        assert calculate_booking_price(Decimal("20.00"), offer, 2) == (Decimal("15.00"), Decimal("30.00"))

    def test_absolute_price_wins_over_discount(self):
        offer = _offer(discount_pct=Decimal("50"), price=Decimal("17.50"))
        assert calculate_booking_price(Decimal("20.00"), offer, 3) == (Decimal("17.50"), Decimal("52.50"))

    def test_no_offer_uses_base(self):
        assert effective_price_per_hour(Decimal("20.00")) == Decimal("20.00")

    def test_rounds_half_up(self):
        assert round_money(Decimal("2.675")) == Decimal("2.68")
        assert round_money(Decimal("2.665")) == Decimal("2.67")
        # 12.50 * (1 - 0.33) = 8.375
        assert effective_price_per_hour(Decimal("12.50"), _offer(discount_pct=Decimal("33"))) == Decimal("8.38")

    def test_float_inputs(self):
        assert effective_price_per_hour(20, _offer(price=17.5)) == Decimal("17.50")

    def test_duration_hours(self):
        assert duration_hours(_t(10), _t(11)) == 1
        assert duration_hours(_t(10), _t(11, 30)) == 2
        assert duration_hours(_t(10), _t(11, 29)) == 1
        assert duration_hours(_t(10), _t(10, 30)) == 1
        assert duration_hours(_t(10), _t(12, 30)) == 3


class TestEventOccupancy:
    def _event(self, windows=()):
        return SimpleNamespace(
            start_at=_t(8, day=date(2030, 6, 10)),
            end_at=_t(22, day=date(2030, 6, 12)),
            windows=[SimpleNamespace(start_at=s, end_at=e) for s, e in windows],
        )

    def test_window_replaces_range_on_its_day(self):
        first = date(2030, 6, 10)
        event = self._event(windows=[(_t(18, day=first), _t(20, day=first))])
        assert event_occupancy([event], local_day_window(first, TZ), TZ) == [
            Interval(_t(18, day=first), _t(20, day=first))
        ]

    def test_day_without_window_uses_whole_range(self):
        first = date(2030, 6, 10)
        event = self._event(windows=[(_t(18, day=first), _t(20, day=first))])
        assert event_occupancy([event], local_day_window(date(2030, 6, 11), TZ), TZ) == [
            Interval(event.start_at, event.end_at)
        ]

    def test_event_without_windows(self):
        event = self._event()
        assert event_occupancy([event], local_day_window(date(2030, 6, 12), TZ), TZ) == [
            Interval(event.start_at, event.end_at)
        ]

    def test_event_range_outside_the_day_is_ignored(self):
        # Ends 23:30 on its only day; the window covers 18:00-20:00 of that day
        first = date(2030, 6, 20)
        event = SimpleNamespace(
            start_at=_t(8, day=first),
            end_at=_t(23, 30, day=first),
            windows=[SimpleNamespace(start_at=_t(18, day=first), end_at=_t(20, day=first))],
        )
        span = Interval(_t(0, day=first), _t(0, day=first + timedelta(days=2)))
        assert event_occupancy([event], span, TZ) == [Interval(_t(18, day=first), _t(20, day=first))]


class TestGenerateSlots:
    def test_seventeen_slots(self):
        slots = generate_slots(DAY, Decimal("20.00"), [], [], TZ)
        assert len(slots) == 17
        assert slots[0]["hour"] == 7
        assert slots[-1]["hour"] == 23
        assert slots[-1]["end_at"] == _t(0, day=DAY + timedelta(days=1))
        assert all(s["available"] for s in slots)

    def test_one_booking_blocks_one_slot(self):
        slots = generate_slots(DAY, Decimal("20.00"), [Interval(_t(14), _t(15))], [], TZ)
        by_hour = {s["hour"]: s["available"] for s in slots}
        assert sum(by_hour.values()) == 16
        assert by_hour[14] is False
        assert by_hour[13] is True
        assert by_hour[15] is True

    def test_partial_overlap_blocks_both_slots(self):
        slots = generate_slots(DAY, Decimal("20.00"), [Interval(_t(10, 30), _t(11, 30))], [], TZ)
        by_hour = {s["hour"]: s["available"] for s in slots}
        assert by_hour[10] is False
        assert by_hour[11] is False

    def test_offer_priced_per_slot(self):
        offer = _offer(hours=(18, 22), discount_pct=Decimal("25"))
        slots = {s["hour"]: s for s in generate_slots(DAY, Decimal("20.00"), [], [offer], TZ)}
        assert slots[17]["effective_price_per_hour"] == Decimal("20.00")
        assert slots[18]["effective_price_per_hour"] == Decimal("15.00")
        assert slots[18]["active_offer"] is offer
        assert slots[22]["active_offer"] is None
        assert slots[18]["price_per_hour"] == Decimal("20.00")


class TestValidateBooking:
    def test_inverted_interval_reports_only_shape(self):
        violations = validate_booking(Interval(_t(12), _t(11)), 0, 3)
        assert [v.rule for v in violations] == ["invalid_interval"]

    def test_too_long(self):
        violations = validate_booking(Interval(_t(10), _t(14)), 4, 3)
        assert [v.rule for v in violations] == ["duration"]

    def test_held_time_counts_not_just_charged_hours(self):
        # 3h29m rounds to 3 charged hours but still holds the court too long
        violations = validate_booking(Interval(_t(10), _t(13, 29)), 3, 3)
        assert [v.rule for v in violations] == ["duration"]

    def test_exactly_max_hours(self):
        assert validate_booking(Interval(_t(10), _t(13)), 3, 3) == []

    def test_past(self):
        start = datetime(2020, 1, 1, 10, tzinfo=UTC)
        violations = validate_booking(Interval(start, start + timedelta(hours=1)), 1, 3)
        assert [v.rule for v in violations] == ["past_booking"]

    def test_valid(self):
        assert validate_booking(Interval(_t(10), _t(11)), 1, 3) == []
