"""Court routes: search by slot, court detail, day view and price preview.

Public endpoints, no auth required. All availability and pricing is derived
from current rows on every call.
"""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.models.court import Court
from app.schemas import CourtOut, CourtSearchOut, DayViewOut, PriceQuoteOut, PricedCourtOut, SlotOut
from app.services.availability import annotate_price, generate_slots, hourly_interval, local_day_window, overlapping
from app.services.booking_rules import load_occupancy, load_offers
from app.services.pricing import calculate_booking_price

router = APIRouter(prefix="/courts", tags=["courts"])


async def _get_court(db: AsyncSession, court_id: int) -> Court:
    result = await db.execute(select(Court).where(Court.id == court_id, Court.is_active.is_(True)))
    court = result.scalar_one_or_none()
    if court is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Court not found")
    return court


@router.get("/search", response_model=CourtSearchOut)
async def search_courts(
    sport: str = Query(..., min_length=1),
    query_date: date = Query(..., alias="date", description="Date in YYYY-MM-DD format"),
    hour: int = Query(..., ge=0, le=23),
    duration: int = Query(1, ge=1, le=settings.max_booking_hours),
    city: str | None = Query(None),
    q: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Split the courts for a sport into available and conflicting for one slot.

    Every court is annotated with its base price, the effective price and the
    offer active at the slot start.
    """
    tz = settings.venue_tz
    requested = hourly_interval(query_date, hour, duration, tz)

    stmt = select(Court).where(Court.sport == sport, Court.is_active.is_(True))
    if city:
        stmt = stmt.where(Court.city.ilike(f"%{city}%"))
    if q:
        pattern = f"%{q}%"
        stmt = stmt.where(
            or_(Court.name.ilike(pattern), Court.address.ilike(pattern), Court.description.ilike(pattern))
        )
    courts_result = await db.execute(stmt.order_by(Court.name, Court.id))
    courts = courts_result.scalars().all()

    if not courts:
        return CourtSearchOut(available=[], conflicting=[])

    court_ids = [c.id for c in courts]
    occupancy = await load_occupancy(db, court_ids, requested, tz)
    offers = await load_offers(db, court_ids, requested)

    available: list[PricedCourtOut] = []
    conflicting: list[PricedCourtOut] = []
    for court in courts:
        price = annotate_price(court.price_per_hour, offers.get(court.id, []), requested.start, tz)
        row = PricedCourtOut(
            **CourtOut.model_validate(court).model_dump(),
            effective_price_per_hour=price["effective_price_per_hour"],
            active_offer=price["active_offer"],
        )
        (conflicting if overlapping(requested, occupancy[court.id]) else available).append(row)

    return CourtSearchOut(available=available, conflicting=conflicting)


@router.get("/{court_id}", response_model=CourtOut)
async def get_court(court_id: int, db: AsyncSession = Depends(get_db)):
    return await _get_court(db, court_id)


@router.get("/{court_id}/day", response_model=DayViewOut)
async def get_court_day(
    court_id: int,
    query_date: date = Query(..., alias="date", description="Date in YYYY-MM-DD format"),
    db: AsyncSession = Depends(get_db),
):
    """Return the hourly slots for a court on a given date.

    Each slot carries its availability and the price that applies at its start.
    """
    court = await _get_court(db, court_id)
    tz = settings.venue_tz
    day = local_day_window(query_date, tz)

    occupancy = await load_occupancy(db, [court.id], day, tz)
    offers = await load_offers(db, [court.id], day)

    slots = generate_slots(
        query_date,
        court.price_per_hour,
        occupancy[court.id],
        offers.get(court.id, []),
        tz,
        first_hour=settings.first_slot_hour,
        last_hour=settings.last_slot_hour,
    )

    return DayViewOut(court_id=court.id, date=query_date, slots=[SlotOut(**s) for s in slots])


@router.get("/{court_id}/price", response_model=PriceQuoteOut)
async def get_price_quote(
    court_id: int,
    query_date: date = Query(..., alias="date", description="Date in YYYY-MM-DD format"),
    hour: int = Query(..., ge=0, le=23),
    duration: int = Query(1, ge=1, le=settings.max_booking_hours),
    db: AsyncSession = Depends(get_db),
):
    """Preview what a booking of this slot would be charged, before submitting it."""
    court = await _get_court(db, court_id)
    tz = settings.venue_tz
    requested = hourly_interval(query_date, hour, duration, tz)

    offers = await load_offers(db, [court.id], requested)
    price = annotate_price(court.price_per_hour, offers.get(court.id, []), requested.start, tz)
    _, total = calculate_booking_price(court.price_per_hour, price["active_offer"], duration)

    return PriceQuoteOut(
        court_id=court.id,
        start_at=requested.start,
        end_at=requested.end,
        duration_hours=duration,
        total_price=total,
        **price,
    )
