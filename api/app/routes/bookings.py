"""Booking routes: create, list, cancel.

Creation re-checks the requested interval against current bookings and event
occupancy while holding a lock on the court row, then prices the booking
from the offer active at its start.
"""

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.config import settings
from app.core.database import get_db
from app.core.dependencies import get_current_user
from app.models.booking import Booking, BookingStatus
from app.models.user import User
from app.schemas import BookingCreate, BookingCreated, BookingOut
from app.services.availability import Interval, hourly_interval
from app.services.booking_rules import (
    BookingViolation,
    check_court_conflict,
    load_offers,
    lock_court,
    validate_booking,
)
from app.services.pricing import calculate_booking_price, duration_hours, select_offer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["bookings"])


def _conflict(violation: BookingViolation) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=[{"rule": violation.rule, "message": violation.message}],
    )


@router.post("", response_model=BookingCreated, status_code=status.HTTP_201_CREATED)
async def create_booking(
    body: BookingCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    tz = settings.venue_tz

    # Explicit instants win over the date/hour/duration form
    if body.start_at is not None and body.end_at is not None:
        requested = Interval(body.start_at.astimezone(UTC), body.end_at.astimezone(UTC))
        hours = duration_hours(requested.start, requested.end) if requested.is_valid else 0
    else:
        requested = hourly_interval(body.booking_date, body.hour, body.duration, tz)
        hours = body.duration

    violations = validate_booking(requested, hours, settings.max_booking_hours)
    if violations:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=[{"rule": v.rule, "message": v.message} for v in violations],
        )

    court = await lock_court(db, body.court_id)
    if court is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Court not found")

    conflict = await check_court_conflict(db, court.id, requested, tz)
    if conflict:
        logger.info("Booking rejected for court %s %s-%s: %s", court.id, requested.start, requested.end, conflict)
        raise _conflict(conflict)

    offers = await load_offers(db, [court.id], requested)
    offer = select_offer(
        offers.get(court.id, []), requested.start, requested.start.astimezone(tz).hour, court.price_per_hour
    )
    _, price = calculate_booking_price(court.price_per_hour, offer, hours)

    booking = Booking(
        court_id=court.id,
        user_id=user.id,
        start_at=requested.start,
        end_at=requested.end,
        price_eur=price,
        applied_offer_id=offer.id if offer else None,
    )
    db.add(booking)
    try:
        await db.flush()
    except IntegrityError:
        # Exclusion constraint caught a booking committed by a concurrent request
        logger.info("Booking for court %s lost a concurrent race", court.id)
        raise _conflict(BookingViolation("court_conflict", "Court is unavailable for the selected time.")) from None

    logger.info("Booking %s created: court=%s user=%s price=%s", booking.id, court.id, user.id, price)
    return booking


@router.get("", response_model=list[BookingOut])
async def list_my_bookings(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """The caller's confirmed bookings that have not ended yet, soonest first."""
    result = await db.execute(
        select(Booking)
        .options(selectinload(Booking.court))
        .where(
            Booking.user_id == user.id,
            Booking.status == BookingStatus.CONFIRMED,
            Booking.end_at >= datetime.now(UTC),
        )
        .order_by(Booking.start_at)
        .limit(50)
    )
    return result.scalars().all()


@router.delete("/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_booking(
    booking_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(Booking).where(Booking.id == booking_id))
    booking = result.scalar_one_or_none()
    if not booking:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")

    if booking.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only the owner can cancel a booking")

    if booking.status != BookingStatus.CONFIRMED:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Booking cannot be cancelled")

    booking.status = BookingStatus.CANCELLED
    booking.cancelled_at = datetime.now(UTC)
    logger.info("Booking %s cancelled by user %s", booking.id, user.id)
