"""Event routes: search, detail, RSVP and the caller's joined events."""

import logging
from datetime import UTC, date, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.dependencies import get_current_user, get_optional_user
from app.models.court import Court
from app.models.event import Event, EventCourt, EventRsvp
from app.models.user import User
from app.schemas import CourtSummary, EventCardOut, EventDetailOut, EventOut, EventSearchOut
from app.services.availability import local_day_window

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["events"])


async def _get_event(db: AsyncSession, event_id: int) -> Event:
    result = await db.execute(select(Event).where(Event.id == event_id))
    event = result.scalar_one_or_none()
    if event is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return event


async def _with_first_court(db: AsyncSession, events: list[Event]) -> list[EventCardOut]:
    """Attach the location of each event's lowest-id court for card display."""
    first_court: dict[int, Court] = {}
    if events:
        result = await db.execute(
            select(EventCourt.event_id, Court)
            .join(Court, Court.id == EventCourt.court_id)
            .where(EventCourt.event_id.in_([e.id for e in events]))
            .order_by(EventCourt.event_id, Court.id)
        )
        for event_id, court in result.all():
            first_court.setdefault(event_id, court)

    cards = []
    for ev in events:
        court = first_court.get(ev.id)
        cards.append(
            EventCardOut(
                **EventOut.model_validate(ev).model_dump(),
                city=court.city if court else None,
                address=court.address if court else None,
                image_url=court.image_url if court else None,
            )
        )
    return cards


@router.get("/search", response_model=EventSearchOut)
async def search_events(
    sport: str | None = Query(None),
    date_from: date | None = Query(None, description="First local day, YYYY-MM-DD"),
    date_to: date | None = Query(None, description="Last local day, YYYY-MM-DD"),
    city: str | None = Query(None),
    q: str | None = Query(None),
    limit: int = Query(12, ge=1, le=50),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    """Events by start day; without a date range, every event that has not ended before today."""
    tz = settings.venue_tz
    stmt = select(Event)

    if sport:
        stmt = stmt.where(Event.sport == sport)
    if date_from:
        stmt = stmt.where(Event.start_at >= local_day_window(date_from, tz).start)
    if date_to:
        stmt = stmt.where(Event.start_at < local_day_window(date_to, tz).end)
    if not date_from and not date_to:
        today = datetime.now(tz).date()
        stmt = stmt.where(Event.end_at >= local_day_window(today, tz).start)
    if q:
        pattern = f"%{q}%"
        stmt = stmt.where(or_(Event.title.ilike(pattern), Event.description.ilike(pattern)))
    if city:
        in_city = (
            select(EventCourt.event_id)
            .join(Court, Court.id == EventCourt.court_id)
            .where(Court.city.ilike(f"%{city}%"))
        )
        stmt = stmt.where(Event.id.in_(in_city))

    total = (await db.execute(select(func.count()).select_from(stmt.subquery()))).scalar_one()

    result = await db.execute(stmt.order_by(Event.start_at, Event.id).offset(offset).limit(limit))
    events = list(result.scalars().all())

    return EventSearchOut(
        events=await _with_first_court(db, events),
        total=total,
        has_more=offset + len(events) < total,
    )


@router.get("/my", response_model=list[EventCardOut])
async def my_events(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Events the caller has joined that have not ended yet, soonest first."""
    result = await db.execute(
        select(Event)
        .join(EventRsvp, EventRsvp.event_id == Event.id)
        .where(EventRsvp.user_id == user.id, Event.end_at >= datetime.now(UTC))
        .order_by(Event.start_at, Event.id)
    )
    return await _with_first_court(db, list(result.scalars().all()))


@router.get("/{event_id}", response_model=EventDetailOut)
async def get_event(
    event_id: int,
    user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    event = await _get_event(db, event_id)

    courts_result = await db.execute(
        select(Court)
        .join(EventCourt, EventCourt.court_id == Court.id)
        .where(EventCourt.event_id == event.id)
        .order_by(Court.id)
    )
    courts = courts_result.scalars().all()

    count_result = await db.execute(select(func.count(EventRsvp.id)).where(EventRsvp.event_id == event.id))
    rsvp_count = count_result.scalar_one()

    is_joined = False
    if user is not None:
        mine = await db.execute(
            select(EventRsvp.id).where(EventRsvp.event_id == event.id, EventRsvp.user_id == user.id)
        )
        is_joined = mine.scalar_one_or_none() is not None

    return EventDetailOut(
        event=EventOut.model_validate(event),
        courts=[CourtSummary.model_validate(c) for c in courts],
        rsvp_count=rsvp_count,
        is_joined=is_joined,
    )


@router.post("/{event_id}/rsvp", status_code=status.HTTP_201_CREATED)
async def join_event(
    event_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    event = await _get_event(db, event_id)

    db.add(EventRsvp(event_id=event.id, user_id=user.id))
    try:
        await db.flush()
    except IntegrityError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Already joined") from None

    logger.info("User %s joined event %s", user.id, event.id)
    return {"message": "Joined"}


@router.delete("/{event_id}/rsvp", status_code=status.HTTP_204_NO_CONTENT)
async def leave_event(
    event_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await db.execute(delete(EventRsvp).where(EventRsvp.event_id == event_id, EventRsvp.user_id == user.id))
