"""Offer routes: browse offers that are running right now."""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.database import get_db
from app.models.court import Court
from app.models.offer import Offer
from app.schemas import OfferSearchOut, OfferSort, OfferWithCourtOut

router = APIRouter(prefix="/offers", tags=["offers"])

# Offers without a discount or price sort as 0 under those orderings
_SORTS = {
    "ends_soon": (Offer.ends_at, Offer.id),
    "discount": (func.coalesce(Offer.discount_pct, 0).desc(), Offer.id),
    "price": (func.coalesce(Offer.price, 0), Offer.id),
}


@router.get("/search", response_model=OfferSearchOut)
async def search_offers(
    sport: str | None = Query(None),
    city: str | None = Query(None),
    q: str | None = Query(None),
    sort: OfferSort = Query("ends_soon"),
    limit: int = Query(12, ge=1, le=50),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    now = datetime.now(UTC)

    stmt = (
        select(Offer)
        .join(Court, Court.id == Offer.court_id)
        .where(Offer.starts_at <= now, Offer.ends_at > now, Court.is_active.is_(True))
    )
    if sport:
        stmt = stmt.where(Court.sport == sport)
    if city:
        stmt = stmt.where(Court.city.ilike(f"%{city}%"))
    if q:
        pattern = f"%{q}%"
        stmt = stmt.where(or_(Offer.title.ilike(pattern), Offer.description.ilike(pattern), Court.name.ilike(pattern)))

    total = (await db.execute(select(func.count()).select_from(stmt.subquery()))).scalar_one()

    result = await db.execute(
        stmt.options(selectinload(Offer.court)).order_by(*_SORTS[sort]).offset(offset).limit(limit)
    )
    page = [OfferWithCourtOut.model_validate(o) for o in result.scalars().all()]

    return OfferSearchOut(offers=page, total=total, has_more=offset + len(page) < total)
