"""Seed the database with CourtHub demo data.

Run with: python -m scripts.seed
Creates courts in Zagreb and Split, a few running offers, one weekend event
and two test players.
"""

import asyncio
from datetime import date, datetime, timedelta
from decimal import Decimal

from sqlalchemy import select

from app.core.auth import hash_password
from app.core.config import settings
from app.core.database import async_session_factory, engine
from app.models import Base, Court, Event, EventCourt, EventWindow, Offer, User
from app.services.availability import local_hour_start

# Courts per city. Prices are the base hourly rate in EUR.
CITIES = {
    "Zagreb": [
        {"name": "Jarun Padel 1", "sport": "padel", "address": "Jarunska 5", "price_per_hour": "24.00"},
        {"name": "Jarun Padel 2", "sport": "padel", "address": "Jarunska 5", "price_per_hour": "24.00"},
        {"name": "Maksimir Tennis", "sport": "tennis", "address": "Maksimirska 128", "price_per_hour": "18.00"},
        {"name": "Trnje Futsal Hall", "sport": "futsal", "address": "Trnjanska 11", "price_per_hour": "60.00"},
    ],
    "Split": [
        {"name": "Poljud Padel", "sport": "padel", "address": "Poljudsko setaliste 2", "price_per_hour": "22.00"},
        {"name": "Firule Tennis", "sport": "tennis", "address": "Put Firula 10", "price_per_hour": "16.50"},
    ],
}


def _next_saturday(today: date) -> date:
    return today + timedelta(days=(5 - today.weekday()) % 7 or 7)


async def seed():
    # Dev only: create any missing tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    tz = settings.venue_tz
    today = datetime.now(tz).date()

    async with async_session_factory() as db:
        # Check if already seeded
        result = await db.execute(select(User).where(User.email == "player@courthub.example"))
        if result.scalar_one_or_none():
            print("Database already seeded - skipping.")
            return

        courts: dict[str, Court] = {}
        for city, rows in CITIES.items():
            for row in rows:
                court = Court(city=city, **{**row, "price_per_hour": Decimal(row["price_per_hour"])})
                db.add(court)
                courts[court.name] = court
        await db.flush()

        season_start = local_hour_start(today - timedelta(days=30), 0, tz)
        season_end = local_hour_start(today + timedelta(days=90), 0, tz)
        offers = [
            # Percentage off in the evening only
            Offer(
                court_id=courts["Jarun Padel 1"].id,
                title="Happy hour padel",
                description="25% off every evening between 18:00 and 22:00",
                featured=True,
                starts_at=season_start,
                ends_at=season_end,
                valid_hour_start=18,
                valid_hour_end=22,
                discount_pct=Decimal("25.00"),
            ),
            # Flat rate all day
            Offer(
                court_id=courts["Poljud Padel"].id,
                title="Summer flat rate",
                starts_at=season_start,
                ends_at=season_end,
                price=Decimal("17.50"),
                original_price=Decimal("22.00"),
            ),
            # Morning discount, ends sooner
            Offer(
                court_id=courts["Maksimir Tennis"].id,
                title="Early bird",
                starts_at=season_start,
                ends_at=local_hour_start(today + timedelta(days=14), 0, tz),
                valid_hour_start=7,
                valid_hour_end=10,
                discount_pct=Decimal("20.00"),
            ),
        ]
        db.add_all(offers)

        saturday = _next_saturday(today)
        tournament = Event(
            title="Weekend Padel Open",
            sport="padel",
            description="Doubles tournament across both Jarun courts.",
            start_at=local_hour_start(saturday, 9, tz),
            end_at=local_hour_start(saturday + timedelta(days=1), 18, tz),
            team_size=2,
            capacity_teams=16,
        )
        db.add(tournament)
        await db.flush()

        for name in ("Jarun Padel 1", "Jarun Padel 2"):
            db.add(EventCourt(event_id=tournament.id, court_id=courts[name].id))
        # Saturday is group stage only; Sunday falls back to the whole event range
        db.add(
            EventWindow(
                event_id=tournament.id,
                start_at=local_hour_start(saturday, 9, tz),
                end_at=local_hour_start(saturday, 14, tz),
            )
        )

        # Test users
        db.add_all(
            [
                User(
                    email="player@courthub.example",
                    hashed_password=hash_password("player123"),
                    first_name="Test",
                    last_name="Player",
                ),
                User(
                    email="rival@courthub.example",
                    hashed_password=hash_password("rival123"),
                    first_name="Test",
                    last_name="Rival",
                ),
            ]
        )

        await db.commit()

        print(f"Seeded: {len(courts)} courts in {len(CITIES)} cities")
        print(f"  {len(offers)} offers")
        print(f"  1 event on {saturday.isoformat()}")
        print("  2 test users:")
        print("    player@courthub.example / player123")
        print("    rival@courthub.example / rival123")


if __name__ == "__main__":
    asyncio.run(seed())
