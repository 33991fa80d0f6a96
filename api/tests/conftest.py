"""Shared test fixtures.

Tests run against a throwaway SQLite file unless CH_DATABASE_URL points
somewhere else. The URL has to be in the environment before app.core.config
is imported, so it is set at the top of this module.
"""

import os
import tempfile

_db_dir = tempfile.mkdtemp(prefix="courthub-tests-")
os.environ.setdefault("CH_DATABASE_URL", f"sqlite+aiosqlite:///{_db_dir}/test.db")

from datetime import date  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from app.core.auth import hash_password, issue_tokens  # noqa: E402
from app.core.config import settings  # noqa: E402
from app.core.database import async_session_factory, engine  # noqa: E402
from app.main import app  # noqa: E402
from app.models import Base, Court, Event, EventCourt, EventWindow, Offer, User  # noqa: E402
from app.services.availability import local_hour_start  # noqa: E402

PASSWORD = "secret123"


def at(day: date, hour: int, minute: int = 0):
    """UTC instant of a local wall-clock time at the venue."""
    start = local_hour_start(day, hour, settings.venue_tz)
    return start.replace(minute=minute) if minute else start


def auth_header(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {issue_tokens(user.id)['access_token']}"}


@pytest.fixture(autouse=True)
async def _fresh_schema():
    """Dispose stale pool connections and rebuild every table before each test.

    The global engine is created at import time. When pytest-asyncio creates a new
    event loop for a test, pooled connections are bound to the old loop, so the
    pool is disposed first.
    """
    await engine.dispose()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield


@pytest.fixture
async def client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def seed():
    """Two padel courts in two cities, a tennis court, offers, one event and two players.

    - Arena Centre (padel, Zagreb, 20.00/h): 25% off between 18:00 and 22:00
    - Baza Court (padel, Split, 30.00/h): flat 17.50/h
    - Tennis Park (tennis, Zagreb, 15.00/h): no offers
    - Padel Night on Arena Centre from 2030-06-10 08:00 to 2030-06-12 22:00,
      with one window 2030-06-10 18:00-20:00
    """
    async with async_session_factory() as db:
        arena = Court(
            name="Arena Centre", sport="padel", city="Zagreb", address="Ilica 1", price_per_hour=Decimal("20.00")
        )
        baza = Court(name="Baza Court", sport="padel", city="Split", address="Riva 5", price_per_hour=Decimal("30.00"))
        tennis = Court(name="Tennis Park", sport="tennis", city="Zagreb", price_per_hour=Decimal("15.00"))
        db.add_all([arena, baza, tennis])
        await db.flush()

        evening = Offer(
            court_id=arena.id,
            title="Evening 25%",
            starts_at=at(date(2020, 1, 1), 0),
            ends_at=at(date(2035, 1, 1), 0),
            valid_hour_start=18,
            valid_hour_end=22,
            discount_pct=Decimal("25.00"),
        )
        flat = Offer(
            court_id=baza.id,
            title="Flat rate",
            starts_at=at(date(2020, 1, 1), 0),
            ends_at=at(date(2034, 1, 1), 0),
            price=Decimal("17.50"),
            original_price=Decimal("30.00"),
        )
        expired = Offer(
            court_id=baza.id,
            title="Old promo",
            starts_at=at(date(2020, 1, 1), 0),
            ends_at=at(date(2021, 1, 1), 0),
            discount_pct=Decimal("50.00"),
        )
        db.add_all([evening, flat, expired])

        padel_night = Event(
            title="Padel Night",
            sport="padel",
            start_at=at(date(2030, 6, 10), 8),
            end_at=at(date(2030, 6, 12), 22),
            team_size=2,
            capacity_teams=8,
        )
        db.add(padel_night)
        await db.flush()
        db.add_all(
            [
                EventCourt(event_id=padel_night.id, court_id=arena.id),
                EventWindow(
                    event_id=padel_night.id,
                    start_at=at(date(2030, 6, 10), 18),
                    end_at=at(date(2030, 6, 10), 20),
                ),
            ]
        )

        player = User(
            email="player@example.com", hashed_password=hash_password(PASSWORD), first_name="Ana", last_name="Horvat"
        )
        other = User(
            email="other@example.com", hashed_password=hash_password(PASSWORD), first_name="Ivo", last_name="Kovac"
        )
        db.add_all([player, other])
        await db.flush()

        await db.commit()
        return {
            "arena": arena,
            "baza": baza,
            "tennis": tennis,
            "evening": evening,
            "flat": flat,
            "expired": expired,
            "event": padel_night,
            "player": player,
            "other": other,
        }
