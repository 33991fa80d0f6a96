"""Pydantic schemas for API serialisation."""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

# --- Auth ---


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    first_name: str
    last_name: str
    phone: str | None = None


class RefreshRequest(BaseModel):
    refresh_token: str


# --- User ---


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    first_name: str
    last_name: str
    phone: str | None


# --- Court ---


class CourtSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    sport: str
    address: str | None
    city: str | None
    image_url: str | None


class CourtOut(CourtSummary):
    description: str | None
    price_per_hour: float


# --- Offer ---


class OfferOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    court_id: int
    title: str | None
    discount_pct: float | None
    price: float | None
    original_price: float | None
    starts_at: datetime
    ends_at: datetime
    valid_hour_start: int | None
    valid_hour_end: int | None


class OfferWithCourtOut(OfferOut):
    description: str | None
    featured: bool
    court: CourtSummary


class OfferSearchOut(BaseModel):
    offers: list[OfferWithCourtOut]
    total: int
    has_more: bool


# --- Availability ---


class PricedCourtOut(CourtOut):
    """A court annotated with the price that applies to the searched slot."""

    effective_price_per_hour: float
    active_offer: OfferOut | None


class CourtSearchOut(BaseModel):
    available: list[PricedCourtOut]
    conflicting: list[PricedCourtOut]


class SlotOut(BaseModel):
    hour: int
    start_at: datetime
    end_at: datetime
    available: bool
    price_per_hour: float
    effective_price_per_hour: float
    active_offer: OfferOut | None


class DayViewOut(BaseModel):
    court_id: int
    date: date
    slots: list[SlotOut]


class PriceQuoteOut(BaseModel):
    court_id: int
    start_at: datetime
    end_at: datetime
    duration_hours: int
    price_per_hour: float
    effective_price_per_hour: float
    total_price: float
    active_offer: OfferOut | None


# --- Booking ---


class BookingCreate(BaseModel):
    """Either an explicit start_at/end_at pair or a local date + hour + duration."""

    model_config = ConfigDict(populate_by_name=True)

    court_id: int
    start_at: datetime | None = None
    end_at: datetime | None = None
    booking_date: date | None = Field(default=None, alias="date")
    hour: int | None = Field(default=None, ge=0, le=23)
    duration: int = Field(default=1, ge=1)

    @model_validator(mode="after")
    def _one_form(self) -> "BookingCreate":
        explicit = self.start_at is not None and self.end_at is not None
        by_slot = self.booking_date is not None and self.hour is not None
        if not explicit and not by_slot:
            raise ValueError("Provide start_at and end_at, or date and hour")
        for value in (self.start_at, self.end_at):
            if value is not None and value.tzinfo is None:
                raise ValueError("start_at and end_at must include a timezone offset")
        return self


class BookingCreated(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    court_id: int
    start_at: datetime
    end_at: datetime
    price_eur: float
    applied_offer_id: int | None


class BookingOut(BookingCreated):
    status: str
    court: CourtSummary


# --- Event ---


class EventWindowOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    start_at: datetime
    end_at: datetime


class EventOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    sport: str | None
    description: str | None
    start_at: datetime
    end_at: datetime
    team_size: int | None
    capacity_teams: int | None
    windows: list[EventWindowOut] = []


class EventCardOut(EventOut):
    """An event with its first court's location, for list views."""

    city: str | None = None
    address: str | None = None
    image_url: str | None = None


class EventSearchOut(BaseModel):
    events: list[EventCardOut]
    total: int
    has_more: bool


class EventDetailOut(BaseModel):
    event: EventOut
    courts: list[CourtSummary]
    rsvp_count: int
    is_joined: bool


# --- Query enums ---

OfferSort = Literal["ends_soon", "discount", "price"]
