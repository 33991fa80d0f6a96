"""Application configuration from environment variables."""

from zoneinfo import ZoneInfo

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App
    app_name: str = "CourtHub"
    debug: bool = True
    secret_key: str = "dev-secret-change-in-production"
    api_prefix: str = "/api/v1"
    log_level: str = "INFO"

    # Database
    database_url: str = "postgresql+asyncpg://courthub:courthub@db:5432/courthub"
    database_echo: bool = False

    # Auth
    access_token_expire_minutes: int = 60
    refresh_token_expire_days: int = 30
    jwt_algorithm: str = "HS256"

    # Venue wall clock - hour-of-day, day windows and slots are built in this zone
    venue_timezone: str = "Europe/Zagreb"

    # Day view covers one slot per hour from first_slot_hour to last_slot_hour inclusive
    first_slot_hour: int = 7
    last_slot_hour: int = 23
    max_booking_hours: int = 3

    @property
    def venue_tz(self) -> ZoneInfo:
        return ZoneInfo(self.venue_timezone)

    model_config = {"env_prefix": "CH_", "env_file": ".env", "extra": "ignore"}


settings = Settings()
