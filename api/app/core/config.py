"""Application configuration from environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App
    app_name: str = "FieldBook"
    debug: bool = True
    api_prefix: str = "/api/v1"

    # Database
    database_url: str = "postgresql+asyncpg://fieldbook:fieldbook@db:5432/fieldbook"
    database_echo: bool = False

    # Scheduling. Venues are single-timezone; bookings are stored as UTC instants
    # and converted to this zone for day-type and time-of-day pricing.
    timezone: str = "Asia/Ho_Chi_Minh"
    default_open_time: str = "06:00"  # used when a venue has no open_time
    default_close_time: str = "23:00"
    slot_minutes: int = 60

    model_config = {"env_prefix": "FB_", "env_file": ".env", "extra": "ignore"}


settings = Settings()
