from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    BUSINESS_NAME: str = "Your Business"
    BUSINESS_TIMEZONE: str = "America/Santiago"
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    WORKING_HOURS_START: int = 9
    WORKING_HOURS_END: int = 19
    SLOT_INTERVAL_MINUTES: int = 30
    STAFF_SLOT_INTERVAL_MINUTES: int = 5
    BOOKING_MAX_DAYS_AHEAD: int = 30
    CANCELLED_BOOKINGS_BLOCK_SLOTS: bool = False

    CALENDAR_HOURS_START: int = 9
    CALENDAR_HOURS_END: int = 19

    FETCH_MAX_ATTEMPTS: int = 3
    FETCH_RETRY_DELAY_SECONDS: float = 1.0
    CACHE_TTL_SECONDS: float = 300.0

    SUPABASE_URL: str | None = None
    SUPABASE_API_KEY: str | None = None
    SUPABASE_BOOKINGS_TABLE: str = "bookings"
    SUPABASE_SERVICES_TABLE: str = "services"
    HTTP_TIMEOUT_SECONDS: float = 10.0


settings = Settings()
