from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    GOOGLE_CALENDAR_ID: str | None = None
    GOOGLE_SERVICE_ACCOUNT_EMAIL: str | None = None
    GOOGLE_PRIVATE_KEY: str | None = None
    GOOGLE_DELEGATED_USER: str | None = None
    GOOGLE_CALENDAR_BASE_URL: str = "https://www.googleapis.com/calendar/v3"

    BUSINESS_TIMEZONE: str = "Europe/Berlin"
    WORK_START_HOUR: int = 9
    WORK_END_HOUR: int = 17
    SLOT_MINUTES: int = 60

    PROVIDER_TIMEOUT_SECONDS: float = 10.0
    READ_RETRY_ATTEMPTS: int = 3

    CALENDLY_PERSONAL_ACCESS_TOKEN: str | None = None
    CALENDLY_WEBHOOK_SIGNING_KEY: str | None = None
    CALENDLY_SETUP_SECRET: str | None = None
    CALENDLY_BASE_URL: str = "https://api.calendly.com"

    SITE_URL: str | None = None
    ENV: str = "dev"
    USE_MOCK_CALENDAR: bool = False
    LOG_LEVEL: str = "INFO"
    BOOKING_STORE_PATH: str = "./data/bookings.json"


settings = Settings()
