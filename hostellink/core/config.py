from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "local"
    APP_NAME: str = "HostelLink API"
    # Comma-separated origins for CORS. If empty, uses localhost defaults.
    CORS_ORIGINS: str = ""
    LOG_LEVEL: str = "INFO"

    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    DATABASE_URL: str

    @field_validator("DATABASE_URL", mode="after")
    @classmethod
    def normalize_database_url(cls, v: str) -> str:
        """Render and others give postgres://; SQLAlchemy expects postgresql+psycopg2://."""
        if v and v.startswith("postgres://"):
            return "postgresql+psycopg2://" + v[11:]
        return v
    REDIS_URL: str = "redis://localhost:6379/0"

    # Booking / escrow
    PLATFORM_FEE: int = 50
    CURRENCY_LABEL: str = "KSh"
    PAYMENT_METHOD: str = "mpesa"
    PAYMENT_SANDBOX_FAIL: bool = False  # If True, the mocked M-Pesa provider declines every payment
    DEFAULT_CANCELLATION_REASON: str = "Student cancelled before confirmation"

    # Wallet
    WALLET_PAGE_SIZE: int = 20
    WALLET_PAGE_SIZE_MAX: int = 100

    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 25
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM: str = "bookings@hostellink.local"

    RESEND_API_KEY: str = ""
    RESEND_FROM_EMAIL: str = "HostelLink <onboarding@resend.dev>"


settings = Settings()
