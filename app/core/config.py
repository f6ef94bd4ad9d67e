from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "local"
    APP_NAME: str = "SteppersLife Cash Ledger API"
    LOG_LEVEL: str = "INFO"
    # Comma-separated origins for CORS (e.g. https://stepperslife.com,https://events.stepperslife.com). If empty, uses localhost defaults.
    CORS_ORIGINS: str = ""

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

    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 25
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM: str = "tickets@stepperslife.local"

    SENDGRID_API_KEY: str = ""
    SENDGRID_FROM_EMAIL: str = ""

    CLIENT_BASE_URL: str = ""  # e.g. https://stepperslife.com - used in staff notification links

    # Cash payments
    CASH_HOLD_MINUTES: int = 30
    EXPIRE_SWEEP_SECONDS: float = 60.0

    # Ledger
    ALLOW_OVERALLOCATION: bool = False  # allow staff allocations beyond tier.total_quantity
    LEDGER_MAX_RETRIES: int = 3

    EMAIL_MAX_ATTEMPTS: int = 5


settings = Settings()
