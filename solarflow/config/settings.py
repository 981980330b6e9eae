"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False

    # Redis (for Dramatiq)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str | None = None
    redis_db: int = 0

    # Application
    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"
    log_file: str | None = "logs/solarflow.log"

    # Booking workflow
    workflow_timezone: str = Field(
        default="UTC",
        description="IANA timezone that defines calendar-day boundaries for due days",
    )

    # Referral program
    referral_code_prefix: str = Field(
        default="SOL-",
        description="Prefix prepended to every customer referral code",
    )
    referral_code_length: int = Field(
        default=8, ge=4, le=32, description="Random part length of referral codes"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("workflow_timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Validate IANA timezone name."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v

    @field_validator("referral_code_prefix")
    @classmethod
    def normalize_prefix(cls, v: str) -> str:
        """Referral codes are stored upper-case."""
        return v.strip().upper()

    @model_validator(mode="after")
    def validate_production(self) -> "Settings":
        """Validate production-specific requirements."""
        if self.environment == "production" and self.debug:
            raise ValueError(
                "DEBUG must be False in production environment. "
                "Set DEBUG=false in your .env file."
            )
        return self

    @property
    def workflow_tz(self) -> ZoneInfo:
        """Timezone object for calendar-day arithmetic."""
        return ZoneInfo(self.workflow_timezone)


settings = Settings()
