"""Configuration settings for the booking flow service."""

from decimal import Decimal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with Pydantic validation."""

    # Draft storage settings
    database_url: str = Field(
        default="sqlite+aiosqlite:///./booking_flow.db",
        description="Async database URL for persisted booking drafts"
    )

    # Environment settings
    environment: str = Field(
        default="development",
        description="Application environment"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Application log level"
    )

    # Flight booking backend
    backend_base_url: str = Field(
        default="http://localhost:8080/api",
        description="Base URL of the flight booking REST backend"
    )

    backend_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout for a single backend request"
    )

    frontend_base_url: str = Field(
        default="http://localhost:3000",
        description="Origin used to build payment success and cancel URLs"
    )

    default_currency: str = Field(
        default="VND",
        min_length=3,
        max_length=3,
        description="Currency used when a flight snapshot carries none"
    )

    # Seat pricing tiers
    seat_tier_a_max_row: int = Field(default=10, ge=1, description="Last row of the front premium tier")
    seat_tier_a_price: Decimal = Field(default=Decimal("500000"), ge=0, description="Front premium seat price")
    seat_tier_b_first_row: int = Field(default=12, ge=1, description="First exit-row premium row")
    seat_tier_b_last_row: int = Field(default=15, ge=1, description="Last exit-row premium row")
    seat_tier_b_price: Decimal = Field(default=Decimal("300000"), ge=0, description="Exit-row premium seat price")
    seat_standard_price: Decimal = Field(default=Decimal("100000"), ge=0, description="Standard seat fee")
    seats_per_row: int = Field(default=6, ge=1, le=10, description="Seats per cabin row (A, B, ...)")
    default_total_seats: int = Field(default=180, ge=1, description="Cabin size when the flight omits it")

    # Ancillary service fees
    support_standard_fee: Decimal = Field(default=Decimal("56.93"), ge=0, description="Standard support package")
    support_platinum_fee: Decimal = Field(default=Decimal("58.49"), ge=0, description="Platinum support package")
    medical_cover_fee: Decimal = Field(default=Decimal("70.86"), ge=0, description="Medical cover per passenger")
    collapse_cover_fee: Decimal = Field(default=Decimal("18.86"), ge=0, description="Collapse cover per passenger")

    # CORS settings
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Allowed CORS origins"
    )

    # Server settings
    host: str = Field(
        default="0.0.0.0",
        description="Server host"
    )

    port: int = Field(
        default=8000,
        description="Server port"
    )

    # Booking sessions
    max_live_sessions: int = Field(
        default=1000,
        ge=1,
        description="Booking sessions kept in memory; older idle ones are restored from storage on demand"
    )

    # Admin polling
    admin_api_token: str | None = Field(
        default=None,
        description="Bearer token used by the pending bookings poller"
    )

    pending_poll_interval_seconds: int = Field(
        default=30,
        ge=1,
        description="How often the admin dashboard is polled for pending bookings"
    )

    # Tracing
    otlp_endpoint: str | None = Field(
        default=None,
        description="OTLP collector endpoint; tracing export is disabled when unset"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        valid_environments = ["development", "test", "staging", "production"]
        if v.lower() not in valid_environments:
            raise ValueError(f"Environment must be one of: {valid_environments}")
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level value."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Parse CORS origins from string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    @field_validator("default_currency")
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return v.upper()

    @property
    def debug(self) -> bool:
        """Return True if in development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Return True if in production mode."""
        return self.environment == "production"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


# Global settings instance
settings = Settings()
