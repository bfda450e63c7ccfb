"""
app/core/config.py

Purpose: Application configuration

- Loads environment variables
- Centralizes config values (DB URI, Twilio credentials, limits)
- Validates configuration on startup
- Environment-specific settings
"""

from pydantic import Field, field_validator, ValidationInfo
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, Literal, List


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Validates all required configs on startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Environment
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"

    # Storage
    STORAGE_BACKEND: Literal["mongo", "memory"] = Field(
        default="mongo",
        description="Booking/availability persistence backend"
    )
    MONGODB_URL: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI"
    )
    MONGODB_DB_NAME: str = Field(
        default="toplawns",
        description="MongoDB database name"
    )

    # Twilio SMS
    TWILIO_ACCOUNT_SID: Optional[str] = Field(
        default=None,
        description="Twilio account SID"
    )
    TWILIO_AUTH_TOKEN: Optional[str] = Field(
        default=None,
        description="Twilio auth token"
    )
    TWILIO_PHONE_NUMBER: Optional[str] = Field(
        default=None,
        description="Twilio sender number in E.164 format"
    )
    TWILIO_API_BASE_URL: str = Field(
        default="https://api.twilio.com",
        description="Twilio REST API base URL"
    )
    TWILIO_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        description="Timeout for a single Twilio API call"
    )
    EMPLOYEE_PHONE_NUMBER: Optional[str] = Field(
        default=None,
        description="Phone that receives new booking requests"
    )

    # Business
    BUSINESS_NAME: str = Field(
        default="Top Lawns Lincoln",
        description="Name used in customer-facing messages"
    )
    CONFIRMATION_WINDOW_MINUTES: int = Field(
        default=30,
        description="Promised confirmation time quoted to customers"
    )
    BOOKING_ID_PREFIX: str = Field(
        default="BK",
        description="Prefix for booking identifiers"
    )
    ACCEPT_KEYWORD: str = Field(
        default="ACCEPT",
        description="Keyword employees reply with to accept a booking"
    )

    # Photo uploads
    UPLOAD_DIR: str = Field(
        default="uploads",
        description="Directory where booking photos are stored"
    )
    MAX_UPLOAD_FILES: int = Field(
        default=5,
        description="Maximum photos per booking"
    )
    MAX_UPLOAD_SIZE_MB: int = Field(
        default=5,
        description="Maximum size of a single photo in megabytes"
    )

    # Application
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    API_PREFIX: str = Field(
        default="/api",
        description="API route prefix"
    )
    CORS_ORIGINS: List[str] = Field(
        default=["https://edybe.github.io", "http://localhost:3000"],
        description="Allowed CORS origins"
    )

    @field_validator("ACCEPT_KEYWORD", "BOOKING_ID_PREFIX")
    @classmethod
    def normalize_keyword(cls, v: str) -> str:
        """Keywords are matched against upper-cased input."""
        v = v.strip().upper()
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("TWILIO_AUTH_TOKEN")
    @classmethod
    def validate_twilio_token(cls, v, info: ValidationInfo):
        """Ensure Twilio token is set in production."""
        if info.data.get("ENVIRONMENT") == "production" and not v:
            raise ValueError("TWILIO_AUTH_TOKEN is required in production environment")
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"

    @property
    def max_upload_bytes(self) -> int:
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024

    @property
    def twilio_configured(self) -> bool:
        return bool(
            self.TWILIO_ACCOUNT_SID
            and self.TWILIO_AUTH_TOKEN
            and self.TWILIO_PHONE_NUMBER
        )


# Global settings instance
settings = Settings()


def validate_settings(config: Settings = settings):
    """
    Validates critical settings on application startup.
    Raises ValueError if any required setting is missing or invalid.
    """
    errors = []

    if config.STORAGE_BACKEND == "mongo" and not config.MONGODB_URL:
        errors.append("MONGODB_URL is required")

    if config.MAX_UPLOAD_FILES < 0:
        errors.append("MAX_UPLOAD_FILES must not be negative")

    # Production-specific validations
    if config.is_production:
        if not config.twilio_configured:
            errors.append(
                "TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN and TWILIO_PHONE_NUMBER are required in production"
            )
        if not config.EMPLOYEE_PHONE_NUMBER:
            errors.append("EMPLOYEE_PHONE_NUMBER is required in production")
        if config.STORAGE_BACKEND == "memory":
            errors.append("STORAGE_BACKEND=memory is not allowed in production")

    if errors:
        raise ValueError(f"Configuration validation failed: {', '.join(errors)}")

    return True
