"""Application configuration."""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings.

    Environment variables will be loaded and validated using Pydantic.
    """

    app_name: str = "Address Locator"
    version: str = "0.1.0"
    api_prefix: str = "/api/v1"

    # CORS Settings
    cors_origins: list[str] = ["*"]  # Default to allow all in development
    cors_allow_credentials: bool = False

    # Provider Settings
    LOCATIONIQ_API_KEY: str | None = None
    LOCATIONIQ_BASE_URL: str = "https://us1.locationiq.com/v1"
    GEOCODING_COUNTRY_CODE: str = "in"
    GEOCODING_COUNTRY_NAME: str = "India"
    GEOCODING_RESULT_LIMIT: int = Field(default=10, ge=1, le=50)
    GEOCODING_GOOD_ENOUGH_SCORE: int = 8
    GEOCODING_TIMEOUT: float | None = None  # No per-query timeout by default

    # Cache Settings
    GEOCODING_CACHE_SIZE: int = Field(default=1000, ge=1)
    GEOCODING_CACHE_TTL: int = Field(default=2592000, ge=0)  # 30 days, 0 = never
    REDIS_URL: str | None = None

    # Batch Settings
    BATCH_REQUEST_DELAY: float = Field(default=1.0, ge=0)
    BATCH_MAX_RETRIES: int = Field(default=3, ge=0)
    BATCH_BACKOFF_BASE: float = Field(default=2.0, ge=0)

    # Logging Settings
    LOG_LEVEL: str = "INFO"
    JSON_LOGS: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="allow",  # Allow extra fields in environment
    )

    @model_validator(mode="after")
    def validate_origins(self) -> "Settings":
        """Validate CORS origins."""
        if self.cors_origins == ["*"]:
            self.cors_origins = [
                "http://localhost",
                "http://localhost:8000",
                "http://localhost:3000",
            ]
        return self

    @model_validator(mode="after")
    def blank_api_key_is_missing(self) -> "Settings":
        """Treat an empty provider credential as not configured."""
        if self.LOCATIONIQ_API_KEY is not None and not self.LOCATIONIQ_API_KEY.strip():
            self.LOCATIONIQ_API_KEY = None
        return self


# Create settings instance
settings = Settings()
