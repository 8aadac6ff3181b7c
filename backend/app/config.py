"""Application configuration."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings are loaded in this priority order (highest to lowest):
    1. Environment variables
    2. .env file (for local development)
    3. Default values

    For local development, put values such as CONGRESS_API_KEY in a .env file.
    For production, set environment variables directly.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # Application
    # =========================================================================
    app_name: str = "Polispectrum API"
    debug: bool = False

    # =========================================================================
    # Database
    # =========================================================================
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/polispectrum",
        description="PostgreSQL connection URL",
    )

    # =========================================================================
    # CORS
    # =========================================================================
    cors_origins: list[str] = ["http://localhost:3000"]

    # =========================================================================
    # Congress.gov API (https://api.congress.gov/sign-up/)
    # =========================================================================
    # Required for: legislator, bill and roll-call vote sync
    congress_api_key: str | None = Field(
        default=None,
        description="Congress.gov API key from api.congress.gov",
    )
    congress_base_url: str = Field(
        default="https://api.congress.gov/v3",
        description="Base URL of the Congress.gov v3 API",
    )
    congress_request_timeout: float = Field(
        default=30.0,
        description="HTTP timeout in seconds for a single API call",
    )

    # Static pacing contract: minimum gap before each request.
    # 5,000 requests/hour upstream quota.
    congress_record_delay: float = Field(
        default=0.025,
        description="Seconds between per-record (detail) requests",
    )
    congress_page_delay: float = Field(
        default=0.2,
        description="Seconds between paginated listing requests",
    )
    congress_page_size: int = Field(
        default=250,
        description="Records per listing page (Congress.gov maximum is 250)",
    )

    # =========================================================================
    # Pipeline defaults
    # =========================================================================
    default_congress: int = Field(
        default=118,
        description="Congress number synced when none is given",
    )


settings = Settings()
