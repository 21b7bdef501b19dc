from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables or .env file."""

    app_name: str = Field(
        default="Link Preview API",
        description="Application name",
    )
    database_url: str = Field(
        default="sqlite+aiosqlite:///./link_preview.db",
        description="Database holding the persistent icon cache",
    )

    request_timeout_ms: int = Field(
        default=7000,
        ge=0,
        description="Outbound request timeout in milliseconds (0 disables it)",
    )
    max_concurrent_requests: int = Field(
        default=10,
        ge=1,
        description="Maximum number of simultaneous outbound requests",
    )
    metadata_cache_max_size: int = Field(
        default=1000,
        ge=1,
        description="Number of resolved URLs kept in memory",
    )
    icon_cache_expiry_days: int = Field(
        default=30,
        ge=1,
        description="Age after which a cached site icon is ignored",
    )
    icon_service_url: str = Field(
        default="https://www.google.com/s2/favicons",
        description="Fallback icon lookup service",
    )
    icon_size: int = Field(default=128, description="Requested icon size in pixels")
    user_agent: str = Field(
        default=(
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/114.0.0.0 Safari/537.36"
        ),
        description="User-Agent sent with every outbound request",
    )

    log_format: str = Field(default="text", description='"json" or "text"')
    log_level: str = Field(default="INFO", description="Root log level")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
