"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="FitFeed")
    app_env: str = Field(default="development")
    debug: bool = Field(default=False)

    # Supabase
    supabase_url: str = Field(
        default="",
        description="Supabase project URL (e.g. https://xyzabc.supabase.co)",
    )
    supabase_anon_key: str = Field(
        default="",
        description="Supabase anonymous/public API key",
    )
    gateway_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout applied to every gateway request",
    )

    # Content
    post_max_length: int = Field(default=180)
    avatars_bucket: str = Field(default="avatars")
    avatar_jpeg_quality: int = Field(default=94, ge=1, le=95)
    placeholder_avatar_base_url: str = Field(
        default="https://api.dicebear.com/6.x/initials/svg",
        description="Initials avatar service used when a profile has no avatar",
    )

    # Logging
    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=False)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def supabase_rest_url(self) -> str:
        """PostgREST endpoint for table access."""
        if self.supabase_url:
            return f"{self.supabase_url.rstrip('/')}/rest/v1"
        return ""

    @computed_field  # type: ignore[prop-decorator]
    @property
    def supabase_storage_url(self) -> str:
        """Storage API endpoint for blob access."""
        if self.supabase_url:
            return f"{self.supabase_url.rstrip('/')}/storage/v1"
        return ""

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
