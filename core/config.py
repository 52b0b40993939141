"""Application configuration via environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-based configuration. Validated at startup."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    APP_NAME: str = Field(default="accessibility-hub", description="Service name for logs and health payloads")
    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development", description="Deployment environment"
    )

    HOST: str = Field(default="0.0.0.0", description="Bind address; 0.0.0.0 for containers")
    PORT: int = Field(default=3000, ge=1, le=65535)

    CORS_ORIGINS: str = Field(default="*", description="Comma-separated origins or *")
    API_KEY_HEADER: str = Field(default="x-api-key", min_length=1, description="Header carrying the API key")

    LOG_LEVEL: str = Field(default="INFO")
    LOG_JSON: bool = Field(default=False, description="JSON logs for cloud aggregators")
    SLOW_REQUEST_MS: int = Field(default=500, ge=0)

    STORE_BACKEND: Literal["memory", "supabase"] = Field(
        default="memory", description="Persistence backend for credentials, sites and configs"
    )
    SUPABASE_URL: str | None = Field(default=None)
    SUPABASE_SERVICE_ROLE_KEY: str | None = Field(default=None)
    SUPABASE_ANON_KEY: str | None = Field(default=None)
    SUPABASE_CONFIG_SCHEMA: str = Field(default="accessibility", description="Schema with sites and site_configs")
    SUPABASE_CREDENTIALS_SCHEMA: str = Field(default="public", description="Schema with api_keys")

    @field_validator("SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY", "SUPABASE_ANON_KEY", mode="before")
    @classmethod
    def blank_as_none(cls, v: str | None) -> str | None:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def cors_origins_list(self) -> list[str]:
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def supabase_key(self) -> str | None:
        """Service-role key when configured, anon key otherwise."""
        return self.SUPABASE_SERVICE_ROLE_KEY or self.SUPABASE_ANON_KEY


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance. Use for DI; avoids re-reading env on every request."""
    return Settings()
