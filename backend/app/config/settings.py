from __future__ import annotations

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProviderSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="STOCKDESK_",
        env_file=("../.env", ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )
    api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("API_KEY", "STOCKDESK_API_KEY"),
    )
    upstream_base_url: str = "https://api.api-ninjas.com"
    request_timeout_seconds: float = 10.0


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="STOCKDESK_",
        env_file=("../.env", ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: str = Field(
        default="production",
        validation_alias=AliasChoices("APP_ENV", "STOCKDESK_ENVIRONMENT"),
    )
    log_level: str = "INFO"
    cors_allow_origin: str = "*"

    providers: ProviderSettings = Field(default_factory=ProviderSettings)

    @property
    def expose_error_details(self) -> bool:
        return self.environment.strip().lower() != "production"


settings = Settings()
