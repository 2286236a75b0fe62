"""
Analytics engine settings

Read from environment variables or a .env file, case-insensitively. Use
get_settings() to obtain the cached instance; tests clear the cache to pick up
environment changes.
"""
from functools import lru_cache
from typing import Optional

from pydantic import ConfigDict, Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings


def mask_secret(value) -> str:
    """Keep the first 4 characters of a secret, star out the rest"""
    raw = value.get_secret_value() if isinstance(value, SecretStr) else str(value)
    visible = raw[:4] if len(raw) > 4 else ""
    return visible + "*" * (len(raw) - len(visible))


class Settings(BaseSettings):
    """Analytics engine settings"""

    # Environment
    environment: str = Field(default="development")
    debug: bool = Field(default=False)
    testing: bool = Field(default=False)

    # Application
    app_name: str = "SiteAnalytics"
    app_version: str = "0.1.0"

    # Backend REST service
    api_base_url: str = Field(default="http://localhost:8080/api/v1")
    api_token: Optional[SecretStr] = Field(default=None, description="Bearer token for the backend")
    request_timeout: int = Field(default=30, description="HTTP timeout in seconds")
    business_vertical_id: Optional[str] = Field(default=None)

    # Dashboard grid
    grid_rows: int = Field(default=12, ge=1)
    grid_cols: int = Field(default=12, ge=1)

    # Report preview: "persist" stores a throwaway definition, "dry_run" posts the body to /reports/preview
    preview_mode: str = Field(default="persist")

    # Widget refresh
    enable_widget_refresh: bool = Field(default=True)
    min_refresh_interval: int = Field(default=5, ge=1, description="Lower bound for widget refresh in seconds")

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")  # json or text

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        allowed = ["development", "test", "staging", "production"]
        if v not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v

    @field_validator("preview_mode")
    @classmethod
    def validate_preview_mode(cls, v):
        allowed = ["persist", "dry_run"]
        if v not in allowed:
            raise ValueError(f"Preview mode must be one of: {allowed}")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        if v not in ("json", "text"):
            raise ValueError("Log format must be 'json' or 'text'")
        return v

    @model_validator(mode="after")
    def validate_production_settings(self):
        if self.environment == "production" and not self.api_token:
            raise ValueError("API token required in production environment")
        return self

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_api_token(self) -> Optional[str]:
        """Get the backend bearer token, if configured"""
        return self.api_token.get_secret_value() if self.api_token else None

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def model_dump(self, **kwargs):
        """Serialize with the API token masked"""
        data = super().model_dump(**kwargs)
        if data.get("api_token"):
            data["api_token"] = mask_secret(data["api_token"])
        return data


@lru_cache()
def get_settings() -> Settings:
    """Settings instance shared by every client and session"""
    return Settings()


settings = get_settings()
