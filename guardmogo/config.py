"""Configuration management for the GuardMoGo fraud-reporting service."""

from typing import List, Optional
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"  # Ignore extra environment variables
    )

    # Server configuration
    port: int = 8000
    host: str = "0.0.0.0"
    cors_origins: List[str] = ["*"]

    # Storage backend: "supabase" for the hosted store, "memory" for local runs
    store_backend: str = "supabase"

    # Supabase configuration
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    supabase_anon_key: Optional[str] = None

    # Application behaviour
    site_url: str = "http://localhost:8501"
    dashboard_top_numbers: int = 5
    rate_limit_requests: int = 100
    rate_limit_window_seconds: int = 60

    # Observability
    otel_enabled: bool = False
    otlp_endpoint: Optional[str] = None
    otel_console_export: bool = False

    # Logging configuration
    log_level: str = "INFO"

    @field_validator('store_backend')
    @classmethod
    def validate_store_backend(cls, v):
        v = v.lower()
        if v not in ("supabase", "memory"):
            raise ValueError('STORE_BACKEND must be either "supabase" or "memory"')
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError('LOG_LEVEL must be a standard logging level name')
        return v

    @field_validator('dashboard_top_numbers')
    @classmethod
    def validate_dashboard_top_numbers(cls, v):
        if v < 1:
            raise ValueError('DASHBOARD_TOP_NUMBERS must be at least 1')
        return v

    @property
    def auth_key(self) -> Optional[str]:
        """Key used for end-user auth flows."""
        return self.supabase_anon_key or self.supabase_key

    def missing_backend_settings(self) -> List[str]:
        """Names of the environment variables the configured backend still needs."""
        if self.store_backend == "memory":
            return []
        missing = []
        if not self.supabase_url:
            missing.append("SUPABASE_URL")
        if not self.supabase_key:
            missing.append("SUPABASE_KEY")
        return missing

    def missing_auth_settings(self) -> List[str]:
        """Names of the environment variables the identity provider still needs."""
        missing = []
        if not self.supabase_url:
            missing.append("SUPABASE_URL")
        if not self.auth_key:
            missing.append("SUPABASE_KEY")
        return missing


# Global settings instance
settings = Settings()


class ConfigurationError(Exception):
    """Raised when a required backend setting is missing."""

    def __init__(self, missing):
        self.missing = list(missing)
        super().__init__(
            f"Missing backend configuration: {', '.join(self.missing)}. "
            "Set these in the environment or the .env file."
        )
