"""
Configuration management for the review API.

This module uses Pydantic Settings to load configuration from environment variables
(and an optional `.env` file in the working directory).
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ApiSettings(BaseSettings):
    """
    Central configuration for the review API.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # === Server ===
    port: int = Field(
        default=3000,
        alias="PORT",
        description="Port the HTTP server listens on",
    )

    host: str = Field(
        default="0.0.0.0",
        alias="HOST",
        description="Interface the HTTP server binds to",
    )

    # === Store ===
    store_url: str = Field(
        default="",
        alias="SUPABASE_URL",
        description="Base URL of the hosted store (the REST API lives under /rest/v1)",
    )

    store_key: str = Field(
        default="",
        alias="SUPABASE_ANON_KEY",
        description="Access key sent as apikey and bearer token",
    )

    store_schema: str | None = Field(
        default=None,
        alias="STORE_SCHEMA",
        description="Database schema to target; the store default is used when unset",
    )

    store_timeout_seconds: float | None = Field(
        default=None,
        alias="STORE_TIMEOUT_SECONDS",
        gt=0,
        description="Timeout for store calls. None waits indefinitely",
    )

    # === Logging ===
    log_level: str = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    # === Tracing ===
    enable_tracing: bool = Field(
        default=False,
        alias="ENABLE_TRACING",
        description="If true, emit OpenTelemetry spans for requests and store calls",
    )

    otel_exporter_endpoint: str = Field(
        default="http://127.0.0.1:4317",
        alias="OTEL_EXPORTER_OTLP_ENDPOINT",
        description="OTLP gRPC endpoint for exporting traces",
    )

    otel_exporter_insecure: bool = Field(
        default=True,
        alias="OTEL_EXPORTER_OTLP_INSECURE",
        description="Use insecure (non-TLS) connection for OTLP exporter",
    )

    @property
    def rest_url(self) -> str:
        """Root of the store's table-oriented REST interface."""
        return f"{self.store_url}/rest/v1"

    @property
    def store_configured(self) -> bool:
        return bool(self.store_url and self.store_key)

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Ensure port is a valid TCP port."""
        if not 1 <= v <= 65535:
            raise ValueError(f"PORT must be between 1 and 65535 (got {v})")
        return v

    @field_validator("store_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log_level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels} (got {v})")
        return v_upper


# Global settings instance
_settings: ApiSettings | None = None


def get_settings() -> ApiSettings:
    """
    Get the global ApiSettings instance.

    Settings are loaded exactly once and reused throughout the application.

    Returns:
        ApiSettings: The global configuration instance
    """
    global _settings
    if _settings is None:
        _settings = ApiSettings()
    return _settings
