"""Configuration management using pydantic-settings."""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Remote business API
    api_base_url: str = Field(
        default="https://localhost:7097/",
        description="Root URL of the remote business API",
    )
    empresa_id_fallback: str = Field(
        default="1",
        description="Tenant id used when neither session nor token carry one",
    )
    tenant_header_name: str = Field(
        default="tenant-id", description="Header carrying the tenant id"
    )
    agent_role_id: int = Field(
        default=1, description="Upstream profile id that identifies agents"
    )
    http_timeout_seconds: float = Field(
        default=30.0, description="Default timeout for outbound calls"
    )

    # Session / authentication
    session_secret_key: str = Field(
        default="change-me-in-production-please-32chars",
        description="Secret used to sign the session cookie",
    )
    session_cookie_name: str = Field(default="whatsappclient.session")
    session_max_age_seconds: int = Field(
        default=2 * 60 * 60, description="Sliding session lifetime"
    )
    token_cookie_name: str = Field(
        default="JWT_TOKEN", description="Cookie checked as last token source"
    )
    token_expiry_skew_seconds: int = Field(
        default=60, description="Safety margin applied to the token exp claim"
    )

    # Chat relay
    auto_close_after_hours: float = Field(
        default=23.0, description="Horizon of the advisory auto-close timer"
    )
    closing_notification_text: str = Field(
        default=(
            "Tu ticket ha sido cerrado. Si necesitas más ayuda, por favor crea "
            "un nuevo ticket respondiendo a este chat."
        ),
        description="Message sent to the contact when a conversation is closed",
    )

    # Server settings
    server_host: str = Field(default="0.0.0.0", description="Server host")
    server_port: int = Field(default=8000, description="Server port")

    # Logging and Observability
    log_level: str = Field(
        default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    enable_monitoring: bool = Field(
        default=False,
        description="Enable Prometheus metrics collection (default: False)",
    )

    @field_validator("api_base_url")
    @classmethod
    def _normalize_base_url(cls, value: str) -> str:
        return value.rstrip("/") + "/"

    @property
    def auto_close_after_seconds(self) -> float:
        """Auto-close horizon in seconds."""
        return self.auto_close_after_hours * 3600


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
