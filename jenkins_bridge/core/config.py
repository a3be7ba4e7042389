"""
Application configuration using pydantic-settings.
All environment variables are validated and typed.
"""

import os

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Jenkins
    jenkins_url: str
    jenkins_username: str
    jenkins_password: str | None = None
    jenkins_api_token: str | None = None
    jenkins_timeout: float = 30.0
    jenkins_crumb_issuer: bool = True

    # Queue polling after a trigger
    queue_poll_interval: float = 1.0
    queue_poll_timeout: float = 30.0

    # Inbound webhook
    webhook_host: str = "0.0.0.0"
    webhook_port: int = 3001
    webhook_secret: str | None = None
    webhook_auth_bypass: bool = False

    # Correlation store
    redis_url: str = "redis://localhost:6379"
    job_ttl_seconds: int = 3600
    redis_max_reconnect_attempts: int = 10

    # Outbound notification
    notify_webhook_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("notify_webhook_url", "slack_webhook_url"),
    )
    notify_timeout: float = 10.0

    # Runtime
    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("app_env", "node_env", "environment"),
    )
    log_level: str = "INFO"
    mcp_server_name: str = "jenkins-mcp-server"
    mcp_server_version: str = "1.0.0"

    @field_validator("jenkins_url")
    @classmethod
    def _normalize_jenkins_url(cls, value: str) -> str:
        cleaned = value.strip().rstrip("/")
        if not cleaned.startswith(("http://", "https://")):
            raise ValueError("Jenkins URL must be a valid HTTP or HTTPS URL")
        return cleaned

    @field_validator("jenkins_password", "jenkins_api_token", "webhook_secret", "notify_webhook_url", mode="before")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        cleaned = str(value).strip()
        return cleaned or None

    @field_validator("environment")
    @classmethod
    def _normalize_environment(cls, value: str) -> str:
        return value.strip().lower()

    @model_validator(mode="after")
    def _require_jenkins_secret(self):
        """Either a password or an API token must be configured."""
        if not self.jenkins_password and not self.jenkins_api_token:
            raise ValueError("Either JENKINS_PASSWORD or JENKINS_API_TOKEN must be provided")
        return self

    @property
    def jenkins_auth_secret(self) -> str:
        """API token when present, password otherwise."""
        return self.jenkins_api_token or self.jenkins_password or ""

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    model_config = {
        "env_file": os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), ".env"),
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }
