"""Configuration management for the GitHub Project Exporter.

Loads the access token, scopes and runtime settings from environment variables
(or a .env file) using Pydantic. Command-line flags override these values.

Usage:
    from project_exporter.config import settings

    print(settings.github_organizations)  # ['acme', 'globex']
    print(settings.github_cache_ttl)
"""

from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class ConfigurationError(ValueError):
    """Invalid exporter configuration.

    Raised at construction time (missing token, no scopes, malformed
    repository slug, negative TTL). The exporter must not start serving
    scrapes when this is raised.
    """


def split_comma_separated(value: Any) -> Any:
    """Split 'a,b , c' into ['a', 'b', 'c'], dropping empty items."""
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


class Settings(BaseSettings):
    """Exporter configuration from environment variables.

    Loads from .env file automatically. Validates on instantiation.
    The token and scopes are optional here so that commands like `version`
    work without them; `Exporter` enforces their presence.

    Attributes:
        github_token: GitHub access token (sent as a bearer credential)
        github_organizations: Organization names to export
        github_repositories: Repository slugs (owner/name) to export
        github_cache_ttl: Cache TTL of GitHub API responses in seconds
        github_api_url: API base URL (override for GitHub Enterprise)
        github_rate_limit: Maximum upstream requests per second
        github_request_timeout: Timeout per upstream request in seconds
        scrape_timeout: Upper bound for one whole scrape in seconds
        metrics_namespace: Prefix for exposed metric names
        web_listen_address: host:port to listen on
        web_telemetry_path: Path under which metrics are exposed
        log_level: Logging verbosity (DEBUG, INFO, WARNING, ERROR)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # GitHub
    github_token: str = Field(default="", description="GitHub access token")
    github_organizations: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        description="Comma-separated organization names",
    )
    github_repositories: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        description="Comma-separated repository slugs (owner/name)",
    )
    github_cache_ttl: int = Field(
        default=60,
        ge=0,
        description="Cache TTL of GitHub API responses (seconds, 0 disables caching)",
    )
    github_api_url: str = Field(
        default="https://api.github.com",
        description="GitHub REST API base URL",
    )
    github_rate_limit: int = Field(default=10, ge=1, description="GitHub requests/second")
    github_request_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Timeout per GitHub request (seconds)",
    )
    scrape_timeout: float = Field(
        default=120.0,
        gt=0,
        description="Upper bound for a single scrape (seconds)",
    )

    # Exposition
    metrics_namespace: str = Field(default="github", description="Metric name prefix")
    web_listen_address: str = Field(
        default="0.0.0.0:9410",
        description="Address to listen on for web interface and telemetry",
    )
    web_telemetry_path: str = Field(
        default="/metrics",
        description="Path under which to expose metrics",
    )

    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("github_organizations", "github_repositories", mode="before")
    @classmethod
    def split_scopes(cls, v: Any) -> Any:
        """Accept comma-separated strings for scope lists."""
        return split_comma_separated(v)

    @field_validator("web_telemetry_path")
    @classmethod
    def validate_telemetry_path(cls, v: str) -> str:
        """Ensure telemetry path is absolute."""
        if not v.startswith("/"):
            raise ValueError(f"web_telemetry_path must start with '/', got '{v}'")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid:
            raise ValueError(f"log_level must be one of {valid}, got {v}")
        return v_upper


# Global settings instance: loaded once at import
settings = Settings()
