"""Configuration management for Concert Concierge."""

from __future__ import annotations

import logging
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from concierge.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Required
    ticketmaster_api_key: str = Field(default="", description="Ticketmaster Discovery API key")
    openai_api_key: str = Field(default="", description="API key for the agent service")

    # Event API
    ticketmaster_base_url: str = Field(
        default="https://app.ticketmaster.com/discovery/v2/",
        description="Base URL of the Discovery API",
    )
    default_page_size: int = Field(default=20, gt=0, description="Events returned per search")

    # Agent service
    openai_base_url: str = Field(default="", description="Override the agent service endpoint")
    agent_id: str = Field(default="", description="Existing agent to reuse")
    model_deployment_name: str = Field(default="gpt-4o", description="Model for new agents")

    # Timeouts and polling (seconds)
    http_timeout: float = Field(default=30.0, gt=0, description="Timeout for every outbound HTTP call")
    poll_interval: float = Field(default=0.5, gt=0, description="Delay between run status checks")
    poll_backoff: float = Field(default=1.0, ge=1.0, description="Multiplier applied to the delay after each check")
    poll_max_interval: float = Field(default=5.0, gt=0, description="Upper bound on the delay")
    poll_timeout: float = Field(default=300.0, gt=0, description="Maximum total wait for one run")

    # Console
    download_dir: str = Field(default="downloads", description="Where generated files are saved")
    log_level: str = Field(default="WARNING", description="Logging level")

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @property
    def missing_credentials(self) -> list[str]:
        """Names of required environment variables that are not set."""
        missing = []
        if not self.ticketmaster_api_key:
            missing.append("TICKETMASTER_API_KEY")
        if not self.openai_api_key:
            missing.append("OPENAI_API_KEY")
        return missing

    def require_credentials(self) -> None:
        """Fail fast when a required secret is absent.

        Raises:
            ConfigurationError: naming every missing variable and how to set it
        """
        missing = self.missing_credentials
        if missing:
            lines = [f"Missing required configuration: {', '.join(missing)}."]
            for name in missing:
                lines.append(f"  Set it in the environment or in .env, e.g. {name}=<value>")
            if "TICKETMASTER_API_KEY" in missing:
                lines.append(
                    "  A Ticketmaster key can be created at https://developer.ticketmaster.com/"
                )
            raise ConfigurationError("\n".join(lines))


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging(settings: Settings | None = None) -> None:
    """Configure application logging."""
    if settings is None:
        settings = get_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # Suppress verbose third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
