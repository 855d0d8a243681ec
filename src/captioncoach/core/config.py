"""Configuration management for Caption Coach.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the CAPTIONCOACH_
prefix, allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (CAPTIONCOACH_* prefix)
2. .env file in the project root
3. Default values defined in CaptionCoachConfig

The OpenAI key is the one exception to the prefix rule: it is also read from
the conventional ``OPENAI_API_KEY`` variable so the service works with the
same environment as the official SDK.

Example .env file:
    OPENAI_API_KEY=sk-...
    CAPTIONCOACH_OPENAI_MODEL=gpt-4o-mini
    CAPTIONCOACH_TEMPERATURE=0.8
    CAPTIONCOACH_SERVER_PORT=8000

Demo Mode
---------
When no API key is configured the service still answers every valid request,
serving the static fallback catalog instead of live generations.  Use
:attr:`CaptionCoachConfig.has_credentials` to check which mode is active.

Usage Example
-------------
    from captioncoach.core.config import config

    print(config.openai_model)
    print(config.has_credentials)
"""

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CaptionCoachConfig(BaseSettings):
    """Main configuration for Caption Coach.

    Attributes
    ----------
    Provider Settings:
        openai_api_key : str | None
            API key for the generation provider.  ``None`` enables demo mode.
        openai_model : str
            Chat completion model used for both captions and bios.
        temperature : float
            Sampling temperature passed to the provider.
        openai_base_url : str | None
            Optional override for OpenAI-compatible endpoints.
        request_timeout : float
            Transport timeout for a single provider call, in seconds.

    Server Settings:
        server_host : str
            Bind address for uvicorn.
        server_port : int
            Port for uvicorn (1024-65535).
        log_level : str
            Root logging level used by the CLI entry point.

    Notes
    -----
    Retry ceilings, item counts and input bounds are fixed in code and are
    deliberately not configurable.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CAPTIONCOACH_",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    # Provider settings
    openai_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("CAPTIONCOACH_OPENAI_API_KEY", "OPENAI_API_KEY"),
        description="OpenAI API key (leave unset to run in demo mode)",
    )
    openai_model: str = Field(
        default="gpt-4o-mini",
        description="Chat completion model for caption and bio generation",
    )
    temperature: float = Field(
        default=0.8,
        description="Sampling temperature",
        ge=0.0,
        le=2.0,
    )
    openai_base_url: str | None = Field(
        default=None,
        description="Custom base URL for OpenAI-compatible endpoints",
    )
    request_timeout: float = Field(
        default=60.0,
        description="Per-call transport timeout in seconds",
        gt=0.0,
    )

    # Server settings
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address (0.0.0.0 for local network)",
    )
    server_port: int = Field(
        default=8000,
        description="Server port",
        ge=1024,
        le=65535,
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level for the CLI entry point",
    )

    @property
    def has_credentials(self) -> bool:
        """Return ``True`` when a non-blank provider API key is configured."""
        return bool(self.openai_api_key and self.openai_api_key.strip())


# Global configuration instance
# Loaded once at import time from CAPTIONCOACH_* variables and the .env file.
config = CaptionCoachConfig()
