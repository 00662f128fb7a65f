"""
Configuration system for the kyhttp client library.

Pydantic models with sensible defaults, composed into a settings object
that can also be populated from ``KYHTTP_``-prefixed environment variables.
"""

from typing import Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RetryConfig(BaseModel):
    """Retry behaviour shared by single and batch execution."""

    default_retries: int = Field(
        default=0,
        ge=0,
        description="Retry budget for requests that never call retry()",
    )
    min_wait_seconds: float = Field(
        default=0.0, ge=0.0, description="Minimum wait time between attempts"
    )
    max_wait_seconds: float = Field(
        default=0.0, ge=0.0, description="Maximum wait time between attempts"
    )
    multiplier: float = Field(default=2.0, description="Exponential backoff multiplier")
    jitter: bool = Field(default=False, description="Add random jitter to wait times")

    @property
    def backoff_enabled(self) -> bool:
        return self.max_wait_seconds > 0


class BatchConfig(BaseModel):
    """Batch execution settings."""

    poll_interval: float = Field(
        default=0.1,
        gt=0.0,
        description="Seconds to block between polls of an in-flight round",
    )
    max_concurrency: int = Field(
        default=50, ge=1, description="Maximum simultaneous transport calls"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
        pattern="^(DEBUG|INFO|WARNING|ERROR)$",
    )
    format: str = Field(
        default="console",
        description="Log format (json or console)",
        pattern="^(json|console)$",
    )
    configure: bool = Field(
        default=False,
        description="Install the structlog configuration when the client starts",
    )


class ClientConfig(BaseSettings):
    """
    Complete configuration for KyClient.

    Every field can be set in code or through the environment, nested
    models using ``__`` as delimiter::

        KYHTTP_BASE_URL=https://httpbin.org
        KYHTTP_RETRY__DEFAULT_RETRIES=2
        KYHTTP_BATCH__POLL_INTERVAL=0.05

    No request timeout is applied unless ``timeout`` is set; a hung call
    otherwise blocks until the server or the network gives up.

    Attributes:
        base_url: Prefix for relative request URLs (empty for absolute URLs only)
        follow_redirects: Whether to follow HTTP redirects
        max_redirects: Redirect hops before the call fails with TransportError
        timeout: Optional per-call timeout in seconds
        user_agent: Custom User-Agent header
        retry: Retry behaviour
        batch: Batch execution settings
        logging: Logging configuration
    """

    base_url: str = Field(default="", description="Base URL for relative requests")
    follow_redirects: bool = Field(default=True, description="Follow HTTP redirects")
    max_redirects: int = Field(default=3, ge=0, description="Maximum redirect hops")
    timeout: Optional[float] = Field(
        default=None, gt=0.0, description="Per-call timeout in seconds (None = wait forever)"
    )
    user_agent: Optional[str] = Field(
        default=None, description="Custom User-Agent header"
    )

    retry: RetryConfig = Field(default_factory=RetryConfig)
    batch: BatchConfig = Field(default_factory=BatchConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = SettingsConfigDict(
        env_prefix="KYHTTP_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="forbid",
    )

    def to_httpx_timeout(self) -> httpx.Timeout:
        """Convert to httpx.Timeout object."""
        return httpx.Timeout(self.timeout)


def get_config() -> ClientConfig:
    """Get a client configuration populated from the environment."""
    return ClientConfig()
