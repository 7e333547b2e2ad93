"""Configuration for feed fetching using pydantic-settings."""

from functools import cached_property, lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.paths import ENV_FILE


class FeedFetchConfig(BaseSettings):
    """Configuration for fetching RSS/Atom feeds.

    All settings are loaded from environment variables with the RSS_ prefix.

    :param connect_timeout_ms: Connection timeout in milliseconds.
    :param read_timeout_ms: Read timeout in milliseconds.
    :param max_retries: Retries after the first attempt for transient failures.
    :param retry_delay_ms: Fixed delay between attempts in milliseconds.
    :param user_agent: User-Agent header sent with every request.
    :param feeds: Comma-separated list of feed URLs to fetch.
    :param max_workers: Thread pool size for parallel fetches.
    """

    model_config = SettingsConfigDict(
        env_prefix="RSS_",
        env_file=ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    connect_timeout_ms: int = Field(default=15_000, ge=1, description="Connect timeout in ms")
    read_timeout_ms: int = Field(default=15_000, ge=1, description="Read timeout in ms")
    max_retries: int = Field(default=3, ge=0, le=10, description="Retries for transient failures")
    retry_delay_ms: int = Field(default=1_000, ge=0, description="Delay between attempts in ms")
    user_agent: str = Field(
        default="Mozilla/5.0 (compatible; RSS Reader)",
        description="User-Agent header",
    )
    feeds: str = Field(default="", description="Comma-separated list of feed URLs")
    max_workers: int = Field(default=4, ge=1, le=32, description="Parallel fetch workers")

    @cached_property
    def feed_urls(self) -> list[str]:
        """Get the configured feed URLs in order.

        :returns: List of non-empty feed URLs.
        """
        return [url.strip() for url in self.feeds.split(",") if url.strip()]

    @property
    def timeout(self) -> tuple[float, float]:
        """Connect and read timeouts in seconds, as ``requests`` expects."""
        return self.connect_timeout_ms / 1000, self.read_timeout_ms / 1000


@lru_cache
def get_feed_settings() -> FeedFetchConfig:
    """Get cached feed settings.

    :returns: Configured FeedFetchConfig instance.
    """
    return FeedFetchConfig()
