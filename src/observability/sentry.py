"""Sentry error reporting for pipeline runs."""

import logging

import sentry_sdk
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sentry_sdk.integrations.logging import LoggingIntegration

from src.paths import ENV_FILE

logger = logging.getLogger(__name__)

SERVICE_NAME = "newsletter-analysis"


class SentryConfig(BaseSettings):
    """Sentry settings, loaded from SENTRY_* variables and APP_ENV.

    :param dsn: Project DSN. Reporting is disabled when empty.
    :param environment: Deployment environment attached to every event.
    :param release: Optional release identifier.
    :param traces_sample_rate: Fraction of runs traced for performance.
    """

    model_config = SettingsConfigDict(
        env_prefix="SENTRY_",
        env_file=ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    dsn: str = Field(default="", description="Sentry DSN")
    environment: str = Field(
        default="local",
        validation_alias=AliasChoices("APP_ENV", "SENTRY_ENVIRONMENT"),
        description="Deployment environment",
    )
    release: str | None = Field(default=None, description="Release identifier")
    traces_sample_rate: float = Field(default=0.0, ge=0.0, le=1.0, description="Trace sampling")


def init_sentry(config: SentryConfig | None = None) -> bool:
    """Initialise Sentry error reporting if a DSN is configured.

    ERROR logs become events and INFO logs are kept as breadcrumbs, so a
    failed batch or feed arrives with the run's recent history attached.

    :param config: Sentry settings. Defaults to the environment.
    :returns: True if Sentry was initialised, False if no DSN is configured.
    """
    config = config or SentryConfig()
    if not config.dsn:
        logger.debug("SENTRY_DSN not set, error reporting disabled")
        return False

    logging_integration = LoggingIntegration(
        level=logging.INFO,  # breadcrumbs
        event_level=logging.ERROR,  # events
    )

    sentry_sdk.init(
        dsn=config.dsn,
        integrations=[logging_integration],
        environment=config.environment,
        release=config.release,
        send_default_pii=False,
        traces_sample_rate=config.traces_sample_rate,
    )
    sentry_sdk.set_tag("service", SERVICE_NAME)
    return True
