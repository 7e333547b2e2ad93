"""Command-line run of the pipeline over the configured feeds."""

import json
import logging
import sys

from dotenv import load_dotenv

from src.analysis.client import RateLimitedAnalysisClient
from src.feeds.config import get_feed_settings
from src.observability.sentry import init_sentry
from src.paths import ENV_FILE
from src.pipeline.service import ContentPipeline
from src.utils.logging import configure_logging

logger = logging.getLogger(__name__)


def main() -> int:
    """Fetch the configured RSS feeds and analyse their items.

    Results are written to stdout as JSON keyed by content ID.

    :returns: Process exit code.
    """
    load_dotenv(ENV_FILE)
    configure_logging(stream=sys.stderr)
    if init_sentry():
        logger.info("Sentry error reporting enabled")

    feed_urls = get_feed_settings().feed_urls
    if not feed_urls:
        logger.error("No feeds configured, set RSS_FEEDS to a comma-separated list of URLs")
        return 1

    client = RateLimitedAnalysisClient()
    result = ContentPipeline(client).run(feed_urls=feed_urls)

    for model_name, (requests_today, rpd) in client.quota_usage().items():
        logger.info(f"Model {model_name} usage today: {requests_today}/{rpd}")

    output = {
        content_id: item.model_dump(exclude={"content_id"})
        for content_id, item in result.analysis.results.items()
    }
    json.dump(output, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")

    return 1 if result.errors and not result.analysis.results else 0
