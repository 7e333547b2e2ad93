"""RSS/Atom feed fetcher with bounded retries."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime
from time import sleep
from typing import Any
from urllib.parse import urlparse

import feedparser
import requests
from dateutil import parser as date_parser

from src.enums import FetchErrorKind
from src.feeds.config import FeedFetchConfig, get_feed_settings
from src.feeds.exceptions import FetchError
from src.feeds.models import Feed, FeedItem

logger = logging.getLogger(__name__)

# Lower bound for a server-side failure worth retrying
SERVER_ERROR_STATUS = 500
CLIENT_ERROR_STATUS = 400

# Failures that may succeed on another attempt
TRANSIENT_REQUEST_ERRORS = (
    requests.ConnectionError,
    requests.Timeout,
    requests.exceptions.ChunkedEncodingError,
    requests.exceptions.ContentDecodingError,
)


class FeedFetcher:
    """Fetches and parses feeds over HTTP.

    Connection errors, timeouts, broken transfers and 5xx responses are
    retried with a fixed delay. 4xx responses, other request errors such as
    redirect loops, and malformed documents fail immediately. A feed is either
    returned whole or not at all.
    """

    def __init__(
        self,
        config: FeedFetchConfig | None = None,
        *,
        session: requests.Session | None = None,
    ) -> None:
        """Initialise the fetcher.

        :param config: Fetch settings. Defaults to the environment settings.
        :param session: HTTP session to use. A new one is created if omitted.
        """
        self.config = config or get_feed_settings()
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": self.config.user_agent})

    def fetch(self, feed_url: str) -> Feed:
        """Fetch and parse a single feed.

        :param feed_url: Absolute http(s) URL of the feed.
        :returns: The parsed feed.
        :raises FetchError: If the feed cannot be retrieved or parsed.
        """
        if urlparse(feed_url).scheme not in ("http", "https"):
            raise FetchError(FetchErrorKind.CLIENT, feed_url, "URL must use http or https")

        content = self._download(feed_url)
        feed = _parse_feed(feed_url, content)
        logger.info(f"Fetched {len(feed.items)} items from {feed_url}")
        return feed

    def fetch_many(
        self, feed_urls: list[str], max_workers: int | None = None
    ) -> dict[str, Feed | FetchError]:
        """Fetch several feeds in parallel.

        :param feed_urls: Feed URLs to fetch.
        :param max_workers: Thread pool size. Defaults to the configured value.
        :returns: Mapping of URL to its feed or the error it failed with, in input order.
        """
        if not feed_urls:
            return {}

        workers = min(max_workers or self.config.max_workers, len(feed_urls))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            outcomes = list(executor.map(self._fetch_outcome, feed_urls))

        failed = sum(1 for outcome in outcomes if isinstance(outcome, FetchError))
        logger.info(f"Fetched {len(feed_urls) - failed}/{len(feed_urls)} feeds")
        return dict(zip(feed_urls, outcomes, strict=True))

    def _fetch_outcome(self, feed_url: str) -> Feed | FetchError:
        try:
            return self.fetch(feed_url)
        except FetchError as e:
            logger.warning(f"Feed fetch failed: {e}")
            return e

    def _download(self, feed_url: str) -> bytes:
        """Download the feed body, retrying transient failures.

        :param feed_url: The feed URL.
        :returns: The raw response body.
        :raises FetchError: CLIENT for 4xx responses and non-transient request errors,
            NETWORK once retries are exhausted.
        """
        attempts = self.config.max_retries + 1
        last_error = ""

        for attempt in range(1, attempts + 1):
            try:
                response = self.session.get(feed_url, timeout=self.config.timeout)
                content = response.content
            except TRANSIENT_REQUEST_ERRORS as e:
                last_error = str(e)
                logger.warning(f"Attempt {attempt}/{attempts} for {feed_url} failed: {e}")
            except requests.RequestException as e:
                raise FetchError(FetchErrorKind.CLIENT, feed_url, f"Request failed: {e}") from e
            else:
                status = response.status_code
                if status < CLIENT_ERROR_STATUS:
                    return content
                if status < SERVER_ERROR_STATUS:
                    raise FetchError(FetchErrorKind.CLIENT, feed_url, f"HTTP {status}")
                last_error = f"HTTP {status}"
                logger.warning(f"Attempt {attempt}/{attempts} for {feed_url} returned HTTP {status}")

            if attempt < attempts:
                sleep(self.config.retry_delay_ms / 1000)

        raise FetchError(
            FetchErrorKind.NETWORK,
            feed_url,
            f"Failed after {attempts} attempts: {last_error}",
        )


def _parse_feed(feed_url: str, content: bytes) -> Feed:
    """Parse a feed document.

    :param feed_url: The feed URL, for error reporting.
    :param content: The raw document.
    :returns: The parsed feed.
    :raises FetchError: PARSE if the document is not a well-formed feed.
    """
    parsed = feedparser.parse(content)

    bozo_exception = parsed.get("bozo_exception")
    if parsed.get("bozo") and not isinstance(bozo_exception, feedparser.CharacterEncodingOverride):
        raise FetchError(FetchErrorKind.PARSE, feed_url, f"Malformed feed: {bozo_exception}")
    if not parsed.get("version"):
        raise FetchError(FetchErrorKind.PARSE, feed_url, "Document is not an RSS or Atom feed")

    channel = parsed.get("feed", {})
    return Feed(
        title=channel.get("title", ""),
        description=channel.get("subtitle") or channel.get("description"),
        link=channel.get("link", ""),
        language=channel.get("language"),
        published_at=_parse_date(channel.get("published") or channel.get("updated")),
        items=[_parse_entry(entry) for entry in parsed.get("entries", [])],
    )


def _parse_entry(entry: Any) -> FeedItem:
    content_blocks = entry.get("content") or []
    return FeedItem(
        title=entry.get("title", ""),
        description=entry.get("summary"),
        link=entry.get("link", ""),
        published_at=_parse_date(entry.get("published") or entry.get("updated")),
        author=entry.get("author"),
        categories=[tag.get("term") for tag in entry.get("tags", []) if tag.get("term")],
        content=content_blocks[0].get("value") if content_blocks else None,
    )


def _parse_date(value: str | None) -> datetime | None:
    """Parse a feed date string, assuming UTC when no zone is given.

    :param value: The raw date string.
    :returns: A timezone-aware datetime, or None if absent or unparseable.
    """
    if not value:
        return None
    try:
        parsed = date_parser.parse(value)
    except (ValueError, OverflowError):
        logger.debug(f"Unparseable feed date: {value!r}")
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
