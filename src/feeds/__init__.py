"""RSS/Atom feed fetching."""

from src.feeds.config import FeedFetchConfig, get_feed_settings
from src.feeds.exceptions import FetchError
from src.feeds.fetcher import FeedFetcher
from src.feeds.models import Feed, FeedItem

__all__ = [
    "Feed",
    "FeedFetchConfig",
    "FeedFetcher",
    "FeedItem",
    "FetchError",
    "get_feed_settings",
]
