"""Custom exceptions for feed fetching."""

from src.enums import FetchErrorKind


class FetchError(Exception):
    """Raised when a feed cannot be fetched or parsed.

    :param kind: Failure category.
    :param url: The feed URL.
    :param message: Human-readable detail.
    """

    def __init__(self, kind: FetchErrorKind, url: str, message: str) -> None:
        """Initialise FetchError."""
        self.kind = kind
        self.url = url
        self.message = message
        super().__init__(f"{kind} error fetching {url}: {message}")
