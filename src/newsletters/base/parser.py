"""Source parser capability and helpers shared by newsletter parsers."""

import re
from typing import Protocol, runtime_checkable
from urllib.parse import urlparse

from src.newsletters.base.models import RawContentItem

WHITESPACE_PATTERN = re.compile(r"\s+")
BLANK_LINE_MARKERS = ("\r\n\r\n", "\n\n")


@runtime_checkable
class SourceParser(Protocol):
    """A parser for one newsletter source.

    Implementations recognise their sender and turn a raw mail body into
    content items. ``parse`` re-parses from scratch on every call and returns
    whatever it could extract from a malformed body, usually nothing.
    """

    name: str

    def is_target(self, sender: str) -> bool:
        """Whether this parser handles mail from the given sender."""
        ...

    def parse(self, raw_body: str) -> list[RawContentItem]:
        """Extract content items from a raw mail body."""
        ...


def sender_matches(sender: str, *needles: str) -> bool:
    """Case-insensitive check that any needle occurs in the sender string.

    :param sender: Sender display name and/or address.
    :param needles: Substrings identifying the source.
    :returns: True if any needle matches.
    """
    sender_lower = sender.lower()
    return any(needle.lower() in sender_lower for needle in needles)


def extract_mime_part(content: str, marker: str) -> str | None:
    """Return the body of the MIME part whose headers contain ``marker``.

    The body starts after the first blank line following the marker.

    :param content: The full raw mail.
    :param marker: A header line identifying the part.
    :returns: The part body, or None if the marker or body is missing.
    """
    start = content.find(marker)
    if start == -1:
        return None

    candidates = [
        (index, separator)
        for separator in BLANK_LINE_MARKERS
        if (index := content.find(separator, start)) != -1
    ]
    if not candidates:
        return None

    body_start, separator = min(candidates)
    return content[body_start + len(separator) :]


def is_absolute_url(link: str) -> bool:
    """Whether the link is an absolute http(s) URL with a host.

    :param link: The candidate link.
    :returns: True if the link can be stored on a content item.
    """
    try:
        parsed = urlparse(link.strip())
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def collapse_whitespace(text: str) -> str:
    """Collapse runs of whitespace into single spaces and strip.

    :param text: The text to clean.
    :returns: The collapsed text.
    """
    return WHITESPACE_PATTERN.sub(" ", text).strip()
