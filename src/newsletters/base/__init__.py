"""Base models and capabilities for newsletter parsing."""

from src.newsletters.base.models import CleanContentItem, RawContentItem
from src.newsletters.base.parser import (
    SourceParser,
    collapse_whitespace,
    extract_mime_part,
    sender_matches,
)

__all__ = [
    "CleanContentItem",
    "RawContentItem",
    "SourceParser",
    "collapse_whitespace",
    "extract_mime_part",
    "sender_matches",
]
