"""Pydantic models for parsed RSS/Atom feeds."""

from datetime import datetime
from urllib.parse import urlparse

from bs4 import BeautifulSoup
from pydantic import BaseModel, ConfigDict, Field

from src.newsletters.base.models import RawContentItem
from src.newsletters.base.parser import collapse_whitespace, is_absolute_url


def _clean_html(text: str) -> str:
    """Strip markup from a feed field and collapse whitespace."""
    if "<" not in text:
        return collapse_whitespace(text)
    return collapse_whitespace(BeautifulSoup(text, "lxml").get_text(" "))


def _absolute_link(link: str) -> str:
    return link.strip() if is_absolute_url(link) else ""


class FeedItem(BaseModel):
    """A single entry of a feed."""

    model_config = ConfigDict(frozen=True)

    title: str = ""
    description: str | None = None
    link: str = ""
    published_at: datetime | None = None
    author: str | None = None
    categories: list[str] = Field(default_factory=list)
    content: str | None = None

    def to_content_text(self) -> str:
        """Render the item as plain text for analysis.

        Description and content are stripped of HTML, followed by the author
        and categories when present.

        :returns: The plain-text rendering.
        """
        parts: list[str] = []
        for field in (self.description, self.content):
            if field:
                cleaned = _clean_html(field)
                if cleaned:
                    parts.append(cleaned)

        trailer: list[str] = []
        if self.author:
            trailer.append(f"Author: {self.author}")
        if self.categories:
            trailer.append(f"Categories: {', '.join(self.categories)}")
        if trailer:
            parts.append("\n".join(trailer))

        return "\n\n".join(parts).strip()

    def to_raw_item(self, feed_url: str) -> RawContentItem:
        """Convert the item into a content item for sanitising.

        :param feed_url: URL of the feed the item came from.
        :returns: The content item, identified by the item's (or feed's) domain.
        """
        link = _absolute_link(self.link)
        domain = urlparse(link or feed_url).netloc or feed_url
        return RawContentItem(
            source_sender_id=f"rss@{domain}",
            title=self.title.strip(),
            body=self.to_content_text(),
            link=link,
        )


class Feed(BaseModel):
    """A fully parsed feed document."""

    model_config = ConfigDict(frozen=True)

    title: str = ""
    description: str | None = None
    link: str = ""
    language: str | None = None
    published_at: datetime | None = None
    items: list[FeedItem] = Field(default_factory=list)
