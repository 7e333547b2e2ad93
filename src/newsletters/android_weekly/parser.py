"""Parser for Android Weekly newsletter emails (HTML body)."""

import logging
import re

from bs4 import BeautifulSoup, Tag

from src.newsletters.base.models import RawContentItem
from src.newsletters.base.parser import collapse_whitespace, is_absolute_url, sender_matches

logger = logging.getLogger(__name__)

NEWSLETTER_NAME = "Android Weekly"
NEWSLETTER_ADDRESS = "contact@androidweekly.net"

SECTION_ARTICLES = "Articles & Tutorials"
SECTION_LIBRARIES = "Libraries & Code"
SECTION_VIDEOS = "Videos & Podcasts"

ISSUE_NUMBER_PATTERN = re.compile(r"Issue\s*#?\s*(\d+)", re.IGNORECASE)
ISSUE_DATE_PATTERN = re.compile(r"([A-Za-z]+ \d+[a-z]{2}, \d{4})")
BOLD_STYLE_PATTERN = re.compile(r"font-weight:\s*bold")
HTTP_LINK_PATTERN = re.compile(r"^https?://")

EXCLUDED_TITLE_FRAGMENTS = ("sponsored", "advertise", "senior android engineer")
MAX_ITEMS = 15
MIN_ARTICLE_TITLE_LENGTH = 10
MIN_LIBRARY_TITLE_LENGTH = 3
MIN_DESCRIPTION_LENGTH = 10
MAX_DESCRIPTION_LENGTH = 200
DEFAULT_DESCRIPTION = "Android development article"


class AndroidWeeklyParser:
    """Extracts articles and libraries from the HTML part of Android Weekly."""

    name = "android_weekly"

    def is_target(self, sender: str) -> bool:
        """Whether the sender is Android Weekly."""
        return sender_matches(sender, NEWSLETTER_NAME, NEWSLETTER_ADDRESS)

    def parse(self, raw_body: str) -> list[RawContentItem]:
        """Parse an Android Weekly email.

        :param raw_body: The raw mail, containing an ``<html>`` document.
        :returns: Up to fifteen items, articles first.
        """
        html_start = raw_body.find("<html>")
        if html_start == -1:
            logger.debug("No HTML document in Android Weekly mail")
            return []
        html = raw_body[html_start:]

        page_text = BeautifulSoup(html, "lxml").get_text(" ")
        issue_number, issue_date = _extract_issue_info(page_text)

        items: list[RawContentItem] = []

        articles_html = _extract_section(html, SECTION_ARTICLES, SECTION_LIBRARIES)
        if articles_html:
            items.extend(_parse_articles(articles_html, issue_number, issue_date))

        libraries_html = _extract_section(html, SECTION_LIBRARIES, SECTION_VIDEOS)
        if libraries_html:
            items.extend(_parse_libraries(libraries_html, issue_number, issue_date))

        logger.info(f"Extracted {min(len(items), MAX_ITEMS)} items from Android Weekly issue #{issue_number}")
        return items[:MAX_ITEMS]


def _extract_issue_info(page_text: str) -> tuple[str, str]:
    number_match = ISSUE_NUMBER_PATTERN.search(page_text)
    date_match = ISSUE_DATE_PATTERN.search(page_text)
    return (
        number_match.group(1) if number_match else "Unknown",
        date_match.group(1) if date_match else "Unknown date",
    )


def _extract_section(html: str, start_marker: str, end_marker: str) -> str:
    start = html.find(start_marker)
    if start == -1:
        return ""
    end = html.find(end_marker, start)
    return html[start:end] if end > start else html[start:]


def _anchor_title(anchor: Tag) -> str:
    """Return the anchor text without the trailing ``main-url`` span."""
    parts = [
        str(child) if isinstance(child, str) else child.get_text()
        for child in anchor.children
        if not (isinstance(child, Tag) and "main-url" in (child.get("class") or []))
    ]
    return collapse_whitespace("".join(parts))


def _is_excluded(title: str) -> bool:
    title_lower = title.lower()
    return any(fragment in title_lower for fragment in EXCLUDED_TITLE_FRAGMENTS)


def _extract_description(anchor: Tag) -> str:
    """Find the first meaningful text following an anchor.

    :param anchor: The article link.
    :returns: The description, or a generic fallback.
    """
    for text in anchor.find_all_next(string=True):
        if text.find_parent("a") is not None:
            continue
        description = collapse_whitespace(str(text))
        if len(description) > MIN_DESCRIPTION_LENGTH:
            return description[:MAX_DESCRIPTION_LENGTH]
    return DEFAULT_DESCRIPTION


def _make_item(anchor: Tag, title: str, section: str, issue_number: str, issue_date: str) -> RawContentItem:
    description = _extract_description(anchor)
    return RawContentItem(
        source_sender_id=NEWSLETTER_ADDRESS,
        title=title,
        body=f"[{section}] Issue #{issue_number} ({issue_date}): {description}",
        link=str(anchor["href"]).strip(),
        section=section,
    )


def _parse_articles(section_html: str, issue_number: str, issue_date: str) -> list[RawContentItem]:
    """Parse bold article links that carry a ``main-url`` span.

    :param section_html: HTML of the articles section.
    :param issue_number: Issue number for the item body.
    :param issue_date: Issue date for the item body.
    :returns: The article items.
    """
    soup = BeautifulSoup(section_html, "lxml")
    items: list[RawContentItem] = []

    for anchor in soup.find_all("a", href=HTTP_LINK_PATTERN, style=BOLD_STYLE_PATTERN):
        if anchor.find("span", class_="main-url") is None:
            continue
        link = str(anchor["href"]).strip()
        if not is_absolute_url(link):
            logger.debug(f"Skipping Android Weekly article with invalid link: {link!r}")
            continue

        title = _anchor_title(anchor)
        if _is_excluded(title) or len(title) < MIN_ARTICLE_TITLE_LENGTH:
            continue

        items.append(_make_item(anchor, title, SECTION_ARTICLES, issue_number, issue_date))

    return items


def _parse_libraries(section_html: str, issue_number: str, issue_date: str) -> list[RawContentItem]:
    soup = BeautifulSoup(section_html, "lxml")
    items: list[RawContentItem] = []
    seen_links: set[str] = set()

    for anchor in soup.find_all("a", href=HTTP_LINK_PATTERN):
        title = _anchor_title(anchor)
        link = str(anchor["href"]).strip()
        if not is_absolute_url(link):
            logger.debug(f"Skipping Android Weekly library with invalid link: {link!r}")
            continue
        if len(title) < MIN_LIBRARY_TITLE_LENGTH or _is_excluded(title) or link in seen_links:
            continue

        seen_links.add(link)
        items.append(_make_item(anchor, title, SECTION_LIBRARIES, issue_number, issue_date))

    return items
