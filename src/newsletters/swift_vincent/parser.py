"""Parser for Swift with Vincent emails, one essay per issue."""

import logging
import re

from bs4 import BeautifulSoup

from src.newsletters.base.models import RawContentItem
from src.newsletters.base.parser import is_absolute_url, sender_matches
from src.newsletters.sanitizer import decode_quoted_printable

logger = logging.getLogger(__name__)

NEWSLETTER_NAME = "Swift with Vincent"
NEWSLETTER_ADDRESS = "swiftwithvincent.com"
DEFAULT_LINK = "https://www.swiftwithvincent.com"
SECTION_NAME = "Swift with Vincent"

HTML_PART_PATTERN = re.compile(r"^Content-Type:\s*text/html", re.IGNORECASE | re.MULTILINE)
BLANK_LINE_PATTERN = re.compile(r"\r?\n\r?\n")
HTML_START_PATTERN = re.compile(r"<!doctype html>|<html", re.IGNORECASE)

TITLE_SELECTOR = "td.section-text-area h2"
TEXT_SECTION_SELECTOR = "table.text-section"
EXCLUDED_CONTENT = (
    "unsubscribe",
    "e-mail sent by vincent pradeilles",
    "if you've enjoyed it, feel free to forward it",
    "i wish you an amazing week",
    "advertisement",
    "sponsors like",
    "newsletter #",
    "that's all for this email",
    "thanks for reading",
)
EXCLUDED_LINK_TEXTS = ("unsubscribe", "get it now")
MIN_SECTION_LENGTH = 20
MIN_PARAGRAPH_LENGTH = 11


class SwiftVincentParser:
    """Extracts the issue's essay from the HTML part of Swift with Vincent."""

    name = "swift_vincent"

    def is_target(self, sender: str) -> bool:
        """Whether the sender is Swift with Vincent."""
        return sender_matches(sender, NEWSLETTER_NAME, NEWSLETTER_ADDRESS)

    def parse(self, raw_body: str) -> list[RawContentItem]:
        """Parse a Swift with Vincent email.

        Each issue is a single essay, so at most one item is returned. The
        text comes from the newsletter's text sections, falling back to every
        paragraph and then to the whole body.

        :param raw_body: The raw mail.
        :returns: The issue as a single item, or nothing if the mail is empty.
        """
        html = decode_quoted_printable(_extract_html(raw_body)).strip()
        if not html:
            logger.debug("Empty Swift with Vincent mail")
            return []

        soup = BeautifulSoup(html, "lxml")
        title_element = soup.select_one(TITLE_SELECTOR)
        title = title_element.get_text(" ", strip=True) if title_element else ""

        paragraphs = [
            text
            for section in soup.select(TEXT_SECTION_SELECTOR)
            if _is_content(section.get_text(" ", strip=True), MIN_SECTION_LENGTH)
            for text in (p.get_text(" ", strip=True) for p in section.find_all("p"))
            if _is_content(text, MIN_PARAGRAPH_LENGTH)
        ]
        if not paragraphs:
            paragraphs = [
                text
                for text in (p.get_text(" ", strip=True) for p in soup.find_all("p"))
                if _is_content(text, MIN_PARAGRAPH_LENGTH)
            ]
        body = "\n\n".join(paragraphs) or soup.get_text(" ", strip=True)
        if not title and not body:
            return []

        logger.info(f"Extracted Swift with Vincent issue: {title or 'untitled'}")
        return [
            RawContentItem(
                source_sender_id=NEWSLETTER_ADDRESS,
                title=title,
                body=body,
                link=_find_main_link(soup),
                section=SECTION_NAME,
            )
        ]


def _extract_html(raw_body: str) -> str:
    """Locate the HTML document in the mail.

    :param raw_body: The raw mail.
    :returns: The HTML part body, the text from the first HTML tag, or the
        whole mail when neither is found.
    """
    part_match = HTML_PART_PATTERN.search(raw_body)
    if part_match:
        blank_line = BLANK_LINE_PATTERN.search(raw_body, part_match.end())
        if blank_line:
            # The part ends at the next MIME boundary line
            return raw_body[blank_line.end() :].split("\n--", 1)[0]

    start_match = HTML_START_PATTERN.search(raw_body)
    if start_match:
        return raw_body[start_match.start() :]
    return raw_body


def _is_content(text: str, min_length: int) -> bool:
    lowered = text.lower()
    return len(text) >= min_length and not any(excluded in lowered for excluded in EXCLUDED_CONTENT)


def _find_main_link(soup: BeautifulSoup) -> str:
    """Pick the first link that points at the essay rather than mail plumbing.

    :param soup: The parsed document.
    :returns: The link, or the newsletter homepage if none qualifies.
    """
    anchors = soup.find_all("a", href=True)
    for anchor in anchors:
        href = str(anchor["href"]).strip()
        text = anchor.get_text().lower()
        if any(excluded in text for excluded in EXCLUDED_LINK_TEXTS):
            continue
        if "unsubscribe" not in href.lower() and is_absolute_url(href):
            return href

    for anchor in anchors:
        href = str(anchor["href"]).strip()
        if NEWSLETTER_ADDRESS in href and "unsubscribe" not in href.lower() and is_absolute_url(href):
            return href
    return DEFAULT_LINK
