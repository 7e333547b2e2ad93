"""Parser for Kotlin Weekly newsletter emails."""

import logging
import re
from enum import StrEnum

from src.newsletters.base.models import RawContentItem
from src.newsletters.base.parser import extract_mime_part, is_absolute_url, sender_matches

logger = logging.getLogger(__name__)

NEWSLETTER_NAME = "Kotlin Weekly"
NEWSLETTER_DOMAIN = "kotlinweekly.net"

PLAIN_TEXT_MARKER = "Content-Type: text/plain;"

ISSUE_NUMBER_PATTERN = re.compile(r"ISSUE #(\d+)")
ISSUE_DATE_PATTERN = re.compile(r"\d+[a-z]{2} of [A-Za-z]+ \d{4}")
# Matches lines like "Coroutines deep dive (https://example.com/post)"
TITLE_LINK_PATTERN = re.compile(r"(.*?)\s*\(\s*(https?://[^)]+)\)\s*$")
DOMAIN_ONLY_PATTERN = re.compile(r"^[a-z0-9.-]+\.[a-z]{2,}$")
SOFT_BREAK_PATTERN = re.compile(r"=\r?\n|=\r")


class Section(StrEnum):
    """Section headers used by Kotlin Weekly."""

    ANNOUNCEMENTS = "Announcements"
    ARTICLES = "Articles"
    SPONSORED = "Sponsored"
    ANDROID = "Android"
    PODCAST = "Podcast"
    CONFERENCES = "Conferences"
    LIBRARIES = "Libraries"
    CONTRIBUTE = "Contribute"


SECTION_LABELS = frozenset(section.value for section in Section)


class KotlinWeeklyParser:
    """Extracts links per section from the plain-text part of Kotlin Weekly."""

    name = "kotlin_weekly"

    def is_target(self, sender: str) -> bool:
        """Whether the sender is Kotlin Weekly."""
        return sender_matches(sender, NEWSLETTER_NAME, NEWSLETTER_DOMAIN)

    def parse(self, raw_body: str) -> list[RawContentItem]:
        """Parse a Kotlin Weekly email.

        :param raw_body: The raw mail body, optionally multipart.
        :returns: Items from every section except "Contribute".
        """
        plain_text = extract_mime_part(raw_body, PLAIN_TEXT_MARKER) or raw_body
        text = SOFT_BREAK_PATTERN.sub("", plain_text)

        issue_number, issue_date = _extract_issue_info(text)

        positions = sorted(
            (index, section)
            for section in Section
            if (index := text.find(f"\n{section.value}\n")) >= 0
        )

        items: list[RawContentItem] = []
        for idx, (start, section) in enumerate(positions):
            if section == Section.CONTRIBUTE:
                continue
            end = positions[idx + 1][0] if idx + 1 < len(positions) else len(text)
            items.extend(
                _parse_section(section, text[start:end], issue_number, issue_date)
            )

        logger.info(f"Extracted {len(items)} items from Kotlin Weekly issue #{issue_number}")
        return items


def _extract_issue_info(text: str) -> tuple[str, str]:
    number_match = ISSUE_NUMBER_PATTERN.search(text)
    date_match = ISSUE_DATE_PATTERN.search(text)
    return (
        number_match.group(1) if number_match else "Unknown",
        date_match.group(0) if date_match else "Unknown date",
    )


def _parse_section(
    section: Section,
    section_text: str,
    issue_number: str,
    issue_date: str,
) -> list[RawContentItem]:
    """Extract title/link pairs and their descriptions from one section.

    :param section: The section being parsed.
    :param section_text: Text from the section header to the next header.
    :param issue_number: The issue number, for the item body.
    :param issue_date: The issue date, for the item body.
    :returns: The parsed items.
    """
    lines = section_text.splitlines()
    seen_titles: set[str] = set()
    items: list[RawContentItem] = []

    for index, line in enumerate(lines):
        match = TITLE_LINK_PATTERN.search(line)
        if match is None:
            continue

        title = match.group(1).strip()
        url = re.sub(r"\s+", "", match.group(2))
        if (
            not title
            or not is_absolute_url(url)
            or DOMAIN_ONLY_PATTERN.match(title)
            or title in seen_titles
        ):
            continue
        seen_titles.add(title)

        description = _collect_description(lines, index + 1)
        items.append(
            RawContentItem(
                source_sender_id=NEWSLETTER_DOMAIN,
                title=title,
                body=f"[{section.value}] Issue #{issue_number} ({issue_date}): {description}",
                link=url,
                section=section.value,
            )
        )

    return items


def _collect_description(lines: list[str], start: int) -> str:
    parts: list[str] = []
    for line in lines[start:]:
        stripped = line.strip()
        if _is_boundary_line(stripped):
            break
        parts.append(stripped)
    return " ".join(parts)


def _is_boundary_line(line: str) -> bool:
    return (
        not line
        or TITLE_LINK_PATTERN.search(line) is not None
        or line in SECTION_LABELS
        or DOMAIN_ONLY_PATTERN.match(line) is not None
    )
