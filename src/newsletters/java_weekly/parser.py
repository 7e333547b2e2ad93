"""Parser for Java Weekly (LibHunt) newsletter emails."""

import logging
import re

from src.newsletters.base.models import RawContentItem
from src.newsletters.base.parser import is_absolute_url, sender_matches

logger = logging.getLogger(__name__)

NEWSLETTER_NAME = "Java Weekly"
NEWSLETTER_ADDRESS = "newsletter@libhunt.com"

SECTION_ARTICLES = "Popular News and Articles"
SECTION_PROJECTS = "Popular projects"

# Matches "Issue » 123 / January 5, 2025"
ISSUE_INFO_PATTERN = re.compile(r"Issue\s*»\s*(\d+)\s*/\s*([A-Za-z]+ \d+, \d{4})")
URL_PATTERN = re.compile(r"<?(https?://[^>\s]+)>?")
PROJECT_PATTERN = re.compile(r"\*\s*(.+?)\s*-\s*<?(https?://[^>\s]+)>?")

# How many lines below an article title to look for its link
URL_LOOKAHEAD_LINES = 5
MIN_ARTICLE_TITLE_LENGTH = 10
MIN_PROJECT_TITLE_LENGTH = 3
SECTION_END_MARKER = "---"


class JavaWeeklyParser:
    """Extracts popular articles and projects from Java Weekly."""

    name = "java_weekly"

    def is_target(self, sender: str) -> bool:
        """Whether the sender is Java Weekly."""
        return sender_matches(sender, NEWSLETTER_NAME, NEWSLETTER_ADDRESS)

    def parse(self, raw_body: str) -> list[RawContentItem]:
        """Parse a Java Weekly email.

        :param raw_body: The plain-text mail body.
        :returns: Article items followed by project items.
        """
        issue_number, issue_date = _extract_issue_info(raw_body)
        items: list[RawContentItem] = []

        articles_section = _extract_section(raw_body, SECTION_ARTICLES, SECTION_PROJECTS)
        if articles_section is not None:
            items.extend(_parse_articles(articles_section, issue_number, issue_date))

        projects_section = _extract_projects_section(raw_body)
        if projects_section is not None:
            items.extend(_parse_projects(projects_section, issue_number, issue_date))

        if not items:
            logger.warning(f"No items parsed from Java Weekly issue #{issue_number}")
        else:
            logger.info(f"Extracted {len(items)} items from Java Weekly issue #{issue_number}")
        return items


def _extract_issue_info(text: str) -> tuple[str, str]:
    match = ISSUE_INFO_PATTERN.search(text)
    if match is None:
        return "Unknown", "Unknown date"
    return match.group(1), match.group(2)


def _extract_section(text: str, start_marker: str, end_marker: str) -> str | None:
    start = text.find(start_marker)
    if start == -1:
        return None
    end = text.find(end_marker, start + len(start_marker))
    return text[start:end] if end != -1 else text[start:]


def _extract_projects_section(text: str) -> str | None:
    """Return the projects section, which ends at a ``---`` rule.

    :param text: The full mail body.
    :returns: The section text, or None if absent.
    """
    start = text.find(SECTION_PROJECTS)
    if start == -1:
        return None

    section_lines: list[str] = []
    for line in text[start:].splitlines():
        if line.strip() == SECTION_END_MARKER:
            break
        section_lines.append(line)
    return "\n".join(section_lines)


def _make_item(title: str, url: str, section: str, issue_number: str, issue_date: str) -> RawContentItem:
    return RawContentItem(
        source_sender_id=NEWSLETTER_ADDRESS,
        title=title,
        body=f"[{section}] Issue #{issue_number} ({issue_date}): {title}",
        link=url,
        section=section,
    )


def _parse_articles(section_text: str, issue_number: str, issue_date: str) -> list[RawContentItem]:
    """Parse ``* Title`` bullets whose link follows on a later line.

    :param section_text: The articles section.
    :param issue_number: Issue number for the item body.
    :param issue_date: Issue date for the item body.
    :returns: The article items.
    """
    lines = section_text.splitlines()
    seen_titles: set[str] = set()
    items: list[RawContentItem] = []

    for index, line in enumerate(lines):
        stripped = line.strip()
        if not stripped.startswith("* "):
            continue

        title = stripped.removeprefix("* ").strip()
        url = _find_url(lines[index + 1 : index + 1 + URL_LOOKAHEAD_LINES])
        if url is None or len(title) < MIN_ARTICLE_TITLE_LENGTH or title in seen_titles:
            continue

        seen_titles.add(title)
        items.append(_make_item(title, url, SECTION_ARTICLES, issue_number, issue_date))
        logger.debug(f"Parsed Java Weekly article: {title}")

    return items


def _find_url(lines: list[str]) -> str | None:
    for line in lines:
        match = URL_PATTERN.search(line.strip())
        if match and is_absolute_url(match.group(1)):
            return match.group(1)
    return None


def _parse_projects(section_text: str, issue_number: str, issue_date: str) -> list[RawContentItem]:
    seen_titles: set[str] = set()
    items: list[RawContentItem] = []

    for line in section_text.splitlines():
        stripped = line.strip()
        if not stripped.startswith("* "):
            continue

        match = PROJECT_PATTERN.search(stripped)
        if match is None:
            continue

        title, url = match.group(1).strip(), match.group(2).strip()
        if len(title) < MIN_PROJECT_TITLE_LENGTH or title in seen_titles or not is_absolute_url(url):
            continue

        seen_titles.add(title)
        items.append(_make_item(title, url, SECTION_PROJECTS, issue_number, issue_date))

    return items
