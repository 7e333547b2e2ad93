"""Parser for CSS Weekly newsletter emails (markdown body)."""

import logging
import re

from src.newsletters.base.models import RawContentItem
from src.newsletters.base.parser import is_absolute_url, sender_matches

logger = logging.getLogger(__name__)

NEWSLETTER_NAME = "CSS Weekly"
NEWSLETTER_ADDRESS = "css-weekly@beehiiv.com"

SECTION_HEADER_PATTERN = re.compile(r"^# (.+)$")
ARTICLE_PATTERN = re.compile(r"^## \[(.*?)\]\((https?://[^)]+)\).*$")


class CssWeeklyParser:
    """Extracts ``## [Title](url)`` articles grouped under ``# Section`` headers."""

    name = "css_weekly"

    def is_target(self, sender: str) -> bool:
        """Whether the sender is CSS Weekly."""
        return sender_matches(sender, NEWSLETTER_NAME, NEWSLETTER_ADDRESS)

    def parse(self, raw_body: str) -> list[RawContentItem]:
        """Parse a CSS Weekly email.

        :param raw_body: The markdown mail body.
        :returns: One item per article heading.
        """
        lines = raw_body.splitlines()
        items: list[RawContentItem] = []
        current_section: str | None = None

        for index, line in enumerate(lines):
            stripped = line.strip()

            section_match = SECTION_HEADER_PATTERN.match(stripped)
            if section_match:
                current_section = section_match.group(1).strip()
                continue

            article_match = ARTICLE_PATTERN.match(stripped)
            if article_match is None:
                continue
            if not is_absolute_url(article_match.group(2)):
                logger.debug(f"Skipping CSS Weekly article with invalid link: {article_match.group(2)!r}")
                continue

            items.append(
                RawContentItem(
                    source_sender_id=NEWSLETTER_ADDRESS,
                    title=article_match.group(1).removesuffix("✨").strip(),
                    body=_extract_article_body(lines, index),
                    link=article_match.group(2),
                    section=current_section,
                )
            )

        logger.info(f"Extracted {len(items)} articles from CSS Weekly")
        return items


def _extract_article_body(lines: list[str], heading_index: int) -> str:
    """Collect the lines following an article heading up to the next heading.

    :param lines: All lines of the mail body.
    :param heading_index: Index of the article heading line.
    :returns: The article text.
    """
    body: list[str] = []
    for line in lines[heading_index + 1 :]:
        stripped = line.strip()
        if stripped.startswith(("# ", "## ")):
            break
        body.append(line)
    return "\n".join(body).strip()
