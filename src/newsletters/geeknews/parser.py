"""Parser for the GeekNews (hada.io) weekly newsletter."""

import logging

from src.newsletters.base.models import RawContentItem
from src.newsletters.base.parser import collapse_whitespace, is_absolute_url, sender_matches

logger = logging.getLogger(__name__)

NEWSLETTER_ADDRESS = "news@hada.io"

# Everything after this line is the newsletter footer
FOOTER_MARKER = "✓ 사내 커뮤니케이션 도구"
SEPARATOR = "-" * 72
SECTION_NAME = "Article"


class GeeknewsWeeklyParser:
    """Extracts articles from GeekNews weekly mails.

    The body is a sequence of blocks separated by 72-dash rules. After the
    intro block, blocks alternate between a ``Title * url`` line and the
    article description.
    """

    name = "geeknews"

    def is_target(self, sender: str) -> bool:
        """Whether the sender is GeekNews."""
        return sender_matches(sender, NEWSLETTER_ADDRESS)

    def parse(self, raw_body: str) -> list[RawContentItem]:
        """Parse a GeekNews weekly email.

        :param raw_body: The plain-text mail body.
        :returns: One item per title/description block pair.
        """
        content = raw_body.split(FOOTER_MARKER, 1)[0]
        blocks = content.split(SEPARATOR)

        items: list[RawContentItem] = []
        for index in range(1, len(blocks) - 1, 2):
            item = _parse_block_pair(blocks[index].strip(), blocks[index + 1].strip())
            if item is not None:
                items.append(item)

        logger.info(f"Extracted {len(items)} articles from GeekNews")
        return items


def _parse_block_pair(title_block: str, description_block: str) -> RawContentItem | None:
    """Build an item from a ``Title * url`` block and its description block.

    :param title_block: The block holding the title and URL.
    :param description_block: The block holding the description.
    :returns: The item, or None if the title block is malformed.
    """
    title, separator, url = title_block.partition("*")
    title, url = title.strip(), url.strip()
    if not separator or not title or not is_absolute_url(url):
        logger.debug(f"Skipping malformed GeekNews block: {title_block[:50]!r}")
        return None

    return RawContentItem(
        source_sender_id=NEWSLETTER_ADDRESS,
        title=title,
        body=collapse_whitespace(description_block),
        link=url,
        section=SECTION_NAME,
    )
