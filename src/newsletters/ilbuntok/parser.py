"""Parser for the ilbuntok (일분톡) newsletter, delivered as base64 HTML."""

import base64
import binascii
import logging

from bs4 import BeautifulSoup, Tag

from src.newsletters.base.models import RawContentItem
from src.newsletters.base.parser import extract_mime_part, is_absolute_url, sender_matches

logger = logging.getLogger(__name__)

NEWSLETTER_NAME = "ilbuntok"
NEWSLETTER_ADDRESS = "ilbuntok.com"
DEFAULT_LINK = "https://www.ilbuntok.com"
SECTION_NAME = "일분톡"

BASE64_MARKER = "Content-Transfer-Encoding: base64"
ARTICLE_TABLE_SELECTOR = "table.stb-one-col[style*='background:#ffffff']"
TITLE_SELECTOR = (
    "p[style*='text-align: center'] span[style*='font-size: 26px'], "
    "h3[style*='text-align: center'] span[style*='font-size: 26px']"
)
INTRO_MARKER = "무슨 일인데?"
EXCLUDED_LINK_TEXTS = ("일분톡 구독", "이 기사 공유하기")
EXCLUDED_TITLES = (
    "뭐가 궁금해?",
    "다음 소식들은",
    "일분톡 구독",
    "오늘의 한 줄",
    "더 많은 소식",
    "어제 소식",
    "이 기사 어때요?",
    "스크롤",
    "구독",
    "취소",
    "내 추천 포인트",
    "퀵뉴스님의 한 마디",
    "부린이를 위한 부동산",
)
MIN_TITLE_LENGTH = 5


class IlbuntokParser:
    """Extracts articles from the decoded HTML of an ilbuntok mail."""

    name = "ilbuntok"

    def is_target(self, sender: str) -> bool:
        """Whether the sender is ilbuntok."""
        return sender_matches(sender, NEWSLETTER_NAME, NEWSLETTER_ADDRESS)

    def parse(self, raw_body: str) -> list[RawContentItem]:
        """Parse an ilbuntok email.

        :param raw_body: The raw mail with a base64-encoded HTML part.
        :returns: One item per article, deduplicated by title.
        """
        html = _decode_base64_part(raw_body)
        if not html:
            return []

        soup = BeautifulSoup(html, "lxml")
        items: list[RawContentItem] = []
        seen_titles: set[str] = set()

        for table in soup.select(ARTICLE_TABLE_SELECTOR):
            title_element = table.select_one(TITLE_SELECTOR)
            if title_element is None:
                continue

            title = title_element.get_text().strip()
            if len(title) < MIN_TITLE_LENGTH or any(excluded in title for excluded in EXCLUDED_TITLES):
                continue
            if title in seen_titles:
                continue
            seen_titles.add(title)

            content = _extract_content(table, title)
            items.append(
                RawContentItem(
                    source_sender_id=NEWSLETTER_ADDRESS,
                    title=title,
                    body=content or title,
                    link=_extract_link(table),
                    section=SECTION_NAME,
                )
            )

        logger.info(f"Extracted {len(items)} articles from ilbuntok")
        return items


def _decode_base64_part(raw_body: str) -> str | None:
    """Decode the base64 part of the mail.

    :param raw_body: The raw mail.
    :returns: The decoded HTML, or None if missing or undecodable.
    """
    encoded = extract_mime_part(raw_body, BASE64_MARKER)
    if encoded is None:
        return None
    # The part ends at the next MIME boundary line
    encoded = encoded.split("\n--", 1)[0]

    try:
        decoded = base64.b64decode("".join(encoded.split()), validate=True)
    except (binascii.Error, ValueError):
        logger.warning("Invalid base64 content in ilbuntok mail")
        return None
    return decoded.decode("utf-8", errors="replace")


def _extract_content(table: Tag, title: str) -> str:
    """Collect the article text from the table following the title table.

    :param table: The table holding the article title.
    :param title: The article title, excluded from the content.
    :returns: The article text.
    """
    next_table = table.find_next_sibling()
    if next_table is None:
        paragraphs = [
            p.get_text().strip()
            for p in table.find_all("p")
            if "text-align: center" not in (p.get("style") or "")
        ]
        return "\n".join(text for text in paragraphs if text)

    parts: list[str] = []
    capturing = False
    for element in next_table.find_all(recursive=False):
        text = element.get_text(" ", strip=True)
        if not text:
            continue
        if not capturing and INTRO_MARKER in text:
            capturing = True
            parts.append(text)
        elif capturing:
            parts.append(text)

    if not capturing:
        parts = [
            text
            for text in (p.get_text(" ", strip=True) for p in next_table.find_all("p"))
            if text and title not in text
        ]

    return "\n\n".join(parts).strip()


def _extract_link(table: Tag) -> str:
    for anchor in table.find_all("a", href=True):
        text = anchor.get_text()
        if any(excluded in text for excluded in EXCLUDED_LINK_TEXTS):
            continue
        href = str(anchor["href"]).strip()
        if is_absolute_url(href):
            return href
    return DEFAULT_LINK
