"""Decoding and clean-up of raw newsletter text.

Mail bodies arrive quoted-printable encoded, with HTML entities that are
sometimes split by soft line wraps, and peppered with zero-width characters.
``sanitize`` undoes all of that in a fixed order:

1. quoted-printable decoding
2. repair of entities broken by line wrapping (``&n= bsp;``)
3. entity decoding (named, decimal and hexadecimal references)
4. removal of invisible characters

Quoted-printable must be decoded first, since ``=`` sequences inside an
entity are wrapping artefacts rather than entity text. The steps repeat until
the text is stable. Every step is total: malformed escapes and entities are
left as literal text, and escaped bytes that are not valid UTF-8 decode to
U+FFFD.
"""

import hashlib
import logging
import re

from src.newsletters.base.models import CleanContentItem, RawContentItem

logger = logging.getLogger(__name__)

INVISIBLE_CHARACTERS = frozenset(
    {
        "\u200b",  # zero width space
        "\u200c",  # zero width non-joiner
        "\u200d",  # zero width joiner
        "\u00a0",  # non-breaking space
        "\u2060",  # word joiner
        "\u00ad",  # soft hyphen
    }
)

NAMED_ENTITIES: dict[str, str] = {
    "nbsp": "\u00a0",
    "amp": "&",
    "lt": "<",
    "gt": ">",
    "quot": '"',
    "apos": "'",
    "cent": "¢",
    "pound": "£",
    "yen": "¥",
    "euro": "€",
    "copy": "©",
    "reg": "®",
    "trade": "™",
    "mdash": "—",
    "ndash": "–",
    "lsquo": "‘",
    "rsquo": "’",
    "ldquo": "“",
    "rdquo": "”",
    "bull": "•",
    "hellip": "…",
}

SOFT_LINE_BREAK_PATTERN = re.compile(r"=\r?\n")
QP_ESCAPE_RUN_PATTERN = re.compile(r"(?:=[0-9A-Fa-f]{2})+")

# Candidate entity with whitespace or "=" injected by line wrapping
BROKEN_ENTITY_PATTERN = re.compile(r"&([#A-Za-z0-9][#A-Za-z0-9=\s]{0,15});")
ENTITY_PATTERN = re.compile(r"&(#[0-9]+|#[xX][0-9A-Fa-f]+|[A-Za-z]+);")
NUMERIC_REFERENCE_PATTERN = re.compile(r"#(?:[0-9]+|[xX][0-9A-Fa-f]+)")
WRAP_ARTEFACT_PATTERN = re.compile(r"[\s=]+")

MAX_CODE_POINT = 0x10FFFF
SURROGATE_RANGE = range(0xD800, 0xE000)


def decode_quoted_printable(text: str) -> str:
    """Decode quoted-printable escapes in already-textual input.

    Soft line breaks are removed, runs of ``=XY`` escapes are decoded as UTF-8
    bytes, and anything else passes through unchanged. Bytes in a run that do
    not form valid UTF-8 become U+FFFD replacement characters.

    :param text: The raw text.
    :returns: The decoded text.
    """
    text = SOFT_LINE_BREAK_PATTERN.sub("", text)
    return QP_ESCAPE_RUN_PATTERN.sub(_decode_escape_run, text)


def _decode_escape_run(match: re.Match[str]) -> str:
    run = match.group(0)
    raw = bytes.fromhex(run.replace("=", ""))
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        logger.debug(f"Quoted-printable run is not valid UTF-8, replacing bad bytes: {run}")
        return raw.decode("utf-8", errors="replace")


def normalize_html_entities(text: str) -> str:
    """Collapse whitespace and ``=`` injected inside entity tokens.

    ``&n bsp;`` and ``&n= bsp;`` both become ``&nbsp;``. Tokens are only
    rewritten when the collapsed form is a known entity or a character
    reference, so ordinary text containing ``&`` and ``;`` is left alone.

    :param text: Text that may contain broken entities.
    :returns: Text with the entities repaired.
    """
    return BROKEN_ENTITY_PATTERN.sub(_repair_entity, text)


def _repair_entity(match: re.Match[str]) -> str:
    collapsed = WRAP_ARTEFACT_PATTERN.sub("", match.group(1))
    if collapsed in NAMED_ENTITIES or NUMERIC_REFERENCE_PATTERN.fullmatch(collapsed):
        return f"&{collapsed};"
    return match.group(0)


def decode_html_entities(text: str) -> str:
    """Decode named, decimal and hexadecimal entity references.

    Decoding is a single left-to-right scan, so ``&amp;lt;`` becomes ``&lt;``
    rather than ``<``. Unknown names and references that do not map to a
    usable code point are left as literal text.

    :param text: Text containing entity references.
    :returns: The decoded text.
    """
    return ENTITY_PATTERN.sub(_decode_entity, text)


def _decode_entity(match: re.Match[str]) -> str:
    name = match.group(1)
    if not name.startswith("#"):
        return NAMED_ENTITIES.get(name, match.group(0))

    try:
        if name[1:2] in ("x", "X"):
            code_point = int(name[2:], 16)
        else:
            code_point = int(name[1:])
    except ValueError:
        return match.group(0)

    if code_point == 0 or code_point > MAX_CODE_POINT or code_point in SURROGATE_RANGE:
        logger.debug(f"Leaving unusable character reference as literal: {match.group(0)}")
        return match.group(0)
    return chr(code_point)


def remove_invisible_characters(text: str) -> str:
    """Strip zero-width characters, non-breaking spaces and soft hyphens.

    :param text: The text to clean.
    :returns: The text without invisible characters.
    """
    return "".join(ch for ch in text if ch not in INVISIBLE_CHARACTERS)


def sanitize(text: str) -> str:
    """Decode and clean a raw newsletter string.

    The four steps are repeated until the text stops changing, so decoding
    that reveals further escapes (``=3D41``, ``&amp;lt;``) is carried through
    and ``sanitize`` is idempotent. Every pass that changes the text makes it
    shorter, so the loop ends.

    :param text: Raw text, possibly quoted-printable and entity encoded.
    :returns: Plain text.
    """
    while True:
        cleaned = _sanitize_pass(text)
        if cleaned == text:
            return cleaned
        text = cleaned


def _sanitize_pass(text: str) -> str:
    decoded = decode_quoted_printable(text)
    normalized = normalize_html_entities(decoded)
    entity_decoded = decode_html_entities(normalized)
    return remove_invisible_characters(entity_decoded)


def make_content_id(source_sender_id: str, link: str, title: str) -> str:
    """Build a stable content identifier for an item.

    :param source_sender_id: Sender address or feed URL the item came from.
    :param link: The item's link (may be empty).
    :param title: The item's title.
    :returns: A 16 character hex digest.
    """
    key = "\x1f".join((source_sender_id.strip().lower(), link.strip(), title.strip()))
    return hashlib.sha256(key.encode("utf-8")).hexdigest()[:16]


def sanitize_item(raw: RawContentItem, content_id: str) -> CleanContentItem:
    """Sanitise a parsed item into a batchable content item.

    The sanitised text is the title and body joined by a blank line, with
    empty parts omitted.

    :param raw: The parsed item.
    :param content_id: Caller-assigned identifier for the item.
    :returns: The clean content item.
    """
    title = sanitize(raw.title).strip()
    body = sanitize(raw.body).strip()
    text = "\n\n".join(part for part in (title, body) if part)

    metadata = {
        "source": raw.source_sender_id,
        "title": title,
        "link": raw.link,
    }
    if raw.section:
        metadata["section"] = raw.section

    return CleanContentItem(
        content_id=content_id,
        sanitized_text=text,
        source_metadata=metadata,
    )
