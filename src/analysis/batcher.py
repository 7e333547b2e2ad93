"""Greedy in-order packing of content items into size-bounded batches."""

import logging
from collections.abc import Iterable

from src.analysis.config import MAX_CONTENT_LENGTH, MAX_TOTAL_BATCH_LENGTH
from src.analysis.models import ContentBatch
from src.newsletters.base.models import CleanContentItem

logger = logging.getLogger(__name__)


def truncate_item(item: CleanContentItem, max_content_length: int) -> CleanContentItem:
    """Cut an item's text down to the per-item cap, keeping the leading text.

    :param item: The item to truncate.
    :param max_content_length: Maximum text length.
    :returns: The item itself if it fits, otherwise a truncated copy.
    """
    if item.length <= max_content_length:
        return item

    logger.info(
        f"Truncating content {item.content_id} from {item.length} to {max_content_length} characters"
    )
    return item.model_copy(update={"sanitized_text": item.sanitized_text[:max_content_length]})


def batch_contents(
    items: Iterable[CleanContentItem],
    *,
    max_content_length: int = MAX_CONTENT_LENGTH,
    max_total_batch_length: int = MAX_TOTAL_BATCH_LENGTH,
) -> list[ContentBatch]:
    """Pack items into batches in input order.

    Each item is truncated to ``max_content_length`` and appended to the open
    batch while the batch stays within ``max_total_batch_length``. Otherwise
    the batch is closed and a new one starts with that item. Every item lands
    in exactly one batch and order is preserved.

    :param items: Items to batch.
    :param max_content_length: Per-item length cap.
    :param max_total_batch_length: Per-batch total length cap.
    :returns: The batches, in order. Empty input gives an empty list.
    :raises ValueError: If the per-item cap exceeds the per-batch cap.
    """
    if max_content_length > max_total_batch_length:
        raise ValueError(
            f"max_content_length ({max_content_length}) must not exceed "
            f"max_total_batch_length ({max_total_batch_length})"
        )

    batches: list[ContentBatch] = []
    current: list[CleanContentItem] = []
    running_total = 0

    for raw_item in items:
        item = truncate_item(raw_item, max_content_length)

        if current and running_total + item.length > max_total_batch_length:
            batches.append(ContentBatch(items=tuple(current), total_length=running_total))
            current, running_total = [], 0

        current.append(item)
        running_total += item.length

    if current:
        batches.append(ContentBatch(items=tuple(current), total_length=running_total))

    logger.debug(f"Packed {sum(len(b.items) for b in batches)} items into {len(batches)} batches")
    return batches
