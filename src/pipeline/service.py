"""Orchestration of parsing, sanitising, batching and analysis."""

import logging
from collections.abc import Sequence

from src.analysis.aggregator import AnalysisResultAggregator
from src.analysis.batcher import batch_contents
from src.analysis.client import RateLimitedAnalysisClient
from src.analysis.config import AnalysisConfig, get_analysis_settings
from src.analysis.exceptions import AllModelsExhaustedError
from src.enums import AnalysisRequestType
from src.feeds.exceptions import FetchError
from src.feeds.fetcher import FeedFetcher
from src.newsletters.base.models import CleanContentItem, RawContentItem
from src.newsletters.registry import ParserRegistry
from src.newsletters.sanitizer import make_content_id, sanitize_item
from src.pipeline.models import MailPayload, PipelineResult

logger = logging.getLogger(__name__)


class ContentPipeline:
    """Runs mails and feeds through parsing, sanitising, batching and analysis.

    Failures of a single mail, feed or batch are recorded on the result and
    the run continues. Internal consistency errors propagate.
    """

    def __init__(
        self,
        analysis_client: RateLimitedAnalysisClient,
        *,
        registry: ParserRegistry | None = None,
        fetcher: FeedFetcher | None = None,
        config: AnalysisConfig | None = None,
    ) -> None:
        """Initialise the pipeline.

        :param analysis_client: Client used to analyse batches.
        :param registry: Parser registry. Defaults to every supported source.
        :param fetcher: Feed fetcher. Created on first use if omitted.
        :param config: Analysis settings. Defaults to the environment settings.
        """
        self._analysis_client = analysis_client
        self._registry = registry or ParserRegistry()
        self._fetcher = fetcher
        self._config = config or get_analysis_settings()

    def run(
        self,
        *,
        mails: Sequence[MailPayload] = (),
        feed_urls: Sequence[str] = (),
        request_type: AnalysisRequestType = AnalysisRequestType.FULL,
        keywords: Sequence[str] = (),
    ) -> PipelineResult:
        """Process mails and feeds end to end.

        :param mails: Received newsletter mails.
        :param feed_urls: Feed URLs to fetch.
        :param request_type: The analysis request shape.
        :param keywords: Keywords to match against.
        :returns: Counts, merged analysis results and per-source errors.
        :raises InternalConsistencyError: If merged results contain a duplicate content ID.
        """
        result = PipelineResult()

        raw_items = self._collect_from_mails(mails, result)
        raw_items.extend(self._collect_from_feeds(feed_urls, result))
        result.items_extracted = len(raw_items)

        clean_items = self._sanitize(raw_items, result)
        self._analyse(clean_items, result, request_type, keywords)

        logger.info(
            f"Pipeline complete: {result.mails_processed} mails, {result.feeds_fetched} feeds, "
            f"{result.items_extracted} items, {result.batches_analysed} batches analysed "
            f"({result.batches_failed} failed), {len(result.errors)} errors"
        )
        return result

    def _collect_from_mails(
        self, mails: Sequence[MailPayload], result: PipelineResult
    ) -> list[RawContentItem]:
        items: list[RawContentItem] = []
        for mail in mails:
            parser = self._registry.find_parser(mail.sender)
            if parser is None:
                result.mails_skipped += 1
                continue

            try:
                parsed = parser.parse(mail.body)
            except Exception as e:
                error_msg = f"Failed to parse mail from {mail.sender} with {parser.name}: {e}"
                logger.exception(error_msg)
                result.errors.append(error_msg)
                continue

            result.mails_processed += 1
            items.extend(parsed)
        return items

    def _collect_from_feeds(
        self, feed_urls: Sequence[str], result: PipelineResult
    ) -> list[RawContentItem]:
        if not feed_urls:
            return []

        if self._fetcher is None:
            self._fetcher = FeedFetcher()

        items: list[RawContentItem] = []
        for url, outcome in self._fetcher.fetch_many(list(feed_urls)).items():
            if isinstance(outcome, FetchError):
                result.errors.append(str(outcome))
                continue

            result.feeds_fetched += 1
            items.extend(feed_item.to_raw_item(url) for feed_item in outcome.items)
        return items

    def _sanitize(
        self, raw_items: list[RawContentItem], result: PipelineResult
    ) -> list[CleanContentItem]:
        """Sanitise items, dropping repeats of the same item.

        :param raw_items: Parsed items.
        :param result: The run result to update.
        :returns: Clean items with unique content IDs.
        """
        clean_items: list[CleanContentItem] = []
        seen_ids: set[str] = set()

        for raw in raw_items:
            content_id = make_content_id(raw.source_sender_id, raw.link, raw.title)
            if content_id in seen_ids:
                logger.debug(f"Skipping duplicate item {content_id}: {raw.title}")
                result.items_duplicate += 1
                continue

            clean = sanitize_item(raw, content_id)
            if not clean.sanitized_text:
                logger.debug(f"Skipping empty item from {raw.source_sender_id}")
                continue

            seen_ids.add(content_id)
            clean_items.append(clean)
        return clean_items

    def _analyse(
        self,
        items: list[CleanContentItem],
        result: PipelineResult,
        request_type: AnalysisRequestType,
        keywords: Sequence[str],
    ) -> None:
        batches = batch_contents(
            items,
            max_content_length=self._config.max_content_length,
            max_total_batch_length=self._config.max_total_batch_length,
        )
        aggregator = AnalysisResultAggregator()

        for index, batch in enumerate(batches, start=1):
            try:
                partial = self._analysis_client.analyze(
                    batch, request_type=request_type, keywords=keywords
                )
            except AllModelsExhaustedError as e:
                error_msg = f"Batch {index}/{len(batches)} ({len(batch.items)} items) not analysed: {e}"
                logger.warning(error_msg)
                result.errors.append(error_msg)
                result.batches_failed += 1
                continue

            aggregator.add(partial)
            result.batches_analysed += 1

        result.analysis = aggregator.result
