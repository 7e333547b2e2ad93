"""Tests for the content pipeline."""

import unittest
from unittest.mock import MagicMock

from src.analysis.config import AnalysisConfig
from src.analysis.exceptions import AllModelsExhaustedError, InternalConsistencyError
from src.analysis.models import AnalysisItemResult, BatchAnalysisResult, ContentBatch
from src.enums import AnalysisRequestType, FetchErrorKind
from src.feeds.exceptions import FetchError
from src.feeds.models import Feed, FeedItem
from src.newsletters.base.models import RawContentItem
from src.newsletters.registry import ParserRegistry
from src.pipeline.models import MailPayload
from src.pipeline.service import ContentPipeline


class _FakeParser:
    """Parser returning fixed items for senders containing its name."""

    def __init__(self, name: str, items: list[RawContentItem] | None = None) -> None:
        self.name = name
        self.items = items or []
        self.error: Exception | None = None

    def is_target(self, sender: str) -> bool:
        return self.name in sender

    def parse(self, raw_body: str) -> list[RawContentItem]:
        if self.error is not None:
            raise self.error
        return self.items


def _echo_analysis(batch: ContentBatch, **kwargs: object) -> BatchAnalysisResult:
    return BatchAnalysisResult(
        results={
            content_id: AnalysisItemResult(content_id=content_id, summary="ok")
            for content_id in batch.content_ids
        },
        used_model="haiku",
    )


def _item(title: str, link: str = "") -> RawContentItem:
    return RawContentItem(
        source_sender_id="news@example.com", title=title, body=f"About {title}", link=link
    )


class TestContentPipeline(unittest.TestCase):
    """Tests for ContentPipeline class."""

    def setUp(self) -> None:
        """Set up a pipeline with fake parsers and a mocked analysis client."""
        self.parser = _FakeParser(
            "weekly", [_item("First", "https://example.com/1"), _item("Second")]
        )
        self.broken_parser = _FakeParser("broken")
        self.broken_parser.error = ValueError("unexpected layout")
        self.registry = ParserRegistry([self.parser, self.broken_parser])

        self.mock_client = MagicMock()
        self.mock_client.analyze.side_effect = _echo_analysis
        self.mock_fetcher = MagicMock()
        self.config = AnalysisConfig(
            max_content_length=100, max_total_batch_length=100, _env_file=None
        )
        self.pipeline = ContentPipeline(
            self.mock_client,
            registry=self.registry,
            fetcher=self.mock_fetcher,
            config=self.config,
        )

    def test_processes_mails(self) -> None:
        """Test mails are parsed, sanitised and analysed."""
        result = self.pipeline.run(
            mails=[MailPayload(sender="The weekly <a@b.c>", body="body")],
            request_type=AnalysisRequestType.SUMMARY,
            keywords=["Kotlin"],
        )

        self.assertEqual(result.mails_processed, 1)
        self.assertEqual(result.items_extracted, 2)
        self.assertEqual(result.batches_analysed, 1)
        self.assertEqual(len(result.analysis.results), 2)
        self.assertEqual(result.analysis.used_models, {"haiku"})
        self.assertEqual(result.errors, [])
        kwargs = self.mock_client.analyze.call_args.kwargs
        self.assertEqual(kwargs["request_type"], AnalysisRequestType.SUMMARY)
        self.assertEqual(kwargs["keywords"], ["Kotlin"])
        self.mock_fetcher.fetch_many.assert_not_called()

    def test_unknown_sender_is_skipped(self) -> None:
        """Test mails from unknown senders are counted as skipped."""
        result = self.pipeline.run(mails=[MailPayload(sender="someone@else.com", body="x")])

        self.assertEqual(result.mails_skipped, 1)
        self.assertEqual(result.mails_processed, 0)
        self.assertEqual(result.errors, [])
        self.mock_client.analyze.assert_not_called()

    def test_parser_failure_is_recorded(self) -> None:
        """Test a parser exception is recorded and other mails still processed."""
        result = self.pipeline.run(
            mails=[
                MailPayload(sender="broken", body="x"),
                MailPayload(sender="weekly", body="y"),
            ]
        )

        self.assertEqual(result.mails_processed, 1)
        self.assertEqual(len(result.errors), 1)
        self.assertIn("unexpected layout", result.errors[0])
        self.assertEqual(len(result.analysis.results), 2)

    def test_duplicate_items_are_dropped(self) -> None:
        """Test the same item from two mails is analysed once."""
        result = self.pipeline.run(
            mails=[MailPayload(sender="weekly", body="x"), MailPayload(sender="weekly", body="y")]
        )

        self.assertEqual(result.items_extracted, 4)
        self.assertEqual(result.items_duplicate, 2)
        self.assertEqual(len(result.analysis.results), 2)

    def test_feed_items_and_fetch_errors(self) -> None:
        """Test feed items are analysed and fetch failures recorded."""
        feed = Feed(
            title="Blog",
            items=[FeedItem(title="Post", description="Post body", link="https://blog.dev/p")],
        )
        error = FetchError(FetchErrorKind.NETWORK, "https://down.dev/rss", "timed out")
        self.mock_fetcher.fetch_many.return_value = {
            "https://blog.dev/rss": feed,
            "https://down.dev/rss": error,
        }

        result = self.pipeline.run(feed_urls=["https://blog.dev/rss", "https://down.dev/rss"])

        self.assertEqual(result.feeds_fetched, 1)
        self.assertEqual(result.items_extracted, 1)
        self.assertEqual(result.errors, [str(error)])
        self.assertEqual(len(result.analysis.results), 1)
        item = next(iter(result.analysis.results.values()))
        self.assertEqual(item.summary, "ok")

    def test_items_are_split_into_batches(self) -> None:
        """Test items over the batch cap are analysed in separate batches."""
        self.parser.items = [_item("A" * 80), _item("B" * 80)]

        result = self.pipeline.run(mails=[MailPayload(sender="weekly", body="x")])

        self.assertEqual(self.mock_client.analyze.call_count, 2)
        self.assertEqual(result.batches_analysed, 2)
        self.assertEqual(len(result.analysis.results), 2)

    def test_exhausted_batch_is_recorded(self) -> None:
        """Test a batch no model could analyse is recorded and the run continues."""
        self.parser.items = [_item("A" * 80), _item("B" * 80)]
        self.mock_client.analyze.side_effect = [
            AllModelsExhaustedError({"haiku": "quota exhausted"}),
            BatchAnalysisResult(
                results={"placeholder": AnalysisItemResult(content_id="placeholder")},
                used_model="sonnet",
            ),
        ]

        result = self.pipeline.run(mails=[MailPayload(sender="weekly", body="x")])

        self.assertEqual(result.batches_failed, 1)
        self.assertEqual(result.batches_analysed, 1)
        self.assertEqual(len(result.errors), 1)
        self.assertIn("quota exhausted", result.errors[0])
        self.assertEqual(result.analysis.used_models, {"sonnet"})

    def test_consistency_error_propagates(self) -> None:
        """Test a duplicate content ID across batches is raised."""
        self.parser.items = [_item("A" * 80), _item("B" * 80)]
        duplicate = BatchAnalysisResult(
            results={"same": AnalysisItemResult(content_id="same")}, used_model="haiku"
        )
        self.mock_client.analyze.side_effect = [duplicate, duplicate]

        with self.assertRaises(InternalConsistencyError):
            self.pipeline.run(mails=[MailPayload(sender="weekly", body="x")])

    def test_nothing_to_do(self) -> None:
        """Test an empty run analyses nothing."""
        result = self.pipeline.run()

        self.assertEqual(result.items_extracted, 0)
        self.assertEqual(result.analysis.results, {})
        self.mock_client.analyze.assert_not_called()


if __name__ == "__main__":
    unittest.main()
