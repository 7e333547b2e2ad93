"""Quota-checked analysis client that falls back across models."""

import logging
from collections.abc import Sequence
from typing import Any

from src.analysis.bedrock_client import BedrockClient
from src.analysis.config import AnalysisConfig, ModelSpec, get_analysis_settings
from src.analysis.exceptions import AllModelsExhaustedError, ModelInvocationError
from src.analysis.models import AnalysisItemResult, BatchAnalysisResult, ContentBatch, GenerationRequest
from src.analysis.prompts import (
    MAX_MATCHED_KEYWORDS,
    MAX_PROVOCATIVE_HEADLINES,
    MAX_PROVOCATIVE_KEYWORDS,
    MAX_SUGGESTED_KEYWORDS,
    MAX_SUMMARY_PROVOCATIVE_KEYWORDS,
    build_batch_prompt,
    build_response_schema,
)
from src.analysis.quota import QuotaTracker
from src.enums import AnalysisRequestType

logger = logging.getLogger(__name__)

# Reply field -> (result attribute, list cap) for each request type
_LIST_FIELDS: dict[AnalysisRequestType, dict[str, tuple[str, int]]] = {
    AnalysisRequestType.KEYWORDS: {
        "matchedKeywords": ("matched_keywords", MAX_MATCHED_KEYWORDS),
        "suggestedKeywords": ("suggested_keywords", MAX_SUGGESTED_KEYWORDS),
        "provocativeKeywords": ("provocative_keywords", MAX_PROVOCATIVE_KEYWORDS),
    },
    AnalysisRequestType.SUMMARY: {
        "provocativeKeywords": ("provocative_keywords", MAX_SUMMARY_PROVOCATIVE_KEYWORDS),
    },
    AnalysisRequestType.FULL: {
        "provocativeHeadlines": ("provocative_headlines", MAX_PROVOCATIVE_HEADLINES),
        "matchedKeywords": ("matched_keywords", MAX_MATCHED_KEYWORDS),
        "suggestedKeywords": ("suggested_keywords", MAX_SUGGESTED_KEYWORDS),
        "provocativeKeywords": ("provocative_keywords", MAX_PROVOCATIVE_KEYWORDS),
    },
}


class RateLimitedAnalysisClient:
    """Sends batches to models in priority order within their request quotas.

    A model at its per-minute or per-day limit is skipped without a call. A
    failed call still counts against the model's quota and the next model is
    tried. The first successful reply is returned.
    """

    def __init__(
        self,
        bedrock_client: BedrockClient | None = None,
        quota_tracker: QuotaTracker | None = None,
        config: AnalysisConfig | None = None,
    ) -> None:
        """Initialise the client.

        :param bedrock_client: Model provider client. Built from config if omitted.
        :param quota_tracker: Shared quota state. A new tracker is created if omitted.
        :param config: Analysis settings. Defaults to the environment settings.
        """
        self.config = config or get_analysis_settings()
        self._bedrock = bedrock_client or BedrockClient(
            region_name=self.config.aws_region,
            connect_timeout=self.config.connect_timeout_seconds,
            read_timeout=self.config.read_timeout_seconds,
        )
        self._quota = quota_tracker or QuotaTracker()

    def analyze(
        self,
        batch: ContentBatch,
        models: Sequence[ModelSpec] | None = None,
        *,
        request_type: AnalysisRequestType = AnalysisRequestType.FULL,
        keywords: Sequence[str] = (),
    ) -> BatchAnalysisResult:
        """Analyse a batch with the first model that has quota and succeeds.

        :param batch: The batch to analyse.
        :param models: Models in fallback order. Defaults to the configured models.
        :param request_type: The request shape.
        :param keywords: Keywords to match against.
        :returns: Per-item results and the model that produced them.
        :raises ValueError: If the batch is empty.
        :raises AllModelsExhaustedError: If no model had quota or every call failed.
        """
        if not batch.items:
            raise ValueError("Cannot analyse an empty batch")

        models = list(models) if models is not None else self.config.model_specs
        prompt = build_batch_prompt(batch, request_type, keywords)
        schema = build_response_schema(request_type)
        failures: dict[str, str] = {}

        for model in models:
            if not self._quota.try_acquire(model):
                logger.info(f"Skipping model {model.name}: request quota reached")
                failures[model.name] = "quota exhausted"
                continue

            request = GenerationRequest(
                model_id=model.name,
                prompt=prompt,
                temperature=self.config.temperature,
                max_output_tokens=self.config.max_output_tokens,
                top_p=self.config.top_p,
                top_k=self.config.top_k,
                response_schema=schema,
            )

            try:
                reply = self._bedrock.generate(request)
                results = parse_batch_reply(reply, batch, request_type)
            except ModelInvocationError as e:
                logger.warning(f"Model {model.name} failed, trying next model: {e}")
                failures[model.name] = str(e)
                continue

            logger.info(
                f"Analysed {len(results)}/{len(batch.items)} items with model {model.name}"
            )
            return BatchAnalysisResult(results=results, used_model=model.name)

        logger.error(f"All models exhausted for batch of {len(batch.items)} items: {failures}")
        raise AllModelsExhaustedError(failures)

    def extract_keywords(
        self,
        batch: ContentBatch,
        keywords: Sequence[str],
        models: Sequence[ModelSpec] | None = None,
    ) -> BatchAnalysisResult:
        """Extract matched, suggested and provocative keywords for a batch."""
        return self.analyze(
            batch, models, request_type=AnalysisRequestType.KEYWORDS, keywords=keywords
        )

    def summarize(
        self,
        batch: ContentBatch,
        models: Sequence[ModelSpec] | None = None,
    ) -> BatchAnalysisResult:
        """Summarise each item of a batch with provocative keywords."""
        return self.analyze(batch, models, request_type=AnalysisRequestType.SUMMARY)

    def analyze_content(
        self,
        batch: ContentBatch,
        keywords: Sequence[str] = (),
        models: Sequence[ModelSpec] | None = None,
    ) -> BatchAnalysisResult:
        """Run the combined summary, headline and keyword analysis for a batch."""
        return self.analyze(
            batch, models, request_type=AnalysisRequestType.FULL, keywords=keywords
        )

    def quota_usage(self, models: Sequence[ModelSpec] | None = None) -> dict[str, tuple[int, int]]:
        """Report today's usage per model.

        :param models: Models to report on. Defaults to the configured models.
        :returns: Mapping of model name to ``(requests_today, rpd)``.
        """
        models = list(models) if models is not None else self.config.model_specs
        return {
            model.name: (self._quota.snapshot(model.name).requests_today, model.rpd)
            for model in models
        }


def _string_list(value: Any, limit: int) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()][:limit]


def parse_batch_reply(
    reply: dict[str, Any],
    batch: ContentBatch,
    request_type: AnalysisRequestType,
) -> dict[str, AnalysisItemResult]:
    """Turn a model reply into per-item results.

    Results for unknown content IDs are dropped. Items the model left out are
    logged and absent from the output. List fields are truncated to their caps.

    :param reply: The JSON object returned by the model.
    :param batch: The batch that was analysed.
    :param request_type: The request shape.
    :returns: Results keyed by content ID.
    :raises ModelInvocationError: If the reply is malformed, repeats a content ID,
        or covers none of the batch items.
    """
    entries = reply.get("results")
    if not isinstance(entries, list):
        raise ModelInvocationError("Reply has no 'results' list")

    expected_ids = set(batch.content_ids)
    list_fields = _LIST_FIELDS[request_type]
    results: dict[str, AnalysisItemResult] = {}

    for entry in entries:
        if not isinstance(entry, dict) or not isinstance(entry.get("contentId"), str):
            raise ModelInvocationError(f"Malformed result entry: {entry!r}")

        content_id = entry["contentId"].strip()
        if content_id not in expected_ids:
            logger.warning(f"Dropping result for unknown content ID {content_id!r}")
            continue
        if content_id in results:
            raise ModelInvocationError(f"Reply repeats content ID {content_id!r}")

        fields: dict[str, Any] = {
            attribute: _string_list(entry.get(key), limit)
            for key, (attribute, limit) in list_fields.items()
        }
        if request_type != AnalysisRequestType.KEYWORDS:
            summary = entry.get("summary")
            fields["summary"] = summary.strip() if isinstance(summary, str) else ""

        results[content_id] = AnalysisItemResult(content_id=content_id, **fields)

    if not results:
        raise ModelInvocationError("Reply contains no results for the batch items")

    missing = expected_ids - results.keys()
    if missing:
        logger.warning(f"Model returned no result for {len(missing)} items: {sorted(missing)}")

    return results
