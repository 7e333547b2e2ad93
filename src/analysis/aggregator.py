"""Merging of per-batch analysis results."""

import logging
from collections.abc import Iterable

from src.analysis.exceptions import InternalConsistencyError
from src.analysis.models import AggregatedAnalysis, BatchAnalysisResult

logger = logging.getLogger(__name__)


class AnalysisResultAggregator:
    """Accumulates batch results into one map keyed by content ID.

    Every content ID belongs to exactly one batch, so a repeated ID means the
    batching upstream is broken and is raised rather than overwritten.
    """

    def __init__(self) -> None:
        """Initialise an empty aggregator."""
        self._aggregated = AggregatedAnalysis()

    @property
    def result(self) -> AggregatedAnalysis:
        """The results merged so far."""
        return self._aggregated

    def add(self, partial: BatchAnalysisResult) -> None:
        """Merge one batch result.

        :param partial: The batch result.
        :raises InternalConsistencyError: If a content ID was already merged.
        """
        self.merge([partial])

    def merge(self, partials: Iterable[BatchAnalysisResult]) -> AggregatedAnalysis:
        """Merge several batch results.

        Nothing is merged unless every content ID is new, so a failed merge
        leaves the aggregator as it was.

        :param partials: The batch results.
        :returns: The aggregated results, including anything added earlier.
        :raises InternalConsistencyError: If a content ID appears more than once.
        """
        batches = list(partials)
        seen = set(self._aggregated.results)
        duplicates: set[str] = set()
        for partial in batches:
            duplicates.update(seen.intersection(partial.results))
            seen.update(partial.results)

        if duplicates:
            logger.error(f"Duplicate content IDs across batches: {sorted(duplicates)}")
            raise InternalConsistencyError(
                f"Content IDs appear in more than one batch: {sorted(duplicates)}"
            )

        for partial in batches:
            self._aggregated.results.update(partial.results)
            self._aggregated.used_models.add(partial.used_model)
        return self._aggregated


def merge_results(partials: Iterable[BatchAnalysisResult]) -> AggregatedAnalysis:
    """Merge batch results into a fresh aggregate.

    :param partials: The batch results.
    :returns: The aggregated results.
    :raises InternalConsistencyError: If a content ID appears more than once.
    """
    return AnalysisResultAggregator().merge(partials)
