"""Pydantic models for pipeline inputs and results."""

from pydantic import BaseModel, ConfigDict, Field

from src.analysis.models import AggregatedAnalysis


class MailPayload(BaseModel):
    """A received newsletter mail."""

    model_config = ConfigDict(frozen=True)

    sender: str
    body: str


class PipelineResult(BaseModel):
    """Result of one pipeline run."""

    mails_processed: int = 0
    mails_skipped: int = 0
    feeds_fetched: int = 0
    items_extracted: int = 0
    items_duplicate: int = 0
    batches_analysed: int = 0
    batches_failed: int = 0
    analysis: AggregatedAnalysis = Field(default_factory=AggregatedAnalysis)
    errors: list[str] = Field(default_factory=list)
