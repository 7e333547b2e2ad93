"""Pydantic models for batches, model requests and analysis results."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.newsletters.base.models import CleanContentItem


class ContentBatch(BaseModel):
    """An ordered, size-bounded group of content items sent in one request."""

    model_config = ConfigDict(frozen=True)

    items: tuple[CleanContentItem, ...]
    total_length: int = Field(..., ge=0)

    @model_validator(mode="after")
    def validate_total_length(self) -> "ContentBatch":
        """Check the total length matches the items."""
        actual = sum(item.length for item in self.items)
        if actual != self.total_length:
            raise ValueError(f"total_length {self.total_length} does not match items ({actual})")
        return self

    @property
    def content_ids(self) -> list[str]:
        """Content IDs in batch order."""
        return [item.content_id for item in self.items]


class GenerationRequest(BaseModel):
    """A provider-neutral structured generation request."""

    model_config = ConfigDict(frozen=True)

    model_id: str
    prompt: str
    temperature: float = 0.4
    max_output_tokens: int = 8000
    top_p: float = 0.8
    top_k: int = 40
    candidate_count: int = 1
    response_mime_type: str = "application/json"
    response_schema: dict[str, Any]


class AnalysisItemResult(BaseModel):
    """The analysis of one content item."""

    model_config = ConfigDict(frozen=True)

    content_id: str
    summary: str = ""
    provocative_headlines: list[str] = Field(default_factory=list)
    matched_keywords: list[str] = Field(default_factory=list)
    suggested_keywords: list[str] = Field(default_factory=list)
    provocative_keywords: list[str] = Field(default_factory=list)


class BatchAnalysisResult(BaseModel):
    """The analysis of one batch and the model that produced it."""

    model_config = ConfigDict(frozen=True)

    results: dict[str, AnalysisItemResult]
    used_model: str


class AggregatedAnalysis(BaseModel):
    """Results merged across batches."""

    results: dict[str, AnalysisItemResult] = Field(default_factory=dict)
    used_models: set[str] = Field(default_factory=set)
