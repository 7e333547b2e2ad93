"""End-to-end content pipeline."""

from src.pipeline.models import MailPayload, PipelineResult
from src.pipeline.service import ContentPipeline

__all__ = ["ContentPipeline", "MailPayload", "PipelineResult"]
