"""Prompt builders and response schemas for batch analysis requests."""

from collections.abc import Sequence
from typing import Any

from src.analysis.models import ContentBatch
from src.enums import AnalysisRequestType

MAX_MATCHED_KEYWORDS = 5
MAX_SUGGESTED_KEYWORDS = 5
MAX_PROVOCATIVE_KEYWORDS = 3
MAX_SUMMARY_PROVOCATIVE_KEYWORDS = 5
MAX_PROVOCATIVE_HEADLINES = 5

_STRING_ARRAY: dict[str, Any] = {"type": "array", "items": {"type": "string"}}

# Per-item fields required by each request type, with their JSON schema
RESPONSE_FIELDS: dict[AnalysisRequestType, dict[str, dict[str, Any]]] = {
    AnalysisRequestType.KEYWORDS: {
        "matchedKeywords": {**_STRING_ARRAY, "description": "Requested keywords the content matches"},
        "suggestedKeywords": {**_STRING_ARRAY, "description": "New keywords suggested by the content"},
        "provocativeKeywords": {**_STRING_ARRAY, "description": "Attention-grabbing keywords"},
    },
    AnalysisRequestType.SUMMARY: {
        "summary": {"type": "string", "description": "Two to three sentence summary"},
        "provocativeKeywords": {**_STRING_ARRAY, "description": "Attention-grabbing keywords"},
    },
    AnalysisRequestType.FULL: {
        "summary": {"type": "string", "description": "Summary of the main points"},
        "provocativeHeadlines": {**_STRING_ARRAY, "description": "Click-worthy headlines"},
        "matchedKeywords": {**_STRING_ARRAY, "description": "Requested keywords the content matches"},
        "suggestedKeywords": {**_STRING_ARRAY, "description": "New keywords suggested by the content"},
        "provocativeKeywords": {**_STRING_ARRAY, "description": "Attention-grabbing keywords"},
    },
}

_INSTRUCTIONS: dict[AnalysisRequestType, str] = {
    AnalysisRequestType.KEYWORDS: f"""\
Extract keywords for each content item:
- matchedKeywords: requested keywords that match the content (at most {MAX_MATCHED_KEYWORDS})
- suggestedKeywords: new keywords based on the content (at most {MAX_SUGGESTED_KEYWORDS})
- provocativeKeywords: fun, attention-grabbing keywords (at most {MAX_PROVOCATIVE_KEYWORDS})
Keep keywords short and essential.""",
    AnalysisRequestType.SUMMARY: f"""\
Summarise each content item:
- summary: the main points in 2-3 sentences
- provocativeKeywords: fun, attention-grabbing keywords (at most {MAX_SUMMARY_PROVOCATIVE_KEYWORDS})""",
    AnalysisRequestType.FULL: f"""\
Analyse each content item:
- summary: the main points in 5-6 concise sentences
- provocativeHeadlines: click-worthy headlines that read naturally, most provocative first \
(at most {MAX_PROVOCATIVE_HEADLINES}); prefer technical terms software engineers care about
- matchedKeywords: requested keywords that match the content (at most {MAX_MATCHED_KEYWORDS})
- suggestedKeywords: new keywords based on the content (at most {MAX_SUGGESTED_KEYWORDS})
- provocativeKeywords: fun, attention-grabbing keywords (at most {MAX_PROVOCATIVE_KEYWORDS})""",
}


def build_response_schema(request_type: AnalysisRequestType) -> dict[str, Any]:
    """Build the JSON schema for a batch reply.

    The reply is ``{"results": [{"contentId": ..., <fields>}, ...]}``.

    :param request_type: The request shape.
    :returns: The JSON schema.
    """
    fields = RESPONSE_FIELDS[request_type]
    return {
        "type": "object",
        "properties": {
            "results": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "contentId": {"type": "string", "description": "Content ID"},
                        **fields,
                    },
                    "required": ["contentId", *fields],
                },
            }
        },
        "required": ["results"],
    }


def build_batch_prompt(
    batch: ContentBatch,
    request_type: AnalysisRequestType,
    keywords: Sequence[str] = (),
) -> str:
    """Build the prompt for analysing every item of a batch.

    :param batch: The batch to analyse.
    :param request_type: The request shape.
    :param keywords: Keywords to match against.
    :returns: The prompt text.
    """
    contents = "\n\n".join(
        f"[Content ID: {item.content_id}]\n{item.sanitized_text}" for item in batch.items
    )
    requested = ", ".join(keywords) if keywords else "(none)"

    return f"""\
Analyse each of the following {len(batch.items)} content items independently.
Every item is identified by a unique content ID, which must be included in its result.

Requested keywords: {requested}

Content items:
{contents}

Rules:
- Return one result per content item with its contentId
- Return pure JSON only, no markdown

{_INSTRUCTIONS[request_type]}"""
