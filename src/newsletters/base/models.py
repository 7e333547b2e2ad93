"""Pydantic models for newsletter content items."""

from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RawContentItem(BaseModel):
    """A content item extracted by a source parser, before sanitisation."""

    model_config = ConfigDict(frozen=True)

    source_sender_id: str
    title: str = ""
    body: str = ""
    link: str = ""
    section: str | None = None

    @field_validator("link")
    @classmethod
    def validate_link(cls, v: str) -> str:
        """Require an absolute http(s) URL or the empty string.

        :param v: The raw link value.
        :returns: The stripped link.
        :raises ValueError: If the link is not absolute.
        """
        v = v.strip()
        if not v:
            return v
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"Link must be an absolute http(s) URL: {v}")
        return v


class CleanContentItem(BaseModel):
    """A sanitised content item ready for batching."""

    model_config = ConfigDict(frozen=True)

    content_id: str = Field(..., min_length=1)
    sanitized_text: str
    source_metadata: dict[str, str] = Field(default_factory=dict)

    @property
    def length(self) -> int:
        """Length of the sanitised text in characters."""
        return len(self.sanitized_text)
