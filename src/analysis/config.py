"""Configuration for content analysis using pydantic-settings."""

from functools import cached_property, lru_cache

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.paths import ENV_FILE

MAX_CONTENT_LENGTH = 10_000
MAX_TOTAL_BATCH_LENGTH = 50_000


class ModelSpec(BaseModel):
    """A model and its request ceilings.

    :param name: Model alias (haiku, sonnet, opus) or full Bedrock model ID.
    :param rpm: Maximum requests per minute.
    :param rpd: Maximum requests per UTC day.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    rpm: int = Field(..., ge=1)
    rpd: int = Field(..., ge=1)

    @classmethod
    def parse(cls, value: str) -> "ModelSpec":
        """Parse a ``name:rpm:rpd`` string.

        :param value: The spec string.
        :returns: The parsed spec.
        :raises ValueError: If the string is not in ``name:rpm:rpd`` form.
        """
        name, separator, limits = value.strip().rpartition(":")
        name, separator_2, rpm = name.rpartition(":")
        if not separator or not separator_2:
            raise ValueError(f"Model spec must be 'name:rpm:rpd', got {value!r}")
        return cls(name=name, rpm=int(rpm), rpd=int(limits))


class AnalysisConfig(BaseSettings):
    """Configuration for batching and model invocation.

    All settings are loaded from environment variables with the ANALYSIS_ prefix.

    :param max_content_length: Per-item length cap; longer items are truncated.
    :param max_total_batch_length: Total length cap for one batch.
    :param models: Comma-separated ``name:rpm:rpd`` list in fallback order.
    :param temperature: Sampling temperature.
    :param top_p: Nucleus sampling threshold.
    :param top_k: Top-k sampling cutoff.
    :param max_output_tokens: Output token budget per batch request.
    :param aws_region: AWS region for Bedrock.
    :param connect_timeout_seconds: Bedrock connect timeout.
    :param read_timeout_seconds: Bedrock read timeout.
    """

    model_config = SettingsConfigDict(
        env_prefix="ANALYSIS_",
        env_file=ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    max_content_length: int = Field(default=MAX_CONTENT_LENGTH, ge=1)
    max_total_batch_length: int = Field(default=MAX_TOTAL_BATCH_LENGTH, ge=1)
    models: str = Field(
        default="haiku:5:20,sonnet:10:20",
        description="Comma-separated name:rpm:rpd list in fallback order",
    )
    temperature: float = Field(default=0.4, ge=0.0, le=1.0)
    top_p: float = Field(default=0.8, gt=0.0, le=1.0)
    top_k: int = Field(default=40, ge=1)
    max_output_tokens: int = Field(default=8000, ge=1)
    aws_region: str = Field(default="eu-west-2")
    connect_timeout_seconds: int = Field(default=10, ge=1)
    read_timeout_seconds: int = Field(default=120, ge=1)

    @field_validator("models")
    @classmethod
    def validate_models(cls, v: str) -> str:
        """Validate that at least one well-formed model spec is configured.

        :param v: Raw comma-separated string from environment.
        :returns: The validated string.
        :raises ValueError: If the value is empty or a spec is malformed.
        """
        specs = [spec for spec in v.split(",") if spec.strip()]
        if not specs:
            raise ValueError("At least one model must be configured in ANALYSIS_MODELS")
        for spec in specs:
            try:
                ModelSpec.parse(spec)
            except ValueError as e:
                raise ValueError(f"Invalid model spec {spec.strip()!r}: {e}") from e
        return v

    @cached_property
    def model_specs(self) -> list[ModelSpec]:
        """Get the configured models in fallback order.

        :returns: Parsed model specs.
        """
        return [ModelSpec.parse(spec) for spec in self.models.split(",") if spec.strip()]


@lru_cache
def get_analysis_settings() -> AnalysisConfig:
    """Get cached analysis settings.

    :returns: Configured AnalysisConfig instance.
    """
    return AnalysisConfig()
