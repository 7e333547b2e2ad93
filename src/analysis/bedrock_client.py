"""AWS Bedrock client for structured content analysis."""

from __future__ import annotations

import json
import logging
import time
from typing import TYPE_CHECKING, Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from src.analysis.exceptions import ModelInvocationError, OutputBudgetExceededError
from src.analysis.models import GenerationRequest

if TYPE_CHECKING:
    from mypy_boto3_bedrock_runtime import BedrockRuntimeClient

logger = logging.getLogger(__name__)

# Model ID aliases - use these instead of full Bedrock model IDs
MODEL_ALIASES: dict[str, str] = {
    "haiku": "global.anthropic.claude-haiku-4-5-20251001-v1:0",
    "sonnet": "global.anthropic.claude-sonnet-4-5-20250929-v1:0",
    "opus": "global.anthropic.claude-opus-4-5-20251101-v1:0",
}

# Name of the forced tool whose input schema carries the response schema
STRUCTURED_OUTPUT_TOOL = "record_analysis"
MAX_TOKENS_STOP_REASON = "max_tokens"


def resolve_model_id(model_id: str) -> str:
    """Resolve a model alias to a full model ID.

    :param model_id: Model alias (haiku, sonnet, opus) or a full Bedrock model ID.
    :returns: Full Bedrock model ID. Unknown names are returned unchanged.
    """
    return MODEL_ALIASES.get(model_id.lower(), model_id)


class BedrockClient:
    """Client for the AWS Bedrock Converse API returning structured JSON.

    The response schema is enforced by forcing the model to call a single
    tool whose input schema is the requested schema. SDK retries are
    disabled; callers decide whether to try another model.
    """

    def __init__(
        self,
        region_name: str = "eu-west-2",
        *,
        connect_timeout: int = 10,
        read_timeout: int = 120,
    ) -> None:
        """Initialise the Bedrock client.

        :param region_name: AWS region.
        :param connect_timeout: Connect timeout in seconds.
        :param read_timeout: Read timeout in seconds.
        """
        self.region_name = region_name

        self._client: BedrockRuntimeClient = boto3.client(
            "bedrock-runtime",
            region_name=self.region_name,
            config=Config(
                connect_timeout=connect_timeout,
                read_timeout=read_timeout,
                retries={"max_attempts": 0},
            ),
        )

        logger.debug(f"Initialised BedrockClient: region={self.region_name}")

    def generate(self, request: GenerationRequest) -> dict[str, Any]:
        """Run a structured generation request.

        :param request: The generation request.
        :returns: The JSON object produced by the model.
        :raises OutputBudgetExceededError: If the model ran out of output tokens.
        :raises ModelInvocationError: If the call fails or the reply is not a JSON object.
        """
        effective_model = resolve_model_id(request.model_id)
        request_params: dict[str, Any] = {
            "modelId": effective_model,
            "messages": [{"role": "user", "content": [{"text": request.prompt}]}],
            "inferenceConfig": {
                "maxTokens": request.max_output_tokens,
                "temperature": request.temperature,
                "topP": request.top_p,
            },
            "additionalModelRequestFields": {"top_k": request.top_k},
            "toolConfig": {
                "tools": [
                    {
                        "toolSpec": {
                            "name": STRUCTURED_OUTPUT_TOOL,
                            "description": "Record the analysis results.",
                            "inputSchema": {"json": request.response_schema},
                        }
                    }
                ],
                "toolChoice": {"tool": {"name": STRUCTURED_OUTPUT_TOOL}},
            },
        }

        try:
            logger.debug(f"Calling Bedrock Converse: model={effective_model}")
            start_time = time.perf_counter()
            response = dict(self._client.converse(**request_params))
            latency_ms = int((time.perf_counter() - start_time) * 1000)
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            error_message = e.response.get("Error", {}).get("Message", str(e))
            logger.warning(f"Bedrock API error: code={error_code}, message={error_message}")
            raise ModelInvocationError(
                f"Bedrock API call failed: {error_code} - {error_message}"
            ) from e
        except BotoCoreError as e:
            logger.warning(f"Bedrock transport error: {e}")
            raise ModelInvocationError(f"Bedrock transport error: {e}") from e

        stop_reason = str(response.get("stopReason", ""))
        logger.debug(
            f"Bedrock response: stop_reason={stop_reason}, "
            f"usage={response.get('usage', {})}, latency_ms={latency_ms}"
        )

        if stop_reason == MAX_TOKENS_STOP_REASON:
            raise OutputBudgetExceededError(
                f"Model {request.model_id} exceeded {request.max_output_tokens} output tokens"
            )

        return self.parse_structured_output(response)

    def parse_structured_output(self, response: dict[str, Any]) -> dict[str, Any]:
        """Extract the JSON object from a Converse response.

        The forced tool input is used when present; otherwise the text blocks
        are parsed as a pure JSON document.

        :param response: Converse API response.
        :returns: The JSON object.
        :raises ModelInvocationError: If no JSON object can be extracted.
        """
        content = response.get("output", {}).get("message", {}).get("content", [])

        for block in content:
            tool_input = block.get("toolUse", {}).get("input")
            if isinstance(tool_input, dict):
                return tool_input

        text = "\n".join(block["text"] for block in content if "text" in block).strip()
        if not text:
            raise ModelInvocationError("Model returned an empty reply")

        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as e:
            raise ModelInvocationError(f"Model reply is not valid JSON: {e}") from e

        if not isinstance(parsed, dict):
            raise ModelInvocationError("Model reply is not a JSON object")
        return parsed
