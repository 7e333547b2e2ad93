"""Tests for BedrockClient."""

import unittest
from typing import Any
from unittest.mock import MagicMock, patch

from botocore.exceptions import ClientError, EndpointConnectionError

from src.analysis.bedrock_client import (
    MODEL_ALIASES,
    STRUCTURED_OUTPUT_TOOL,
    BedrockClient,
    resolve_model_id,
)
from src.analysis.exceptions import ModelInvocationError, OutputBudgetExceededError
from src.analysis.models import GenerationRequest

SCHEMA: dict[str, Any] = {"type": "object", "properties": {"results": {"type": "array"}}}


def _request(model_id: str = "haiku") -> GenerationRequest:
    return GenerationRequest(
        model_id=model_id,
        prompt="Analyse this",
        temperature=0.4,
        max_output_tokens=8000,
        top_p=0.8,
        top_k=40,
        response_schema=SCHEMA,
    )


def _tool_response(tool_input: dict[str, Any], stop_reason: str = "tool_use") -> dict[str, Any]:
    return {
        "output": {
            "message": {
                "role": "assistant",
                "content": [
                    {"toolUse": {"toolUseId": "t1", "name": STRUCTURED_OUTPUT_TOOL, "input": tool_input}}
                ],
            }
        },
        "stopReason": stop_reason,
        "usage": {"inputTokens": 10, "outputTokens": 5},
    }


def _text_response(text: str, stop_reason: str = "end_turn") -> dict[str, Any]:
    return {
        "output": {"message": {"role": "assistant", "content": [{"text": text}]}},
        "stopReason": stop_reason,
    }


class TestResolveModelId(unittest.TestCase):
    """Tests for resolve_model_id function."""

    def test_resolve_aliases(self) -> None:
        """Test resolving each alias."""
        for alias, model_id in MODEL_ALIASES.items():
            self.assertEqual(resolve_model_id(alias), model_id)

    def test_resolve_case_insensitive(self) -> None:
        """Test that model aliases are case insensitive."""
        self.assertEqual(resolve_model_id("HAIKU"), MODEL_ALIASES["haiku"])

    def test_unknown_name_passes_through(self) -> None:
        """Test that a full model ID is returned unchanged."""
        self.assertEqual(resolve_model_id("eu.custom-model-v1:0"), "eu.custom-model-v1:0")


class TestBedrockClient(unittest.TestCase):
    """Tests for BedrockClient."""

    def setUp(self) -> None:
        """Patch boto3 so no AWS client is created."""
        patcher = patch("src.analysis.bedrock_client.boto3.client")
        self.mock_boto_client = patcher.start()
        self.addCleanup(patcher.stop)
        self.mock_runtime = MagicMock()
        self.mock_boto_client.return_value = self.mock_runtime

    def test_init_disables_sdk_retries(self) -> None:
        """Test client is created with timeouts and without retries."""
        client = BedrockClient(region_name="us-east-1", connect_timeout=5, read_timeout=30)

        self.assertEqual(client.region_name, "us-east-1")
        args, kwargs = self.mock_boto_client.call_args
        self.assertEqual(args, ("bedrock-runtime",))
        self.assertEqual(kwargs["region_name"], "us-east-1")
        config = kwargs["config"]
        self.assertEqual(config.connect_timeout, 5)
        self.assertEqual(config.read_timeout, 30)
        self.assertEqual(config.retries, {"max_attempts": 0})

    def test_generate_builds_converse_request(self) -> None:
        """Test the Converse request carries the sampling settings and forced tool."""
        self.mock_runtime.converse.return_value = _tool_response({"results": []})
        client = BedrockClient()

        client.generate(_request())

        kwargs = self.mock_runtime.converse.call_args.kwargs
        self.assertEqual(kwargs["modelId"], MODEL_ALIASES["haiku"])
        self.assertEqual(kwargs["messages"][0]["content"][0]["text"], "Analyse this")
        self.assertEqual(
            kwargs["inferenceConfig"], {"maxTokens": 8000, "temperature": 0.4, "topP": 0.8}
        )
        self.assertEqual(kwargs["additionalModelRequestFields"], {"top_k": 40})
        tool_spec = kwargs["toolConfig"]["tools"][0]["toolSpec"]
        self.assertEqual(tool_spec["name"], STRUCTURED_OUTPUT_TOOL)
        self.assertEqual(tool_spec["inputSchema"], {"json": SCHEMA})
        self.assertEqual(
            kwargs["toolConfig"]["toolChoice"], {"tool": {"name": STRUCTURED_OUTPUT_TOOL}}
        )

    def test_generate_returns_tool_input(self) -> None:
        """Test the forced tool input is returned."""
        reply = {"results": [{"contentId": "a", "summary": "s"}]}
        self.mock_runtime.converse.return_value = _tool_response(reply)

        self.assertEqual(BedrockClient().generate(_request()), reply)

    def test_generate_falls_back_to_text_json(self) -> None:
        """Test a pure JSON text reply is parsed."""
        self.mock_runtime.converse.return_value = _text_response('{"results": []}')

        self.assertEqual(BedrockClient().generate(_request()), {"results": []})

    def test_generate_max_tokens_raises(self) -> None:
        """Test a reply cut off by the output budget raises OutputBudgetExceededError."""
        self.mock_runtime.converse.return_value = _text_response('{"results": [', "max_tokens")

        with self.assertRaises(OutputBudgetExceededError):
            BedrockClient().generate(_request())

    def test_generate_client_error_raises(self) -> None:
        """Test that ClientError is converted to ModelInvocationError."""
        self.mock_runtime.converse.side_effect = ClientError(
            {"Error": {"Code": "ThrottlingException", "Message": "Rate exceeded"}},
            "Converse",
        )

        with self.assertRaises(ModelInvocationError) as ctx:
            BedrockClient().generate(_request())

        self.assertIn("ThrottlingException", str(ctx.exception))
        self.assertIn("Rate exceeded", str(ctx.exception))

    def test_generate_transport_error_raises(self) -> None:
        """Test that transport errors are converted to ModelInvocationError."""
        self.mock_runtime.converse.side_effect = EndpointConnectionError(
            endpoint_url="https://bedrock-runtime.eu-west-2.amazonaws.com"
        )

        with self.assertRaises(ModelInvocationError):
            BedrockClient().generate(_request())


class TestParseStructuredOutput(unittest.TestCase):
    """Tests for BedrockClient.parse_structured_output."""

    @patch("src.analysis.bedrock_client.boto3.client")
    def setUp(self, mock_boto_client: MagicMock) -> None:
        """Create a client with a mocked runtime."""
        self.client = BedrockClient()

    def test_empty_reply_raises(self) -> None:
        """Test that a reply without content raises."""
        with self.assertRaises(ModelInvocationError):
            self.client.parse_structured_output({"output": {"message": {"content": []}}})

    def test_invalid_json_raises(self) -> None:
        """Test that non-JSON text raises."""
        with self.assertRaises(ModelInvocationError):
            self.client.parse_structured_output(_text_response("Here are your results"))

    def test_non_object_json_raises(self) -> None:
        """Test that a JSON array reply raises."""
        with self.assertRaises(ModelInvocationError):
            self.client.parse_structured_output(_text_response("[1, 2]"))


if __name__ == "__main__":
    unittest.main()
