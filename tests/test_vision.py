# Tests for the vision gateway: normalisation, clamping, formatting, errors.
# Created: 2026-10-08

import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from pashuai.errors import AnalysisError
from pashuai.vision.analyzer import (
    OpenAIVisionProvider,
    VisionAnalysis,
    VisionGateway,
    clamp_confidence,
    format_analysis_message,
    normalize_analysis,
    parse_analysis_text,
)


class FakeVisionProvider:
    name = "fake"

    def __init__(self, reply="", error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    async def describe(self, image_b64, mime_type, system, prompt):
        self.calls.append({"image_b64": image_b64, "mime_type": mime_type, "system": system, "prompt": prompt})
        if self.error:
            raise self.error
        return self.reply


class TestClampConfidence:
    @pytest.mark.parametrize(
        "raw, expected",
        [(-10, 0), (150, 100), (85, 85), (72.5, 72.5), ("90", 90), (None, 0), ("high", 0), (True, 0)],
    )
    def test_clamp(self, raw, expected):
        assert clamp_confidence(raw) == expected

    def test_nan(self):
        assert clamp_confidence(float("nan")) == 0


class TestNormalize:
    def test_missing_fields_defaulted(self):
        analysis = normalize_analysis({})
        assert analysis == VisionAnalysis(
            diagnosis="Unknown condition",
            confidence=0,
            treatment=[],
            prevention=[],
            description="No description available",
        )

    def test_missing_confidence_is_zero(self):
        assert normalize_analysis({"diagnosis": "Leaf rust"}).confidence == 0

    def test_wrong_types_defaulted(self):
        analysis = normalize_analysis(
            {"diagnosis": 42, "treatment": "spray once", "prevention": None, "description": ""}
        )
        assert analysis.diagnosis == "Unknown condition"
        assert analysis.treatment == []
        assert analysis.prevention == []
        assert analysis.description == "No description available"

    def test_list_items_coerced_to_strings(self):
        analysis = normalize_analysis({"treatment": ["Isolate animal", 2, None, " "]})
        assert analysis.treatment == ["Isolate animal", "2"]

    def test_non_dict_payload(self):
        assert normalize_analysis(["not", "a", "dict"]).diagnosis == "Unknown condition"

    def test_parse_tolerates_surrounding_prose(self):
        text = 'Here is my analysis:\n```json\n{"diagnosis": "Foot and mouth disease", "confidence": 150}\n```'
        analysis = parse_analysis_text(text)
        assert analysis.diagnosis == "Foot and mouth disease"
        assert analysis.confidence == 100

    def test_parse_garbage(self):
        assert parse_analysis_text("I cannot see the image").diagnosis == "Unknown condition"
        assert parse_analysis_text("{not json}").description == "No description available"


class TestFormatMessage:
    def test_layout(self):
        analysis = VisionAnalysis(
            diagnosis="Late blight",
            confidence=88,
            treatment=["Remove infected leaves", "Apply copper fungicide"],
            prevention=["Rotate crops"],
            description="Dark lesions on potato leaves.",
        )
        assert format_analysis_message(analysis) == (
            "**AI Vision Analysis**\n\n"
            "**Diagnosis:** Late blight\n"
            "**Confidence:** 88%\n\n"
            "**Treatment:**\n1. Remove infected leaves\n2. Apply copper fungicide\n\n"
            "**Prevention:**\n1. Rotate crops\n\n"
            "**Description:** Dark lesions on potato leaves."
        )


class TestVisionGateway:
    async def test_analyze_parses_provider_reply(self):
        reply = json.dumps(
            {
                "diagnosis": "Lumpy skin disease",
                "confidence": -10,
                "treatment": ["Call a veterinarian"],
                "prevention": ["Vaccinate herd"],
                "description": "Nodules on the skin.",
            }
        )
        provider = FakeVisionProvider(reply=reply)
        analysis = await VisionGateway(provider).analyze(
            b"\xff\xd8jpeg", context_hint="livestock health", language="hi", mime_type="image/png"
        )

        assert analysis.diagnosis == "Lumpy skin disease"
        assert analysis.confidence == 0
        call = provider.calls[0]
        assert call["mime_type"] == "image/png"
        assert "livestock health" in call["prompt"]
        assert "Respond in Hindi language." in call["system"]

    async def test_malformed_reply_is_not_an_error(self):
        analysis = await VisionGateway(FakeVisionProvider(reply="no json here")).analyze(b"img")
        assert analysis.diagnosis == "Unknown condition"

    async def test_provider_failure_raises_analysis_error(self):
        provider = FakeVisionProvider(error=httpx.ConnectError("unreachable"))
        with pytest.raises(AnalysisError):
            await VisionGateway(provider).analyze(b"img")

    async def test_http_status_error_message(self):
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        response = httpx.Response(401, request=request)
        provider = FakeVisionProvider(
            error=httpx.HTTPStatusError("unauthorized", request=request, response=response)
        )
        with pytest.raises(AnalysisError, match="fake API error 401"):
            await VisionGateway(provider).analyze(b"img")

    async def test_unconfigured_provider(self):
        with pytest.raises(AnalysisError, match="not configured"):
            await VisionGateway(None).analyze(b"img")


class TestOpenAIVisionProvider:
    async def test_request_shape(self):
        response = MagicMock()
        response.raise_for_status = MagicMock()
        response.json.return_value = {"choices": [{"message": {"content": '{"diagnosis": "Healthy"}'}}]}
        client = MagicMock()
        client.post = AsyncMock(return_value=response)

        provider = OpenAIVisionProvider(client, api_key="sk-test", model="gpt-4o")
        text = await provider.describe("QUJD", "image/jpeg", "system", "prompt")

        assert text == '{"diagnosis": "Healthy"}'
        kwargs = client.post.call_args.kwargs
        assert kwargs["headers"]["Authorization"] == "Bearer sk-test"
        body = kwargs["json"]
        assert body["response_format"] == {"type": "json_object"}
        image_part = body["messages"][1]["content"][1]
        assert image_part["image_url"]["url"] == "data:image/jpeg;base64,QUJD"
