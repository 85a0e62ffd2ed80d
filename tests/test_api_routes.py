# Tests for the /api routes.
# Created: 2026-10-13

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from starlette.datastructures import UploadFile

from pashuai.api.routes.media import format_size
from pashuai.api.serve import create_api_app
from pashuai.chat.session import ChatSessionController
from pashuai.config import Settings
from pashuai.conversations.store import FileConversationStore
from pashuai.llm.gateway import GenerationGateway
from pashuai.uploads import LocalImageStore
from pashuai.vision.analyzer import VisionGateway
from pashuai.weather.client import WeatherReport

ANALYSIS_JSON = json.dumps(
    {
        "diagnosis": "Mastitis",
        "confidence": 82,
        "treatment": ["Consult a veterinarian"],
        "prevention": ["Keep udder clean"],
        "description": "Swollen udder quarter.",
    }
)


class FakeStrategy:
    name = "fake"
    model = "fake-model"

    async def complete(self, system, history):
        return f"Answer to: {history[-1].content}"

    async def stream(self, system, history):
        for chunk in ["Keep ", "the ", "shed ", "dry."]:
            yield chunk


class FakeVisionProvider:
    name = "fake-vision"

    def __init__(self, reply=ANALYSIS_JSON, error=None):
        self.reply = reply
        self.error = error

    async def describe(self, image_b64, mime_type, system, prompt):
        if self.error:
            raise self.error
        return self.reply


@pytest.fixture
def settings(tmp_path):
    return Settings(data_dir=tmp_path, max_upload_bytes=1024)


@pytest.fixture
def vision_provider():
    return FakeVisionProvider()


@pytest.fixture
def weather():
    responder = MagicMock()
    responder.lookup = AsyncMock(return_value=None)
    responder.try_answer = AsyncMock(return_value=None)
    return responder


@pytest.fixture
def controller(tmp_path, vision_provider, weather):
    return ChatSessionController(
        FileConversationStore(tmp_path / "conversations"),
        GenerationGateway([FakeStrategy()]),
        vision=VisionGateway(vision_provider),
        responder=weather,
        image_store=LocalImageStore(tmp_path / "uploads"),
    )


@pytest.fixture
def client(settings, controller, weather):
    return TestClient(create_api_app(settings=settings, controller=controller, weather=weather))


@pytest.fixture
def conversation_id(client):
    resp = client.post("/api/conversations", json={"userId": "farmer-1", "title": "Cattle", "language": "en"})
    return resp.json()["id"]


class TestHealth:
    def test_health(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"

    def test_error_envelope_documented(self, client):
        paths = client.get("/api/openapi.json").json()["paths"]
        documented = paths["/api/analyze-image"]["post"]["responses"]
        assert documented["400"]["content"]["application/json"]["schema"]["$ref"].endswith("/ErrorResponse")
        assert "502" in paths["/api/weather"]["get"]["responses"]


def test_format_size():
    assert format_size(10 * 1024 * 1024) == "10 MB"
    assert format_size(1536 * 1024) == "1.5 MB"
    assert format_size(1024) == "1 KB"
    assert format_size(500) == "500 bytes"


class TestConversationRoutes:
    def test_create_conversation(self, client):
        resp = client.post("/api/conversations", json={"userId": "u1", "title": "Goats", "language": "hi"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["userId"] == "u1"
        assert data["language"] == "hi"
        assert data["createdAt"] == data["updatedAt"]

    def test_list_user_conversations(self, client, conversation_id):
        resp = client.get("/api/conversations/user/farmer-1")
        assert resp.status_code == 200
        assert [c["id"] for c in resp.json()] == [conversation_id]
        assert client.get("/api/conversations/user/nobody").json() == []

    def test_messages_of_unknown_conversation(self, client):
        resp = client.get("/api/conversations/missing/messages")
        assert resp.status_code == 404
        assert resp.json() == {"message": "Conversation not found: missing"}

    def test_append_message(self, client, conversation_id):
        resp = client.post(
            f"/api/conversations/{conversation_id}/messages",
            json={"role": "user", "content": "Hello", "audioUrl": "/audio/1.webm"},
        )
        assert resp.status_code == 200
        assert resp.json()["audioUrl"] == "/audio/1.webm"

        messages = client.get(f"/api/conversations/{conversation_id}/messages").json()
        assert [m["content"] for m in messages] == ["Hello"]
        assert "seq" not in messages[0]

    def test_append_message_invalid_role(self, client, conversation_id):
        resp = client.post(
            f"/api/conversations/{conversation_id}/messages", json={"role": "robot", "content": "x"}
        )
        assert resp.status_code == 400
        assert "message" in resp.json()

    def test_append_message_unknown_conversation(self, client):
        resp = client.post("/api/conversations/missing/messages", json={"role": "user", "content": "x"})
        assert resp.status_code == 404


class TestChatRoutes:
    def test_buffered_chat(self, client, conversation_id):
        resp = client.post(
            "/api/chat", json={"conversationId": conversation_id, "content": "Tick control?", "language": "en"}
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["userMessage"]["content"] == "Tick control?"
        assert data["assistantMessage"]["content"] == "Answer to: Tick control?"
        assert data["assistantMessage"]["role"] == "assistant"

    def test_buffered_chat_validation(self, client):
        resp = client.post("/api/chat", json={"conversationId": "abc"})
        assert resp.status_code == 400
        assert resp.json()["message"]

    def test_buffered_chat_unknown_conversation(self, client):
        resp = client.post("/api/chat", json={"conversationId": "missing", "content": "hi"})
        assert resp.status_code == 404

    def test_stream_missing_params(self, client):
        resp = client.get("/api/chat/stream", params={"content": "hi"})
        assert resp.status_code == 400
        assert resp.json() == {"message": "Missing required parameters: conversationId and content"}

    def test_stream_unknown_conversation(self, client):
        resp = client.get("/api/chat/stream", params={"conversationId": "missing", "content": "hi"})
        assert resp.status_code == 404

    def test_stream(self, client, conversation_id):
        resp = client.get(
            "/api/chat/stream", params={"conversationId": conversation_id, "content": "Monsoon shed tips?"}
        )
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/event-stream")
        assert resp.headers["cache-control"] == "no-cache"

        events = [
            json.loads(line[len("data: ") :]) for line in resp.text.split("\n\n") if line.startswith("data: ")
        ]
        assert events[0] == {"status": "connected"}
        chunks = "".join(e["chunk"] for e in events if "chunk" in e)
        assert chunks == "Keep the shed dry."
        assert events[-1]["done"] is True

        messages = client.get(f"/api/conversations/{conversation_id}/messages").json()
        assert [m["role"] for m in messages] == ["user", "assistant"]
        assert messages[-1]["content"] == chunks
        assert messages[-1]["id"] == events[-1]["messageId"]


class TestAnalyzeImage:
    def test_analyze_image(self, client, conversation_id):
        resp = client.post(
            "/api/analyze-image",
            files={"image": ("udder.jpg", b"\xff\xd8\xff\xe0jpeg", "image/jpeg")},
            data={"conversationId": conversation_id, "context": "livestock health"},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["analysis"]["diagnosis"] == "Mastitis"
        assert data["analysis"]["confidence"] == 82
        assert data["message"]["metadata"]["diagnosis"] == "Mastitis"

        image_url = data["message"]["imageUrl"]
        assert image_url.startswith("/uploads/udder-")
        assert client.get(image_url).content == b"\xff\xd8\xff\xe0jpeg"

    def test_missing_image(self, client, conversation_id):
        resp = client.post("/api/analyze-image", data={"conversationId": conversation_id})
        assert resp.status_code == 400
        assert resp.json() == {"message": "No image file provided"}

    def test_non_image_rejected(self, client, conversation_id):
        resp = client.post(
            "/api/analyze-image",
            files={"image": ("notes.pdf", b"%PDF", "application/pdf")},
            data={"conversationId": conversation_id},
        )
        assert resp.status_code == 400
        assert resp.json() == {"message": "Only image files are allowed!"}

    def test_oversized_image_rejected(self, client, conversation_id):
        resp = client.post(
            "/api/analyze-image",
            files={"image": ("big.jpg", b"x" * 2048, "image/jpeg")},
            data={"conversationId": conversation_id},
        )
        assert resp.status_code == 400
        assert resp.json() == {"message": "Image exceeds the 1 KB upload limit"}

    def test_oversized_image_read_stops_at_limit(self, client, conversation_id, monkeypatch):
        sizes = []
        original_read = UploadFile.read

        async def _spy_read(self, size=-1):
            sizes.append(size)
            return await original_read(self, size)

        monkeypatch.setattr(UploadFile, "read", _spy_read)
        resp = client.post(
            "/api/analyze-image",
            files={"image": ("huge.jpg", b"x" * 500_000, "image/jpeg")},
            data={"conversationId": conversation_id},
        )
        assert resp.status_code == 400
        assert sizes == [1025]

    def test_image_at_limit_accepted(self, client, conversation_id):
        resp = client.post(
            "/api/analyze-image",
            files={"image": ("exact.jpg", b"x" * 1024, "image/jpeg")},
            data={"conversationId": conversation_id},
        )
        assert resp.status_code == 200

    def test_vision_failure_is_500(self, client, conversation_id, vision_provider):
        vision_provider.error = RuntimeError("provider unreachable")
        resp = client.post(
            "/api/analyze-image",
            files={"image": ("leaf.jpg", b"jpeg", "image/jpeg")},
            data={"conversationId": conversation_id},
        )
        assert resp.status_code == 500
        assert "Failed to analyze image" in resp.json()["message"]


class TestTranscribe:
    def test_without_audio(self, client):
        resp = client.post("/api/transcribe")
        assert resp.status_code == 400
        assert resp.json()["transcription"] == ""

    def test_with_audio(self, client):
        resp = client.post("/api/transcribe", files={"audio": ("voice.webm", b"webm", "audio/webm")})
        assert resp.status_code == 200
        assert resp.json() == {
            "message": "Using browser speech recognition",
            "transcription": "Please speak again using the microphone button",
        }


class TestWeatherAndMarket:
    def test_weather(self, client, weather):
        weather.lookup.return_value = WeatherReport(
            name="Karnal",
            country="IN",
            temp=28,
            feels_like=30,
            humidity=55,
            description="clear sky",
            wind_speed=2.0,
        )
        resp = client.get("/api/weather", params={"location": "Karnal"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["report"]["name"] == "Karnal"
        assert data["report"]["windSpeed"] == 2.0
        assert data["text"].startswith("Current temperature in Karnal, IN")
        weather.lookup.assert_awaited_once_with("Karnal")

    def test_weather_unavailable(self, client):
        resp = client.get("/api/weather")
        assert resp.status_code == 502
        assert "message" in resp.json()

    def test_market_prices(self, client):
        resp = client.get("/api/market/prices", params={"state": "Haryana", "language": "hi"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["mandis"] == ["Gurugram Mandi", "Faridabad Mandi", "Sonipat Mandi"]
        assert len(data["prices"]) == 6
        assert data["prices"][0]["cropNameHindi"] == "चावल"
        assert data["prices"][0]["trendLabel"] == "बढ़ रहा है"

    def test_crop_suggestions(self, client):
        resp = client.get("/api/market/suggestions", params={"state": "Gujarat"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["soilType"] == "Black"
        assert data["climate"] == "Semi-arid"
        assert [s["cropName"] for s in data["suggestions"]] == ["Cotton", "Soybean", "Gram"]
        assert data["suggestions"][0]["investmentPerAcre"] == 35000
        assert data["suggestions"][0]["profitPotential"] == 30

    def test_crop_suggestions_hindi(self, client):
        data = client.get("/api/market/suggestions", params={"language": "hi"}).json()
        assert data["soilType"] == "Mixed"
        assert data["suggestions"][1]["cropNameHindi"] == "सरसों"
        assert data["suggestions"][1]["marketDemandLabel"] == "मध्यम"
