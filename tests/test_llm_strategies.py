# Tests for prompt construction and provider strategy helpers.
# Created: 2026-10-07

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from pashuai.config import Settings
from pashuai.conversations.models import ChatHistoryEntry
from pashuai.errors import FatalProviderError, RetryableProviderError
from pashuai.llm.prompts import build_system_prompt, language_directive, language_name
from pashuai.llm.strategies import (
    AnthropicStrategy,
    OpenAIStrategy,
    classify_error,
    merge_turns,
    resolve_provider,
    split_system,
)


class TestPrompts:
    def test_english_has_no_directive(self):
        prompt = build_system_prompt("en")
        assert "Respond in" not in prompt
        assert "agricultural" in prompt
        assert prompt.endswith("farmer-friendly in your responses.")

    def test_hindi_directive(self):
        assert "Respond in Hindi language." in build_system_prompt("hi")

    def test_unknown_language_passes_through(self):
        assert language_name("Swahili") == "Swahili"
        assert language_directive("Swahili") == "Respond in Swahili language."

    def test_missing_language_defaults_to_english(self):
        assert language_directive(None) == ""
        assert language_name("") == "English"

    def test_extra_system_text_appended(self):
        prompt = build_system_prompt("en", extra="The farmer keeps 12 goats.")
        assert prompt.endswith("The farmer keeps 12 goats.")


class TestHistoryShaping:
    def test_split_system(self):
        history = [
            ChatHistoryEntry("system", "Region: Punjab"),
            ChatHistoryEntry("user", "Hi"),
        ]
        system, turns = split_system(history)
        assert system == "Region: Punjab"
        assert turns == [ChatHistoryEntry("user", "Hi")]

    def test_merge_consecutive_roles(self):
        history = [
            ChatHistoryEntry("assistant", "Welcome"),
            ChatHistoryEntry("user", "a"),
            ChatHistoryEntry("user", "b"),
            ChatHistoryEntry("assistant", "c"),
        ]
        assert merge_turns(history) == [
            {"role": "user", "content": "a\n\nb"},
            {"role": "assistant", "content": "c"},
        ]


class TestClassifyError:
    def test_timeout_is_retryable(self):
        err = classify_error(TimeoutError(), "anthropic:0", "m")
        assert isinstance(err, RetryableProviderError)

    def test_transport_error_is_retryable(self):
        err = classify_error(httpx.ConnectError("refused"), "ollama", "llama")
        assert isinstance(err, RetryableProviderError)

    @pytest.mark.parametrize("status", [401, 403])
    def test_auth_failures_are_fatal(self, status):
        exc = Exception("denied")
        exc.status_code = status
        assert isinstance(classify_error(exc, "openai:0", "gpt"), FatalProviderError)

    def test_http_status_error(self):
        request = httpx.Request("POST", "http://localhost:11434/api/chat")
        response = httpx.Response(401, request=request)
        exc = httpx.HTTPStatusError("unauthorized", request=request, response=response)
        assert isinstance(classify_error(exc, "ollama", "llama"), FatalProviderError)

    def test_rate_limit_is_retryable(self):
        exc = Exception("slow down")
        exc.status_code = 429
        assert isinstance(classify_error(exc, "openai:0", "gpt"), RetryableProviderError)

    def test_provider_errors_pass_through(self):
        original = FatalProviderError("bad key")
        assert classify_error(original, "x", "y") is original


class TestResolveProvider:
    def test_auto_prefers_anthropic(self):
        settings = Settings(llm_provider="auto", anthropic_api_key="a", openai_api_key="o")
        assert resolve_provider(settings) == "anthropic"

    def test_auto_uses_openai_without_anthropic(self):
        settings = Settings(llm_provider="auto", anthropic_api_key=None, openai_api_key="o")
        assert resolve_provider(settings) == "openai"

    def test_auto_falls_back_to_ollama(self):
        settings = Settings(llm_provider="auto", anthropic_api_key=None, openai_api_key=None)
        assert resolve_provider(settings) == "ollama"


class _FakeTextStream:
    def __init__(self, chunks):
        self._chunks = chunks

    def __aiter__(self):
        return self._iter()

    async def _iter(self):
        for chunk in self._chunks:
            yield chunk


class TestAnthropicStrategy:
    async def test_complete_joins_text_blocks(self):
        client = MagicMock()
        block = MagicMock(type="text", text="Use neem oil.")
        client.messages.create = AsyncMock(return_value=MagicMock(content=[block]))

        strategy = AnthropicStrategy(client, "claude-test")
        text = await strategy.complete("sys", [ChatHistoryEntry("user", "Aphids?")])

        assert text == "Use neem oil."
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["system"] == "sys"
        assert kwargs["messages"] == [{"role": "user", "content": "Aphids?"}]

    async def test_empty_reply_is_retryable(self):
        client = MagicMock()
        client.messages.create = AsyncMock(return_value=MagicMock(content=[]))
        with pytest.raises(RetryableProviderError):
            await AnthropicStrategy(client, "m").complete("sys", [ChatHistoryEntry("user", "x")])

    async def test_stream_yields_text(self):
        stream_ctx = MagicMock()
        stream_ctx.text_stream = _FakeTextStream(["Milk ", "fever"])
        client = MagicMock()
        client.messages.stream.return_value.__aenter__ = AsyncMock(return_value=stream_ctx)
        client.messages.stream.return_value.__aexit__ = AsyncMock(return_value=False)

        strategy = AnthropicStrategy(client, "m")
        chunks = [c async for c in strategy.stream("sys", [ChatHistoryEntry("user", "x")])]
        assert chunks == ["Milk ", "fever"]


class TestOpenAIStrategy:
    async def test_complete_sends_system_message(self):
        client = MagicMock()
        choice = MagicMock()
        choice.message.content = "Irrigate weekly."
        client.chat.completions.create = AsyncMock(return_value=MagicMock(choices=[choice]))

        strategy = OpenAIStrategy(client, "gpt-test")
        assert await strategy.complete("sys", [ChatHistoryEntry("user", "Water?")]) == "Irrigate weekly."
        messages = client.chat.completions.create.call_args.kwargs["messages"]
        assert messages[0] == {"role": "system", "content": "sys"}

    async def test_auth_error_is_fatal(self):
        exc = Exception("invalid api key")
        exc.status_code = 401
        client = MagicMock()
        client.chat.completions.create = AsyncMock(side_effect=exc)
        with pytest.raises(FatalProviderError):
            await OpenAIStrategy(client, "m").complete("sys", [ChatHistoryEntry("user", "x")])
