"""Tests for socialpilot.llm: call_llm() and strip_json_fences()."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from socialpilot.config import ProviderKeys
from socialpilot.llm import (
    GROQ_BASE_URL,
    LLMError,
    call_llm,
    is_provider_configured,
    resolve_model,
    strip_json_fences,
)


@pytest.fixture
def keys() -> ProviderKeys:
    return ProviderKeys(groq_api_key="gsk-test", anthropic_api_key="sk-ant-test")


class TestCallLLM:
    def test_unknown_provider(self, keys: ProviderKeys) -> None:
        with pytest.raises(LLMError, match="Unknown AI provider"):
            call_llm("sys", "user", provider="mystery", keys=keys)

    def test_missing_key(self, keys: ProviderKeys) -> None:
        with pytest.raises(LLMError, match="not configured"):
            call_llm("sys", "user", provider="openai", keys=keys)

    @patch("socialpilot.llm._call_openai_compatible")
    def test_groq_uses_openai_compatible_endpoint(
        self, mock_call: MagicMock, keys: ProviderKeys
    ) -> None:
        mock_call.return_value = '  {"ok": true}  '

        result = call_llm("sys", "user", provider="Groq", keys=keys, json_mode=True)

        assert result == '{"ok": true}'
        kwargs = mock_call.call_args.kwargs
        assert kwargs["base_url"] == GROQ_BASE_URL
        assert kwargs["api_key"] == "gsk-test"
        assert kwargs["json_mode"] is True

    @patch("socialpilot.llm._call_anthropic")
    def test_sdk_failure_wrapped(self, mock_call: MagicMock, keys: ProviderKeys) -> None:
        mock_call.side_effect = RuntimeError("overloaded")
        with pytest.raises(LLMError, match="overloaded"):
            call_llm("sys", "user", provider="anthropic", keys=keys)

    @patch("socialpilot.llm._call_anthropic")
    def test_empty_response(self, mock_call: MagicMock, keys: ProviderKeys) -> None:
        mock_call.return_value = "   "
        with pytest.raises(LLMError, match="empty response"):
            call_llm("sys", "user", provider="anthropic", keys=keys)


class TestProviderHelpers:
    def test_resolve_model_short_names(self) -> None:
        assert resolve_model("anthropic", "haiku").startswith("claude-haiku")
        assert resolve_model("openai", "gpt-4o") == "gpt-4o"
        assert resolve_model("groq", None) == "llama-3.3-70b-versatile"

    def test_is_provider_configured(self, keys: ProviderKeys) -> None:
        assert is_provider_configured("groq", keys)
        assert not is_provider_configured("gemini", keys)
        assert not is_provider_configured("unknown", keys)


class TestStripJsonFences:
    def test_fenced(self) -> None:
        assert strip_json_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_surrounding_prose(self) -> None:
        assert strip_json_fences('Here you go: {"a": 1} enjoy') == '{"a": 1}'

    def test_plain(self) -> None:
        assert strip_json_fences('{"a": 1}') == '{"a": 1}'
