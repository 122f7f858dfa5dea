"""Shared LLM calling utilities.

Centralizes all text-generation calls behind one function with four
provider backends:
1. Anthropic API (``anthropic``)
2. OpenAI API (``openai``)
3. Groq (OpenAI-compatible endpoint, ``groq``)
4. Google Gemini (``gemini``)

Plus common LLM output parsing helpers.
"""

from __future__ import annotations

import logging
import re
from typing import Protocol

import anthropic
import openai
from google import genai
from google.genai import types as genai_types

logger = logging.getLogger(__name__)

PROVIDERS = ("anthropic", "openai", "groq", "gemini")

GROQ_BASE_URL = "https://api.groq.com/openai/v1"

_DEFAULT_MODELS: dict[str, str] = {
    "anthropic": "claude-sonnet-4-6",
    "openai": "gpt-4o-mini",
    "groq": "llama-3.3-70b-versatile",
    "gemini": "gemini-2.0-flash",
}

# Short names accepted for Anthropic models
_ANTHROPIC_MODEL_MAP: dict[str, str] = {
    "sonnet": "claude-sonnet-4-6",
    "haiku": "claude-haiku-4-5-20251001",
    "opus": "claude-opus-4-6",
}


class LLMError(Exception):
    """Base error for LLM calls."""


class ProviderKeySource(Protocol):
    """Anything that can hand out an API key per provider."""

    def key_for(self, provider: str) -> str: ...


def resolve_model(provider: str, model: str | None) -> str:
    """Resolve a model name for a provider, honouring Anthropic short names."""
    if model is None:
        return _DEFAULT_MODELS[provider]
    if provider == "anthropic":
        return _ANTHROPIC_MODEL_MAP.get(model, model)
    return model


def is_provider_configured(provider: str, keys: ProviderKeySource) -> bool:
    """Check whether a provider is known and has an API key."""
    return provider in PROVIDERS and bool(keys.key_for(provider).strip())


# ---------------------------------------------------------------------------
# Internal: per-provider calls
# ---------------------------------------------------------------------------


def _call_anthropic(
    system_prompt: str,
    user_prompt: str,
    *,
    api_key: str,
    model: str,
    timeout: int,
    json_mode: bool,
) -> str:
    client = anthropic.Anthropic(api_key=api_key, timeout=timeout)

    kwargs: dict[str, object] = {
        "model": model,
        "max_tokens": 4096,
        "messages": [{"role": "user", "content": user_prompt}],
    }
    if system_prompt.strip():
        kwargs["system"] = system_prompt

    response = client.messages.create(**kwargs)  # type: ignore[arg-type]

    text_parts: list[str] = []
    for block in response.content:
        if block.type == "text":
            text_parts.append(block.text)
    return "".join(text_parts)


def _call_openai_compatible(
    system_prompt: str,
    user_prompt: str,
    *,
    api_key: str,
    model: str,
    timeout: int,
    json_mode: bool,
    base_url: str | None = None,
) -> str:
    client = openai.OpenAI(api_key=api_key, base_url=base_url, timeout=timeout)

    messages: list[dict[str, str]] = []
    if system_prompt.strip():
        messages.append({"role": "system", "content": system_prompt})
    messages.append({"role": "user", "content": user_prompt})

    kwargs: dict[str, object] = {
        "model": model,
        "messages": messages,
        "temperature": 0.8,
    }
    if json_mode:
        kwargs["response_format"] = {"type": "json_object"}

    completion = client.chat.completions.create(**kwargs)  # type: ignore[arg-type]
    return completion.choices[0].message.content or ""


def _call_gemini(
    system_prompt: str,
    user_prompt: str,
    *,
    api_key: str,
    model: str,
    timeout: int,
    json_mode: bool,
) -> str:
    client = genai.Client(api_key=api_key)
    config = genai_types.GenerateContentConfig(
        system_instruction=system_prompt or None,
        response_mime_type="application/json" if json_mode else None,
        temperature=0.8,
    )
    response = client.models.generate_content(
        model=model,
        contents=user_prompt,
        config=config,
    )
    return response.text or ""


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def call_llm(
    system_prompt: str,
    user_prompt: str,
    *,
    provider: str,
    keys: ProviderKeySource,
    model: str | None = None,
    timeout: int = 60,
    json_mode: bool = False,
    label: str = "generation",
) -> str:
    """Call a text-generation provider and return the response text.

    Args:
        system_prompt: System prompt for the LLM (may be empty).
        user_prompt: User/content prompt.
        provider: One of ``PROVIDERS``.
        keys: Source of per-provider API keys.
        model: Optional model override.
        timeout: Request timeout in seconds.
        json_mode: Ask the provider for a JSON object response.
        label: Label for logging.

    Returns:
        The LLM response text (stripped).

    Raises:
        LLMError: On any failure (unknown provider, missing key, API error,
            empty response).
    """
    provider = (provider or "").strip().lower()
    if provider not in PROVIDERS:
        raise LLMError(f"Unknown AI provider: {provider!r} (label={label})")

    api_key = keys.key_for(provider).strip()
    if not api_key:
        raise LLMError(f"{provider} API key not configured (label={label})")

    resolved_model = resolve_model(provider, model)
    logger.debug("Calling %s model=%s (%s)", provider, resolved_model, label)

    try:
        if provider == "anthropic":
            text = _call_anthropic(
                system_prompt,
                user_prompt,
                api_key=api_key,
                model=resolved_model,
                timeout=timeout,
                json_mode=json_mode,
            )
        elif provider == "gemini":
            text = _call_gemini(
                system_prompt,
                user_prompt,
                api_key=api_key,
                model=resolved_model,
                timeout=timeout,
                json_mode=json_mode,
            )
        else:
            text = _call_openai_compatible(
                system_prompt,
                user_prompt,
                api_key=api_key,
                model=resolved_model,
                timeout=timeout,
                json_mode=json_mode,
                base_url=GROQ_BASE_URL if provider == "groq" else None,
            )
    except LLMError:
        raise
    except Exception as exc:
        raise LLMError(f"{provider} API failed (label={label}): {exc}") from exc

    result = text.strip()
    if not result:
        raise LLMError(f"{provider} returned empty response (label={label})")
    return result


# ---------------------------------------------------------------------------
# JSON output helpers
# ---------------------------------------------------------------------------

_JSON_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?```", re.DOTALL)


def strip_json_fences(text: str) -> str:
    """Strip markdown code fences from LLM JSON output.

    Handles the tendency of chat models to wrap JSON in ```json ... ``` blocks.
    """
    text = text.strip()
    match = _JSON_FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    # Try to find raw JSON, whichever delimiter appears first
    brace_start = text.find("{")
    bracket_start = text.find("[")

    candidates: list[tuple[int, str, str]] = []
    if brace_start != -1:
        candidates.append((brace_start, "{", "}"))
    if bracket_start != -1:
        candidates.append((bracket_start, "[", "]"))

    # Sort by position, earliest delimiter wins
    candidates.sort()

    for _pos, start_char, end_char in candidates:
        start = text.find(start_char)
        end = text.rfind(end_char)
        if start != -1 and end > start:
            return text[start : end + 1]

    return text
