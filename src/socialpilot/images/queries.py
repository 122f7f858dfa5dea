"""Image search query derivation from post text and content titles."""

from __future__ import annotations

import re
from typing import NamedTuple

from socialpilot.content.models import ContentItem

GENERIC_QUERY = "modern technology workspace developer"
EMPTY_TEXT_QUERY = "technology workspace"

# Checked in order; the first match wins.
BRANDED_TOOLS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"\bclaude\b", re.IGNORECASE), "Claude AI Anthropic"),
    (re.compile(r"\b(gpt-?4|chatgpt)", re.IGNORECASE), "OpenAI ChatGPT GPT-4"),
    (re.compile(r"\bgemini\b", re.IGNORECASE), "Google Gemini AI"),
    (re.compile(r"\bcopilot\b", re.IGNORECASE), "GitHub Copilot coding"),
    (re.compile(r"\bcursor\b", re.IGNORECASE), "Cursor AI code editor"),
    (re.compile(r"\breplit\b", re.IGNORECASE), "Replit coding AI"),
    (re.compile(r"\bllama\b", re.IGNORECASE), "Meta Llama AI model"),
    (re.compile(r"\bmistral\b", re.IGNORECASE), "Mistral AI model"),
    (re.compile(r"\banthropic\b", re.IGNORECASE), "Anthropic Claude AI"),
    (re.compile(r"\bopenai\b", re.IGNORECASE), "OpenAI artificial intelligence"),
]


class ThemeBucket(NamedTuple):
    name: str
    keywords: tuple[str, ...]
    query: str


THEME_BUCKETS: list[ThemeBucket] = [
    ThemeBucket(
        "ai_coding",
        ("ai code", "ai coding", "code assistant", "code generation", "ai developer"),
        "artificial intelligence coding software development",
    ),
    ThemeBucket(
        "ai",
        ("ai", "artificial intelligence", "machine learning", "neural network", "llm", "model"),
        "artificial intelligence technology neural",
    ),
    ThemeBucket(
        "coding",
        ("code", "coding", "programming", "developer", "software", "debug", "function", "api"),
        "programming code screen developer",
    ),
    ThemeBucket(
        "productivity",
        ("productivity", "workflow", "automation", "efficient", "optimize"),
        "minimal workspace productivity setup",
    ),
    ThemeBucket(
        "architecture",
        ("architecture", "system", "design pattern", "structure", "scalable"),
        "software architecture technology",
    ),
    ThemeBucket(
        "data",
        ("data", "analytics", "visualization", "dashboard"),
        "data visualization dashboard",
    ),
]


class DerivedQuery(NamedTuple):
    query: str
    branded: bool


def match_branded_tool(text: str) -> str | None:
    """Return the branded query for the first named tool in ``text``."""
    for pattern, query in BRANDED_TOOLS:
        if pattern.search(text):
            return query
    return None


def _keyword_hits(keyword: str, text: str) -> int:
    return len(re.findall(rf"\b{re.escape(keyword)}\b", text))


def score_buckets(text: str) -> dict[str, int]:
    """Score each theme bucket; multi-word keywords weigh by word count."""
    lowered = text.lower()
    scores: dict[str, int] = {}
    for bucket in THEME_BUCKETS:
        scores[bucket.name] = sum(
            _keyword_hits(keyword, lowered) * len(keyword.split())
            for keyword in bucket.keywords
        )
    return scores


def derive_query(text: str | None) -> DerivedQuery:
    """Pick an image search query for a piece of post text."""
    if not text or not text.strip():
        return DerivedQuery(EMPTY_TEXT_QUERY, False)

    branded = match_branded_tool(text)
    if branded:
        return DerivedQuery(branded, True)

    scores = score_buckets(text)
    best = max(THEME_BUCKETS, key=lambda bucket: scores[bucket.name])
    if scores[best.name] > 0:
        return DerivedQuery(best.query, False)
    return DerivedQuery(GENERIC_QUERY, False)


_SPECIFIC_TERM_PATTERNS = [
    re.compile(r"\b[A-Z][a-z]+(?:[A-Z][a-z]+)+\b"),  # CamelCase: GitHub, LangChain
    re.compile(r"\bgpt-?\d+\b", re.IGNORECASE),
    re.compile(r"\b(claude|gemini|copilot)\b", re.IGNORECASE),
    re.compile(r"\b[a-z]+-[a-z]+\b"),
]

_TITLE_THEMES: list[tuple[tuple[str, ...], str]] = [
    (("code", "coding", "programming", "developer"), "software development programming"),
    (("startup", "entrepreneur", "founder"), "startup entrepreneur workspace"),
    (("productivity", "workflow"), "productivity workspace computer"),
    (("design", "ui", "ux"), "design interface technology"),
    (("data", "analytics"), "data analytics dashboard"),
]


def _mentions(words: tuple[str, ...], text: str) -> bool:
    return any(re.search(rf"\b{re.escape(word)}\b", text) for word in words)


def keywords_from_content(content: ContentItem) -> str:
    """Derive a search hint from a content item's title."""
    if not content.title and not content.topic:
        return "technology innovation"

    title = content.title
    lowered = title.lower()
    if "ps5" not in lowered and "playstation" not in lowered:
        for pattern in _SPECIFIC_TERM_PATTERNS:
            match = pattern.search(title)
            if match:
                return f"{match.group(0).lower()} software technology"

    if _mentions(("ai", "artificial intelligence", "machine learning"), lowered):
        if _mentions(("code", "coding", "programming"), lowered):
            return "artificial intelligence coding developer"
        return "artificial intelligence technology"

    for words, hint in _TITLE_THEMES:
        if _mentions(words, lowered):
            return hint

    return f"{content.topic.lower()} technology innovation".strip()
