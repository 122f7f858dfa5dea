"""Prompt template for turning one content item into platform posts."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from socialpilot.content.models import ContentItem

SYSTEM_PROMPT = (
    "You are an AI-first developer who explores AI tools and shares practical"
    " tips, tools and insights. You teach and inspire; you are not selling.\n\n"
    "Content policy:\n"
    "- NEVER mention religious or political topics.\n"
    "- NEVER post about gaming, consoles, sports or entertainment.\n"
    "- Focus on AI development, coding tools, productivity, startups and"
    " technology.\n"
    "- Never call a tool \"new\", \"just dropped\" or \"just launched\";"
    " the source may be old. Talk about capabilities, use cases and"
    " possibilities, not announcements.\n"
    "- Be enthusiastic but honest. Do not fabricate or exaggerate."
)

OUTPUT_SHAPE = (
    "Format the response EXACTLY as this JSON"
    " (linkedin must be an object, not a string):\n"
    "{\n"
    '  "twitter": {\n'
    '    "tweet": "your tweet text here",\n'
    '    "thread": ["tweet1", "tweet2", "tweet3", "tweet4", "tweet5"]\n'
    "  },\n"
    '  "linkedin": {\n'
    '    "post": "your linkedin post text here"\n'
    "  }\n"
    "}"
)

USER_TEMPLATE = """\
Source content for inspiration:
Title: {title}
Content: {body}

Tone: {tone}

Create three posts:

1. TWITTER POST (under 280 characters)
   - One insight, capability or thought-provoking question
   - 1-2 emojis maximum, NO hashtags
   - A single paragraph with no line breaks

2. TWITTER THREAD (5-7 tweets)
   - A complete workflow, tool comparison or technique
   - Each tweet makes one specific, actionable point, in the first person

3. LINKEDIN POST (120-180 words)
   - Open with an insight or observation, then discuss implications
   - ONE continuous block of text with no blank lines between sentences
   - End with a thought-provoking question
   - Add 3-4 AI-related hashtags at the very end

{output_shape}"""


def build_user_prompt(content: ContentItem, tone: str, *, body_char_budget: int = 1500) -> str:
    """Fill the template with a content item, truncating its body."""
    return USER_TEMPLATE.format(
        title=content.title,
        body=content.body[:body_char_budget],
        tone=tone,
        output_shape=OUTPUT_SHAPE,
    )
