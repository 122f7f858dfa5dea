"""Post generation from content items."""

from socialpilot.generation.generator import PostGenerator, parse_generated_post
from socialpilot.generation.models import GeneratedPost, StyleConfig, Tone

__all__ = ["GeneratedPost", "PostGenerator", "StyleConfig", "Tone", "parse_generated_post"]
