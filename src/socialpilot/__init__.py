"""socialpilot: content-to-social-post automation.

Fetches source material (news, videos, forum threads), turns it into
Twitter/X and LinkedIn posts with an LLM, attaches a stock image, and
publishes drafts on a schedule or after manual approval.
"""

__version__ = "0.3.0"
