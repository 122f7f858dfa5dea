"""Durable post storage and lifecycle models."""

from socialpilot.store.models import (
    InvalidTransition,
    Platform,
    Post,
    PostStatus,
    PublishOutcome,
)
from socialpilot.store.store import PostStore

__all__ = [
    "InvalidTransition",
    "Platform",
    "Post",
    "PostStatus",
    "PostStore",
    "PublishOutcome",
]
