"""Platform publishing and quota reporting."""

from socialpilot.publishers.linkedin import LinkedInClient
from socialpilot.publishers.publisher import Publisher, PublishResult
from socialpilot.publishers.quota import QuotaStatus, quota_report
from socialpilot.publishers.twitter import TwitterClient

__all__ = [
    "LinkedInClient",
    "PublishResult",
    "Publisher",
    "QuotaStatus",
    "TwitterClient",
    "quota_report",
]
