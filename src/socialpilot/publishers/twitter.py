"""Twitter/X API v2 client with OAuth 1.0a user-context signing."""

from __future__ import annotations

import logging

from oauthlib.oauth1 import Client as OAuth1Client

from socialpilot import http
from socialpilot.config import TwitterSectionConfig

logger = logging.getLogger(__name__)

TWEETS_URL = "https://api.twitter.com/2/tweets"


def tweet_url(tweet_id: str) -> str:
    return f"https://twitter.com/i/status/{tweet_id}"


class TwitterClient:
    """Posts tweets on behalf of the configured account."""

    def __init__(self, config: TwitterSectionConfig) -> None:
        self.config = config

    @property
    def is_configured(self) -> bool:
        return self.config.is_configured

    def _oauth_header(self, url: str, method: str) -> dict[str, str]:
        client = OAuth1Client(
            self.config.api_key,
            client_secret=self.config.api_secret,
            resource_owner_key=self.config.access_token,
            resource_owner_secret=self.config.access_secret,
        )
        # JSON bodies are not part of the OAuth 1.0a signature base string.
        _, headers, _ = client.sign(url, http_method=method)
        return {"Authorization": headers["Authorization"]}

    def create_tweet(self, text: str, reply_to: str | None = None) -> str:
        """Post one tweet and return its id.

        Raises:
            http.HTTPError: When the API rejects the request.
        """
        payload: dict[str, object] = {"text": text}
        if reply_to:
            payload["reply"] = {"in_reply_to_tweet_id": reply_to}

        response = http.request(
            "POST",
            TWEETS_URL,
            json_body=payload,
            headers=self._oauth_header(TWEETS_URL, "POST"),
        )
        data = response.json()
        tweet_id = (data.get("data") or {}).get("id") if isinstance(data, dict) else None
        if not tweet_id:
            raise http.HTTPError("Tweet response did not include an id", status=response.status)
        logger.debug("Posted tweet %s (reply_to=%s)", tweet_id, reply_to)
        return str(tweet_id)
