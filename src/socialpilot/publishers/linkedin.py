"""LinkedIn UGC share client with optional image upload."""

from __future__ import annotations

import logging

from socialpilot import http
from socialpilot.config import LinkedInSectionConfig
from socialpilot.images.models import ImageReference

logger = logging.getLogger(__name__)

REGISTER_UPLOAD_URL = "https://api.linkedin.com/v2/assets?action=registerUpload"
UGC_POSTS_URL = "https://api.linkedin.com/v2/ugcPosts"
_UPLOAD_MECHANISM = "com.linkedin.digitalmedia.uploading.MediaUploadHttpRequest"
_SHARE_CONTENT = "com.linkedin.ugc.ShareContent"


def share_url(post_id: str) -> str:
    return f"https://www.linkedin.com/feed/update/{post_id}"


class LinkedInClient:
    """Creates public member shares, optionally with one image."""

    def __init__(self, config: LinkedInSectionConfig) -> None:
        self.config = config

    @property
    def is_configured(self) -> bool:
        return self.config.is_configured

    @property
    def author_urn(self) -> str:
        urn = self.config.person_urn
        return urn if urn.startswith("urn:li:") else f"urn:li:person:{urn}"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.access_token}",
            "X-Restli-Protocol-Version": "2.0.0",
        }

    def register_upload(self) -> tuple[str, str]:
        """Reserve an image upload slot. Returns ``(upload_url, asset_urn)``."""
        payload = {
            "registerUploadRequest": {
                "recipes": ["urn:li:digitalmediaRecipe:feedshare-image"],
                "owner": self.author_urn,
                "serviceRelationships": [
                    {
                        "relationshipType": "OWNER",
                        "identifier": "urn:li:userGeneratedContent",
                    }
                ],
            }
        }
        data = http.request(
            "POST", REGISTER_UPLOAD_URL, json_body=payload, headers=self._headers()
        ).json()
        value = data.get("value", {}) if isinstance(data, dict) else {}
        upload_url = (value.get("uploadMechanism", {}).get(_UPLOAD_MECHANISM) or {}).get(
            "uploadUrl"
        )
        asset = value.get("asset")
        if not upload_url or not asset:
            raise http.HTTPError("registerUpload response missing uploadUrl or asset")
        return upload_url, asset

    def upload_image(self, image: ImageReference) -> str:
        """Fetch the image bytes and push them into a new asset. Returns its URN."""
        upload_url, asset = self.register_upload()
        image_bytes = http.download_bytes(image.url)
        http.request(
            "PUT",
            upload_url,
            data=image_bytes,
            headers={
                "Authorization": f"Bearer {self.config.access_token}",
                "Content-Type": "application/octet-stream",
            },
        )
        logger.debug("Uploaded image %s as %s", image.url, asset)
        return asset

    def create_share(self, text: str, asset: str | None = None) -> str:
        """Publish a share and return the post id from ``x-restli-id``."""
        share: dict[str, object] = {
            "shareCommentary": {"text": text},
            "shareMediaCategory": "IMAGE" if asset else "NONE",
        }
        if asset:
            share["media"] = [
                {
                    "status": "READY",
                    "description": {"text": "Image"},
                    "media": asset,
                    "title": {"text": "Image"},
                }
            ]
        payload = {
            "author": self.author_urn,
            "lifecycleState": "PUBLISHED",
            "specificContent": {_SHARE_CONTENT: share},
            "visibility": {"com.linkedin.ugc.MemberNetworkVisibility": "PUBLIC"},
        }
        response = http.request("POST", UGC_POSTS_URL, json_body=payload, headers=self._headers())
        post_id = response.headers.get("x-restli-id")
        if not post_id:
            data = response.json()
            post_id = data.get("id") if isinstance(data, dict) else None
        if not post_id:
            raise http.HTTPError("ugcPosts response did not include a post id")
        return str(post_id)

    def share(self, text: str, image: ImageReference | None = None) -> tuple[str, bool]:
        """Publish ``text``, attaching ``image`` when its upload succeeds.

        Returns ``(post_id, has_image)``. An image upload failure degrades to
        a text-only share.
        """
        asset = None
        if image is not None:
            try:
                asset = self.upload_image(image)
            except http.HTTPError as exc:
                logger.warning("LinkedIn image upload failed, posting text only: %s", exc)
        return self.create_share(text, asset), asset is not None
