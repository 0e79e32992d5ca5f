from typing import Any, Dict, Optional
import hashlib
import hmac
import logging

import requests
from supabase import Client

from musicscan.config import settings
from musicscan.core.errors import ExternalServiceError

logger = logging.getLogger(__name__)

SECRET_KEYS = ["FACEBOOK_PAGE_ACCESS_TOKEN", "FACEBOOK_APP_SECRET", "FACEBOOK_PAGE_ID"]


def appsecret_proof(app_secret: str, access_token: str) -> str:
    """HMAC-SHA256 of the page token keyed with the app secret, hex encoded."""
    return hmac.new(app_secret.encode("utf-8"), access_token.encode("utf-8"), hashlib.sha256).hexdigest()


class FacebookClient:
    def __init__(self, page_id: str, access_token: str, app_secret: str,
                 graph_version: Optional[str] = None, timeout: int = 30):
        self.page_id = page_id
        self.access_token = access_token
        self.app_secret = app_secret
        self.graph_version = graph_version or settings.facebook_graph_version
        self.timeout = timeout

    @classmethod
    def from_settings(cls, supabase: Client) -> "FacebookClient":
        """Credentials from the environment, falling back to the app_secrets table."""
        if settings.facebook_page_id and settings.facebook_page_access_token and settings.facebook_app_secret:
            return cls(settings.facebook_page_id, settings.facebook_page_access_token, settings.facebook_app_secret)

        result = supabase.table("app_secrets")\
            .select("secret_key, secret_value")\
            .in_("secret_key", SECRET_KEYS)\
            .execute()
        credentials = {row["secret_key"]: row["secret_value"] for row in (result.data or [])}
        if any(not credentials.get(key) for key in SECRET_KEYS):
            raise ExternalServiceError("facebook", "Facebook credentials not configured")
        return cls(
            credentials["FACEBOOK_PAGE_ID"],
            credentials["FACEBOOK_PAGE_ACCESS_TOKEN"],
            credentials["FACEBOOK_APP_SECRET"],
        )

    def publish(self, message: str, image_url: Optional[str] = None, link: Optional[str] = None) -> str:
        """Post to the page; a photo post when an image is given, otherwise a feed post. Returns the post id."""
        base = f"https://graph.facebook.com/{self.graph_version}/{self.page_id}"
        payload: Dict[str, Any] = {
            "message": message,
            "access_token": self.access_token,
            "appsecret_proof": appsecret_proof(self.app_secret, self.access_token),
        }
        if image_url:
            url = f"{base}/photos"
            payload["url"] = image_url
        else:
            url = f"{base}/feed"
            if link:
                payload["link"] = link

        try:
            response = requests.post(url, json=payload, timeout=self.timeout)
            body = response.json()
        except (requests.RequestException, ValueError) as e:
            raise ExternalServiceError("facebook", str(e))

        if body.get("error"):
            raise ExternalServiceError(
                "facebook", body["error"].get("message") or "Facebook API error", response.status_code
            )
        post_id = body.get("id") or body.get("post_id")
        logger.info(f"Posted to Facebook: {post_id}")
        return post_id
