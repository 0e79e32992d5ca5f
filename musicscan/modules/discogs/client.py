"""
Discogs HTTP access.

Two flavours of authentication are used against api.discogs.com:

* Public database calls (search, release lookup, marketplace stats) use the
  application's personal token in the ``Authorization: Discogs token=...`` header.
* Calls on behalf of a user (identity, marketplace order messages) are signed with
  OAuth 1.0a HMAC-SHA1 using the consumer key/secret plus the user's access token.
  Signing is delegated to requests-oauthlib.
"""

from typing import Any, Dict, List, Optional
import logging

import requests
from requests_oauthlib import OAuth1Session

from musicscan.config import settings
from musicscan.core.errors import ExternalServiceError

logger = logging.getLogger(__name__)

DISCOGS_API = "https://api.discogs.com"
REQUEST_TOKEN_URL = f"{DISCOGS_API}/oauth/request_token"
AUTHORIZE_URL = "https://www.discogs.com/oauth/authorize"
ACCESS_TOKEN_URL = f"{DISCOGS_API}/oauth/access_token"
IDENTITY_URL = f"{DISCOGS_API}/oauth/identity"


def make_oauth_session(
    resource_owner_key: Optional[str] = None,
    resource_owner_secret: Optional[str] = None,
    verifier: Optional[str] = None,
    callback_uri: Optional[str] = None,
) -> OAuth1Session:
    """OAuth1 session signed with the MusicScan consumer credentials (HMAC-SHA1)."""
    if not settings.discogs_consumer_key or not settings.discogs_consumer_secret:
        raise ExternalServiceError("discogs", "Discogs consumer credentials are not configured")
    session = OAuth1Session(
        client_key=settings.discogs_consumer_key,
        client_secret=settings.discogs_consumer_secret,
        resource_owner_key=resource_owner_key,
        resource_owner_secret=resource_owner_secret,
        verifier=verifier,
        callback_uri=callback_uri,
    )
    session.headers["User-Agent"] = settings.discogs_user_agent
    return session


class DiscogsClient:
    """Token-authenticated client for the public Discogs database API."""

    def __init__(self, token: Optional[str] = None, timeout: int = 20):
        self.token = token if token is not None else settings.discogs_token
        self.timeout = timeout

    def _request(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        headers = {"User-Agent": settings.discogs_user_agent}
        if self.token:
            headers["Authorization"] = f"Discogs token={self.token}"
        url = path if path.startswith("http") else f"{DISCOGS_API}{path}"
        try:
            response = requests.get(url, headers=headers, params=params or {}, timeout=self.timeout)
        except requests.RequestException as e:
            raise ExternalServiceError("discogs", str(e))
        if response.status_code == 404:
            return {}
        if response.status_code != 200:
            raise ExternalServiceError(
                "discogs", f"HTTP {response.status_code}: {response.text[:200]}", response.status_code
            )
        return response.json()

    def search(
        self,
        query: Optional[str] = None,
        artist: Optional[str] = None,
        title: Optional[str] = None,
        catno: Optional[str] = None,
        barcode: Optional[str] = None,
        format: Optional[str] = None,
        per_page: int = 10,
    ) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {"type": "release", "per_page": per_page}
        for key, value in (
            ("q", query), ("artist", artist), ("release_title", title),
            ("catno", catno), ("barcode", barcode), ("format", format),
        ):
            if value:
                params[key] = value
        return self._request("/database/search", params).get("results", [])

    def search_artist_image(self, artist: str) -> Optional[str]:
        results = self._request("/database/search", {"q": artist, "type": "artist", "per_page": 1}).get("results", [])
        if not results:
            return None
        return results[0].get("cover_image") or results[0].get("thumb")

    def get_release(self, release_id: int) -> Dict[str, Any]:
        return self._request(f"/releases/{release_id}")

    def get_marketplace_stats(self, release_id: int, currency: str = "EUR") -> Dict[str, Any]:
        """lowest_price / num_for_sale / blocked_from_sale for a release."""
        return self._request(f"/marketplace/stats/{release_id}", {"curr_abbr": currency})
