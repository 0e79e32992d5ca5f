from supabase import Client
from requests_oauthlib.oauth1_session import TokenRequestDenied
from musicscan.modules.discogs import client as discogs_client
from musicscan.modules.discogs.client import (
    DiscogsClient, REQUEST_TOKEN_URL, AUTHORIZE_URL, ACCESS_TOKEN_URL, IDENTITY_URL, DISCOGS_API,
)
from musicscan.modules.discogs.schemas import (
    AuthorizeResponse, ConnectionResponse, OrderMessagesResponse, ReleaseSearchResult, ReleaseDetails,
)
from musicscan.config import settings
from musicscan.core.errors import ExternalServiceError
from musicscan.core.utils import utcnow_iso
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
import requests
import logging

logger = logging.getLogger(__name__)


def _oauth_call(label: str, call, *args, **kwargs):
    """Run an OAuth1Session request, reporting transport failures as a Discogs error."""
    try:
        return call(*args, **kwargs)
    except TokenRequestDenied as e:
        raise ExternalServiceError("discogs", f"{label} error: {e}", e.status_code)
    except (requests.RequestException, ValueError) as e:
        raise ExternalServiceError("discogs", f"{label} failed: {e}")


class DiscogsService:
    def __init__(self, supabase: Client, api: Optional[DiscogsClient] = None):
        self.supabase = supabase
        self.api = api or DiscogsClient()

    # OAuth 1.0a flow

    def start_authorization(self, user_id: str) -> AuthorizeResponse:
        """Fetch a request token and remember its secret until the callback."""
        oauth = discogs_client.make_oauth_session(callback_uri=settings.discogs_callback_url)
        fetch_response = _oauth_call("Request token", oauth.fetch_request_token, REQUEST_TOKEN_URL)
        oauth_token = fetch_response.get("oauth_token")
        oauth_token_secret = fetch_response.get("oauth_token_secret")
        if not oauth_token or not oauth_token_secret:
            raise ExternalServiceError("discogs", "Request token response missing oauth_token")

        self.supabase.table("discogs_oauth_temp").insert({
            "oauth_token": oauth_token,
            "oauth_token_secret": oauth_token_secret,
            "user_id": user_id,
        }).execute()

        return AuthorizeResponse(
            authorize_url=oauth.authorization_url(AUTHORIZE_URL),
            oauth_token=oauth_token,
        )

    def complete_authorization(self, user_id: str, oauth_token: str, oauth_verifier: str) -> ConnectionResponse:
        """Exchange the verified request token for permanent access tokens."""
        temp_result = self.supabase.table("discogs_oauth_temp")\
            .select("oauth_token_secret")\
            .eq("oauth_token", oauth_token)\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()
        if not temp_result.data:
            raise HTTPException(status_code=400, detail="Token not found or expired")
        token_secret = temp_result.data[0]["oauth_token_secret"]

        oauth = discogs_client.make_oauth_session(
            resource_owner_key=oauth_token,
            resource_owner_secret=token_secret,
            verifier=oauth_verifier,
        )
        tokens = _oauth_call("Access token", oauth.fetch_access_token, ACCESS_TOKEN_URL)
        access_token = tokens["oauth_token"]
        access_token_secret = tokens["oauth_token_secret"]

        discogs_username, discogs_user_id = self._fetch_identity(access_token, access_token_secret)

        now = utcnow_iso()
        self.supabase.table("discogs_user_tokens").upsert({
            "user_id": user_id,
            "oauth_token": access_token,
            "oauth_token_secret": access_token_secret,
            "discogs_username": discogs_username,
            "discogs_user_id": discogs_user_id,
            "connected_at": now,
            "updated_at": now,
        }, on_conflict="user_id").execute()

        self.supabase.table("discogs_oauth_temp").delete().eq("oauth_token", oauth_token).execute()
        logger.info(f"Discogs account {discogs_username or '?'} linked for user {user_id}")

        return ConnectionResponse(
            connected=True,
            discogs_username=discogs_username,
            discogs_user_id=discogs_user_id,
        )

    def _fetch_identity(self, access_token: str, access_token_secret: str):
        """Identity lookup is best-effort; the link is stored without a username when it fails."""
        oauth = discogs_client.make_oauth_session(
            resource_owner_key=access_token,
            resource_owner_secret=access_token_secret,
        )
        try:
            response = oauth.get(IDENTITY_URL, timeout=20)
        except requests.RequestException as e:
            logger.warning(f"Discogs identity request failed: {e}")
            return None, None
        if response.status_code != 200:
            logger.warning(f"Discogs identity returned HTTP {response.status_code}")
            return None, None
        identity = response.json()
        return identity.get("username"), identity.get("id")

    def connection_status(self, user_id: str) -> ConnectionResponse:
        result = self.supabase.table("discogs_user_tokens")\
            .select("discogs_username, discogs_user_id")\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()
        if not result.data:
            return ConnectionResponse(connected=False)
        row = result.data[0]
        return ConnectionResponse(
            connected=True,
            discogs_username=row.get("discogs_username"),
            discogs_user_id=row.get("discogs_user_id"),
        )

    def disconnect(self, user_id: str) -> None:
        self.supabase.table("discogs_user_tokens").delete().eq("user_id", user_id).execute()
        logger.info(f"Discogs account unlinked for user {user_id}")

    # Marketplace order messages

    def _user_session(self, user_id: str):
        result = self.supabase.table("discogs_user_tokens")\
            .select("oauth_token, oauth_token_secret")\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=400, detail="Discogs account not linked")
        tokens = result.data[0]
        return discogs_client.make_oauth_session(
            resource_owner_key=tokens["oauth_token"],
            resource_owner_secret=tokens["oauth_token_secret"],
        )

    def list_order_messages(self, user_id: str, order_id: str) -> OrderMessagesResponse:
        """Fetch the messages of a marketplace order and keep a copy in discogs_order_messages."""
        oauth = self._user_session(user_id)
        response = _oauth_call(
            "Order messages", oauth.get, f"{DISCOGS_API}/marketplace/orders/{order_id}/messages", timeout=20
        )
        if response.status_code != 200:
            logger.error(f"Discogs messages GET error {response.status_code}: {response.text[:200]}")
            raise HTTPException(status_code=response.status_code, detail=f"Discogs API error: {response.status_code}")
        messages = response.json().get("messages", [])
        rows = self._message_rows(user_id, order_id, messages)
        if rows:
            try:
                self.supabase.table("discogs_order_messages")\
                    .upsert(rows, on_conflict="discogs_order_id,sender_username,message_timestamp")\
                    .execute()
            except Exception as e:
                logger.error(f"Error saving messages for order {order_id}: {e}")
        return OrderMessagesResponse(order_id=order_id, messages=messages, saved=len(rows))

    @staticmethod
    def _message_rows(user_id: str, order_id: str, messages: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        seen = set()
        rows = []
        for m in messages:
            sender = (m.get("from") or {}).get("username") or (m.get("actor") or {}).get("username")
            timestamp = m.get("timestamp")
            key = (sender, timestamp)
            if key in seen:
                continue
            seen.add(key)
            rows.append({
                "user_id": user_id,
                "discogs_order_id": order_id,
                "sender_username": sender,
                "message": m.get("message"),
                "subject": m.get("subject"),
                "original": m.get("original"),
                "status_id": m.get("status_id"),
                "message_timestamp": timestamp,
            })
        return rows

    def send_order_message(self, user_id: str, order_id: str, message: Optional[str], status: Optional[str]) -> Dict[str, Any]:
        payload = {}
        if message:
            payload["message"] = message
        if status:
            payload["status"] = status
        oauth = self._user_session(user_id)
        response = _oauth_call(
            "Order message", oauth.post, f"{DISCOGS_API}/marketplace/orders/{order_id}/messages",
            json=payload, timeout=20,
        )
        if response.status_code not in (200, 201):
            logger.error(f"Discogs messages POST error {response.status_code}: {response.text[:200]}")
            raise HTTPException(status_code=response.status_code, detail=f"Discogs API error: {response.status_code}")
        logger.info(f"Sent message to Discogs order {order_id}")
        return response.json()

    # Public database

    def search_releases(self, **criteria) -> List[ReleaseSearchResult]:
        results = self.api.search(**criteria)
        return [
            ReleaseSearchResult(
                id=r["id"],
                title=r.get("title", ""),
                year=str(r["year"]) if r.get("year") else None,
                country=r.get("country"),
                format=r.get("format") or [],
                label=r.get("label") or [],
                catno=r.get("catno"),
                cover_image=r.get("cover_image"),
                uri=r.get("uri"),
            )
            for r in results
            if r.get("id")
        ]

    def get_release_details(self, release_id: int, currency: str = "EUR") -> ReleaseDetails:
        """Release data plus current marketplace numbers, shown after a scan is matched."""
        release = self.api.get_release(release_id)
        if not release:
            raise HTTPException(status_code=404, detail="Release not found")
        try:
            stats = self.api.get_marketplace_stats(release_id, currency)
        except ExternalServiceError as e:
            logger.warning(f"Marketplace stats unavailable for release {release_id}: {e}")
            stats = {}
        lowest = stats.get("lowest_price") or {}
        images = release.get("images") or []
        return ReleaseDetails(
            id=release["id"],
            title=release.get("title", ""),
            artists=[a["name"] for a in release.get("artists") or [] if a.get("name")],
            year=release.get("year") or None,
            country=release.get("country"),
            formats=[f["name"] for f in release.get("formats") or [] if f.get("name")],
            labels=[label["name"] for label in release.get("labels") or [] if label.get("name")],
            tracklist=release.get("tracklist") or [],
            cover_image=images[0].get("uri") if images else release.get("thumb"),
            lowest_price=lowest.get("value"),
            currency=lowest.get("currency") or (currency if lowest else None),
            num_for_sale=stats.get("num_for_sale"),
        )
