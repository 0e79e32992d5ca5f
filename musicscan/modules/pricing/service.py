from supabase import Client
from musicscan.modules.pricing.schemas import PriceData, CollectResult, PricePoint, PriceHistoryResponse
from musicscan.config import settings
from musicscan.core.errors import ExternalServiceError
from musicscan.core.utils import iso_days_ago
from typing import Any, Dict, List, Optional, Tuple
from fastapi import HTTPException
import re
import statistics
import time
import requests
import logging

logger = logging.getLogger(__name__)

PRICE_PATTERNS = [
    re.compile(r"€(\d+[.,]\d{2})"),
    re.compile(r"EUR\s*(\d+[.,]\d{2})"),
    re.compile(r"\$(\d+[.,]\d{2})"),
    re.compile(r"£(\d+[.,]\d{2})"),
]
BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)
SCRAPERAPI_URL = "https://api.scraperapi.com/"
RAW_RESPONSE_LIMIT = 10000


def parse_price_data(html: str) -> PriceData:
    """Collect plausible prices (0 < p < 1000) from a release page."""
    prices: List[float] = []
    for pattern in PRICE_PATTERNS:
        for match in pattern.finditer(html or ""):
            price = float(match.group(1).replace(",", "."))
            if 0 < price < 1000:
                prices.append(price)

    unique = sorted(set(prices))
    if not unique:
        return PriceData()
    return PriceData(
        lowest_price=unique[0],
        median_price=statistics.median(unique),
        highest_price=unique[-1],
        num_for_sale=len(unique),
        total_prices_found=len(prices),
    )


def release_url(discogs_id: Any) -> str:
    return f"https://www.discogs.com/release/{discogs_id}"


class PricingService:
    def __init__(self, supabase: Client, request_delay: float = 2.0):
        self.supabase = supabase
        self.request_delay = request_delay

    def _recent_albums(self) -> List[Dict[str, Any]]:
        albums: List[Dict[str, Any]] = []
        seen = set()
        for table in ("cd_scan", "vinyl2_scan"):
            result = self.supabase.table(table)\
                .select("discogs_id, artist, title, updated_at")\
                .not_.is_("discogs_id", "null")\
                .order("updated_at", desc=True)\
                .limit(50)\
                .execute()
            for album in result.data or []:
                if album["discogs_id"] in seen:
                    continue
                seen.add(album["discogs_id"])
                albums.append(album)
        return albums

    def fetch_release_page(self, discogs_id: Any) -> Tuple[str, str]:
        """Returns (html, extraction_method). Falls back to ScraperAPI when Discogs blocks us."""
        url = release_url(discogs_id)
        try:
            response = requests.get(url, headers={"User-Agent": BROWSER_USER_AGENT}, timeout=30)
        except requests.RequestException as e:
            raise ExternalServiceError("discogs", str(e))

        if response.status_code in (403, 429):
            if not settings.scraperapi_key:
                raise ExternalServiceError("discogs", "Access denied and no ScraperAPI key available", response.status_code)
            try:
                scraped = requests.get(
                    SCRAPERAPI_URL, params={"api_key": settings.scraperapi_key, "url": url}, timeout=60
                )
            except requests.RequestException as e:
                raise ExternalServiceError("scraperapi", str(e))
            if not scraped.ok:
                raise ExternalServiceError("scraperapi", f"ScraperAPI failed: {scraped.status_code}", scraped.status_code)
            return scraped.text, "scraperapi"

        if not response.ok:
            raise ExternalServiceError("discogs", f"HTTP {response.status_code}", response.status_code)
        return response.text, "direct"

    def _has_recent_session(self, discogs_id: Any) -> bool:
        result = self.supabase.table("discogs_pricing_sessions")\
            .select("id")\
            .eq("discogs_id", discogs_id)\
            .gte("created_at", iso_days_ago(1))\
            .limit(1)\
            .execute()
        return bool(result.data)

    def collect_price_for_album(self, album: Dict[str, Any]) -> bool:
        """Store one pricing session. Returns False when a session from the last 24h exists."""
        discogs_id = album["discogs_id"]
        if self._has_recent_session(discogs_id):
            logger.info(f"Skipping {discogs_id}: priced in the last 24 hours")
            return False

        base_row = {
            "discogs_id": discogs_id,
            "discogs_url": release_url(discogs_id),
            "release_title": album.get("title"),
            "artist_name": album.get("artist"),
            "strategy_used": "html_parsing",
        }
        started = time.monotonic()
        method = "direct"
        raw = ""
        try:
            raw, method = self.fetch_release_page(discogs_id)
            prices = parse_price_data(raw)
            truncated = raw[:RAW_RESPONSE_LIMIT] + "..." if len(raw) > RAW_RESPONSE_LIMIT else raw
            self.supabase.table("discogs_pricing_sessions").insert({
                **base_row,
                **prices.model_dump(),
                "extraction_method": method,
                "success": True,
                "raw_response": truncated,
                "execution_time_ms": int((time.monotonic() - started) * 1000),
            }).execute()
            return True
        except Exception as e:
            logger.error(f"Failed to collect price data for {discogs_id}: {e}")
            self.supabase.table("discogs_pricing_sessions").insert({
                **base_row,
                "extraction_method": method,
                "success": False,
                "error_message": str(e),
                "raw_response": raw[:1000],
                "execution_time_ms": int((time.monotonic() - started) * 1000),
            }).execute()
            raise

    def collect_price_history(self, max_albums: int = 20) -> CollectResult:
        try:
            albums = self._recent_albums()[:max_albums]
        except Exception as e:
            raise HTTPException(status_code=500, detail=f"Database error: {e}")

        successful = skipped = errors = 0
        for index, album in enumerate(albums):
            try:
                if self.collect_price_for_album(album):
                    successful += 1
                else:
                    skipped += 1
                    continue
            except Exception:
                errors += 1
            if self.request_delay and index < len(albums) - 1:
                time.sleep(self.request_delay)

        logger.info(f"Price history collection completed: {successful} ok, {skipped} skipped, {errors} errors")
        return CollectResult(processed=successful + skipped + errors, successful=successful,
                             skipped=skipped, errors=errors)

    def get_price_history(self, discogs_id: int) -> PriceHistoryResponse:
        try:
            result = self.supabase.table("discogs_pricing_sessions")\
                .select("created_at, lowest_price, median_price, highest_price, num_for_sale")\
                .eq("discogs_id", discogs_id)\
                .eq("success", True)\
                .order("created_at")\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        return PriceHistoryResponse(
            discogs_id=discogs_id,
            points=[PricePoint(**row) for row in (result.data or [])],
        )
