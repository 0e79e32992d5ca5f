from supabase import Client
from musicscan.modules.indexnow.schemas import ProcessResult, SubmitResult, IndexNowStats
from musicscan.config import settings
from musicscan.core.utils import utcnow_iso
from typing import List, Optional, Tuple
from fastapi import HTTPException
import requests
import logging

logger = logging.getLogger(__name__)

MAX_BATCH = 100


def normalize_url(url: str, site_url: Optional[str] = None) -> str:
    """Relative paths become absolute site URLs; absolute URLs pass through."""
    url = url.strip()
    if url.startswith("http://") or url.startswith("https://"):
        return url
    base = (site_url or settings.site_url).rstrip("/")
    return f"{base}/{url.lstrip('/')}"


def key_location() -> str:
    return f"{settings.site_url.rstrip('/')}/{settings.indexnow_key}.txt"


class IndexNowService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def enqueue(self, urls: List[str], content_type: Optional[str] = None) -> int:
        rows = []
        seen = set()
        for url in urls:
            if not url or not url.strip():
                continue
            absolute = normalize_url(url)
            if absolute in seen:
                continue
            seen.add(absolute)
            rows.append({"url": absolute, "content_type": content_type, "processed": False})
        if not rows:
            return 0
        try:
            self.supabase.table("indexnow_queue").insert(rows).execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        logger.info(f"Queued {len(rows)} URLs for IndexNow")
        return len(rows)

    def _post(self, urls: List[str]) -> Tuple[int, str]:
        """POST the URL list. Returns (status_code, response_body); status 0 when the request failed."""
        if not settings.indexnow_key:
            raise HTTPException(status_code=500, detail="IndexNow key not configured")
        payload = {
            "host": settings.site_host,
            "key": settings.indexnow_key,
            "keyLocation": key_location(),
            "urlList": urls,
        }
        try:
            response = requests.post(
                settings.indexnow_endpoint,
                json=payload,
                headers={"Content-Type": "application/json; charset=utf-8"},
                timeout=30,
            )
        except requests.RequestException as e:
            logger.error(f"IndexNow request failed: {e}")
            return 0, str(e)
        logger.info(f"IndexNow responded HTTP {response.status_code} for {len(urls)} URLs")
        return response.status_code, response.text

    def _log_submission(self, urls: List[str], status_code: int, body: str, content_type: Optional[str]) -> None:
        try:
            self.supabase.table("indexnow_submissions").insert({
                "urls": urls,
                "url_count": len(urls),
                "status_code": status_code,
                "response_body": (body or "")[:2000],
                "content_type": content_type,
                "submitted_at": utcnow_iso(),
            }).execute()
        except Exception as e:
            logger.error(f"Could not record IndexNow submission: {e}")

    def process_queue(self, limit: int = MAX_BATCH) -> ProcessResult:
        """Submit the oldest unprocessed URLs in one request and mark them processed."""
        limit = max(1, min(limit, MAX_BATCH))
        try:
            result = self.supabase.table("indexnow_queue")\
                .select("*")\
                .eq("processed", False)\
                .order("created_at")\
                .limit(limit)\
                .execute()
            rows = result.data or []
            if not rows:
                logger.info("IndexNow queue is empty")
                return ProcessResult(message="No URLs to process")

            urls = list(dict.fromkeys(r["url"] for r in rows))
            content_types = {r.get("content_type") for r in rows if r.get("content_type")}
            content_type = content_types.pop() if len(content_types) == 1 else ("mixed" if content_types else None)

            status_code, body = self._post(urls)
            self._log_submission(urls, status_code, body, content_type)

            if status_code == 0:
                return ProcessResult(submitted=0, status_code=0, message="IndexNow request failed; rows left in queue")

            ids = [r["id"] for r in rows]
            self.supabase.table("indexnow_queue")\
                .update({"processed": True, "processed_at": utcnow_iso()})\
                .in_("id", ids)\
                .execute()

            return ProcessResult(processed=len(ids), submitted=len(urls), status_code=status_code)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def submit_urls(self, urls: List[str], content_type: Optional[str] = "manual") -> SubmitResult:
        absolute = list(dict.fromkeys(normalize_url(u) for u in urls if u and u.strip()))
        if not absolute:
            raise HTTPException(status_code=400, detail="No URLs to submit")
        if len(absolute) > 10000:
            raise HTTPException(status_code=400, detail="IndexNow accepts at most 10000 URLs per request")
        status_code, body = self._post(absolute)
        self._log_submission(absolute, status_code, body, content_type)
        return SubmitResult(submitted=len(absolute), status_code=status_code, success=status_code in (200, 202))

    def get_stats(self, recent: int = 10) -> IndexNowStats:
        try:
            pending = self.supabase.table("indexnow_queue").select("id", count="exact").eq("processed", False).execute()
            processed = self.supabase.table("indexnow_queue").select("id", count="exact").eq("processed", True).execute()
            submissions = self.supabase.table("indexnow_submissions")\
                .select("*")\
                .order("submitted_at", desc=True)\
                .limit(recent)\
                .execute()
            rows = submissions.data or []
            return IndexNowStats(
                pending=pending.count or 0,
                processed=processed.count or 0,
                last_submission_at=rows[0].get("submitted_at") if rows else None,
                recent_submissions=rows,
            )
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
