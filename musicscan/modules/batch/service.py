from supabase import Client
from musicscan.modules.ai.client import AIClient
from musicscan.modules.discogs.client import DiscogsClient
from musicscan.modules.batch import stories
from musicscan.modules.batch.schemas import (
    BatchStartResponse, ProcessNextResponse, QueueCounts, BatchStatusResponse, ResetFailedResponse,
)
from musicscan.config import settings
from musicscan.core.errors import ExternalServiceError
from musicscan.core.utils import utcnow_iso, chunked
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
import uuid
import logging

logger = logging.getLogger(__name__)

PROCESS_TYPE = "artist_stories"
ITEM_TYPE = "artist"
MAX_ATTEMPTS = 3


class BatchService:
    def __init__(self, supabase: Client, ai: Optional[AIClient] = None, discogs: Optional[DiscogsClient] = None):
        self.supabase = supabase
        self.ai = ai or AIClient()
        self.discogs = discogs or DiscogsClient()

    def start_artist_story_batch(self) -> BatchStartResponse:
        """Queue every imported artist that has no story yet."""
        try:
            imported = self.supabase.table("discogs_import_log")\
                .select("artist")\
                .not_.is_("artist", "null")\
                .neq("artist", "")\
                .execute()
            unique_artists = list(dict.fromkeys(
                r["artist"].strip() for r in (imported.data or []) if r.get("artist") and r["artist"].strip()
            ))

            existing = self.supabase.table("artist_stories").select("artist_name").execute()
            existing_names = {r["artist_name"] for r in (existing.data or []) if r.get("artist_name")}
            to_process = [a for a in unique_artists if a not in existing_names]
            logger.info(f"{len(to_process)} artists need stories ({len(existing_names)} already exist)")

            if not to_process:
                return BatchStartResponse(total=0, message="All artists already have stories")

            now = utcnow_iso()
            batch_result = self.supabase.table("batch_processing_status").insert({
                "process_type": PROCESS_TYPE,
                "status": "processing",
                "total_items": len(to_process),
                "processed_items": 0,
                "successful_items": 0,
                "failed_items": 0,
                "started_at": now,
                "last_heartbeat": now,
            }).execute()
            if not batch_result.data:
                raise HTTPException(status_code=500, detail="Failed to create batch status")
            batch_id = batch_result.data[0]["id"]

            items = [{
                "batch_id": batch_id,
                "item_id": str(uuid.uuid4()),
                "item_type": ITEM_TYPE,
                "status": "pending",
                "priority": 0,
                "attempts": 0,
                "max_attempts": MAX_ATTEMPTS,
                "metadata": {"artist_name": artist},
            } for artist in to_process]
            for chunk in chunked(items, 500):
                self.supabase.table("batch_queue_items").insert(chunk).execute()

            logger.info(f"Batch {batch_id} started with {len(to_process)} artists in queue")
            return BatchStartResponse(
                batch_id=batch_id,
                total=len(to_process),
                message=f"Started processing {len(to_process)} artists",
            )
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def generate_artist_story(self, artist_name: str, user_id: Optional[str] = None) -> Dict[str, Any]:
        story = self.ai.chat([
            {"role": "system", "content": stories.ARTIST_STORY_PROMPT},
            {"role": "user", "content": stories.story_user_prompt(artist_name)},
        ])
        if not story:
            raise ExternalServiceError("ai", f"Empty story for {artist_name}")

        artwork_url = None
        try:
            artwork_url = self.discogs.search_artist_image(artist_name)
        except ExternalServiceError as e:
            logger.warning(f"Could not fetch artwork for {artist_name}: {e}")

        row = stories.build_story_row(artist_name, story, artwork_url, utcnow_iso(), user_id)
        result = self.supabase.table("artist_stories").insert(row).execute()
        if not result.data:
            raise HTTPException(status_code=500, detail="Failed to save artist story")
        return result.data[0]

    def process_next_artist_story(self) -> ProcessNextResponse:
        """Generate one story for the highest-priority, oldest pending artist."""
        next_result = self.supabase.table("batch_queue_items")\
            .select("*")\
            .eq("item_type", ITEM_TYPE)\
            .eq("status", "pending")\
            .order("priority", desc=True)\
            .order("created_at")\
            .limit(1)\
            .execute()
        if not next_result.data:
            logger.debug("No pending artists to process")
            return ProcessNextResponse(processed=False, message="No pending items")

        item = next_result.data[0]
        artist_name = (item.get("metadata") or {}).get("artist_name")
        attempts = (item.get("attempts") or 0) + 1
        max_attempts = item.get("max_attempts") or MAX_ATTEMPTS

        if not artist_name:
            self._update_item(item["id"], {"status": "failed", "attempts": attempts,
                                           "error_message": "Artist name not found in queue item",
                                           "processed_at": utcnow_iso()})
            self._refresh_batch(item["batch_id"])
            return ProcessNextResponse(processed=True, status="failed", error="Artist name not found in queue item")

        logger.info(f"Processing artist: {artist_name} (attempt {attempts}/{max_attempts})")
        self._update_item(item["id"], {"status": "processing", "attempts": attempts})

        try:
            saved = self.generate_artist_story(artist_name, settings.system_user_id)
        except Exception as e:
            error = getattr(e, "detail", None) or str(e)
            retry = attempts < max_attempts
            logger.error(f"Error processing {artist_name}: {error} ({'will retry' if retry else 'giving up'})")
            self._update_item(item["id"], {
                "status": "pending" if retry else "failed",
                "error_message": error,
                "processed_at": None if retry else utcnow_iso(),
            })
            self._refresh_batch(item["batch_id"])
            return ProcessNextResponse(
                processed=True, artist=artist_name, status="pending" if retry else "failed", error=error
            )

        self._update_item(item["id"], {"status": "completed", "error_message": None, "processed_at": utcnow_iso()})
        self._refresh_batch(item["batch_id"])
        logger.info(f"Successfully processed: {artist_name}")
        return ProcessNextResponse(processed=True, artist=artist_name, story_id=saved.get("id"), status="completed")

    def _update_item(self, item_id: str, update: Dict[str, Any]) -> None:
        self.supabase.table("batch_queue_items").update(update).eq("id", item_id).execute()

    def _queue_counts(self, batch_id: str) -> QueueCounts:
        result = self.supabase.table("batch_queue_items").select("status").eq("batch_id", batch_id).execute()
        counts: Dict[str, int] = {}
        for row in result.data or []:
            counts[row["status"]] = counts.get(row["status"], 0) + 1
        return QueueCounts(**{k: v for k, v in counts.items() if k in QueueCounts.model_fields})

    def _refresh_batch(self, batch_id: str) -> None:
        """Recompute batch counters from its items and close the batch when nothing is left."""
        counts = self._queue_counts(batch_id)
        update: Dict[str, Any] = {
            "processed_items": counts.completed + counts.failed,
            "successful_items": counts.completed,
            "failed_items": counts.failed,
            "last_heartbeat": utcnow_iso(),
        }
        if counts.pending == 0 and counts.processing == 0:
            update["status"] = "completed"
            update["completed_at"] = utcnow_iso()
        else:
            update["status"] = "processing"
        self.supabase.table("batch_processing_status").update(update).eq("id", batch_id).execute()

    def get_batch_status(self, batch_id: Optional[str] = None) -> BatchStatusResponse:
        query = self.supabase.table("batch_processing_status").select("*")
        if batch_id:
            query = query.eq("id", batch_id)
        else:
            query = query.eq("process_type", PROCESS_TYPE).order("created_at", desc=True)
        result = query.limit(1).execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Batch not found")
        batch = result.data[0]
        return BatchStatusResponse(batch=batch, queue_stats=self._queue_counts(batch["id"]))

    def reset_failed_items(self, batch_id: Optional[str] = None) -> ResetFailedResponse:
        """Manual retry: failed items go back to pending with a fresh attempt budget."""
        try:
            query = self.supabase.table("batch_queue_items")\
                .update({"status": "pending", "attempts": 0, "error_message": None, "processed_at": None})\
                .eq("status", "failed")\
                .eq("item_type", ITEM_TYPE)
            if batch_id:
                query = query.eq("batch_id", batch_id)
            result = query.execute()
            rows: List[Dict[str, Any]] = result.data or []
            for affected in {r["batch_id"] for r in rows if r.get("batch_id")}:
                self._refresh_batch(affected)
            logger.info(f"Reset {len(rows)} failed batch items")
            return ResetFailedResponse(reset=len(rows))
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
