from supabase import Client
from musicscan.modules.singles.schemas import MasterSinglesResult, SingleImport, SinglesImportResult
from musicscan.config import settings
from musicscan.core.utils import utcnow_iso, is_duplicate_error
from typing import Any, Dict, List, Optional, Set
from fastapi import HTTPException
import uuid
import logging

logger = logging.getLogger(__name__)

QUEUE_PRIORITY = 50
MAX_ATTEMPTS = 3


def single_key(artist: Optional[str], single_name: Optional[str]) -> str:
    return f"{(artist or '').strip().lower()}|{(single_name or '').strip().lower()}"


class SinglesService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _known_singles(self) -> Set[str]:
        """Keys of singles that are already queued or already have a story."""
        keys: Set[str] = set()
        queued = self.supabase.table("singles_import_queue").select("artist, single_name").execute()
        for item in queued.data or []:
            if item.get("artist") and item.get("single_name"):
                keys.add(single_key(item["artist"], item["single_name"]))
        stories = self.supabase.table("music_stories")\
            .select("artist_name, single_name")\
            .not_.is_("single_name", "null")\
            .execute()
        for story in stories.data or []:
            if story.get("artist_name") and story.get("single_name"):
                keys.add(single_key(story["artist_name"], story["single_name"]))
        return keys

    def _mark(self, single_id: str, status: str, error_message: Optional[str] = None) -> None:
        update: Dict[str, Any] = {"status": status, "updated_at": utcnow_iso()}
        if error_message is not None:
            update["error_message"] = error_message
        self.supabase.table("master_singles").update(update).eq("id", single_id).execute()

    def process_master_singles(self, batch_size: int = 10) -> MasterSinglesResult:
        """Move pending singles with artwork from master_singles into singles_import_queue."""
        batch_size = min(max(1, batch_size), 50)
        try:
            pending = self.supabase.table("master_singles")\
                .select("*")\
                .eq("status", "pending")\
                .not_.is_("artwork_large", "null")\
                .order("year", desc=True, nullsfirst=False)\
                .limit(batch_size * 2)\
                .execute().data or []
            if not pending:
                logger.info("No pending singles to process")
                return MasterSinglesResult(message="No pending singles")

            logger.info(f"Found {len(pending)} pending singles")
            known = self._known_singles()
            to_process = [
                s for s in pending
                if single_key(s.get("artist_name"), s.get("title")) not in known
            ][:batch_size]

            if not to_process:
                for single in pending[:batch_size]:
                    self._mark(single["id"], "skipped")
                logger.info("All singles already in queue or stories")
                return MasterSinglesResult(skipped=len(pending), message="All singles already queued")

            batch_id = str(uuid.uuid4())
            inserted = skipped = failed = 0
            for single in to_process:
                try:
                    self.supabase.table("singles_import_queue").insert({
                        "user_id": settings.system_user_id,
                        "batch_id": batch_id,
                        "artist": single.get("artist_name"),
                        "single_name": single.get("title"),
                        "year": single.get("year"),
                        "label": single.get("label"),
                        "discogs_id": single.get("discogs_release_id"),
                        "discogs_url": single.get("discogs_url"),
                        "artwork_url": single.get("artwork_large") or single.get("artwork_thumb"),
                        "genre": single.get("genre"),
                        "status": "pending",
                        "priority": QUEUE_PRIORITY,
                        "attempts": 0,
                        "max_attempts": MAX_ATTEMPTS,
                    }).execute()
                except Exception as e:
                    if is_duplicate_error(e):
                        self._mark(single["id"], "skipped")
                        skipped += 1
                    else:
                        logger.error(f"Error processing {single.get('title')}: {e}")
                        self._mark(single["id"], "failed", str(e))
                        failed += 1
                    continue
                self._mark(single["id"], "queued")
                inserted += 1
                logger.info(f"Queued: {single.get('artist_name')} - {single.get('title')}")

            logger.info(f"Master singles complete. Inserted: {inserted}, Skipped: {skipped}, Failed: {failed}")
            return MasterSinglesResult(
                processed=inserted + skipped,
                inserted=inserted,
                skipped=skipped,
                failed=failed,
                batch_id=batch_id,
            )
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def import_singles(self, user_id: str, singles: List[SingleImport]) -> SinglesImportResult:
        """Admin bulk import into singles_import_queue under one batch id."""
        batch_id = str(uuid.uuid4())
        invalid_items: List[Dict[str, Any]] = []
        seen: Set[str] = set()
        imported = 0

        for single in singles:
            artist = (single.artist or "").strip()
            name = (single.single_name or "").strip()
            if not artist or not name:
                invalid_items.append({**single.model_dump(), "reason": "artist and single_name are required"})
                continue
            key = single_key(artist, name)
            if key in seen:
                invalid_items.append({**single.model_dump(), "reason": "duplicate in import"})
                continue
            seen.add(key)

            row = single.model_dump(exclude_none=True)
            row.update({
                "artist": artist,
                "single_name": name,
                "user_id": user_id,
                "batch_id": batch_id,
                "status": "pending",
                "priority": QUEUE_PRIORITY,
                "attempts": 0,
                "max_attempts": MAX_ATTEMPTS,
            })
            try:
                self.supabase.table("singles_import_queue").insert(row).execute()
            except Exception as e:
                if not is_duplicate_error(e):
                    raise HTTPException(status_code=500, detail=str(e))
                invalid_items.append({**single.model_dump(), "reason": "already queued"})
                continue
            imported += 1

        logger.info(f"Imported {imported} singles into batch {batch_id} ({len(invalid_items)} invalid)")
        return SinglesImportResult(
            batch_id=batch_id if imported else None,
            imported=imported,
            invalid=len(invalid_items),
            invalid_items=invalid_items,
        )
