from fastapi import APIRouter, Depends
from musicscan.database.supabase_client import get_service_supabase
from musicscan.modules.batch.schemas import (
    BatchStartResponse, ProcessNextResponse, BatchStatusResponse, ResetFailedResponse,
)
from musicscan.modules.batch.service import BatchService
from musicscan.modules.cronjobs.logger import CronjobLogger
from musicscan.core.dependencies import require_admin, require_cron_or_admin
from supabase import Client
from typing import Dict, Optional

router = APIRouter(prefix="/batch/artist-stories", tags=["batch"])


def get_batch_service(supabase: Client = Depends(get_service_supabase)) -> BatchService:
    return BatchService(supabase)


@router.post("/start", response_model=BatchStartResponse, status_code=201)
def start_batch(
    user_data: Dict = Depends(require_admin),
    service: BatchService = Depends(get_batch_service),
):
    return service.start_artist_story_batch()


@router.post("/process-next", response_model=ProcessNextResponse)
def process_next(
    caller: Dict = Depends(require_cron_or_admin),
    service: BatchService = Depends(get_batch_service),
):
    with CronjobLogger(service.supabase, "artist-stories-batch-processor") as run:
        result = service.process_next_artist_story()
        run.items_processed = 1 if result.status == "completed" else 0
        run.metadata = {"artist": result.artist, "status": result.status}
    return result


@router.get("/status", response_model=BatchStatusResponse)
async def get_batch_status(
    batch_id: Optional[str] = None,
    user_data: Dict = Depends(require_admin),
    service: BatchService = Depends(get_batch_service),
):
    """Latest artist-story batch, or a specific one by id."""
    return service.get_batch_status(batch_id)


@router.post("/reset-failed", response_model=ResetFailedResponse)
async def reset_failed_items(
    batch_id: Optional[str] = None,
    user_data: Dict = Depends(require_admin),
    service: BatchService = Depends(get_batch_service),
):
    return service.reset_failed_items(batch_id)
