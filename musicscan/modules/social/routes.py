from fastapi import APIRouter, Depends
from musicscan.database.supabase_client import get_service_supabase
from musicscan.modules.social.schemas import PostResult, RecycleResult, QueueStats, ResetResult
from musicscan.modules.social.service import SocialService
from musicscan.modules.cronjobs.logger import CronjobLogger
from musicscan.core.dependencies import require_admin, require_cron_or_admin
from supabase import Client
from typing import Dict, List

router = APIRouter(prefix="/social", tags=["social"])


def get_social_service(supabase: Client = Depends(get_service_supabase)) -> SocialService:
    return SocialService(supabase)


@router.post("/queues/{queue}/process", response_model=PostResult)
def process_due_post(
    queue: str,
    caller: Dict = Depends(require_cron_or_admin),
    service: SocialService = Depends(get_social_service),
):
    """Post the next due item of one queue (youtube, singles, music_history, album)."""
    with CronjobLogger(service.supabase, f"post-scheduled-{queue.replace('_', '-')}") as run:
        result = service.process_due_post(queue)
        run.items_processed = result.posted
    return result


@router.post("/process-due", response_model=List[PostResult])
def process_all_due(
    caller: Dict = Depends(require_cron_or_admin),
    service: SocialService = Depends(get_social_service),
):
    with CronjobLogger(service.supabase, "facebook-due-posts") as run:
        results = service.process_all_due()
        run.items_processed = sum(r.posted for r in results)
    return results


@router.post("/recycle", response_model=RecycleResult)
def recycle_queues(
    caller: Dict = Depends(require_cron_or_admin),
    service: SocialService = Depends(get_social_service),
):
    with CronjobLogger(service.supabase, "recycle-facebook-queue") as run:
        result = service.recycle_queues()
        run.items_processed = sum(r.get("added", 0) for r in result.results)
    return result


@router.post("/queues/{queue}/reset-failed", response_model=ResetResult)
async def reset_failed(
    queue: str,
    user_data: Dict = Depends(require_admin),
    service: SocialService = Depends(get_social_service),
):
    return service.reset_failed(queue)


@router.get("/queues/stats", response_model=List[QueueStats])
async def queue_stats(
    user_data: Dict = Depends(require_admin),
    service: SocialService = Depends(get_social_service),
):
    return service.queue_stats()
