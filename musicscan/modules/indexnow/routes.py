from fastapi import APIRouter, Depends
from musicscan.database.supabase_client import get_service_supabase
from musicscan.modules.indexnow.schemas import (
    EnqueueRequest, EnqueueResponse, SubmitRequest, ProcessResult, SubmitResult, IndexNowStats,
)
from musicscan.modules.indexnow.service import IndexNowService
from musicscan.modules.cronjobs.logger import CronjobLogger
from musicscan.core.dependencies import require_admin, require_cron_or_admin
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/indexnow", tags=["indexnow"])


def get_indexnow_service(supabase: Client = Depends(get_service_supabase)) -> IndexNowService:
    return IndexNowService(supabase)


@router.post("/queue", response_model=EnqueueResponse, status_code=201)
async def enqueue(
    data: EnqueueRequest,
    user_data: Dict = Depends(require_admin),
    service: IndexNowService = Depends(get_indexnow_service),
):
    return EnqueueResponse(queued=service.enqueue(data.urls, data.content_type))


@router.post("/process", response_model=ProcessResult)
def process_queue(
    limit: int = 100,
    caller: Dict = Depends(require_cron_or_admin),
    service: IndexNowService = Depends(get_indexnow_service),
):
    """Cron entry point: submit up to 100 queued URLs."""
    with CronjobLogger(service.supabase, "indexnow-processor") as run:
        result = service.process_queue(limit)
        run.items_processed = result.processed
        run.metadata = {"status_code": result.status_code}
    return result


@router.post("/submit", response_model=SubmitResult)
def submit_urls(
    data: SubmitRequest,
    user_data: Dict = Depends(require_admin),
    service: IndexNowService = Depends(get_indexnow_service),
):
    return service.submit_urls(data.urls, data.content_type)


@router.get("/stats", response_model=IndexNowStats)
async def get_stats(
    user_data: Dict = Depends(require_admin),
    service: IndexNowService = Depends(get_indexnow_service),
):
    return service.get_stats()
