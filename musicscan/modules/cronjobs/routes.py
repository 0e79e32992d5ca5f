from fastapi import APIRouter, Depends, Query
from musicscan.database.supabase_client import get_service_supabase
from musicscan.modules.cronjobs.schemas import JobInfo, JobRunResult, CronjobHealth
from musicscan.modules.cronjobs.service import CronjobService
from musicscan.core.dependencies import require_admin, require_cron_or_admin
from supabase import Client
from typing import Dict, List

router = APIRouter(prefix="/cronjobs", tags=["cronjobs"])


def get_cronjob_service(supabase: Client = Depends(get_service_supabase)) -> CronjobService:
    return CronjobService(supabase)


@router.get("/jobs", response_model=List[JobInfo])
async def list_jobs(
    user_data: Dict = Depends(require_admin),
    service: CronjobService = Depends(get_cronjob_service),
):
    return service.list_jobs()


@router.post("/jobs/{name}/run", response_model=JobRunResult)
def run_job(
    name: str,
    caller: Dict = Depends(require_cron_or_admin),
    service: CronjobService = Depends(get_cronjob_service),
):
    return service.run_job(name)


@router.get("/health", response_model=CronjobHealth)
async def get_health(
    days: int = Query(7, ge=1, le=90),
    user_data: Dict = Depends(require_admin),
    service: CronjobService = Depends(get_cronjob_service),
):
    """Run counts, timings and success rate per job."""
    return service.get_health(days)
