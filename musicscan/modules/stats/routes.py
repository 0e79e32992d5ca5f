from fastapi import APIRouter, Depends
from musicscan.database.supabase_client import get_service_supabase
from musicscan.modules.stats.schemas import ContentOverview, UserOverview
from musicscan.modules.stats.service import StatsService
from musicscan.core.dependencies import require_admin
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/stats", tags=["stats"])


def get_stats_service(supabase: Client = Depends(get_service_supabase)) -> StatsService:
    return StatsService(supabase)


@router.get("/content", response_model=ContentOverview)
async def content_overview(
    user_data: Dict = Depends(require_admin),
    service: StatsService = Depends(get_stats_service),
):
    return service.content_overview()


@router.get("/users", response_model=UserOverview)
async def user_overview(
    user_data: Dict = Depends(require_admin),
    service: StatsService = Depends(get_stats_service),
):
    return service.user_overview()
