from fastapi import APIRouter, Depends, Query
from musicscan.database.supabase_client import get_service_supabase
from musicscan.modules.pricing.schemas import CollectResult, PriceHistoryResponse
from musicscan.modules.pricing.service import PricingService
from musicscan.modules.cronjobs.logger import CronjobLogger
from musicscan.core.dependencies import require_cron_or_admin
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/pricing", tags=["pricing"])


def get_pricing_service(supabase: Client = Depends(get_service_supabase)) -> PricingService:
    return PricingService(supabase)


@router.post("/collect", response_model=CollectResult)
def collect_price_history(
    max_albums: int = Query(20, ge=1, le=100),
    caller: Dict = Depends(require_cron_or_admin),
    service: PricingService = Depends(get_pricing_service),
):
    with CronjobLogger(service.supabase, "collect-price-history") as run:
        result = service.collect_price_history(max_albums)
        run.items_processed = result.processed
        run.metadata = result.model_dump()
    return result


@router.get("/history/{discogs_id}", response_model=PriceHistoryResponse)
async def get_price_history(
    discogs_id: int,
    service: PricingService = Depends(get_pricing_service),
):
    """Public price chart data for a release."""
    return service.get_price_history(discogs_id)
