from fastapi import APIRouter, Depends
from musicscan.database.supabase_client import get_service_supabase
from musicscan.modules.singles.schemas import (
    MasterSinglesRequest, MasterSinglesResult, SinglesImportRequest, SinglesImportResult,
)
from musicscan.modules.singles.service import SinglesService
from musicscan.modules.cronjobs.logger import CronjobLogger
from musicscan.core.dependencies import require_admin, require_cron_or_admin
from supabase import Client
from typing import Dict, Optional

router = APIRouter(prefix="/singles", tags=["singles"])


def get_singles_service(supabase: Client = Depends(get_service_supabase)) -> SinglesService:
    return SinglesService(supabase)


@router.post("/process-master", response_model=MasterSinglesResult)
def process_master_singles(
    data: Optional[MasterSinglesRequest] = None,
    caller: Dict = Depends(require_cron_or_admin),
    service: SinglesService = Depends(get_singles_service),
):
    batch_size = data.batch_size if data else 10
    with CronjobLogger(service.supabase, "master-singles-processor") as run:
        result = service.process_master_singles(batch_size)
        run.items_processed = result.processed
        run.metadata = {"inserted": result.inserted, "skipped": result.skipped, "failed": result.failed}
    return result


@router.post("/import", response_model=SinglesImportResult, status_code=201)
async def import_singles(
    data: SinglesImportRequest,
    user_data: Dict = Depends(require_admin),
    service: SinglesService = Depends(get_singles_service),
):
    return service.import_singles(user_data["id"], data.singles)
