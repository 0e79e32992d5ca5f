from fastapi import APIRouter, Depends, Query
from musicscan.database.supabase_client import get_service_supabase
from musicscan.modules.collection.schemas import ScanListResponse, CollectionStats
from musicscan.modules.collection.service import CollectionService
from musicscan.core.dependencies import get_current_user
from supabase import Client
from typing import Dict, Optional

router = APIRouter(prefix="/collection", tags=["collection"])


def get_collection_service(supabase: Client = Depends(get_service_supabase)) -> CollectionService:
    return CollectionService(supabase)


@router.get("/scans", response_model=ScanListResponse)
async def list_scans(
    media_type: Optional[str] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user_data: Dict = Depends(get_current_user),
    service: CollectionService = Depends(get_collection_service),
):
    return service.list_scans(user_data["id"], media_type, limit, offset)


@router.get("/stats", response_model=CollectionStats)
async def get_stats(
    user_data: Dict = Depends(get_current_user),
    service: CollectionService = Depends(get_collection_service),
):
    """Value, genre, artist, decade and price-range breakdown of the caller's collection."""
    return service.get_stats(user_data["id"])
