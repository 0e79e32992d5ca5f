from fastapi import APIRouter, Depends, Query
from musicscan.database.supabase_client import get_service_supabase
from musicscan.modules.discogs.schemas import (
    AuthorizeResponse, OAuthCallbackRequest, ConnectionResponse,
    OrderMessageRequest, OrderMessagesResponse, ReleaseSearchResult, ReleaseDetails,
)
from musicscan.modules.discogs.service import DiscogsService
from musicscan.core.dependencies import get_current_user
from supabase import Client
from typing import Dict, List, Optional

router = APIRouter(prefix="/discogs", tags=["discogs"])


def get_discogs_service(supabase: Client = Depends(get_service_supabase)) -> DiscogsService:
    return DiscogsService(supabase)


@router.post("/oauth/authorize", response_model=AuthorizeResponse)
def start_authorization(
    user_data: Dict = Depends(get_current_user),
    service: DiscogsService = Depends(get_discogs_service),
):
    """Start linking a Discogs account; returns the URL the user must visit."""
    return service.start_authorization(user_data["id"])


@router.post("/oauth/callback", response_model=ConnectionResponse)
def complete_authorization(
    data: OAuthCallbackRequest,
    user_data: Dict = Depends(get_current_user),
    service: DiscogsService = Depends(get_discogs_service),
):
    """Finish linking after Discogs redirected back with oauth_token/oauth_verifier."""
    return service.complete_authorization(user_data["id"], data.oauth_token, data.oauth_verifier)


@router.get("/connection", response_model=ConnectionResponse)
async def connection_status(
    user_data: Dict = Depends(get_current_user),
    service: DiscogsService = Depends(get_discogs_service),
):
    return service.connection_status(user_data["id"])


@router.delete("/connection", status_code=204)
async def disconnect(
    user_data: Dict = Depends(get_current_user),
    service: DiscogsService = Depends(get_discogs_service),
):
    service.disconnect(user_data["id"])
    return None


@router.get("/orders/{order_id}/messages", response_model=OrderMessagesResponse)
def list_order_messages(
    order_id: str,
    user_data: Dict = Depends(get_current_user),
    service: DiscogsService = Depends(get_discogs_service),
):
    return service.list_order_messages(user_data["id"], order_id)


@router.post("/orders/{order_id}/messages")
def send_order_message(
    order_id: str,
    data: OrderMessageRequest,
    user_data: Dict = Depends(get_current_user),
    service: DiscogsService = Depends(get_discogs_service),
):
    """Send a buyer message and/or update the order status on Discogs."""
    result = service.send_order_message(user_data["id"], order_id, data.message, data.status)
    return {"success": True, "data": result}


@router.get("/search", response_model=List[ReleaseSearchResult])
def search_releases(
    q: Optional[str] = None,
    artist: Optional[str] = None,
    title: Optional[str] = None,
    catno: Optional[str] = None,
    barcode: Optional[str] = None,
    format: Optional[str] = None,
    user_data: Dict = Depends(get_current_user),
    service: DiscogsService = Depends(get_discogs_service),
):
    """Search the Discogs database (catalogue lookup after a scan)."""
    return service.search_releases(
        query=q, artist=artist, title=title, catno=catno, barcode=barcode, format=format
    )


@router.get("/releases/{release_id}", response_model=ReleaseDetails)
def get_release(
    release_id: int,
    currency: str = Query("EUR", min_length=3, max_length=3),
    user_data: Dict = Depends(get_current_user),
    service: DiscogsService = Depends(get_discogs_service),
):
    """Release details with the current lowest marketplace price."""
    return service.get_release_details(release_id, currency.upper())
