from fastapi import APIRouter, Depends, Query
from musicscan.database.supabase_client import get_service_supabase
from musicscan.modules.community.schemas import (
    ConversationCreate, ConversationSummary, MessageCreate, MarkReadResponse,
    PhotoListResponse, LikeResponse, CommentCreate,
)
from musicscan.modules.community.service import MessagingService, FanWallService
from musicscan.core.dependencies import get_current_user
from supabase import Client
from typing import Any, Dict, List, Optional

router = APIRouter(tags=["community"])


def get_messaging_service(supabase: Client = Depends(get_service_supabase)) -> MessagingService:
    return MessagingService(supabase)


def get_fanwall_service(supabase: Client = Depends(get_service_supabase)) -> FanWallService:
    return FanWallService(supabase)


@router.post("/conversations", response_model=Dict[str, Any])
async def get_or_create_conversation(
    data: ConversationCreate,
    user_data: Dict = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service),
):
    return service.get_or_create_conversation(user_data["id"], data.other_user_id)


@router.get("/conversations", response_model=List[ConversationSummary])
async def list_conversations(
    user_data: Dict = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service),
):
    return service.list_conversations(user_data["id"])


@router.get("/conversations/{conversation_id}/messages", response_model=List[Dict[str, Any]])
async def list_messages(
    conversation_id: str,
    limit: int = Query(50, ge=1, le=200),
    before: Optional[str] = None,
    user_data: Dict = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service),
):
    return service.list_messages(user_data["id"], conversation_id, limit, before)


@router.post("/conversations/{conversation_id}/messages", response_model=Dict[str, Any], status_code=201)
async def send_message(
    conversation_id: str,
    data: MessageCreate,
    user_data: Dict = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service),
):
    return service.send_message(user_data["id"], conversation_id, data.content)


@router.post("/conversations/{conversation_id}/read", response_model=MarkReadResponse)
async def mark_read(
    conversation_id: str,
    user_data: Dict = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service),
):
    return service.mark_read(user_data["id"], conversation_id)


@router.get("/fanwall/photos", response_model=PhotoListResponse)
async def list_photos(
    artist: Optional[str] = None,
    limit: int = Query(24, ge=1, le=100),
    offset: int = Query(0, ge=0),
    service: FanWallService = Depends(get_fanwall_service),
):
    return service.list_photos(artist, limit, offset)


@router.post("/fanwall/photos/{photo_id}/like", response_model=LikeResponse)
async def toggle_like(
    photo_id: str,
    user_data: Dict = Depends(get_current_user),
    service: FanWallService = Depends(get_fanwall_service),
):
    return service.toggle_like(user_data["id"], photo_id)


@router.get("/fanwall/photos/{photo_id}/comments", response_model=List[Dict[str, Any]])
async def list_comments(photo_id: str, service: FanWallService = Depends(get_fanwall_service)):
    return service.list_comments(photo_id)


@router.post("/fanwall/photos/{photo_id}/comments", response_model=Dict[str, Any], status_code=201)
async def add_comment(
    photo_id: str,
    data: CommentCreate,
    user_data: Dict = Depends(get_current_user),
    service: FanWallService = Depends(get_fanwall_service),
):
    return service.add_comment(user_data["id"], photo_id, data.body, data.parent_comment_id)
