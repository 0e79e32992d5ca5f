from supabase import Client
from musicscan.modules.community.schemas import (
    ConversationSummary, MarkReadResponse, PhotoListResponse, LikeResponse, MAX_MESSAGE_LENGTH,
)
from musicscan.core.utils import utcnow_iso
from typing import Any, Dict, List, Optional, Tuple
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


def participant_pair(user_id: str, other_user_id: str) -> Tuple[str, str]:
    """Conversations store their two participants in sorted order."""
    return (user_id, other_user_id) if user_id < other_user_id else (other_user_id, user_id)


def clean_message(content: str) -> str:
    text = (content or "").strip()
    if not text:
        raise HTTPException(status_code=400, detail="Message cannot be empty")
    if len(text) > MAX_MESSAGE_LENGTH:
        raise HTTPException(status_code=400, detail=f"Message exceeds {MAX_MESSAGE_LENGTH} characters")
    return text


class MessagingService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_or_create_conversation(self, user_id: str, other_user_id: str) -> Dict[str, Any]:
        if user_id == other_user_id:
            raise HTTPException(status_code=400, detail="Cannot start a conversation with yourself")
        first, second = participant_pair(user_id, other_user_id)
        try:
            existing = self.supabase.table("conversations")\
                .select("*")\
                .eq("participant_1", first)\
                .eq("participant_2", second)\
                .limit(1)\
                .execute()
            if existing.data:
                return existing.data[0]

            created = self.supabase.table("conversations").insert({
                "participant_1": first,
                "participant_2": second,
            }).execute()
            if not created.data:
                raise HTTPException(status_code=500, detail="Failed to create conversation")
            logger.info(f"Conversation {created.data[0]['id']} created between {first} and {second}")
            return created.data[0]
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _get_conversation(self, user_id: str, conversation_id: str) -> Dict[str, Any]:
        result = self.supabase.table("conversations")\
            .select("*")\
            .eq("id", conversation_id)\
            .limit(1)\
            .execute()
        conversation = result.data[0] if result.data else None
        if not conversation:
            raise HTTPException(status_code=404, detail="Conversation not found")
        if user_id not in (conversation["participant_1"], conversation["participant_2"]):
            raise HTTPException(status_code=403, detail="Not a participant in this conversation")
        return conversation

    def list_conversations(self, user_id: str) -> List[ConversationSummary]:
        try:
            result = self.supabase.table("conversations")\
                .select("*")\
                .or_(f"participant_1.eq.{user_id},participant_2.eq.{user_id}")\
                .order("last_message_at", desc=True, nullsfirst=False)\
                .execute()

            summaries = []
            for conversation in result.data or []:
                last = self.supabase.table("messages")\
                    .select("id, sender_id, content, created_at")\
                    .eq("conversation_id", conversation["id"])\
                    .order("created_at", desc=True)\
                    .limit(1)\
                    .execute()
                unread = self.supabase.table("messages")\
                    .select("id", count="exact")\
                    .eq("conversation_id", conversation["id"])\
                    .eq("is_read", False)\
                    .neq("sender_id", user_id)\
                    .execute()
                other = conversation["participant_2"] if conversation["participant_1"] == user_id \
                    else conversation["participant_1"]
                summaries.append(ConversationSummary(
                    id=conversation["id"],
                    other_user_id=other,
                    last_message_at=conversation.get("last_message_at"),
                    last_message=last.data[0] if last.data else None,
                    unread_count=unread.count or 0,
                ))
            return summaries
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def send_message(self, user_id: str, conversation_id: str, content: str) -> Dict[str, Any]:
        text = clean_message(content)
        self._get_conversation(user_id, conversation_id)
        try:
            result = self.supabase.table("messages").insert({
                "conversation_id": conversation_id,
                "sender_id": user_id,
                "content": text,
                "is_read": False,
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to send message")
            message = result.data[0]
            self.supabase.table("conversations")\
                .update({"last_message_at": message.get("created_at") or utcnow_iso()})\
                .eq("id", conversation_id)\
                .execute()
            return message
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_messages(self, user_id: str, conversation_id: str, limit: int = 50,
                      before: Optional[str] = None) -> List[Dict[str, Any]]:
        """Newest page first from the database, returned in chronological order."""
        self._get_conversation(user_id, conversation_id)
        query = self.supabase.table("messages")\
            .select("*")\
            .eq("conversation_id", conversation_id)
        if before:
            query = query.lt("created_at", before)
        result = query.order("created_at", desc=True).limit(limit).execute()
        return list(reversed(result.data or []))

    def mark_read(self, user_id: str, conversation_id: str) -> MarkReadResponse:
        self._get_conversation(user_id, conversation_id)
        result = self.supabase.table("messages")\
            .update({"is_read": True})\
            .eq("conversation_id", conversation_id)\
            .eq("is_read", False)\
            .neq("sender_id", user_id)\
            .execute()
        return MarkReadResponse(marked=len(result.data or []))


class FanWallService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_photos(self, artist: Optional[str] = None, limit: int = 24, offset: int = 0) -> PhotoListResponse:
        try:
            query = self.supabase.table("photos")\
                .select("*", count="exact")\
                .eq("status", "published")
            if artist:
                query = query.ilike("artist", artist)
            result = query.order("published_at", desc=True).range(offset, offset + limit - 1).execute()
            items = result.data or []
            return PhotoListResponse(items=items, total=result.count if result.count is not None else len(items))
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _require_published(self, photo_id: str) -> Dict[str, Any]:
        result = self.supabase.table("photos")\
            .select("id, status")\
            .eq("id", photo_id)\
            .limit(1)\
            .execute()
        if not result.data or result.data[0].get("status") != "published":
            raise HTTPException(status_code=404, detail="Photo not found")
        return result.data[0]

    def toggle_like(self, user_id: str, photo_id: str) -> LikeResponse:
        self._require_published(photo_id)
        existing = self.supabase.table("photo_likes")\
            .select("id")\
            .eq("photo_id", photo_id)\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()
        if existing.data:
            self.supabase.table("photo_likes").delete().eq("id", existing.data[0]["id"]).execute()
            liked = False
        else:
            self.supabase.table("photo_likes").insert({"photo_id": photo_id, "user_id": user_id}).execute()
            liked = True

        count_result = self.supabase.table("photo_likes")\
            .select("id", count="exact")\
            .eq("photo_id", photo_id)\
            .execute()
        like_count = count_result.count or 0
        self.supabase.table("photos").update({"like_count": like_count}).eq("id", photo_id).execute()
        return LikeResponse(liked=liked, like_count=like_count)

    def add_comment(self, user_id: str, photo_id: str, body: str,
                    parent_comment_id: Optional[str] = None) -> Dict[str, Any]:
        text = (body or "").strip()
        if not text:
            raise HTTPException(status_code=400, detail="Comment cannot be empty")
        self._require_published(photo_id)
        result = self.supabase.table("photo_comments").insert({
            "photo_id": photo_id,
            "user_id": user_id,
            "body": text,
            "parent_comment_id": parent_comment_id,
            "status": "visible",
        }).execute()
        if not result.data:
            raise HTTPException(status_code=500, detail="Failed to add comment")
        return result.data[0]

    def list_comments(self, photo_id: str) -> List[Dict[str, Any]]:
        result = self.supabase.table("photo_comments")\
            .select("*")\
            .eq("photo_id", photo_id)\
            .eq("status", "visible")\
            .order("created_at")\
            .execute()
        return result.data or []
