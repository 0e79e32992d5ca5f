from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any

MAX_MESSAGE_LENGTH = 5000


class ConversationCreate(BaseModel):
    other_user_id: str


class ConversationSummary(BaseModel):
    id: str
    other_user_id: str
    last_message_at: Optional[str] = None
    last_message: Optional[Dict[str, Any]] = None
    unread_count: int = 0


class MessageCreate(BaseModel):
    content: str = Field(min_length=1, max_length=MAX_MESSAGE_LENGTH)


class MarkReadResponse(BaseModel):
    marked: int


class PhotoListResponse(BaseModel):
    items: List[Dict[str, Any]]
    total: int


class LikeResponse(BaseModel):
    liked: bool
    like_count: int


class CommentCreate(BaseModel):
    body: str = Field(min_length=1, max_length=2000)
    parent_comment_id: Optional[str] = None
