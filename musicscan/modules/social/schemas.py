from pydantic import BaseModel
from typing import Optional, List, Dict, Any


class PostResult(BaseModel):
    queue: str
    posted: int
    facebook_post_id: Optional[str] = None
    title: Optional[str] = None
    error: Optional[str] = None
    message: Optional[str] = None


class RecycleResult(BaseModel):
    results: List[Dict[str, Any]]


class QueueStats(BaseModel):
    queue: str
    pending: int = 0
    processing: int = 0
    posted: int = 0
    failed: int = 0


class ResetResult(BaseModel):
    queue: str
    reset: int
