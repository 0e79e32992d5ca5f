from pydantic import BaseModel
from typing import Optional, Dict, Any


class BatchStartResponse(BaseModel):
    batch_id: Optional[str] = None
    total: int
    message: str


class ProcessNextResponse(BaseModel):
    processed: bool
    artist: Optional[str] = None
    story_id: Optional[str] = None
    status: Optional[str] = None
    error: Optional[str] = None
    message: Optional[str] = None


class QueueCounts(BaseModel):
    pending: int = 0
    processing: int = 0
    completed: int = 0
    failed: int = 0


class BatchStatusResponse(BaseModel):
    batch: Dict[str, Any]
    queue_stats: QueueCounts


class ResetFailedResponse(BaseModel):
    reset: int
