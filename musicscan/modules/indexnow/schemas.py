from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any


class EnqueueRequest(BaseModel):
    urls: List[str] = Field(..., min_length=1)
    content_type: Optional[str] = None


class EnqueueResponse(BaseModel):
    queued: int


class SubmitRequest(BaseModel):
    urls: List[str] = Field(..., min_length=1)
    content_type: Optional[str] = "manual"


class ProcessResult(BaseModel):
    processed: int = 0
    submitted: int = 0
    status_code: Optional[int] = None
    message: Optional[str] = None


class SubmitResult(BaseModel):
    submitted: int
    status_code: int
    success: bool


class IndexNowStats(BaseModel):
    pending: int
    processed: int
    last_submission_at: Optional[str] = None
    recent_submissions: List[Dict[str, Any]] = []
