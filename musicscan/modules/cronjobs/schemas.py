from pydantic import BaseModel
from typing import Optional, List, Dict, Any


class JobInfo(BaseModel):
    name: str
    interval_minutes: int
    description: Optional[str] = None


class JobRunResult(BaseModel):
    name: str
    items_processed: int
    metadata: Dict[str, Any] = {}


class JobHealth(BaseModel):
    function_name: str
    total_runs: int = 0
    successful_runs: int = 0
    failed_runs: int = 0
    running: int = 0
    avg_execution_time_ms: Optional[float] = None
    last_run: Optional[str] = None
    last_status: Optional[str] = None
    success_rate: float = 0.0


class CronjobHealth(BaseModel):
    days: int
    jobs: List[JobHealth]
