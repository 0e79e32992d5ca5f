from supabase import Client
from musicscan.modules.cronjobs.logger import CronjobLogger
from musicscan.modules.cronjobs.registry import JOBS, CronJob
from musicscan.modules.cronjobs.schemas import JobInfo, JobRunResult, JobHealth, CronjobHealth
from musicscan.core.utils import iso_days_ago
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


def summarize_runs(function_name: str, rows: List[Dict[str, Any]]) -> JobHealth:
    """Aggregate cronjob_execution_log rows of one function."""
    health = JobHealth(function_name=function_name, total_runs=len(rows))
    if not rows:
        return health
    health.successful_runs = sum(1 for r in rows if r.get("status") == "completed")
    health.failed_runs = sum(1 for r in rows if r.get("status") == "failed")
    health.running = sum(1 for r in rows if r.get("status") == "running")
    timings = [r["execution_time_ms"] for r in rows if r.get("execution_time_ms") is not None]
    if timings:
        health.avg_execution_time_ms = round(sum(timings) / len(timings), 1)
    latest = max(rows, key=lambda r: r.get("started_at") or "")
    health.last_run = latest.get("started_at")
    health.last_status = latest.get("status")
    health.success_rate = round(health.successful_runs / len(rows) * 100, 1)
    return health


class CronjobService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_jobs(self) -> List[JobInfo]:
        return [JobInfo(name=j.name, interval_minutes=j.interval_minutes, description=j.description)
                for j in JOBS.values()]

    def get_job(self, name: str) -> CronJob:
        job = JOBS.get(name)
        if job is None:
            raise HTTPException(status_code=404, detail=f"Unknown job: {name}")
        return job

    def run_job(self, name: str) -> JobRunResult:
        """Run one registered job now, recording it in cronjob_execution_log."""
        job = self.get_job(name)
        with CronjobLogger(self.supabase, job.name) as run:
            items, metadata = job.run(self.supabase)
            run.items_processed = items
            run.metadata = metadata
        return JobRunResult(name=job.name, items_processed=items, metadata=metadata)

    def last_runs(self) -> Dict[str, Optional[str]]:
        """Latest started_at per registered job, used to resume the schedule after a restart."""
        result = self.supabase.table("cronjob_execution_log")\
            .select("function_name, started_at")\
            .in_("function_name", list(JOBS))\
            .order("started_at", desc=True)\
            .limit(500)\
            .execute()
        latest: Dict[str, Optional[str]] = {}
        for row in result.data or []:
            latest.setdefault(row["function_name"], row.get("started_at"))
        return latest

    def get_health(self, days: int = 7) -> CronjobHealth:
        try:
            result = self.supabase.table("cronjob_execution_log")\
                .select("function_name, status, started_at, execution_time_ms")\
                .gte("started_at", iso_days_ago(days))\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        by_function: Dict[str, List[Dict[str, Any]]] = {name: [] for name in JOBS}
        for row in result.data or []:
            by_function.setdefault(row["function_name"], []).append(row)
        return CronjobHealth(
            days=days,
            jobs=[summarize_runs(name, rows) for name, rows in sorted(by_function.items())],
        )
