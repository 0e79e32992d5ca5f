import asyncio
import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional
from musicscan.config import settings
from musicscan.database.supabase_client import get_service_supabase
from musicscan.modules.cronjobs.registry import JOBS
from musicscan.modules.cronjobs.service import CronjobService
from musicscan.core.utils import utcnow, parse_timestamp

logger = logging.getLogger(__name__)


def due_jobs(now: datetime, last_runs: Dict[str, Optional[datetime]]) -> List[str]:
    """Names of jobs whose interval has elapsed since their last run (never-run jobs are due)."""
    due = []
    for name, job in JOBS.items():
        last = last_runs.get(name)
        if last is None or now - last >= timedelta(minutes=job.interval_minutes):
            due.append(name)
    return due


async def run_due_jobs(last_runs: Dict[str, Optional[datetime]]):
    """Run every due job once. Jobs run in a worker thread since services are blocking."""
    service = CronjobService(get_service_supabase())
    now = utcnow()
    for name in due_jobs(now, last_runs):
        last_runs[name] = now
        try:
            result = await asyncio.to_thread(service.run_job, name)
            logger.debug(f"Scheduled job {name} processed {result.items_processed} items")
        except Exception as e:
            logger.error(f"Error in scheduled job {name}: {str(e)}")


def load_last_runs() -> Dict[str, Optional[datetime]]:
    try:
        latest = CronjobService(get_service_supabase()).last_runs()
    except Exception as e:
        logger.warning(f"Could not load last cronjob runs, starting fresh: {str(e)}")
        return {}
    return {name: parse_timestamp(started_at) for name, started_at in latest.items()}


async def scheduler_loop():
    """Background task that runs registered jobs on their intervals"""
    last_runs = await asyncio.to_thread(load_last_runs)
    logger.info(f"Scheduler started with {len(JOBS)} jobs, tick every {settings.scheduler_tick_seconds}s")
    while True:
        try:
            await run_due_jobs(last_runs)
        except Exception as e:
            logger.error(f"Error in scheduler loop: {str(e)}")

        await asyncio.sleep(settings.scheduler_tick_seconds)
