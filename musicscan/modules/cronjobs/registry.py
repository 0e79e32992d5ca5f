"""Scheduled background jobs and how often they run."""

from supabase import Client
from musicscan.modules.indexnow.service import IndexNowService
from musicscan.modules.singles.service import SinglesService
from musicscan.modules.social.service import SocialService
from musicscan.modules.batch.service import BatchService
from musicscan.modules.pricing.service import PricingService
from typing import Any, Callable, Dict, NamedTuple, Tuple

JobOutcome = Tuple[int, Dict[str, Any]]


class CronJob(NamedTuple):
    name: str
    interval_minutes: int
    run: Callable[[Client], JobOutcome]
    description: str = ""


def run_indexnow(supabase: Client) -> JobOutcome:
    result = IndexNowService(supabase).process_queue()
    return result.processed, {"status_code": result.status_code}


def run_master_singles(supabase: Client) -> JobOutcome:
    result = SinglesService(supabase).process_master_singles()
    return result.processed, {"inserted": result.inserted, "skipped": result.skipped, "failed": result.failed}


def run_social_recycle(supabase: Client) -> JobOutcome:
    result = SocialService(supabase).recycle_queues()
    return sum(r.get("added", 0) for r in result.results), {"results": result.results}


def run_due_posts(supabase: Client) -> JobOutcome:
    results = SocialService(supabase).process_all_due()
    return sum(r.posted for r in results), {r.queue: r.posted for r in results}


def run_artist_stories(supabase: Client) -> JobOutcome:
    result = BatchService(supabase).process_next_artist_story()
    return (1 if result.status == "completed" else 0), {"artist": result.artist, "status": result.status}


def run_price_history(supabase: Client) -> JobOutcome:
    result = PricingService(supabase).collect_price_history()
    return result.processed, result.model_dump()


JOBS: Dict[str, CronJob] = {job.name: job for job in [
    CronJob("indexnow-processor", 5, run_indexnow, "Submit queued URLs to IndexNow"),
    CronJob("master-singles-processor", 10, run_master_singles, "Queue singles from master_singles"),
    CronJob("recycle-facebook-queue", 60, run_social_recycle, "Refill Facebook posting queues"),
    CronJob("facebook-due-posts", 60, run_due_posts, "Publish due Facebook posts"),
    CronJob("artist-stories-batch-processor", 1, run_artist_stories, "Generate the next artist story"),
    CronJob("collect-price-history", 1440, run_price_history, "Snapshot Discogs marketplace prices"),
]}
