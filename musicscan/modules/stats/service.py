from supabase import Client
from musicscan.modules.stats.schemas import ContentOverview, UserOverview
from musicscan.core.utils import utcnow, parse_timestamp
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)

CONTENT_TABLES = [
    "blog_posts", "music_stories", "artist_stories",
    "platform_products", "time_machine_events", "music_history_events",
]
SCAN_TABLES = ["cd_scan", "vinyl2_scan", "ai_scan_results"]
USERS_PAGE_SIZE = 1000


def _created_at(user: Any):
    value = getattr(user, "created_at", None)
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return parse_timestamp(value)


class StatsService:
    def __init__(self, supabase: Client, max_workers: int = 6):
        self.supabase = supabase
        self.max_workers = max_workers

    def count_rows(self, table: str) -> int:
        result = self.supabase.table(table).select("id", count="exact").limit(1).execute()
        return result.count or 0

    def _count_tables(self, tables: List[str]) -> Dict[str, int]:
        """Count several tables concurrently. The supabase client is blocking."""
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            counts = list(executor.map(self.count_rows, tables))
        return dict(zip(tables, counts))

    def content_overview(self) -> ContentOverview:
        try:
            counts = self._count_tables(CONTENT_TABLES)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        return ContentOverview(counts=counts, total=sum(counts.values()))

    def _list_users(self) -> List[Any]:
        users: List[Any] = []
        page = 1
        while True:
            batch = self.supabase.auth.admin.list_users(page=page, per_page=USERS_PAGE_SIZE)
            users.extend(batch)
            if len(batch) < USERS_PAGE_SIZE:
                return users
            page += 1

    def user_overview(self) -> UserOverview:
        try:
            users = self._list_users()
            scans = self._count_tables(SCAN_TABLES)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        now = utcnow()
        created = [c for c in (_created_at(u) for u in users) if c is not None]
        logger.info(f"User overview: {len(users)} users, {sum(scans.values())} scans")
        return UserOverview(
            total_users=len(users),
            new_users_last_7_days=sum(1 for c in created if c >= now - timedelta(days=7)),
            new_users_last_30_days=sum(1 for c in created if c >= now - timedelta(days=30)),
            scans=scans,
            total_scans=sum(scans.values()),
        )
