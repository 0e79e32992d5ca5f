from supabase import Client
from musicscan.modules.social.facebook import FacebookClient
from musicscan.modules.social import content as social_content
from musicscan.modules.social.schemas import PostResult, RecycleResult, QueueStats, ResetResult
from musicscan.config import settings
from musicscan.core.utils import utcnow, iso_days_ago
from typing import Any, Callable, Dict, List, Optional, Tuple
from datetime import timedelta
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)

# Queue name -> queue/content tables and refill policy. Order is the recycle order.
QUEUE_CONFIGS: Dict[str, Dict[str, Any]] = {
    "singles": {
        "queue_table": "singles_facebook_queue",
        "content_table": "music_stories",
        "content_id_field": "music_story_id",
        "posted_at_field": "facebook_posted_at",
        "schedule_field": "scheduled_for",
        "min_pending": 5,
        "batch_size": 10,
        "log_type": "single",
    },
    "album": {
        "queue_table": "album_facebook_queue",
        "content_table": "blog_posts",
        "content_id_field": "blog_post_id",
        "posted_at_field": "social_post",
        "schedule_field": "scheduled_for",
        "min_pending": 5,
        "batch_size": 10,
        "log_type": "album",
    },
    "music_history": {
        "queue_table": "music_history_facebook_queue",
        "content_table": "music_history_events",
        "content_id_field": "event_id",
        "posted_at_field": "facebook_posted_at",
        "schedule_field": "scheduled_time",
        "min_pending": 3,
        "batch_size": 5,
        "log_type": "music_history",
    },
    "youtube": {
        "queue_table": "youtube_facebook_queue",
        "content_table": "youtube_music_videos",
        "content_id_field": "video_id",
        "posted_at_field": "facebook_posted_at",
        "schedule_field": "scheduled_time",
        "min_pending": 3,
        "batch_size": 5,
        "log_type": "youtube_video",
    },
}

RECYCLE_AFTER_DAYS = 30
RECYCLE_SPACING_MINUTES = 30
RECYCLE_PRIORITY = 5
QUEUE_STATUSES = ["pending", "processing", "posted", "failed"]


class SocialService:
    def __init__(self, supabase: Client, facebook: Optional[FacebookClient] = None):
        self.supabase = supabase
        self._facebook = facebook

    @property
    def facebook(self) -> FacebookClient:
        if self._facebook is None:
            self._facebook = FacebookClient.from_settings(self.supabase)
        return self._facebook

    def _get_config(self, queue: str) -> Dict[str, Any]:
        config = QUEUE_CONFIGS.get(queue)
        if not config:
            raise HTTPException(status_code=404, detail=f"Unknown queue: {queue}")
        return config

    def _fetch_content(self, table: str, content_id: Any) -> Dict[str, Any]:
        if not content_id:
            return {}
        result = self.supabase.table(table).select("*").eq("id", content_id).maybe_single().execute()
        return (result.data if result else None) or {}

    # Post building per queue: returns (message, image_url, link, title)

    def _build_youtube(self, row: Dict[str, Any]) -> Tuple[str, Optional[str], Optional[str], Optional[str]]:
        video = row.get("video_data") or {}
        youtube_id = row.get("video_id")
        if not video:
            # recycled rows only carry the youtube_music_videos id
            video = self._fetch_content("youtube_music_videos", row.get("video_id"))
            youtube_id = video.get("video_id") or youtube_id
        link = social_content.youtube_url(youtube_id)
        return social_content.format_youtube_post(youtube_id, video), video.get("thumbnail_url"), link, video.get("title")

    def _build_music_history(self, row: Dict[str, Any]):
        event = row.get("event_data") or self._fetch_content("music_history_events", row.get("event_id"))
        now = utcnow()
        month, day = now.month, now.day
        if row.get("event_date"):
            _, month, day = (int(p) for p in str(row["event_date"])[:10].split("-"))
        link = f"{settings.site_url}/muziekgeschiedenis"
        message = social_content.format_music_history_post(event, month, day)
        return message, event.get("image_url"), link, event.get("title")

    def _build_single(self, row: Dict[str, Any]):
        story = self._fetch_content("music_stories", row.get("music_story_id"))
        if not story:
            raise HTTPException(status_code=404, detail="Music story not found")
        link = f"{settings.site_url}/muziek-verhaal/{story.get('slug', '')}"
        title = f"{story.get('artist_name', '')} - {story.get('single_name', '')}"
        return social_content.format_single_post(story, settings.site_url), story.get("artwork_url"), link, title

    def _build_album(self, row: Dict[str, Any]):
        blog = self._fetch_content("blog_posts", row.get("blog_post_id"))
        summary = social_content.extract_social_summary(blog.get("markdown_content"))
        item = {
            "artist": row.get("artist"),
            "album_title": row.get("album_title"),
            "slug": row.get("slug") or blog.get("slug"),
        }
        link = f"{settings.site_url}/plaat-verhaal/{item['slug'] or ''}"
        image = row.get("artwork_url") or blog.get("album_cover_url")
        title = f"{item['artist'] or 'Onbekend'} - {item['album_title'] or 'Onbekend'}"
        return social_content.format_album_post(item, summary, settings.site_url), image, link, title

    def _builder(self, queue: str) -> Callable[[Dict[str, Any]], Tuple[str, Optional[str], Optional[str], Optional[str]]]:
        return {
            "youtube": self._build_youtube,
            "music_history": self._build_music_history,
            "singles": self._build_single,
            "album": self._build_album,
        }[queue]

    def process_due_post(self, queue: str) -> PostResult:
        """Publish the oldest due pending item of a queue (one per run to stay under rate limits)."""
        config = self._get_config(queue)
        try:
            now = utcnow()
            now_iso = now.isoformat()
            due = self.supabase.table(config["queue_table"])\
                .select("*")\
                .eq("status", "pending")\
                .lte(config["schedule_field"], now_iso)\
                .order(config["schedule_field"])\
                .limit(1)\
                .execute()
            if not due.data:
                logger.info(f"No {queue} posts due at this time")
                return PostResult(queue=queue, posted=0, message="No posts due")

            row = due.data[0]
            self.supabase.table(config["queue_table"])\
                .update({"status": "processing", "updated_at": now_iso})\
                .eq("id", row["id"])\
                .execute()

            message = image_url = link = title = None
            post_id = None
            error = None
            try:
                message, image_url, link, title = self._builder(queue)(row)
                post_id = self.facebook.publish(message, image_url=image_url, link=link)
            except Exception as e:
                # Any failure must still move the row out of processing
                error = getattr(e, "detail", None) or getattr(e, "message", None) or str(e) or type(e).__name__
                logger.error(f"Facebook posting error for {queue} item {row['id']}: {error}")

            self.supabase.table(config["queue_table"]).update({
                "status": "posted" if post_id else "failed",
                "posted_at": now_iso if post_id else None,
                "facebook_post_id": post_id,
                "error_message": error,
                "updated_at": now_iso,
            }).eq("id", row["id"]).execute()

            if post_id and config["posted_at_field"] == "facebook_posted_at" and row.get(config["content_id_field"]):
                try:
                    self.supabase.table(config["content_table"])\
                        .update({"facebook_posted_at": now_iso})\
                        .eq("id", row[config["content_id_field"]])\
                        .execute()
                except Exception as e:
                    logger.warning(f"Could not stamp {config['content_table']} as posted: {e}")

            self.supabase.table("facebook_post_log").insert({
                "content_type": config["log_type"],
                "title": title,
                "content": (message or "")[:500],
                "image_url": image_url,
                "url": link,
                "status": "posted" if post_id else "failed",
                "facebook_post_id": post_id,
                "error_message": error,
                "posted_at": now_iso if post_id else None,
            }).execute()

            return PostResult(
                queue=queue,
                posted=1 if post_id else 0,
                facebook_post_id=post_id,
                title=title,
                error=error,
            )
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def process_all_due(self) -> List[PostResult]:
        return [self.process_due_post(queue) for queue in QUEUE_CONFIGS]

    def _pending_count(self, table: str) -> int:
        result = self.supabase.table(table).select("id", count="exact").eq("status", "pending").execute()
        return result.count or 0

    def recycle_queues(self) -> RecycleResult:
        """Top up queues that are running low with unposted content, then content posted long ago."""
        results: List[Dict[str, Any]] = []
        for name, config in QUEUE_CONFIGS.items():
            try:
                results.append(self._recycle_queue(config))
            except Exception as e:
                logger.error(f"Error processing queue {config['queue_table']}: {e}")
                results.append({"queue": config["queue_table"], "action": "error", "error": str(e)})

        try:
            unposted = self.supabase.table("blog_posts")\
                .select("id", count="exact")\
                .eq("is_published", True)\
                .is_("social_post", "null")\
                .execute()
            results.append({
                "queue": "blog_posts_info",
                "unposted_count": unposted.count or 0,
                "note": "Blog posts available for manual Facebook posting",
            })
        except Exception as e:
            logger.error(f"Error checking blog posts: {e}")

        logger.info(f"Queue recycling complete: {results}")
        return RecycleResult(results=results)

    def _recycle_queue(self, config: Dict[str, Any]) -> Dict[str, Any]:
        queue_table = config["queue_table"]
        posted_field = config["posted_at_field"]

        pending = self._pending_count(queue_table)
        if pending >= config["min_pending"]:
            return {
                "queue": queue_table,
                "action": "skipped",
                "reason": f"Already has {pending} pending items",
                "added": 0,
            }

        never_posted = self.supabase.table(config["content_table"])\
            .select("id")\
            .eq("is_published", True)\
            .is_(posted_field, "null")\
            .limit(config["batch_size"])\
            .execute().data or []
        candidates = list(never_posted)

        if len(candidates) < config["batch_size"]:
            old_posted = self.supabase.table(config["content_table"])\
                .select("id")\
                .lt(posted_field, iso_days_ago(RECYCLE_AFTER_DAYS))\
                .order(posted_field)\
                .limit(config["batch_size"] - len(candidates))\
                .execute().data or []
            candidates.extend(old_posted)

        if not candidates:
            return {"queue": queue_table, "action": "no_content", "reason": "No content available to queue", "added": 0}

        now = utcnow()
        added = 0
        for item in candidates:
            existing = self.supabase.table(queue_table)\
                .select("id", count="exact")\
                .eq(config["content_id_field"], item["id"])\
                .in_("status", ["pending", "processing"])\
                .execute()
            if existing.count:
                logger.debug(f"Content {item['id']} already in queue {queue_table}")
                continue

            row: Dict[str, Any] = {
                config["content_id_field"]: item["id"],
                "status": "pending",
                config["schedule_field"]: (now + timedelta(minutes=added * RECYCLE_SPACING_MINUTES)).isoformat(),
                "priority": RECYCLE_PRIORITY,
            }
            if queue_table == "album_facebook_queue":
                row.update(self._album_details(item["id"]))

            try:
                self.supabase.table(queue_table).insert(row).execute()
            except Exception as e:
                logger.error(f"Error adding to {queue_table}: {e}")
                continue
            added += 1

        logger.info(f"Added {added} items to {queue_table}")
        return {
            "queue": queue_table,
            "action": "recycled",
            "added": added,
            "from_never_posted": len(never_posted),
        }

    def _album_details(self, blog_post_id: str) -> Dict[str, Any]:
        blog = self._fetch_content("blog_posts", blog_post_id)
        if not blog:
            return {}
        frontmatter = blog.get("yaml_frontmatter") or {}
        return {
            "artist": frontmatter.get("artist") or "Onbekend",
            "album_title": frontmatter.get("title") or "Onbekend",
            "slug": blog.get("slug"),
            "artwork_url": blog.get("album_cover_url"),
        }

    def reset_failed(self, queue: str) -> ResetResult:
        config = self._get_config(queue)
        try:
            result = self.supabase.table(config["queue_table"])\
                .update({"status": "pending", "error_message": None, "updated_at": utcnow().isoformat()})\
                .eq("status", "failed")\
                .execute()
            count = len(result.data or [])
            logger.info(f"Reset {count} failed items in {config['queue_table']}")
            return ResetResult(queue=queue, reset=count)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def queue_stats(self) -> List[QueueStats]:
        stats = []
        for name, config in QUEUE_CONFIGS.items():
            counts = {}
            for status in QUEUE_STATUSES:
                result = self.supabase.table(config["queue_table"])\
                    .select("id", count="exact")\
                    .eq("status", status)\
                    .execute()
                counts[status] = result.count or 0
            stats.append(QueueStats(queue=name, **counts))
        return stats
