from unittest.mock import MagicMock

import pytest
from fastapi import HTTPException

from musicscan.core.errors import ExternalServiceError
from musicscan.modules.batch import stories
from musicscan.modules.batch.service import BatchService

STORY = """# Het Verhaal van Doe Maar

## Biografie & Beginjaren

Doe Maar werd in 1978 opgericht in Nederland.

## Belangrijkste Albums & Singles

Het album "Skunk" was een rock en pop succes.
"""


def _service(db, story=STORY, artwork="https://img/doe-maar.jpg"):
    ai = MagicMock()
    ai.chat.return_value = story
    discogs = MagicMock()
    discogs.search_artist_image.return_value = artwork
    return BatchService(db, ai=ai, discogs=discogs)


class TestStoryHelpers:
    def test_generate_slug(self):
        assert stories.generate_slug("Guns N' Roses") == "guns-n-roses"
        assert stories.generate_slug("AC/DC  Live") == "acdc-live"

    def test_story_row(self):
        row = stories.build_story_row("Doe Maar", STORY, None, "2026-01-01T00:00:00+00:00", "system")
        assert row["slug"] == "doe-maar"
        assert row["biography"] == "Doe Maar werd in 1978 opgericht in Nederland."
        assert row["notable_albums"] == ["Skunk"]
        assert set(row["music_style"]) == {"pop", "rock"}
        assert row["reading_time"] == 1
        assert row["meta_title"] == "Het Verhaal van Doe Maar | MusicScan"
        assert row["user_id"] == "system"

    def test_biography_fallback(self):
        assert stories.extract_biography("kort") == "kort..."


class TestStartBatch:
    def test_queues_artists_without_stories(self, db):
        db.insert_rows("discogs_import_log", [
            {"artist": "Doe Maar"}, {"artist": " Doe Maar "}, {"artist": "Queen"},
            {"artist": ""}, {"artist": None}, {"artist": "ABBA"},
        ])
        db.insert_rows("artist_stories", {"artist_name": "ABBA"})

        result = _service(db).start_artist_story_batch()

        assert result.total == 2
        items = db.rows("batch_queue_items")
        assert [i["metadata"]["artist_name"] for i in items] == ["Doe Maar", "Queen"]
        assert all(i["batch_id"] == result.batch_id and i["max_attempts"] == 3 for i in items)
        batch = db.rows("batch_processing_status")[0]
        assert (batch["status"], batch["total_items"]) == ("processing", 2)

    def test_nothing_to_do(self, db):
        db.insert_rows("discogs_import_log", {"artist": "ABBA"})
        db.insert_rows("artist_stories", {"artist_name": "ABBA"})
        result = _service(db).start_artist_story_batch()
        assert result.total == 0
        assert result.batch_id is None


def _queue(db, artists, **item):
    batch = db.insert_rows("batch_processing_status", {"process_type": "artist_stories", "status": "processing"})[0]
    for artist in artists:
        db.insert_rows("batch_queue_items", {
            "batch_id": batch["id"], "item_type": "artist", "status": "pending", "priority": 0,
            "attempts": 0, "max_attempts": 3, "metadata": {"artist_name": artist}, **item,
        })
    return batch["id"]


class TestProcessNext:
    def test_no_pending(self, db):
        assert _service(db).process_next_artist_story().message == "No pending items"

    def test_completes_item_and_closes_batch(self, db):
        batch_id = _queue(db, ["Doe Maar"])

        result = _service(db).process_next_artist_story()

        assert result.status == "completed"
        assert result.story_id == db.rows("artist_stories")[0]["id"]
        assert db.rows("artist_stories")[0]["artwork_url"] == "https://img/doe-maar.jpg"
        batch = db.rows("batch_processing_status")[0]
        assert batch["id"] == batch_id
        assert (batch["status"], batch["successful_items"]) == ("completed", 1)

    def test_artwork_failure_is_not_fatal(self, db):
        _queue(db, ["Doe Maar"])
        service = _service(db)
        service.discogs.search_artist_image.side_effect = ExternalServiceError("discogs", "down")
        assert service.process_next_artist_story().status == "completed"
        assert db.rows("artist_stories")[0]["artwork_url"] is None

    def test_failure_retries_until_max_attempts(self, db):
        _queue(db, ["Doe Maar"])
        service = _service(db)
        service.ai.chat.side_effect = ExternalServiceError("ai", "overloaded")

        statuses = [service.process_next_artist_story().status for _ in range(3)]

        assert statuses == ["pending", "pending", "failed"]
        item = db.rows("batch_queue_items")[0]
        assert item["attempts"] == 3
        assert "overloaded" in item["error_message"]
        batch = db.rows("batch_processing_status")[0]
        assert (batch["status"], batch["failed_items"]) == ("completed", 1)
        assert service.process_next_artist_story().processed is False

    def test_item_without_artist_fails(self, db):
        _queue(db, [None])
        result = _service(db).process_next_artist_story()
        assert result.status == "failed"
        assert db.rows("batch_queue_items")[0]["status"] == "failed"

    def test_higher_priority_first(self, db):
        _queue(db, ["Low"])
        _queue(db, ["High"], priority=10)
        assert _service(db).process_next_artist_story().artist == "High"


def test_reset_failed_and_status(db):
    batch_id = _queue(db, ["A", "B"], status="failed", attempts=3, error_message="x")
    service = _service(db)

    assert service.reset_failed_items().reset == 2
    status = service.get_batch_status()

    assert status.batch["id"] == batch_id
    assert status.queue_stats.pending == 2
    assert status.batch["status"] == "processing"
    assert all(i["attempts"] == 0 for i in db.rows("batch_queue_items"))


def test_status_not_found(db):
    with pytest.raises(HTTPException) as exc:
        _service(db).get_batch_status("missing")
    assert exc.value.status_code == 404


def test_process_next_route_logs_run(client, db, cron_headers, monkeypatch):
    monkeypatch.setattr("musicscan.modules.batch.service.AIClient", MagicMock)
    monkeypatch.setattr("musicscan.modules.batch.service.DiscogsClient", MagicMock)

    response = client.post("/api/v1/batch/artist-stories/process-next", headers=cron_headers)

    assert response.status_code == 200
    assert response.json()["processed"] is False
    log = db.rows("cronjob_execution_log")[0]
    assert log["function_name"] == "artist-stories-batch-processor"
    assert log["items_processed"] == 0
