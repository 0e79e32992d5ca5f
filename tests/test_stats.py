from datetime import datetime, timedelta, timezone

from musicscan.modules.stats.service import CONTENT_TABLES, StatsService


def test_content_overview_counts_every_table(db):
    db.insert_rows("blog_posts", [{"slug": "a"}, {"slug": "b"}])
    db.insert_rows("platform_products", {"title": "Innuendo"})

    overview = StatsService(db).content_overview()

    assert set(overview.counts) == set(CONTENT_TABLES)
    assert overview.counts["blog_posts"] == 2
    assert overview.counts["music_stories"] == 0
    assert overview.total == 3


def test_user_overview(db):
    now = datetime.now(timezone.utc)
    db.auth.add_user("old", "old@example.com", created_at=now - timedelta(days=90))
    db.auth.add_user("recent", "recent@example.com", created_at=now - timedelta(days=10))
    db.auth.add_user("naive", "naive@example.com", created_at=(now - timedelta(days=2)).replace(tzinfo=None))
    db.insert_rows("cd_scan", [{"artist": "Queen"}, {"artist": "ABBA"}])
    db.insert_rows("ai_scan_results", {"artist": "Kiss"})

    overview = StatsService(db).user_overview()

    assert overview.total_users == 6
    assert overview.new_users_last_7_days == 4
    assert overview.new_users_last_30_days == 5
    assert overview.scans == {"cd_scan": 2, "vinyl2_scan": 0, "ai_scan_results": 1}
    assert overview.total_scans == 3


def test_user_listing_pages_through_auth_admin(db, monkeypatch):
    monkeypatch.setattr("musicscan.modules.stats.service.USERS_PAGE_SIZE", 2)
    db.auth.add_user("extra", "extra@example.com")
    assert len(StatsService(db)._list_users()) == 4


def test_stats_routes_require_admin(client, admin_headers, user_headers):
    assert client.get("/api/v1/stats/content", headers=user_headers).status_code == 403
    response = client.get("/api/v1/stats/users", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["total_users"] == 3
