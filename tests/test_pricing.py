from unittest.mock import MagicMock, patch

import pytest

from musicscan.config import settings
from musicscan.core.errors import ExternalServiceError
from musicscan.core.utils import iso_days_ago
from musicscan.modules.pricing.service import PricingService, parse_price_data

PAGE = """
<span class="price">€12,50</span> <span class="price">€ 3.00</span>
<span>EUR 25.00</span> <span>$18.99</span> <span>€12,50</span> <span>€1500.00</span>
"""


def _page(status_code=200, text=PAGE):
    response = MagicMock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.text = text
    return response


def test_parse_price_data():
    prices = parse_price_data(PAGE)
    assert prices.lowest_price == 12.5
    assert prices.highest_price == 25.0
    assert prices.median_price == 18.99
    assert prices.num_for_sale == 3
    assert prices.total_prices_found == 4


def test_parse_price_data_without_prices():
    prices = parse_price_data("<html>geen aanbod</html>")
    assert prices.lowest_price is None
    assert prices.num_for_sale == 0


class TestFetchReleasePage:
    @patch("musicscan.modules.pricing.service.requests.get")
    def test_direct(self, mock_get, db):
        mock_get.return_value = _page()
        html, method = PricingService(db).fetch_release_page(249504)
        assert method == "direct"
        assert mock_get.call_args.args[0] == "https://www.discogs.com/release/249504"

    @patch("musicscan.modules.pricing.service.requests.get")
    def test_falls_back_to_scraperapi_when_blocked(self, mock_get, db, monkeypatch):
        monkeypatch.setattr(settings, "scraperapi_key", "scraper-key")
        mock_get.side_effect = [_page(403, "blocked"), _page(200, "<html>€9.99</html>")]

        html, method = PricingService(db).fetch_release_page(1)

        assert method == "scraperapi"
        assert mock_get.call_args.kwargs["params"] == {"api_key": "scraper-key",
                                                       "url": "https://www.discogs.com/release/1"}

    @patch("musicscan.modules.pricing.service.requests.get")
    def test_blocked_without_scraperapi_key(self, mock_get, db, monkeypatch):
        monkeypatch.setattr(settings, "scraperapi_key", None)
        mock_get.return_value = _page(429)
        with pytest.raises(ExternalServiceError):
            PricingService(db).fetch_release_page(1)


class TestCollectPriceHistory:
    @patch("musicscan.modules.pricing.service.requests.get")
    def test_collects_stores_and_skips_recent(self, mock_get, db):
        db.insert_rows("cd_scan", [
            {"discogs_id": 1, "artist": "Queen", "title": "Innuendo", "updated_at": "2026-01-02"},
            {"discogs_id": None, "artist": "Unknown"},
        ])
        db.insert_rows("vinyl2_scan", [
            {"discogs_id": 1, "artist": "Queen", "title": "Innuendo", "updated_at": "2026-01-01"},
            {"discogs_id": 2, "artist": "ABBA", "title": "Arrival", "updated_at": "2026-01-03"},
        ])
        db.insert_rows("discogs_pricing_sessions", {"discogs_id": 2, "success": True, "created_at": iso_days_ago(0)})
        mock_get.return_value = _page(text="x" * 12000 + "€10.00")

        result = PricingService(db, request_delay=0).collect_price_history()

        assert (result.processed, result.successful, result.skipped, result.errors) == (2, 1, 1, 0)
        session = next(r for r in db.rows("discogs_pricing_sessions") if r["discogs_id"] == 1)
        assert session["success"] is True
        assert session["release_title"] == "Innuendo"
        assert session["extraction_method"] == "direct"
        assert len(session["raw_response"]) == 10003
        assert session["lowest_price"] == 10.0

    @patch("musicscan.modules.pricing.service.requests.get")
    def test_errors_are_recorded_and_counted(self, mock_get, db):
        db.insert_rows("cd_scan", {"discogs_id": 7, "artist": "Kiss", "title": "Destroyer"})
        mock_get.return_value = _page(500, "server error")

        result = PricingService(db, request_delay=0).collect_price_history()

        assert result.errors == 1
        session = db.rows("discogs_pricing_sessions")[0]
        assert session["success"] is False
        assert "HTTP 500" in session["error_message"]


def test_history_returns_successful_points_in_order(db):
    db.insert_rows("discogs_pricing_sessions", [
        {"discogs_id": 5, "success": True, "lowest_price": 20.0, "created_at": "2026-02-01T00:00:00+00:00"},
        {"discogs_id": 5, "success": False, "created_at": "2026-01-15T00:00:00+00:00"},
        {"discogs_id": 5, "success": True, "lowest_price": 18.0, "created_at": "2026-01-01T00:00:00+00:00"},
        {"discogs_id": 6, "success": True, "lowest_price": 1.0},
    ])
    history = PricingService(db).get_price_history(5)
    assert [p.lowest_price for p in history.points] == [18.0, 20.0]


def test_history_route_is_public(client, db):
    db.insert_rows("discogs_pricing_sessions", {"discogs_id": 5, "success": True, "median_price": 12.0})
    response = client.get("/api/v1/pricing/history/5")
    assert response.status_code == 200
    assert response.json()["points"][0]["median_price"] == 12.0


def test_collect_route_requires_cron_or_admin(client, user_headers):
    assert client.post("/api/v1/pricing/collect", headers=user_headers).status_code == 403
