import inspect
from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from musicscan.core.errors import ExternalServiceError
from musicscan.core.utils import parse_timestamp
from musicscan.modules.discogs import routes as discogs_routes
from musicscan.modules.pricing import routes as pricing_routes
from musicscan.modules.social import routes as social_routes


def test_health_and_ready(client):
    assert client.get("/health").json() == {"status": "healthy"}
    assert client.get("/ready").json() == {"status": "ready"}


def test_security_headers(client):
    response = client.get("/")
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"


def test_http_errors_use_error_body(client):
    response = client.get("/api/v1/shop/products/does-not-exist")
    assert response.status_code == 404
    assert response.json() == {"error": "Product not found"}


def test_validation_errors_use_error_body(client):
    response = client.post("/api/v1/shop/cart/quote", json={"items": [{"product_id": "x"}]})
    assert response.status_code == 422
    assert set(response.json()) == {"error"}


def test_external_service_errors_are_bad_gateway(client, user_headers):
    with patch("musicscan.modules.discogs.service.DiscogsService.search_releases",
               side_effect=ExternalServiceError("discogs", "HTTP 503: unavailable", 503)):
        response = client.get("/api/v1/discogs/search?q=queen", headers=user_headers)
    assert response.status_code == 502
    assert response.json() == {"error": "discogs: HTTP 503: unavailable"}


@pytest.mark.parametrize("value,expected", [
    ("2026-05-01T11:00:00.12345+00:00", datetime(2026, 5, 1, 11, 0, 0, 123450, tzinfo=timezone.utc)),
    ("2026-05-01T11:00:00.5Z", datetime(2026, 5, 1, 11, 0, 0, 500000, tzinfo=timezone.utc)),
    ("2026-05-01 11:00:00+00", datetime(2026, 5, 1, 11, tzinfo=timezone.utc)),
    ("2026-05-01T11:00:00", datetime(2026, 5, 1, 11, tzinfo=timezone.utc)),
    ("2026-05-01", datetime(2026, 5, 1, tzinfo=timezone.utc)),
])
def test_parse_timestamp_accepts_postgres_output(value, expected):
    assert parse_timestamp(value) == expected


def test_non_ascii_cron_secret_is_unauthorized(client):
    response = client.post("/api/v1/pricing/collect", headers={"X-Cron-Secret": "geheim-é".encode("utf-8")})
    assert response.status_code == 401


@pytest.mark.parametrize("handler", [
    pricing_routes.collect_price_history,
    social_routes.process_due_post,
    social_routes.process_all_due,
    discogs_routes.list_order_messages,
    discogs_routes.get_release,
])
def test_outbound_calls_run_in_threadpool(handler):
    assert not inspect.iscoroutinefunction(handler)
