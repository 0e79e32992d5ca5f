import re
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from musicscan.modules.email.service import EmailService
from musicscan.modules.shop.schemas import CartItem, CustomerInfo, OrderStatusUpdate
from musicscan.modules.shop.service import ShopService, generate_order_number, search_filter, shipping_cost_for
from tests.conftest import USER_ID

PRODUCT_ID = "8f6c1f0e-2b1a-4c3d-9e8f-0a1b2c3d4e5f"
CUSTOMER = {
    "name": "Anna Jansen",
    "email": "anna@example.com",
    "shipping_address": {"street": "Dorpsstraat 1", "postal_code": "1234 AB", "city": "Utrecht"},
}


@pytest.fixture
def products(db):
    db.insert_rows("platform_products", [
        {"id": PRODUCT_ID, "slug": "queen-innuendo", "title": "Innuendo", "artist": "Queen", "price": 19.95,
         "stock_quantity": 3, "status": "active", "published_at": "2026-01-02T00:00:00+00:00", "created_at": "2026-01-02T00:00:00+00:00"},
        {"id": "p-abba", "slug": "abba-arrival", "title": "Arrival", "artist": "ABBA", "price": 35.0,
         "stock_quantity": 1, "status": "active", "published_at": "2026-01-01T00:00:00+00:00", "created_at": "2026-01-01T00:00:00+00:00"},
        {"id": "p-draft", "slug": "draft", "title": "Concept", "artist": "Queen", "price": 5.0,
         "stock_quantity": 10, "status": "draft"},
        {"id": "p-socks", "slug": "socks", "title": "Sokken", "price": 12.5, "stock_quantity": 0,
         "allow_backorder": True, "status": "active", "published_at": "2025-12-01T00:00:00+00:00",
         "created_at": "2025-12-01T00:00:00+00:00"},
        {"id": "p-mug", "slug": "mug", "title": "Mok", "price": 9.0, "stock_quantity": 0,
         "status": "active", "published_at": "2025-11-01T00:00:00+00:00", "created_at": "2025-11-01T00:00:00+00:00"},
        {"id": "p-soon", "slug": "soon", "title": "Live (1977) poster", "price": 15.0, "stock_quantity": 5,
         "status": "active", "created_at": "2026-02-01T00:00:00+00:00"},
        {"id": "p-live", "slug": "live-poster", "title": "Queen Live (1977)", "price": 25.0, "stock_quantity": 2,
         "status": "active", "published_at": "2025-10-01T00:00:00+00:00", "created_at": "2025-10-01T00:00:00+00:00"},
    ])
    return db


def _service(db):
    return ShopService(db, email=MagicMock(spec=EmailService))


def test_order_number_format():
    number = generate_order_number(datetime(2026, 3, 9, tzinfo=timezone.utc))
    assert re.fullmatch(r"MS-20260309-[A-Z0-9]{6}", number)


def test_shipping_cost_threshold():
    assert shipping_cost_for(0) == 0.0
    assert shipping_cost_for(20) == 4.95
    assert shipping_cost_for(50) == 0.0


class TestCatalog:
    def test_lists_active_products_with_search(self, products):
        result = _service(products).list_products(search="queen")
        assert result.total == 2
        assert [p["slug"] for p in result.items] == ["queen-innuendo", "live-poster"]

    def test_lists_only_published_sellable_products(self, products):
        slugs = [p["slug"] for p in _service(products).list_products().items]
        assert slugs == ["queen-innuendo", "abba-arrival", "socks", "live-poster"]

    def test_search_term_with_parentheses_is_quoted(self, products):
        assert search_filter('Live (1977), "x"') == (
            'title.ilike."%Live (1977) x%",artist.ilike."%Live (1977) x%",description.ilike."%Live (1977) x%"'
        )
        assert search_filter(" , ") is None
        result = _service(products).list_products(search="Live (1977)")
        assert [p["slug"] for p in result.items] == ["live-poster"]

    def test_price_filter_and_paging(self, products):
        service = _service(products)
        assert [p["title"] for p in service.list_products(min_price=30).items] == ["Arrival"]
        page = service.list_products(limit=1, offset=1)
        assert page.total == 4
        assert [p["title"] for p in page.items] == ["Arrival"]

    def test_get_product_by_slug_or_id(self, products):
        service = _service(products)
        assert service.get_product("abba-arrival")["id"] == "p-abba"
        assert service.get_product(PRODUCT_ID)["title"] == "Innuendo"
        with pytest.raises(HTTPException) as exc:
            service.get_product("missing")
        assert exc.value.status_code == 404


class TestCart:
    def test_quote_merges_lines_and_adds_shipping(self, products):
        quote = _service(products).quote_cart([
            CartItem(product_id=PRODUCT_ID, quantity=1), CartItem(product_id=PRODUCT_ID, quantity=1),
        ])
        assert len(quote.lines) == 1
        assert quote.lines[0].quantity == 2
        assert quote.subtotal == 39.9
        assert quote.shipping_cost == 4.95
        assert quote.total == 44.85

    def test_free_shipping_above_threshold(self, products):
        quote = _service(products).quote_cart([
            CartItem(product_id=PRODUCT_ID, quantity=1), CartItem(product_id="p-abba", quantity=1),
        ])
        assert quote.shipping_cost == 0.0

    @pytest.mark.parametrize("item,message", [
        (CartItem(product_id="p-draft", quantity=1), "Product p-draft is not available"),
        (CartItem(product_id="unknown", quantity=1), "Product unknown is not available"),
        (CartItem(product_id="p-abba", quantity=2), "Only 1 left of Arrival"),
        (CartItem(product_id="p-mug", quantity=1), "Only 0 left of Mok"),
    ])
    def test_rejects_unavailable_items(self, products, item, message):
        with pytest.raises(HTTPException) as exc:
            _service(products).quote_cart([item])
        assert exc.value.status_code == 400
        assert exc.value.detail == message

    def test_backorder_products_can_be_ordered_without_stock(self, products):
        quote = _service(products).quote_cart([CartItem(product_id="p-socks", quantity=2)])
        assert (quote.lines[0].quantity, quote.subtotal) == (2, 25.0)

    def test_quantity_must_be_positive_per_line(self, products):
        with pytest.raises(ValidationError):
            CartItem(product_id=PRODUCT_ID, quantity=-2)
        lines = [CartItem(product_id=PRODUCT_ID, quantity=3), CartItem.model_construct(product_id=PRODUCT_ID, quantity=-2)]
        with pytest.raises(HTTPException) as exc:
            _service(products).quote_cart(lines)
        assert exc.value.detail == f"Invalid quantity for {PRODUCT_ID}"

    def test_quote_route_rejects_zero_quantity(self, client, products):
        response = client.post("/api/v1/shop/cart/quote", json={"items": [{"product_id": "p-abba", "quantity": 0}]})
        assert response.status_code == 422


class TestCheckout:
    def test_creates_pending_unpaid_order_and_sends_confirmation(self, products):
        service = _service(products)

        result = service.checkout([CartItem(product_id=PRODUCT_ID, quantity=2)], CustomerInfo(**CUSTOMER),
                                  customer_id=USER_ID, notes="Graag in doos")

        order = products.rows("platform_orders")[0]
        assert (order["status"], order["payment_status"]) == ("pending", "unpaid")
        assert order["shipping_address"]["name"] == "Anna Jansen"
        assert order["customer_id"] == USER_ID
        assert order["total"] == 44.85
        item = products.rows("platform_order_items")[0]
        assert (item["order_id"], item["quantity"], item["price"]) == (result.order_id, 2, 19.95)
        service.email.send_order_email.assert_called_once_with(result.order_id, "confirmation")

    def test_email_failure_does_not_fail_checkout(self, products):
        service = _service(products)
        service.email.send_order_email.side_effect = Exception("resend down")
        result = service.checkout([CartItem(product_id="p-abba", quantity=1)], CustomerInfo(**CUSTOMER))
        assert result.status == "pending"

    def test_checkout_route_for_guest(self, client, products, monkeypatch):
        monkeypatch.setattr("musicscan.modules.shop.service.EmailService", MagicMock)
        body = {"items": [{"product_id": "p-abba", "quantity": 1}], "customer": CUSTOMER}

        response = client.post("/api/v1/shop/checkout", json=body)

        assert response.status_code == 201
        assert response.json()["total"] == 39.95
        assert products.rows("platform_orders")[0]["customer_id"] is None

    def test_checkout_route_rejects_empty_cart(self, client):
        response = client.post("/api/v1/shop/checkout", json={"items": [], "customer": CUSTOMER})
        assert response.status_code == 422


class TestOrders:
    def _order(self, db):
        return db.insert_rows("platform_orders", {"order_number": "MS-20260101-ABC123",
                                                  "customer_email": "Anna@Example.com", "status": "pending"})[0]

    def test_track_requires_matching_email(self, db):
        order = self._order(db)
        service = _service(db)
        assert service.track_order("ms-20260101-abc123", "anna@example.com").order["id"] == order["id"]
        with pytest.raises(HTTPException) as exc:
            service.track_order("MS-20260101-ABC123", "someone@else.com")
        assert exc.value.status_code == 404

    def test_shipping_sets_tracking_and_sends_email(self, db):
        order = self._order(db)
        service = _service(db)

        updated = service.update_order_status(
            order["id"], OrderStatusUpdate(status="shipped", tracking_number="3SABC", carrier="PostNL")
        )

        assert updated["shipped_at"] is not None
        assert updated["tracking_number"] == "3SABC"
        service.email.send_order_email.assert_called_once_with(order["id"], "shipped")

    def test_paid_sends_no_email(self, db):
        order = self._order(db)
        service = _service(db)
        service.update_order_status(order["id"], OrderStatusUpdate(status="paid"))
        service.email.send_order_email.assert_not_called()

    def test_unknown_order(self, db):
        with pytest.raises(HTTPException) as exc:
            _service(db).update_order_status("missing", OrderStatusUpdate(status="cancelled"))
        assert exc.value.status_code == 404

    def test_status_route_requires_admin(self, client, db, user_headers):
        order = self._order(db)
        response = client.patch(f"/api/v1/shop/orders/{order['id']}/status", json={"status": "paid"},
                                headers=user_headers)
        assert response.status_code == 403
