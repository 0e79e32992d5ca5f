from supabase import Client
from musicscan.modules.shop.schemas import (
    ProductListResponse, CartItem, CartLine, CartQuote, CustomerInfo, CheckoutResponse,
    OrderStatusUpdate, OrderDetail,
)
from musicscan.modules.email.service import EmailService
from musicscan.config import settings
from musicscan.core.utils import utcnow, utcnow_iso
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
import secrets
import string
import uuid
import logging

logger = logging.getLogger(__name__)

ACTIVE_STATUS = "active"
SELLABLE_FILTER = "stock_quantity.gt.0,allow_backorder.eq.true"
# Characters with meaning inside a PostgREST or=(...) value
SEARCH_RESERVED = str.maketrans("", "", ",\"\\")
ORDER_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits
STATUS_EMAILS = {"shipped": "shipped", "delivered": "delivered"}


def generate_order_number(now=None) -> str:
    """MS-YYYYMMDD-XXXXXX"""
    now = now or utcnow()
    suffix = "".join(secrets.choice(ORDER_SUFFIX_ALPHABET) for _ in range(6))
    return f"MS-{now:%Y%m%d}-{suffix}"


def shipping_cost_for(subtotal: float) -> float:
    if subtotal <= 0 or subtotal >= settings.shop_free_shipping_threshold:
        return 0.0
    return round(settings.shop_shipping_cost, 2)


def search_filter(search: str) -> Optional[str]:
    """Quoted ilike clauses so parentheses and dots in the term stay literal."""
    term = search.translate(SEARCH_RESERVED).strip()
    if not term:
        return None
    return ",".join(f'{column}.ilike."%{term}%"' for column in ("title", "artist", "description"))


def _is_uuid(value: str) -> bool:
    try:
        uuid.UUID(value)
        return True
    except ValueError:
        return False


class ShopService:
    def __init__(self, supabase: Client, email: Optional[EmailService] = None):
        self.supabase = supabase
        self._email = email

    @property
    def email(self) -> EmailService:
        if self._email is None:
            self._email = EmailService(self.supabase)
        return self._email

    def list_products(self, search: Optional[str] = None, status: Optional[str] = ACTIVE_STATUS,
                      min_price: Optional[float] = None, max_price: Optional[float] = None,
                      limit: int = 24, offset: int = 0) -> ProductListResponse:
        try:
            query = self.supabase.table("platform_products")\
                .select("*", count="exact")\
                .not_.is_("published_at", "null")\
                .or_(SELLABLE_FILTER)\
                .order("created_at", desc=True)
            clauses = search_filter(search) if search else None
            if clauses:
                query = query.or_(clauses)
            if status:
                query = query.eq("status", status)
            if min_price is not None:
                query = query.gte("price", min_price)
            if max_price is not None:
                query = query.lte("price", max_price)
            result = query.range(offset, offset + limit - 1).execute()
            items = result.data or []
            return ProductListResponse(items=items, total=result.count if result.count is not None else len(items))
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_product(self, slug_or_id: str) -> Dict[str, Any]:
        column = "id" if _is_uuid(slug_or_id) else "slug"
        result = self.supabase.table("platform_products")\
            .select("*")\
            .eq(column, slug_or_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Product not found")
        return result.data[0]

    def quote_cart(self, items: List[CartItem]) -> CartQuote:
        """Price a client-side cart against current product rows."""
        if not items:
            raise HTTPException(status_code=400, detail="Cart is empty")

        quantities: Dict[str, int] = {}
        for item in items:
            if item.quantity < 1:
                raise HTTPException(status_code=400, detail=f"Invalid quantity for {item.product_id}")
            quantities[item.product_id] = quantities.get(item.product_id, 0) + item.quantity

        result = self.supabase.table("platform_products")\
            .select("id, title, artist, price, stock_quantity, allow_backorder, status")\
            .in_("id", list(quantities))\
            .execute()
        products = {p["id"]: p for p in (result.data or [])}

        lines: List[CartLine] = []
        for product_id, quantity in quantities.items():
            product = products.get(product_id)
            if not product or product.get("status") != ACTIVE_STATUS:
                raise HTTPException(status_code=400, detail=f"Product {product_id} is not available")
            stock = product.get("stock_quantity") or 0
            if quantity > stock and not product.get("allow_backorder"):
                raise HTTPException(status_code=400, detail=f"Only {stock} left of {product['title']}")
            price = float(product["price"])
            lines.append(CartLine(
                product_id=product_id,
                title=product["title"],
                artist=product.get("artist"),
                price=price,
                quantity=quantity,
                line_total=round(price * quantity, 2),
            ))

        subtotal = round(sum(line.line_total for line in lines), 2)
        shipping = shipping_cost_for(subtotal)
        return CartQuote(lines=lines, subtotal=subtotal, shipping_cost=shipping, total=round(subtotal + shipping, 2))

    def checkout(self, items: List[CartItem], customer: CustomerInfo,
                 customer_id: Optional[str] = None, notes: Optional[str] = None) -> CheckoutResponse:
        quote = self.quote_cart(items)
        order_number = generate_order_number()
        address = customer.shipping_address.model_dump()
        address["name"] = address.get("name") or customer.name

        try:
            order_result = self.supabase.table("platform_orders").insert({
                "order_number": order_number,
                "customer_id": customer_id,
                "customer_email": customer.email,
                "customer_name": customer.name,
                "customer_phone": customer.phone,
                "shipping_address": address,
                "subtotal": quote.subtotal,
                "shipping_cost": quote.shipping_cost,
                "total": quote.total,
                "status": "pending",
                "payment_status": "unpaid",
                "notes": notes,
            }).execute()
            if not order_result.data:
                raise HTTPException(status_code=500, detail="Failed to create order")
            order = order_result.data[0]

            self.supabase.table("platform_order_items").insert([{
                "order_id": order["id"],
                "product_id": line.product_id,
                "title": line.title,
                "artist": line.artist,
                "price": line.price,
                "quantity": line.quantity,
            } for line in quote.lines]).execute()
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        logger.info(f"Order {order_number} created for {customer.email} ({quote.total:.2f})")
        try:
            self.email.send_order_email(order["id"], "confirmation")
        except Exception as e:
            logger.error(f"Confirmation email for {order_number} failed: {e}")

        return CheckoutResponse(
            order_id=order["id"],
            order_number=order_number,
            status="pending",
            payment_status="unpaid",
            subtotal=quote.subtotal,
            shipping_cost=quote.shipping_cost,
            total=quote.total,
        )

    def _order_items(self, order_id: str) -> List[Dict[str, Any]]:
        result = self.supabase.table("platform_order_items").select("*").eq("order_id", order_id).execute()
        return result.data or []

    def track_order(self, order_number: str, email: str) -> OrderDetail:
        """Guest lookup. The e-mail must match the order, otherwise it is reported as missing."""
        result = self.supabase.table("platform_orders")\
            .select("*")\
            .eq("order_number", order_number.strip().upper())\
            .limit(1)\
            .execute()
        order = result.data[0] if result.data else None
        if not order or (order.get("customer_email") or "").lower() != email.strip().lower():
            raise HTTPException(status_code=404, detail="Order not found")
        return OrderDetail(order=order, items=self._order_items(order["id"]))

    def update_order_status(self, order_id: str, data: OrderStatusUpdate) -> Dict[str, Any]:
        update: Dict[str, Any] = {"status": data.status, "updated_at": utcnow_iso()}
        if data.tracking_number is not None:
            update["tracking_number"] = data.tracking_number
        if data.carrier is not None:
            update["carrier"] = data.carrier
        if data.status == "shipped":
            update["shipped_at"] = utcnow_iso()
        elif data.status == "delivered":
            update["delivered_at"] = utcnow_iso()

        try:
            result = self.supabase.table("platform_orders").update(update).eq("id", order_id).execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=404, detail="Order not found")

        email_type = STATUS_EMAILS.get(data.status)
        if email_type:
            try:
                self.email.send_order_email(order_id, email_type)
            except Exception as e:
                logger.error(f"{email_type} email for order {order_id} failed: {e}")
        return result.data[0]
