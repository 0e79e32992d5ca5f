from fastapi import APIRouter, Depends, Query
from musicscan.database.supabase_client import get_service_supabase
from musicscan.modules.shop.schemas import (
    ProductListResponse, CartRequest, CartQuote, CheckoutRequest, CheckoutResponse,
    OrderStatusUpdate, OrderDetail,
)
from musicscan.modules.shop.service import ShopService
from musicscan.core.dependencies import get_optional_user, require_admin
from supabase import Client
from typing import Any, Dict, Optional

router = APIRouter(prefix="/shop", tags=["shop"])


def get_shop_service(supabase: Client = Depends(get_service_supabase)) -> ShopService:
    return ShopService(supabase)


@router.get("/products", response_model=ProductListResponse)
async def list_products(
    search: Optional[str] = None,
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    limit: int = Query(24, ge=1, le=100),
    offset: int = Query(0, ge=0),
    service: ShopService = Depends(get_shop_service),
):
    return service.list_products(search, "active", min_price, max_price, limit, offset)


@router.get("/products/{slug_or_id}", response_model=Dict[str, Any])
async def get_product(slug_or_id: str, service: ShopService = Depends(get_shop_service)):
    return service.get_product(slug_or_id)


@router.post("/cart/quote", response_model=CartQuote)
async def quote_cart(data: CartRequest, service: ShopService = Depends(get_shop_service)):
    return service.quote_cart(data.items)


@router.post("/checkout", response_model=CheckoutResponse, status_code=201)
def checkout(
    data: CheckoutRequest,
    user_data: Optional[Dict] = Depends(get_optional_user),
    service: ShopService = Depends(get_shop_service),
):
    """Create a pending, unpaid order. Guests may check out without a token."""
    customer_id = user_data["id"] if user_data else None
    return service.checkout(data.items, data.customer, customer_id, data.notes)


@router.get("/orders/track", response_model=OrderDetail)
async def track_order(
    order_number: str,
    email: str,
    service: ShopService = Depends(get_shop_service),
):
    return service.track_order(order_number, email)


@router.patch("/orders/{order_id}/status", response_model=Dict[str, Any])
def update_order_status(
    order_id: str,
    data: OrderStatusUpdate,
    user_data: Dict = Depends(require_admin),
    service: ShopService = Depends(get_shop_service),
):
    return service.update_order_status(order_id, data)
