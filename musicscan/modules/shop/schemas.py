from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List, Dict, Any, Literal

OrderStatus = Literal["pending", "paid", "processing", "shipped", "delivered", "cancelled"]


class ProductListResponse(BaseModel):
    items: List[Dict[str, Any]]
    total: int


class CartItem(BaseModel):
    product_id: str
    quantity: int = Field(ge=1)


class CartRequest(BaseModel):
    items: List[CartItem] = Field(min_length=1)


class CartLine(BaseModel):
    product_id: str
    title: str
    artist: Optional[str] = None
    price: float
    quantity: int
    line_total: float


class CartQuote(BaseModel):
    lines: List[CartLine]
    subtotal: float
    shipping_cost: float
    total: float


class ShippingAddress(BaseModel):
    name: Optional[str] = None
    street: str
    postal_code: str
    city: str
    country: str = "Nederland"


class CustomerInfo(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    phone: Optional[str] = None
    shipping_address: ShippingAddress


class CheckoutRequest(CartRequest):
    customer: CustomerInfo
    notes: Optional[str] = None


class CheckoutResponse(BaseModel):
    order_id: str
    order_number: str
    status: str
    payment_status: str
    subtotal: float
    shipping_cost: float
    total: float


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    tracking_number: Optional[str] = None
    carrier: Optional[str] = None


class OrderDetail(BaseModel):
    order: Dict[str, Any]
    items: List[Dict[str, Any]]
