from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    RETURN_REQUESTED = "return_requested"
    RETURNED = "returned"
    REFUNDED = "refunded"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    INITIATED = "initiated"
    CAPTURED = "captured"
    FAILED = "failed"
    REFUNDED = "refunded"
    PARTIALLY_REFUNDED = "partially_refunded"


class FulfillmentStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    FULFILLED = "fulfilled"
    CANCELLED = "cancelled"
    RETURNED = "returned"


class PlaceOrderItem(BaseModel):
    product_id: str
    quantity: int

    # Echoed from the client cart, never used for pricing
    seller_id: Optional[str] = None
    product_name: Optional[str] = None
    product_image_url: Optional[str] = None
    sku: Optional[str] = None
    unit_price: Optional[float] = None
    total_price: Optional[float] = None


class PaymentInfo(BaseModel):
    payment_method: str = "razorpay"
    payment_gateway: str = "razorpay"
    gateway_payment_id: Optional[str] = None
    gateway_order_id: Optional[str] = None
    gateway_signature: Optional[str] = None


class PlaceOrderRequest(BaseModel):
    profile_id: Optional[str] = None
    shipping_address: Optional[Dict[str, Any]] = None
    billing_address: Optional[Dict[str, Any]] = None
    items: List[PlaceOrderItem] = []
    payment_info: PaymentInfo = Field(default_factory=PaymentInfo)
    customer_note: Optional[str] = None

    # Client-computed totals, compared against the server figures and logged
    subtotal: Optional[float] = None
    shipping_amount: Optional[float] = None
    tax_amount: Optional[float] = None
    discount_amount: Optional[float] = None
    total_amount: Optional[float] = None


class PlaceOrderResponse(BaseModel):
    success: bool = True
    order_id: str
    order_number: str
    subtotal: float
    shipping_amount: float
    tax_amount: float
    discount_amount: float
    total_amount: float


class StatusUpdateRequest(BaseModel):
    order_status: str
    admin_note: Optional[str] = None
    tracking_number: Optional[str] = Field(None, max_length=100)
    courier_company: Optional[str] = Field(None, max_length=100)


class OrderListResponse(BaseModel):
    orders: List[Dict[str, Any]]
    total: int
