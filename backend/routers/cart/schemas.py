from pydantic import BaseModel
from typing import Optional, List


class CartLine(BaseModel):
    product_id: str
    quantity: int
    unit_price: Optional[float] = None  # What the client showed, for comparison only


class CartValidateRequest(BaseModel):
    items: List[CartLine] = []


class ValidatedLine(BaseModel):
    product_id: str
    product_name: Optional[str] = None
    product_image_url: Optional[str] = None
    quantity: int
    unit_price: float
    total_price: float
    available_quantity: int
    price_changed: bool = False
    available: bool = True
    message: Optional[str] = None


class CartValidateResponse(BaseModel):
    valid: bool
    items: List[ValidatedLine]
    item_count: int
    subtotal: float
    shipping_amount: float
    tax_amount: float
    discount_amount: float
    total_amount: float
