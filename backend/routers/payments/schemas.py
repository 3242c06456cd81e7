from pydantic import BaseModel
from typing import Optional, Dict, Any


class GatewayOrderCreate(BaseModel):
    amount: Optional[float] = None  # In paise
    currency: str = "INR"
    notes: Optional[Dict[str, Any]] = None


class PaymentVerification(BaseModel):
    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    razorpay_signature: Optional[str] = None


class PaymentVerificationResponse(BaseModel):
    verified: bool
    payment_id: Optional[str] = None
    order_id: Optional[str] = None
