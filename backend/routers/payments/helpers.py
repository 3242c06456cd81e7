from typing import Optional
import hmac
import hashlib
import time


def expected_signature(gateway_order_id: str, gateway_payment_id: str, secret: str) -> str:
    """Razorpay signature: hex HMAC-SHA256 of "order_id|payment_id" keyed by the key secret"""
    return hmac.new(
        secret.encode("utf-8"),
        f"{gateway_order_id}|{gateway_payment_id}".encode("utf-8"),
        hashlib.sha256
    ).hexdigest()


def verify_signature(
    gateway_order_id: Optional[str],
    gateway_payment_id: Optional[str],
    signature: Optional[str],
    secret: Optional[str],
) -> bool:
    if not secret:
        return False
    if not gateway_order_id or not gateway_payment_id or not signature:
        return False
    generated = expected_signature(gateway_order_id, gateway_payment_id, secret)
    return hmac.compare_digest(generated, signature)


def make_receipt() -> str:
    return f"iro_{int(time.time() * 1000)}"
