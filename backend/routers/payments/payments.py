from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from config import get_db, get_razorpay_client, RAZORPAY_KEY_SECRET
from models import Payment
from utils.realtime import change_feed
from .schemas import GatewayOrderCreate, PaymentVerification, PaymentVerificationResponse
from .helpers import verify_signature, make_receipt
from datetime import datetime, timezone
import razorpay
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])

MIN_AMOUNT_PAISE = 100


@router.post("/create-order")
async def create_gateway_order(
    payment_data: GatewayOrderCreate,
    razorpay_client: razorpay.Client = Depends(get_razorpay_client)
):
    """
    Create a Razorpay order for checkout. Amount is in paise and passed to the
    gateway as is; the gateway's order object is returned unchanged.
    """
    if not payment_data.amount or payment_data.amount < MIN_AMOUNT_PAISE:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Minimum amount is ₹1 (100 paise)"
        )

    order_payload = {
        "amount": int(round(payment_data.amount)),
        "currency": payment_data.currency,
        "receipt": make_receipt(),
    }
    if payment_data.notes:
        order_payload["notes"] = payment_data.notes

    try:
        razorpay_order = razorpay_client.order.create(order_payload)
    except Exception as e:
        logger.error(f"Razorpay create order error: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e) or "Payment gateway error"
        )

    logger.info(f"Created gateway order {razorpay_order.get('id')} for {order_payload['amount']} paise")
    return razorpay_order


@router.post("/verify", response_model=PaymentVerificationResponse)
async def verify_payment(
    verification_data: PaymentVerification,
    db: AsyncSession = Depends(get_db)
):
    """
    Check the gateway signature for a completed payment. When a payment row
    was recorded against this gateway order it is marked captured.
    """
    if not verify_signature(
        verification_data.razorpay_order_id,
        verification_data.razorpay_payment_id,
        verification_data.razorpay_signature,
        RAZORPAY_KEY_SECRET,
    ):
        logger.warning(f"Signature mismatch for gateway order {verification_data.razorpay_order_id}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"verified": False, "error": "Signature mismatch"}
        )

    try:
        result = await db.execute(
            select(Payment).where(Payment.gateway_order_id == verification_data.razorpay_order_id)
        )
        payment = result.scalars().first()

        if payment is not None and payment.payment_status != "refunded":
            now = datetime.now(timezone.utc)
            payment.gateway_payment_id = verification_data.razorpay_payment_id
            payment.gateway_signature = verification_data.razorpay_signature
            payment.payment_status = "captured"
            payment.paid_at = payment.paid_at or now
            payment.updated_at = now
            await db.commit()
            change_feed.publish("payments")
            logger.info(f"Payment {payment.id} captured for gateway order {verification_data.razorpay_order_id}")

    except Exception as e:
        logger.error(f"Error recording verified payment: {str(e)}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Verification failed"
        )

    return PaymentVerificationResponse(
        verified=True,
        payment_id=verification_data.razorpay_payment_id,
        order_id=verification_data.razorpay_order_id,
    )
