from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from config import get_db
from routers.products.helpers import is_uuid, primary_image_url
from routers.orders.helpers import resolve_lines, compute_totals
from .schemas import CartValidateRequest, CartValidateResponse, ValidatedLine
from .helpers import Cart
from typing import Dict
import uuid
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cart", tags=["Cart"])


@router.post("/validate", response_model=CartValidateResponse)
async def validate_cart(
    cart_request: CartValidateRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Re-price a client cart against the live catalog. Returns every line with
    its current price and availability, and the totals placement would charge
    for the lines that can be bought.
    """
    cart = Cart()
    client_prices: Dict[str, float] = {}
    for line in cart_request.items:
        cart.add(line.product_id, line.quantity)
        if line.unit_price is not None:
            client_prices[line.product_id] = line.unit_price

    merged: Dict[uuid.UUID, int] = {}
    validated = []
    for line in cart.lines():
        if is_uuid(line["product_id"]):
            product_id = uuid.UUID(line["product_id"])
            merged[product_id] = merged.get(product_id, 0) + line["quantity"]
        else:
            validated.append(ValidatedLine(
                product_id=line["product_id"],
                quantity=line["quantity"],
                unit_price=0,
                total_price=0,
                available_quantity=0,
                available=False,
                message=f"Product {line['product_id']} not found",
            ))

    try:
        lines = await resolve_lines(db, merged)
    except Exception as e:
        logger.error(f"Error validating cart: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error"
        )

    for line in lines:
        product = line["product"]
        client_price = client_prices.get(str(line["product_id"]))
        validated.append(ValidatedLine(
            product_id=str(line["product_id"]),
            product_name=product.name if product else None,
            product_image_url=primary_image_url(product.images) if product else None,
            quantity=line["quantity"],
            unit_price=line["unit_price"],
            total_price=line["total_price"],
            available_quantity=max(line["available_quantity"], 0),
            price_changed=client_price is not None and abs(client_price - line["unit_price"]) >= 0.01,
            available=line["problem"] is None and line["shortage"] is None,
            message=line["problem"] or line["shortage"],
        ))

    purchasable = [line for line in lines if line["problem"] is None]
    totals = compute_totals(purchasable)
    valid = bool(validated) and all(line.available for line in validated)

    if not valid:
        logger.info(f"Cart has {sum(1 for line in validated if not line.available)} unavailable line(s)")

    return CartValidateResponse(
        valid=valid,
        items=validated,
        item_count=cart.item_count,
        **totals
    )
