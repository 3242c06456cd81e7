from fastapi import APIRouter, Depends, HTTPException, status, Query, BackgroundTasks
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from config import get_db
from models import Order
from routers.auth.auth import get_current_user
from routers.auth.helpers import parse_uuid
from dependencies.rbac import require_order_read, require_order_write
from utils.exceptions import StorefrontError
from utils.response_helpers import order_to_dict
from utils.realtime import change_feed
from utils.notifications import (
    notify_buyer, NOTIFIED_STATUSES,
    get_order_confirmation_email, get_order_confirmation_sms,
    get_order_status_email, get_order_status_sms,
)
from .schemas import PlaceOrderRequest, PlaceOrderResponse, StatusUpdateRequest, OrderListResponse
from .helpers import order_query, load_order, place_order, update_order_status
from typing import Optional
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["Orders"])


def queue_confirmation(background_tasks: BackgroundTasks, order: Order):
    if order.profile is None:
        return
    order_data = {
        "order_number": order.order_number,
        "items": [
            {
                "product_name": item.product_name,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "total_price": item.total_price,
            }
            for item in order.order_items
        ],
        "subtotal": order.subtotal,
        "shipping_amount": order.shipping_amount,
        "total_amount": order.total_amount,
    }
    subject, body = get_order_confirmation_email(order_data)
    background_tasks.add_task(
        notify_buyer,
        order.profile.email,
        order.profile.phone,
        subject,
        body,
        get_order_confirmation_sms(order_data),
    )


def queue_status_update(background_tasks: BackgroundTasks, order: Order):
    if order.profile is None:
        return
    subject, body = get_order_status_email(
        order.order_number, order.order_status, order.tracking_number, order.courier_company
    )
    background_tasks.add_task(
        notify_buyer,
        order.profile.email,
        order.profile.phone,
        subject,
        body,
        get_order_status_sms(order.order_number, order.order_status, order.tracking_number),
    )


@router.get("", response_model=OrderListResponse)
async def list_orders(
    order_status: Optional[str] = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_order_read)
):
    """
    All orders, newest first, with line items and the buyer's contact details
    """
    try:
        query = order_query()
        count_query = select(func.count(Order.id))
        if order_status:
            query = query.where(Order.order_status == order_status)
            count_query = count_query.where(Order.order_status == order_status)

        result = await db.execute(
            query.order_by(Order.created_at.desc()).offset(offset).limit(limit)
        )
        orders = result.scalars().all()

        total_result = await db.execute(count_query)
        total = total_result.scalar() or 0

        return OrderListResponse(
            orders=[
                order_to_dict(order, profile_fields=("full_name", "email", "phone"))
                for order in orders
            ],
            total=total
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error listing orders: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error"
        )


@router.get("/my")
async def get_my_orders(
    uid: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    """Orders for one buyer, newest first"""
    if not uid:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="uid is required"
        )
    profile_id = parse_uuid(uid, "uid")

    try:
        result = await db.execute(
            order_query()
            .where(Order.profile_id == profile_id)
            .order_by(Order.created_at.desc())
        )
        return {"orders": [order_to_dict(order) for order in result.scalars().all()]}

    except Exception as e:
        logger.error(f"Error fetching orders for {uid}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error"
        )


@router.post("/place", response_model=PlaceOrderResponse)
async def place_new_order(
    order_request: PlaceOrderRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db)
):
    """
    Place an order from a checked-out cart. Prices come from the catalog,
    stock is reserved, and the order, items and payment are written together.
    """
    try:
        order = await place_order(db, order_request)

    except StorefrontError as e:
        logger.warning(f"Order placement rejected: {e.message}")
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Error placing order: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error"
        )

    change_feed.publish("orders", "order_items", "payments", "inventory")
    queue_confirmation(background_tasks, order)

    return PlaceOrderResponse(
        order_id=str(order.id),
        order_number=order.order_number,
        subtotal=order.subtotal,
        shipping_amount=order.shipping_amount,
        tax_amount=order.tax_amount,
        discount_amount=order.discount_amount,
        total_amount=order.total_amount,
    )


@router.get("/{order_id}")
async def get_order(
    order_id: str,
    db: AsyncSession = Depends(get_db)
):
    """Single order with items, buyer profile and payments"""
    order_uuid = parse_uuid(order_id, "order ID")

    try:
        order = await load_order(db, order_uuid)
    except Exception as e:
        logger.error(f"Error fetching order {order_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error"
        )

    if order is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Order not found"
        )

    return order_to_dict(
        order,
        include_payments=True,
        profile_fields=("full_name", "email", "phone", "user_type", "avatar_url"),
    )


@router.patch("/{order_id}/status")
async def update_status(
    order_id: str,
    status_update: StatusUpdateRequest,
    background_tasks: BackgroundTasks,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_order_write)
):
    """
    Move an order through its lifecycle (admin). Repeating the current status
    is accepted and only refreshes timestamps and tracking details.
    """
    order_uuid = parse_uuid(order_id, "order ID")

    try:
        order, previous = await update_order_status(
            db,
            order_uuid,
            status_update.order_status,
            admin_note=status_update.admin_note,
            tracking_number=status_update.tracking_number,
            courier_company=status_update.courier_company,
        )

    except StorefrontError as e:
        logger.warning(f"Status update for order {order_id} rejected: {e.message}")
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Error updating order {order_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error"
        )

    change_feed.publish("orders", "order_items", "inventory")
    if order.order_status != previous and order.order_status in NOTIFIED_STATUSES:
        queue_status_update(background_tasks, order)

    return order_to_dict(order)
