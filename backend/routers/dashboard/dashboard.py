from fastapi import APIRouter, Depends, HTTPException, status, Query, WebSocket, WebSocketDisconnect
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from config import get_db, get_session_factory
from models import Order
from routers.auth.auth import get_current_user
from routers.auth.helpers import auth_helpers
from dependencies.rbac import require_dashboard, has_permission
from utils.response_helpers import profile_summary
from utils.realtime import change_feed, LiveRefresher, log_task_failure
from .schemas import DashboardStats, RecentOrder
from .helpers import compute_stats
from typing import List, Optional
import asyncio
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])

LIVE_TABLES = ("orders", "order_items", "payments", "inventory", "products", "profiles")


@router.get("/stats", response_model=DashboardStats)
async def get_stats(
    current_user = Depends(get_current_user),
    session_factory: async_sessionmaker = Depends(get_session_factory),
    _: bool = Depends(require_dashboard)
):
    """Headline counts and revenue; a metric that fails to load is null"""
    return DashboardStats(**await compute_stats(session_factory))


@router.get("/recent-orders", response_model=List[RecentOrder])
async def get_recent_orders(
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_dashboard)
):
    """Last 10 orders with the buyer's name and email"""
    try:
        result = await db.execute(
            select(Order)
            .options(selectinload(Order.profile))
            .order_by(Order.created_at.desc())
            .limit(10)
        )
        return [
            RecentOrder(
                id=str(order.id),
                order_number=order.order_number,
                order_status=order.order_status,
                payment_status=order.payment_status,
                total_amount=order.total_amount,
                created_at=order.created_at,
                profiles=profile_summary(order.profile, "full_name", "email"),
            )
            for order in result.scalars().all()
        ]

    except Exception as e:
        logger.error(f"Error fetching recent orders: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error"
        )


async def authorize_socket(token: Optional[str], session_factory: async_sessionmaker) -> Optional[dict]:
    if not token:
        return None
    try:
        async with session_factory() as session:
            current_user = await auth_helpers.resolve_user(token, session)
    except HTTPException as e:
        logger.warning(f"Live dashboard auth failed: {e.detail}")
        return None
    if not has_permission(current_user["role"], "dashboard", "read"):
        logger.warning(f"Live dashboard denied for role {current_user['role']}")
        return None
    return current_user


@router.websocket("/live")
async def live_stats(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
    session_factory: async_sessionmaker = Depends(get_session_factory)
):
    """
    Pushes {"generation", "stats"} on connect and again after every change to
    the watched tables. Bursts of changes collapse into one refresh and a
    slower, older refresh never overwrites a newer one.
    """
    current_user = await authorize_socket(token, session_factory)
    if current_user is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    logger.info(f"Live dashboard opened by {current_user['user_id']}")

    async def fetch():
        return await compute_stats(session_factory)

    async def deliver(generation: int, stats: dict):
        await websocket.send_json({"generation": generation, "stats": stats})

    refresher = LiveRefresher(fetch, deliver)

    async with change_feed.subscribe(*LIVE_TABLES) as subscription:
        runner = asyncio.create_task(refresher.run(subscription))
        runner.add_done_callback(log_task_failure)
        try:
            while True:
                # Client messages are ignored; this only detects the disconnect
                await websocket.receive_text()
        except WebSocketDisconnect:
            logger.info(f"Live dashboard closed by {current_user['user_id']}")
        finally:
            runner.cancel()
            refresher.cancel()
