"""
Admin dashboard aggregates. Every metric is an independent count or sum and
runs in its own session, so a failing metric comes back as None without
taking the others down.
"""
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import async_sessionmaker
from models import Profile, Product, Inventory, Order
from datetime import datetime, timezone
from typing import Dict, Any, Optional
import asyncio
import logging

logger = logging.getLogger(__name__)

REVENUE_METRICS = ("total_revenue", "revenue_this_month")


def period_starts(now: datetime):
    """UTC midnight today and the first of the current month"""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    now = now.astimezone(timezone.utc)
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return today, today.replace(day=1)


def metric_queries(now: datetime) -> Dict[str, Any]:
    today, month_start = period_starts(now)
    captured_revenue = (
        select(func.coalesce(func.sum(Order.total_amount), 0))
        .where(Order.payment_status == "captured")
    )
    return {
        "total_orders": select(func.count(Order.id)),
        "orders_today": select(func.count(Order.id)).where(Order.created_at >= today),
        "pending_orders": select(func.count(Order.id)).where(Order.order_status == "pending"),
        "total_users": select(func.count(Profile.id)),
        "total_products": select(func.count(Product.id)).where(Product.is_active == True),
        "low_stock_products": (
            select(func.count(Inventory.id))
            .where(Inventory.quantity <= Inventory.low_stock_threshold)
        ),
        "total_revenue": captured_revenue,
        "revenue_this_month": captured_revenue.where(Order.created_at >= month_start),
    }


async def run_metric(session_factory: async_sessionmaker, query):
    async with session_factory() as session:
        result = await session.execute(query)
        return result.scalar()


async def compute_stats(session_factory: async_sessionmaker, now: Optional[datetime] = None) -> Dict[str, Any]:
    queries = metric_queries(now or datetime.now(timezone.utc))
    names = list(queries)

    results = await asyncio.gather(
        *(run_metric(session_factory, queries[name]) for name in names),
        return_exceptions=True
    )

    stats: Dict[str, Any] = {}
    for name, value in zip(names, results):
        if isinstance(value, BaseException):
            logger.error(f"Dashboard metric {name} failed: {str(value)}")
            stats[name] = None
        elif name in REVENUE_METRICS:
            stats[name] = round(float(value or 0), 2)
        else:
            stats[name] = int(value or 0)
    return stats
