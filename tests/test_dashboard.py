from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient
from sqlalchemy import text
from starlette.websockets import WebSocketDisconnect

from config import get_session_factory
from main import app
from routers.auth.helpers import auth_helpers
from routers.dashboard.dashboard import authorize_socket
from routers.dashboard.helpers import compute_stats, period_starts

from factories import add_order, utc

NOW = utc(2026, 10, 15, 12, 0)


@pytest.fixture
async def with_orders(seeded):
    async with seeded() as session:
        await add_order(session, 1000.0, utc(2026, 9, 30, 23, 30))
        await add_order(session, 500.0, utc(2026, 10, 1, 0, 30))
        await add_order(session, 250.0, utc(2026, 10, 15, 8, 0),
                        order_status="pending", payment_status="pending")
    return seeded


async def test_stats_counts_and_revenue(with_orders):
    stats = await compute_stats(with_orders, now=NOW)

    assert stats == {
        "total_orders": 3,
        "orders_today": 1,
        "pending_orders": 1,
        "total_users": 4,
        "total_products": 3,
        "low_stock_products": 2,
        "total_revenue": 1500.0,
        "revenue_this_month": 500.0,
    }


async def test_month_boundary_uses_utc(with_orders):
    # 07:00 on Oct 1 in India is still 01:30 UTC, the Sep 30 23:30 UTC order belongs to September
    ist = timezone(timedelta(hours=5, minutes=30))
    stats = await compute_stats(with_orders, now=datetime(2026, 10, 1, 7, 0, tzinfo=ist))

    assert stats["revenue_this_month"] == 500.0
    assert stats["orders_today"] == 2


async def test_empty_store_reports_zero(session_factory):
    stats = await compute_stats(session_factory, now=NOW)

    assert stats["total_orders"] == 0
    assert stats["total_revenue"] == 0.0


async def test_failed_metric_is_null(with_orders):
    async with with_orders() as session:
        await session.execute(text("DROP TABLE inventory"))
        await session.commit()

    stats = await compute_stats(with_orders, now=NOW)

    assert stats["low_stock_products"] is None
    assert stats["total_orders"] == 3
    assert stats["total_revenue"] == 1500.0


def test_period_starts():
    today, month_start = period_starts(utc(2026, 2, 17, 18, 5, 9))
    assert today == utc(2026, 2, 17)
    assert month_start == utc(2026, 2, 1)


async def test_stats_endpoint(client):
    response = await client.get("/api/dashboard/stats")

    assert response.status_code == 200
    stats = response.json()
    assert stats["total_users"] == 4
    assert stats["total_orders"] == 0


async def test_recent_orders_endpoint(client, with_orders):
    response = await client.get("/api/dashboard/recent-orders")

    assert response.status_code == 200
    orders = response.json()
    assert [order["total_amount"] for order in orders] == [250.0, 500.0, 1000.0]
    assert orders[0]["profiles"] == {"full_name": "Bala Buyer", "email": "bala@irokart.test"}


async def test_dashboard_is_admin_only(client, current_user):
    current_user["role"] = "wholesaler"

    assert (await client.get("/api/dashboard/stats")).status_code == 403
    assert (await client.get("/api/dashboard/recent-orders")).status_code == 403


async def test_socket_auth_requires_admin(seeded, monkeypatch):
    resolve_user = AsyncMock(return_value={"user_id": "u1", "role": "retailer"})
    monkeypatch.setattr(auth_helpers, "resolve_user", resolve_user)
    assert await authorize_socket("token", seeded) is None

    resolve_user.return_value = {"user_id": "u2", "role": "admin"}
    assert (await authorize_socket("token", seeded))["user_id"] == "u2"

    resolve_user.side_effect = HTTPException(status_code=401, detail="Token has expired")
    assert await authorize_socket("token", seeded) is None

    assert await authorize_socket(None, seeded) is None


def test_live_socket_without_token_is_closed():
    app.dependency_overrides[get_session_factory] = lambda: None
    try:
        with TestClient(app) as test_client:
            with pytest.raises(WebSocketDisconnect) as closed:
                with test_client.websocket_connect("/api/dashboard/live") as websocket:
                    websocket.receive_json()
        assert closed.value.code == 1008
    finally:
        app.dependency_overrides.clear()
