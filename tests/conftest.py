import os

# Must be set before config is imported
os.environ.pop("DATABASE_URL", None)
os.environ.pop("ORDER_STATUS_STRICT", None)
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret-for-irokart-suite-0123456789"
os.environ["RAZORPAY_KEY_ID"] = "rzp_test_key"
os.environ["RAZORPAY_KEY_SECRET"] = "test_key_secret"
os.environ["ENVIRONMENT"] = "test"

import uuid
from unittest.mock import MagicMock

import pytest
from fastapi import Request
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from config import (
    get_db, get_session_factory, get_supabase_client,
    get_supabase_admin_client, get_razorpay_client,
)
from main import app
from models import Base
from routers.auth.auth import get_current_user
from utils.realtime import change_feed

from factories import ADMIN_ID, seed_catalog


@pytest.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'storefront.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    yield factory
    await engine.dispose()


@pytest.fixture
async def seeded(session_factory):
    """Admin, buyer and seller profiles plus a small catalog"""
    async with session_factory() as session:
        await seed_catalog(session)
    return session_factory


@pytest.fixture
def current_user():
    """The authenticated user for the request; tests switch roles by mutating it"""
    return {
        "user_id": ADMIN_ID,
        "email": "admin@irokart.test",
        "role": "admin",
        "profile_id": uuid.UUID(ADMIN_ID),
    }


@pytest.fixture
def supabase_client():
    return MagicMock(name="supabase_client")


@pytest.fixture
def supabase_admin_client():
    return MagicMock(name="supabase_admin_client")


@pytest.fixture
def razorpay_client():
    client = MagicMock(name="razorpay_client")
    client.order.create.return_value = {
        "id": "order_test123",
        "entity": "order",
        "amount": 50000,
        "currency": "INR",
        "status": "created",
    }
    return client


@pytest.fixture
async def client(seeded, current_user, supabase_client, supabase_admin_client, razorpay_client):
    async def override_get_db():
        async with seeded() as session:
            yield session

    def override_current_user(request: Request):
        request.state.current_user = current_user
        return current_user

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: seeded
    app.dependency_overrides[get_current_user] = override_current_user
    app.dependency_overrides[get_supabase_client] = lambda: supabase_client
    app.dependency_overrides[get_supabase_admin_client] = lambda: supabase_admin_client
    app.dependency_overrides[get_razorpay_client] = lambda: razorpay_client

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def notifications_off(monkeypatch):
    """Keep background notification tasks from touching SMTP/Twilio"""
    sent = []
    monkeypatch.setattr(
        "routers.orders.orders.notify_buyer",
        lambda *args: sent.append(args),
    )
    return sent


@pytest.fixture(autouse=True)
def isolated_change_feed():
    yield
    change_feed._subscribers.clear()
