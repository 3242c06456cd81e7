import time
import uuid
from unittest.mock import MagicMock

import jwt
import pytest
from fastapi import HTTPException

from main import app
from models import Profile
from routers.auth.auth import get_current_user
from routers.auth.helpers import auth_helpers

from factories import BUYER_ID, SELLER_ID

TEST_SECRET = "test-jwt-secret-for-irokart-suite-0123456789"


def make_token(sub, expires_in=3600, secret=TEST_SECRET):
    now = int(time.time())
    return jwt.encode(
        {"sub": sub, "email": "someone@irokart.test", "iat": now, "exp": now + expires_in, "aud": "authenticated"},
        secret,
        algorithm="HS256",
    )


def auth_user(user_id, email):
    user = MagicMock(name="auth_user")
    user.id = user_id
    user.model_dump.return_value = {"id": user_id, "email": email}
    return user


async def test_me_requires_uid(client):
    response = await client.get("/api/auth/me")

    assert response.status_code == 400
    assert response.json() == {"error": "uid is required"}


async def test_me_rejects_malformed_uid(client):
    response = await client.get("/api/auth/me", params={"uid": "12345"})
    assert response.status_code == 400


async def test_me_returns_profile(client):
    response = await client.get("/api/auth/me", params={"uid": SELLER_ID})

    assert response.status_code == 200
    profile = response.json()
    assert profile["full_name"] == "Sana Seller"
    assert profile["user_type"] == "retailer"
    assert profile["is_seller"] is True


async def test_me_defaults_for_missing_profile(client):
    uid = str(uuid.uuid4())

    response = await client.get("/api/auth/me", params={"uid": uid})

    assert response.status_code == 200
    assert response.json() == {
        "id": uid,
        "user_type": "individual",
        "account_status": "active",
        "full_name": None,
        "phone": None,
        "email": None,
    }


async def test_signup_creates_confirmed_user_and_profile(client, supabase_admin_client, seeded):
    user_id = str(uuid.uuid4())
    supabase_admin_client.auth.admin.create_user.return_value = MagicMock(
        user=auth_user(user_id, "new@irokart.in")
    )

    response = await client.post("/api/auth/signup", json={
        "email": "new@irokart.in",
        "password": "hunter22",
        "full_name": "Neha New",
    })

    assert response.status_code == 201
    assert response.json()["user"] == {"id": user_id, "email": "new@irokart.in"}
    request = supabase_admin_client.auth.admin.create_user.call_args.args[0]
    assert request["email_confirm"] is True
    assert request["user_metadata"] == {"full_name": "Neha New"}

    async with seeded() as session:
        profile = await session.get(Profile, uuid.UUID(user_id))
    assert profile.full_name == "Neha New"
    assert profile.user_type == "individual"
    assert profile.is_email_verified is True


async def test_signup_surfaces_provider_error(client, supabase_admin_client):
    supabase_admin_client.auth.admin.create_user.side_effect = Exception("User already registered")

    response = await client.post("/api/auth/signup", json={
        "email": "bala@irokart.in",
        "password": "hunter22",
    })

    assert response.status_code == 400
    assert response.json() == {"error": "User already registered"}


async def test_signup_validates_email(client):
    response = await client.post("/api/auth/signup", json={"email": "not-an-email", "password": "hunter22"})
    assert response.status_code == 400


async def test_signin_failure_is_401(client, supabase_client):
    supabase_client.auth.sign_in_with_password.side_effect = Exception("Invalid login credentials")

    response = await client.post("/api/auth/signin", json={"email": "bala@irokart.in", "password": "wrong"})

    assert response.status_code == 401
    assert response.json() == {"error": "Invalid login credentials"}


async def test_signin_records_login(client, supabase_client, seeded):
    session = MagicMock(name="auth_session")
    session.model_dump.return_value = {"access_token": "at", "refresh_token": "rt"}
    supabase_client.auth.sign_in_with_password.return_value = MagicMock(
        user=auth_user(BUYER_ID, "bala@irokart.test"), session=session
    )

    response = await client.post("/api/auth/signin", json={"email": "bala@irokart.in", "password": "right"})

    assert response.status_code == 200
    assert response.json()["session"]["access_token"] == "at"
    async with seeded() as db:
        profile = await db.get(Profile, uuid.UUID(BUYER_ID))
    assert profile.login_count == 1
    assert profile.last_login_at is not None


def test_verify_token_accepts_valid_token():
    claims = auth_helpers.verify_token(make_token(BUYER_ID))

    assert claims["user_id"] == BUYER_ID
    assert claims["email"] == "someone@irokart.test"


def test_verify_token_rejects_expired_token():
    with pytest.raises(HTTPException) as error:
        auth_helpers.verify_token(make_token(BUYER_ID, expires_in=-60))

    assert error.value.status_code == 401
    assert error.value.detail == "Token expired"


def test_verify_token_rejects_foreign_signature():
    with pytest.raises(HTTPException) as error:
        auth_helpers.verify_token(make_token(BUYER_ID, secret="some-other-secret-that-is-long-enough"))

    assert error.value.detail == "Invalid token"


async def test_resolve_user_takes_role_from_profile(seeded):
    async with seeded() as session:
        current_user = await auth_helpers.resolve_user(make_token(SELLER_ID), session)

    assert current_user["role"] == "retailer"
    assert current_user["profile_id"] == uuid.UUID(SELLER_ID)


async def test_resolve_user_without_profile_is_individual(seeded):
    async with seeded() as session:
        current_user = await auth_helpers.resolve_user(make_token(str(uuid.uuid4())), session)

    assert current_user["role"] == "individual"
    assert current_user["profile_id"] is None


async def test_suspended_user_is_refused(seeded):
    async with seeded() as session:
        profile = await session.get(Profile, uuid.UUID(BUYER_ID))
        profile.account_status = "suspended"
        await session.commit()

    async with seeded() as session:
        with pytest.raises(HTTPException) as error:
            await auth_helpers.resolve_user(make_token(BUYER_ID), session)

    assert error.value.status_code == 403


async def test_protected_route_needs_bearer_token(client):
    del app.dependency_overrides[get_current_user]

    response = await client.get("/api/orders")

    assert response.status_code in (401, 403)
