import uuid
from unittest.mock import MagicMock

import pytest

from routers.users.helpers import user_helpers

from factories import BUYER_ID, SELLER_ID


@pytest.fixture
def auth_admin(monkeypatch):
    admin_client = MagicMock(name="auth_admin_client")
    monkeypatch.setattr(user_helpers, "_admin_client", admin_client)
    return admin_client


async def list_names(client, **params):
    response = await client.get("/api/users", params=params)
    assert response.status_code == 200
    return sorted(user["full_name"] for user in response.json()["users"])


async def test_list_all_users(client):
    assert await list_names(client) == ["Asha Admin", "Bala Buyer", "Omar Wholesale", "Sana Seller"]
    assert await list_names(client, type="all") == await list_names(client)


async def test_search_matches_name_email_and_phone(client):
    assert await list_names(client, search="BALA") == ["Bala Buyer"]
    assert await list_names(client, search="omar@irokart") == ["Omar Wholesale"]
    assert await list_names(client, search="9800000001") == ["Bala Buyer"]
    assert await list_names(client, search="nobody-here") == []


async def test_filter_by_type(client):
    assert await list_names(client, type="retailer") == ["Sana Seller"]
    assert await list_names(client, type="wholesaler", search="sana") == []


async def test_non_admin_cannot_list(client, current_user):
    current_user["role"] = "retailer"
    response = await client.get("/api/users")
    assert response.status_code == 403


async def test_suspend_user(client, auth_admin):
    response = await client.patch(f"/api/users/{BUYER_ID}/status", json={"account_status": "suspended"})

    assert response.status_code == 200
    assert response.json()["account_status"] == "suspended"
    auth_admin.auth.admin.update_user_by_id.assert_called_once_with(
        BUYER_ID, {"user_metadata": {"account_status": "suspended"}}
    )


async def test_invalid_account_status(client, auth_admin):
    response = await client.patch(f"/api/users/{BUYER_ID}/status", json={"account_status": "banished"})

    assert response.status_code == 400
    assert "Invalid account_status" in response.json()["error"]
    auth_admin.auth.admin.update_user_by_id.assert_not_called()


async def test_status_for_unknown_user(client, auth_admin):
    response = await client.patch(f"/api/users/{uuid.uuid4()}/status", json={"account_status": "active"})
    assert response.status_code == 404


async def test_promote_to_seller(client, auth_admin):
    response = await client.patch(f"/api/users/{BUYER_ID}/role", json={"user_type": "wholesaler"})

    assert response.status_code == 200
    user = response.json()
    assert user["user_type"] == "wholesaler"
    assert user["is_seller"] is True
    assert await list_names(client, type="wholesaler") == ["Bala Buyer", "Omar Wholesale"]


async def test_demote_seller_clears_flag(client, auth_admin):
    response = await client.patch(f"/api/users/{SELLER_ID}/role", json={"user_type": "company_buyer"})

    assert response.status_code == 200
    assert response.json()["is_seller"] is False


async def test_invalid_role(client, auth_admin):
    response = await client.patch(f"/api/users/{BUYER_ID}/role", json={"user_type": "superuser"})
    assert response.status_code == 400


async def test_auth_mirror_failure_does_not_fail_update(client, auth_admin):
    auth_admin.auth.admin.update_user_by_id.side_effect = RuntimeError("auth down")

    response = await client.patch(f"/api/users/{BUYER_ID}/role", json={"user_type": "retailer"})

    assert response.status_code == 200
    assert response.json()["user_type"] == "retailer"
