import pytest
from fastapi import HTTPException
from starlette.requests import Request

from dependencies.rbac import has_permission, require_permission


def request_for(current_user):
    request = Request({"type": "http", "method": "GET", "path": "/api/orders", "headers": []})
    if current_user is not None:
        request.state.current_user = current_user
    return request


@pytest.mark.parametrize("role,resource,action,allowed", [
    ("admin", "dashboard", "read", True),
    ("admin", "users", "write", True),
    ("admin", "orders", "write", True),
    ("retailer", "products", "delete", True),
    ("wholesaler", "products/inventory", "write", True),
    ("retailer", "orders", "read", False),
    ("retailer", "dashboard", "read", False),
    ("individual", "products", "write", False),
    ("company_buyer", "users", "read", False),
    ("ghost", "products", "write", False),
])
def test_role_permissions(role, resource, action, allowed):
    assert has_permission(role, resource, action) is allowed


def test_guard_requires_authenticated_caller():
    check = require_permission("orders", "read")

    with pytest.raises(HTTPException) as error:
        check(request_for(None))

    assert error.value.status_code == 401


def test_guard_rejects_role_without_action():
    check = require_permission("dashboard", "read")

    with pytest.raises(HTTPException) as error:
        check(request_for({"user_id": "u1", "role": "company_buyer"}))

    assert error.value.status_code == 403
    assert error.value.detail == "Access denied. Company Buyer role does not have read permission for dashboard"


def test_guard_treats_missing_role_as_individual():
    check = require_permission("products", "write")

    with pytest.raises(HTTPException) as error:
        check(request_for({"user_id": "u1", "role": None}))

    assert "Individual role" in error.value.detail
    assert require_permission("products", "write")(request_for({"user_id": "u2", "role": "retailer"})) is True
