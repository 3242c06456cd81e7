"""
Role checks for the storefront API.

Each profile `user_type` maps to the resources it may touch and the actions
(read/write/delete) allowed on them. Guards run as route dependencies after
`get_current_user` has put the caller on `request.state`. Ownership (a seller
editing only their own products) is checked in the routes themselves.
Buyers hold no entries: everything a buyer does goes through public routes.
"""
from fastapi import HTTPException, status, Request
import logging

logger = logging.getLogger(__name__)

SELLER_PERMISSIONS = {
    'products': ['write', 'delete'],
    'products/inventory': ['write'],
}

RESOURCES_FOR_ROLES = {
    'admin': {
        'orders': ['read', 'write'],
        'products': ['write', 'delete'],
        'products/inventory': ['write'],
        'users': ['read', 'write'],
        'dashboard': ['read'],
    },
    'wholesaler': SELLER_PERMISSIONS,
    'retailer': SELLER_PERMISSIONS,
    'company_buyer': {},
    'individual': {},
}

SELLER_ROLES = {'wholesaler', 'retailer'}


def has_permission(user_role: str, resource_name: str, required_permission: str) -> bool:
    return required_permission in RESOURCES_FOR_ROLES.get(user_role, {}).get(resource_name, [])


def require_permission(resource: str, permission: str):
    """
    Build a dependency that rejects the request unless the caller's role
    allows `permission` on `resource`.
    """
    def check_rbac(request: Request):
        current_user = getattr(request.state, 'current_user', None)
        if not current_user:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Authentication required"
            )

        user_role = current_user.get('role') or 'individual'
        if not has_permission(user_role, resource, permission):
            logger.warning(f"Denied {permission} on {resource} for {current_user.get('user_id')} ({user_role})")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. {user_role.replace('_', ' ').title()} role does not have {permission} permission for {resource}"
            )

        logger.debug(f"Allowed {permission} on {resource} for {current_user.get('user_id')} ({user_role})")
        return True

    return check_rbac


# Order management (admin)
require_order_read = require_permission("orders", "read")
require_order_write = require_permission("orders", "write")

# Catalog management (admin and sellers)
require_product_write = require_permission("products", "write")
require_product_delete = require_permission("products", "delete")
require_inventory_write = require_permission("products/inventory", "write")

# User management (admin)
require_user_management = require_permission("users", "read")
require_user_management_write = require_permission("users", "write")

# Dashboard (admin)
require_dashboard = require_permission("dashboard", "read")
