from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from config import get_db
from models import Profile
from routers.auth.auth import get_current_user
from routers.auth.helpers import parse_uuid
from dependencies.rbac import require_user_management, require_user_management_write
from utils.response_helpers import safe_model_validate, safe_model_validate_list
from utils.realtime import change_feed
from .schemas import StatusUpdateRequest, RoleUpdateRequest, UserResponse, UserListResponse
from .helpers import user_helpers, build_user_query, parse_user_type, parse_account_status
from typing import Optional
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


async def get_profile_or_404(db: AsyncSession, user_id: str) -> Profile:
    profile = await db.get(Profile, parse_uuid(user_id, "user ID"))
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return profile


@router.get("", response_model=UserListResponse)
async def list_users(
    search: Optional[str] = Query(None),
    user_type: Optional[str] = Query(None, alias="type"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_user_management)
):
    """
    Admin user list. `search` matches name, email or phone, case-insensitive;
    `type=all` is the same as no type filter.
    """
    try:
        result = await db.execute(
            build_user_query(search, user_type).offset(offset).limit(limit)
        )
        return UserListResponse(
            users=safe_model_validate_list(UserResponse, result.scalars().all())
        )

    except Exception as e:
        logger.error(f"Error listing users: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error"
        )


@router.patch("/{user_id}/status", response_model=UserResponse)
async def update_user_status(
    user_id: str,
    status_update: StatusUpdateRequest,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_user_management_write)
):
    """Activate, suspend or mark an account pending verification"""
    account_status = parse_account_status(status_update.account_status)

    try:
        profile = await get_profile_or_404(db, user_id)

        profile.account_status = account_status.value
        profile.updated_at = datetime.now(timezone.utc)
        await db.commit()

        logger.info(f"User {user_id} account status set to {account_status.value} by {current_user['user_id']}")

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating status for user {user_id}: {str(e)}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error"
        )

    user_helpers.mirror_to_auth(user_id, {"account_status": account_status.value})
    change_feed.publish("profiles")
    return safe_model_validate(UserResponse, profile)


@router.patch("/{user_id}/role", response_model=UserResponse)
async def update_user_role(
    user_id: str,
    role_update: RoleUpdateRequest,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_user_management_write)
):
    """Change a user's type; the seller flag follows the new role"""
    user_type = parse_user_type(role_update.user_type)

    try:
        profile = await get_profile_or_404(db, user_id)

        user_helpers.apply_role(profile, user_type)
        profile.updated_at = datetime.now(timezone.utc)
        await db.commit()

        logger.info(f"User {user_id} role set to {user_type.value} by {current_user['user_id']}")

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating role for user {user_id}: {str(e)}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error"
        )

    user_helpers.mirror_to_auth(user_id, {"user_type": user_type.value})
    change_feed.publish("profiles")
    return safe_model_validate(UserResponse, profile)
