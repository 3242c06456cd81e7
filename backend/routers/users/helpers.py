from fastapi import HTTPException, status
from supabase import Client
from config import get_supabase_admin_client
from models import Profile
from sqlalchemy import select, or_
from dependencies.rbac import SELLER_ROLES
from .schemas import UserType, AccountStatus
from typing import Optional
import logging

logger = logging.getLogger(__name__)


def parse_user_type(value: str) -> UserType:
    try:
        return UserType(value)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid user_type. Must be one of: {', '.join(t.value for t in UserType)}"
        )


def parse_account_status(value: str) -> AccountStatus:
    try:
        return AccountStatus(value)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid account_status. Must be one of: {', '.join(s.value for s in AccountStatus)}"
        )


def build_user_query(search: Optional[str] = None, user_type: Optional[str] = None):
    """Profiles newest first, filtered by type ('all' means no filter) and free text"""
    query = select(Profile)
    if user_type and user_type != "all":
        query = query.where(Profile.user_type == user_type)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.where(or_(
            Profile.full_name.ilike(pattern),
            Profile.email.ilike(pattern),
            Profile.phone.ilike(pattern),
        ))
    return query.order_by(Profile.created_at.desc())


class UserHelpers:
    """Helper functions for user operations"""

    def __init__(self):
        self._admin_client = None

    @property
    def admin_client(self) -> Client:
        if self._admin_client is None:
            self._admin_client = get_supabase_admin_client()
        return self._admin_client

    def apply_role(self, profile: Profile, user_type: UserType):
        profile.user_type = user_type.value
        profile.is_seller = user_type.value in SELLER_ROLES

    def mirror_to_auth(self, user_id: str, metadata: dict) -> bool:
        """
        Copy role/status into the auth user's metadata. Best effort: the
        profile row stays the source of truth if this fails.
        """
        try:
            self.admin_client.auth.admin.update_user_by_id(user_id, {"user_metadata": metadata})
            return True
        except Exception as e:
            logger.warning(f"Could not mirror {', '.join(metadata)} to auth user {user_id}: {str(e)}")
            return False


user_helpers = UserHelpers()
