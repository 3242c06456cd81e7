from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from enum import Enum


class UserType(str, Enum):
    INDIVIDUAL = "individual"
    COMPANY_BUYER = "company_buyer"
    WHOLESALER = "wholesaler"
    RETAILER = "retailer"
    ADMIN = "admin"


class AccountStatus(str, Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    PENDING_VERIFICATION = "pending_verification"


class StatusUpdateRequest(BaseModel):
    account_status: str


class RoleUpdateRequest(BaseModel):
    user_type: str


class UserResponse(BaseModel):
    id: str
    full_name: Optional[str] = None
    display_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    user_type: str
    account_status: str
    is_seller: bool = False
    is_email_verified: bool = False
    is_phone_verified: bool = False
    last_login_at: Optional[datetime] = None
    login_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserListResponse(BaseModel):
    users: List[UserResponse]
