from pydantic import BaseModel, EmailStr, Field
from typing import Optional, Any, Dict
from datetime import datetime

# Request schemas
class SignUpRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    full_name: Optional[str] = None

class SignInRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)

# Response schemas
class SignUpResponse(BaseModel):
    message: str
    user: Dict[str, Any]

class SignInResponse(BaseModel):
    user: Dict[str, Any]
    session: Dict[str, Any]
    message: str = "Sign In Successful"

class ProfileResponse(BaseModel):
    id: str
    full_name: Optional[str] = None
    display_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    user_type: str = "individual"
    account_status: str = "active"
    is_seller: bool = False
    is_email_verified: bool = False
    is_phone_verified: bool = False
    last_login_at: Optional[datetime] = None
    login_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
