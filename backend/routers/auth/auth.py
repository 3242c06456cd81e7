from fastapi import APIRouter, Depends, HTTPException, status, Request, Query
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from supabase import Client
from config import get_db, get_supabase_client, get_supabase_admin_client
from models import Profile
from utils.response_helpers import safe_model_validate
from .schemas import SignUpRequest, SignInRequest, SignUpResponse, SignInResponse, ProfileResponse
from .helpers import auth_helpers, parse_uuid, default_profile
from typing import Optional
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

security = HTTPBearer()


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
):
    """Get current user from the Supabase JWT; role comes from the profile row"""
    current_user = await auth_helpers.resolve_user(credentials.credentials, db)
    request.state.current_user = current_user
    return current_user


@router.post("/signup", response_model=SignUpResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    user_data: SignUpRequest,
    db: AsyncSession = Depends(get_db),
    admin_client: Client = Depends(get_supabase_admin_client)
):
    """
    Create an auth user with the email already confirmed, then mirror it into profiles
    """
    try:
        auth_response = admin_client.auth.admin.create_user({
            "email": user_data.email,
            "password": user_data.password,
            "email_confirm": True,
            "user_metadata": {"full_name": user_data.full_name or ""},
        })
    except Exception as e:
        logger.warning(f"Signup rejected by auth provider: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e) or "Failed to create user account"
        )

    if auth_response.user is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Failed to create user account"
        )

    try:
        user_id = parse_uuid(auth_response.user.id, "user ID")
        profile = await db.get(Profile, user_id)
        if profile is None:
            profile = Profile(id=user_id)
            db.add(profile)

        profile.full_name = user_data.full_name or user_data.email.split("@")[0]
        profile.email = user_data.email
        profile.user_type = profile.user_type or "individual"
        profile.account_status = "active"
        profile.is_email_verified = True

        await db.commit()
        logger.info(f"Created account {user_id}")

        return SignUpResponse(
            message="Account created. You can now sign in.",
            user=auth_response.user.model_dump(mode="json")
        )

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Signup profile upsert failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error"
        )


@router.post("/signin", response_model=SignInResponse)
async def signin(
    user_data: SignInRequest,
    db: AsyncSession = Depends(get_db),
    client: Client = Depends(get_supabase_client)
):
    try:
        auth_response = client.auth.sign_in_with_password({
            "email": user_data.email,
            "password": user_data.password
        })
    except Exception as e:
        logger.warning(f"Login failed for {user_data.email}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e) or "Invalid email or password"
        )

    if auth_response.user is None or auth_response.session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )

    try:
        await auth_helpers.record_login(db, auth_response.user.id)
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to record login for {auth_response.user.id}: {str(e)}")

    return SignInResponse(
        user=auth_response.user.model_dump(mode="json"),
        session=auth_response.session.model_dump(mode="json"),
    )


@router.get("/me")
async def get_profile(
    uid: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    """
    Profile for an auth user, read with the privileged session so row-level
    security does not hide it. A user without a profile row yet gets a default.
    """
    if not uid:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="uid is required"
        )

    profile_id = parse_uuid(uid, "uid")

    try:
        profile = await db.get(Profile, profile_id)
    except Exception as e:
        logger.error(f"Profile fetch failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error"
        )

    if profile is None:
        return default_profile(uid)

    return safe_model_validate(ProfileResponse, profile)
