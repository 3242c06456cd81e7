from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from config import JWT_SECRET_KEY, JWT_ALGORITHM
from models import Profile
from datetime import datetime, timezone
from typing import Optional
import jwt
import uuid
import logging

logger = logging.getLogger(__name__)


def parse_uuid(value: str, label: str = "id") -> uuid.UUID:
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {label} format. Must be a valid UUID."
        )


def default_profile(uid: str) -> dict:
    """Minimal profile for an auth user whose profile row does not exist yet"""
    return {
        "id": uid,
        "user_type": "individual",
        "account_status": "active",
        "full_name": None,
        "phone": None,
        "email": None,
    }


class AuthHelpers:
    """Helper functions for authentication operations"""

    def verify_token(self, token: str):
        """
        Verify a Supabase JWT locally without calling the Supabase API
        """
        if not JWT_SECRET_KEY:
            logger.error("JWT_SECRET_KEY is not configured")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Auth service not configured"
            )
        try:
            payload = jwt.decode(
                token,
                JWT_SECRET_KEY,
                algorithms=[JWT_ALGORITHM],
                options={
                    "verify_exp": True,
                    "verify_iat": True,
                    "verify_signature": True,
                    "verify_aud": False
                }
            )
        except jwt.ExpiredSignatureError:
            logger.warning("JWT token expired")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token expired"
            )
        except jwt.InvalidTokenError as e:
            logger.warning(f"Invalid JWT token: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid token"
            )

        user_id = payload.get("sub")
        if not user_id:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid token: missing user ID"
            )

        return {"user_id": user_id, "email": payload.get("email"), "payload": payload}

    async def resolve_user(self, token: str, db: AsyncSession) -> dict:
        """Token -> current user dict with the role taken from the profile row"""
        claims = self.verify_token(token)
        profile = await db.get(Profile, parse_uuid(claims["user_id"], "user ID"))

        current_user = {
            "user_id": claims["user_id"],
            "email": claims["email"],
            "role": "individual",
            "profile_id": None,
        }
        if profile:
            if profile.account_status == "suspended":
                logger.warning(f"Suspended account {profile.id} attempted access")
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="Your account is suspended. Please contact support."
                )
            current_user["role"] = profile.user_type
            current_user["profile_id"] = profile.id
        else:
            logger.warning(f"No profile found for {claims['user_id']}, using default role: individual")

        return current_user

    async def record_login(self, db: AsyncSession, user_id: str) -> Optional[Profile]:
        """Bump login counters on the profile, if there is one"""
        profile = await db.get(Profile, parse_uuid(user_id, "user ID"))
        if profile is None:
            return None
        profile.login_count = (profile.login_count or 0) + 1
        profile.last_login_at = datetime.now(timezone.utc)
        profile.updated_at = datetime.now(timezone.utc)
        await db.commit()
        return profile


auth_helpers = AuthHelpers()
