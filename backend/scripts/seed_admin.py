"""
Create (or reset) the storefront admin account.

Reads ADMIN_EMAIL, ADMIN_PASSWORD and optionally ADMIN_FULL_NAME from the
environment / .env, makes sure the Supabase auth user exists with that
password, then upserts its profile as an active admin.

Usage (from backend/): python -m scripts.seed_admin
"""
from dotenv import load_dotenv
from supabase import Client
from sqlalchemy.ext.asyncio import async_sessionmaker
from config import get_supabase_admin_client, get_session_factory
from models import Profile
from datetime import datetime, timezone
from typing import Optional
import asyncio
import logging
import os
import sys
import uuid

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_NAME = "IroKart Admin"


def find_auth_user(admin_client: Client, email: str):
    for user in admin_client.auth.admin.list_users():
        if (user.email or "").lower() == email.lower():
            return user
    return None


def ensure_auth_user(admin_client: Client, email: str, password: str, full_name: str) -> str:
    """Returns the auth user id, creating the user or resetting its password"""
    existing = find_auth_user(admin_client, email)
    if existing is not None:
        admin_client.auth.admin.update_user_by_id(existing.id, {"password": password})
        logger.info(f"Auth user {email} already exists ({existing.id}), password reset")
        return str(existing.id)

    response = admin_client.auth.admin.create_user({
        "email": email,
        "password": password,
        "email_confirm": True,
        "user_metadata": {"full_name": full_name},
    })
    if response.user is None:
        raise RuntimeError(f"Failed to create auth user {email}")
    logger.info(f"Created auth user {email} ({response.user.id})")
    return str(response.user.id)


async def upsert_admin_profile(session_factory: async_sessionmaker, user_id: str, email: str, full_name: str) -> Profile:
    async with session_factory() as session:
        profile = await session.get(Profile, uuid.UUID(user_id))
        if profile is None:
            profile = Profile(id=uuid.UUID(user_id))
            session.add(profile)

        profile.full_name = full_name
        profile.email = email
        profile.user_type = "admin"
        profile.account_status = "active"
        profile.is_email_verified = True
        profile.updated_at = datetime.now(timezone.utc)

        await session.commit()
        logger.info(f"Profile {user_id} set to user_type = admin")
        return profile


async def seed_admin(
    admin_client: Client,
    session_factory: async_sessionmaker,
    email: str,
    password: str,
    full_name: Optional[str] = None,
) -> str:
    full_name = full_name or DEFAULT_ADMIN_NAME
    user_id = ensure_auth_user(admin_client, email, password, full_name)
    await upsert_admin_profile(session_factory, user_id, email, full_name)
    return user_id


def main() -> int:
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s - %(message)s")

    email = os.getenv("ADMIN_EMAIL")
    password = os.getenv("ADMIN_PASSWORD")
    if not email or not password:
        logger.error("ADMIN_EMAIL and ADMIN_PASSWORD must be set")
        return 1

    try:
        user_id = asyncio.run(seed_admin(
            get_supabase_admin_client(),
            get_session_factory(),
            email,
            password,
            os.getenv("ADMIN_FULL_NAME"),
        ))
    except Exception as e:
        logger.error(f"Seeding admin failed: {str(e)}")
        return 1

    logger.info(f"Admin ready: {email} ({user_id})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
