from __future__ import annotations

import logging
import secrets

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.security import hash_password, verify_password
from app.models.user import User
from app.services.errors import InvalidCredentials, ValidationError

logger = logging.getLogger(__name__)


def _make_code(length: int) -> str:
    # URL-safe, easy to paste; trim to length
    return secrets.token_urlsafe(32).replace("-", "").replace("_", "")[:length]


async def _friend_code_exists(db: AsyncSession, code: str) -> bool:
    result = await db.execute(select(User.id).where(User.friend_code == code))
    return result.scalar_one_or_none() is not None


async def generate_friend_code(db: AsyncSession, length: int | None = None) -> str:
    length = length or settings.friend_code_length

    # Try a few times to avoid rare code collisions
    for _ in range(10):
        code = _make_code(length)
        if not await _friend_code_exists(db, code):
            return code

    raise RuntimeError("Failed to generate unique friend code")


async def authenticate_or_register(db: AsyncSession, username: str | None, password: str | None) -> tuple[User, bool]:
    """Log in ``username``, registering it first if it has never been seen.

    Returns the user and whether it was created by this call.
    """
    if not username or not password:
        raise ValidationError("Username and password are required")

    result = await db.execute(select(User).where(User.username == username))
    user = result.scalar_one_or_none()

    if user is not None:
        if not verify_password(password, user.password_hash):
            raise InvalidCredentials()
        return user, False

    user = User(
        username=username,
        password_hash=hash_password(password),
        friend_code=await generate_friend_code(db),
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)

    logger.info("Registered user %s (%s)", user.username, user.id)
    return user, True
