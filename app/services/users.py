"""
User profile queries.
"""

import logging
from collections.abc import Iterable

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.services.errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 20


def like_pattern(query: str) -> str:
    """Substring LIKE pattern with wildcards in the query escaped."""
    escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


async def get_user(db: AsyncSession, user_id: str) -> User | None:
    return await db.get(User, user_id)


async def require_user(db: AsyncSession, user_id: str) -> User:
    """Resolve a token subject to its profile, or 404."""
    user = await get_user(db, user_id)
    if user is None:
        raise NotFoundError("User profile not found")
    return user


async def create_user(
    db: AsyncSession,
    user_id: str,
    *,
    username: str,
    first_name: str,
    last_name: str,
    email: str,
) -> User:
    """Create the profile for a token subject. A second create is a conflict."""
    if await get_user(db, user_id) is not None:
        raise ConflictError("User profile already exists")

    result = await db.execute(select(User.id).where(User.username == username))
    if result.scalar_one_or_none() is not None:
        raise ConflictError(f"Username '{username}' is already taken")

    user = User(
        id=user_id,
        username=username,
        first_name=first_name,
        last_name=last_name,
        email=email,
    )
    db.add(user)
    await db.flush()

    logger.info("Created user %s (%s)", user.id, user.username)
    return user


async def search_users(db: AsyncSession, query: str) -> list[User]:
    """Case-insensitive substring search over username and names."""
    pattern = like_pattern(query)
    result = await db.execute(
        select(User)
        .where(
            or_(
                User.username.ilike(pattern, escape="\\"),
                User.first_name.ilike(pattern, escape="\\"),
                User.last_name.ilike(pattern, escape="\\"),
                (User.first_name + " " + User.last_name).ilike(pattern, escape="\\"),
            )
        )
        .order_by(User.username)
        .limit(SEARCH_LIMIT)
    )
    return list(result.scalars().all())


async def ensure_users_exist(db: AsyncSession, user_ids: Iterable[str]) -> None:
    """Raise a validation error naming any ids without a profile."""
    wanted = set(user_ids)
    if not wanted:
        return
    result = await db.execute(select(User.id).where(User.id.in_(wanted)))
    missing = wanted - set(result.scalars().all())
    if missing:
        raise ValidationError(f"Unknown user ids: {', '.join(sorted(missing))}")
