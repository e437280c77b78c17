"""
Group membership and queries.
"""

import logging
from collections.abc import Iterable

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import insert_ignore
from app.models.base import utcnow
from app.models.group import Group, GroupMember
from app.models.user import User
from app.services.errors import NotFoundError, PermissionDeniedError, ValidationError
from app.services.users import ensure_users_exist, like_pattern

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 20


def _visible_to(user_id: str):
    """Filter for groups the user created or belongs to."""
    return or_(
        Group.created_by_user_id == user_id,
        Group.id.in_(select(GroupMember.group_id).where(GroupMember.user_id == user_id)),
    )


async def add_members(db: AsyncSession, group_id: str, user_ids: Iterable[str]) -> None:
    """Idempotently add users to a group. Unknown user ids fail the whole batch."""
    user_ids = list(dict.fromkeys(user_ids))
    await ensure_users_exist(db, user_ids)

    now = utcnow()
    await insert_ignore(
        db,
        GroupMember,
        [
            {"group_id": group_id, "user_id": uid, "created_at": now, "updated_at": now}
            for uid in user_ids
        ],
        index_elements=["user_id", "group_id"],
    )
    logger.info("Added %d member(s) to group %s", len(user_ids), group_id)


async def create_group(db: AsyncSession, creator_id: str, name: str) -> Group:
    """Create a group. The creator is inserted as its first member."""
    group = Group(name=name, created_by_user_id=creator_id)
    db.add(group)
    await db.flush()

    await add_members(db, group.id, [creator_id])

    logger.info("Created group %s (%r) for user %s", group.id, group.name, creator_id)
    return group


async def list_user_groups(db: AsyncSession, user_id: str) -> list[Group]:
    result = await db.execute(
        select(Group).where(_visible_to(user_id)).order_by(Group.name, Group.id)
    )
    return list(result.scalars().all())


async def search_user_groups(db: AsyncSession, user_id: str, query: str) -> list[Group]:
    """Name substring search over the user's groups, for the invite picker."""
    result = await db.execute(
        select(Group)
        .where(_visible_to(user_id), Group.name.ilike(like_pattern(query), escape="\\"))
        .order_by(Group.name, Group.id)
        .limit(SEARCH_LIMIT)
    )
    return list(result.scalars().all())


async def get_user_group(db: AsyncSession, user_id: str, group_id: str) -> Group:
    """Fetch a group the user can see. Groups they cannot see are reported missing."""
    result = await db.execute(
        select(Group).where(Group.id == group_id, _visible_to(user_id))
    )
    group = result.scalar_one_or_none()
    if group is None:
        raise NotFoundError("Group not found")
    return group


async def list_group_members(db: AsyncSession, group_id: str) -> list[User]:
    result = await db.execute(
        select(User)
        .join(GroupMember, GroupMember.user_id == User.id)
        .where(GroupMember.group_id == group_id)
        .order_by(User.username)
    )
    return list(result.scalars().all())


async def list_group_member_ids(db: AsyncSession, group_id: str) -> list[str]:
    result = await db.execute(
        select(GroupMember.user_id)
        .where(GroupMember.group_id == group_id)
        .order_by(GroupMember.created_at, GroupMember.user_id)
    )
    return list(result.scalars().all())


async def ensure_groups_visible(db: AsyncSession, user_id: str, group_ids: Iterable[str]) -> None:
    """Reject group ids the user cannot see, reporting them like unknown ones."""
    wanted = set(group_ids)
    if not wanted:
        return
    result = await db.execute(
        select(Group.id).where(Group.id.in_(wanted), _visible_to(user_id))
    )
    missing = wanted - set(result.scalars().all())
    if missing:
        raise ValidationError(f"Unknown group ids: {', '.join(sorted(missing))}")


async def delete_group(db: AsyncSession, user_id: str, group_id: str) -> None:
    """Delete a group. Only its creator may do so."""
    group = await get_user_group(db, user_id, group_id)
    if group.created_by_user_id != user_id:
        raise PermissionDeniedError("Only the group creator can delete it")

    await db.execute(delete(Group).where(Group.id == group_id))
    logger.info("Deleted group %s", group_id)
