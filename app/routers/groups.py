"""
Group (standing roster) router.
"""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Query, Response, status
from pydantic import BaseModel, ConfigDict, Field

from app.deps import CurrentUser, DBSession
from app.models.group import Group
from app.routers.games import GameOut, serialize_game
from app.routers.users import Name, UserOut
from app.services import games as game_service
from app.services import groups as group_service

router = APIRouter(prefix="/groups", tags=["groups"])


class GroupOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    created_by_user_id: str
    created_at: datetime | None = None


class GroupDetail(GroupOut):
    members: list[UserOut]


class GroupCreate(BaseModel):
    name: Name


class GroupMembersAdd(BaseModel):
    user_ids: list[str] = Field(..., min_length=1)


async def _group_detail(db, group: Group) -> GroupDetail:
    members = await group_service.list_group_members(db, group.id)
    return GroupDetail(
        id=group.id,
        name=group.name,
        created_by_user_id=group.created_by_user_id,
        created_at=group.created_at,
        members=[UserOut.model_validate(m) for m in members],
    )


@router.post("", response_model=GroupDetail, status_code=status.HTTP_201_CREATED)
async def create_group(user: CurrentUser, db: DBSession, data: GroupCreate):
    """Create a group; the caller becomes its first member."""
    group = await group_service.create_group(db, user.id, data.name)
    return await _group_detail(db, group)


@router.get("", response_model=list[GroupOut])
async def list_groups(user: CurrentUser, db: DBSession):
    return await group_service.list_user_groups(db, user.id)


# Declared before /{group_id} so "search" is not taken for an id
@router.get("/search", response_model=list[GroupOut])
async def search_groups(
    user: CurrentUser,
    db: DBSession,
    q: Annotated[str, Query(min_length=1, max_length=100)],
):
    return await group_service.search_user_groups(db, user.id, q)


@router.get("/{group_id}", response_model=GroupDetail)
async def get_group(group_id: str, user: CurrentUser, db: DBSession):
    group = await group_service.get_user_group(db, user.id, group_id)
    return await _group_detail(db, group)


@router.post("/{group_id}/members", response_model=GroupDetail)
async def add_group_members(
    group_id: str,
    user: CurrentUser,
    db: DBSession,
    data: GroupMembersAdd,
):
    """Add players to a group. Existing members are left as they are."""
    group = await group_service.get_user_group(db, user.id, group_id)
    await group_service.add_members(db, group.id, data.user_ids)
    return await _group_detail(db, group)


@router.get("/{group_id}/games", response_model=list[GameOut])
async def list_group_games(group_id: str, user: CurrentUser, db: DBSession):
    """Games this group has been invited to."""
    group = await group_service.get_user_group(db, user.id, group_id)
    games = await game_service.list_group_games(db, group.id)
    return [serialize_game(game) for game in games]


@router.delete("/{group_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_group(group_id: str, user: CurrentUser, db: DBSession):
    await group_service.delete_group(db, user.id, group_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
