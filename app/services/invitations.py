"""
Invitation expansion and responses.

Invitations are keyed by (game, user). Inserting for a player who is already
invited is a no-op, so the first path that invites a player decides their
team and group provenance, and repeating an expansion never adds rows.
"""

import logging
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import insert_ignore
from app.models.base import utcnow
from app.models.game import Game, GameTeam
from app.models.invitation import (
    GameInvitation,
    GroupGameInvitation,
    InvitationResponse,
    InvitationStatus,
)
from app.models.user import User
from app.services.errors import NotFoundError, ValidationError
from app.services.groups import ensure_groups_visible, list_group_member_ids
from app.services.users import ensure_users_exist

logger = logging.getLogger(__name__)


async def invite_users(
    db: AsyncSession,
    game_id: str,
    team_id: str,
    user_ids: Iterable[str],
    group_id: str | None = None,
) -> None:
    """Insert pending invitations, skipping players already invited to the game."""
    user_ids = list(dict.fromkeys(user_ids))
    now = utcnow()
    await insert_ignore(
        db,
        GameInvitation,
        [
            {
                "game_id": game_id,
                "user_id": uid,
                "team_id": team_id,
                "group_id": group_id,
                "status": InvitationStatus.PENDING.value,
                "invited_at": now,
            }
            for uid in user_ids
        ],
        index_elements=["game_id", "user_id"],
    )


async def invite_group(db: AsyncSession, game_id: str, team_id: str, group_id: str) -> None:
    """Record the group invite and expand it to the group's current members."""
    await insert_ignore(
        db,
        GroupGameInvitation,
        [{"game_id": game_id, "group_id": group_id, "invited_at": utcnow()}],
        index_elements=["game_id", "group_id"],
    )
    member_ids = await list_group_member_ids(db, group_id)
    await invite_users(db, game_id, team_id, member_ids, group_id=group_id)
    logger.info(
        "Expanded group %s to %d invitation(s) for game %s", group_id, len(member_ids), game_id
    )


async def add_game_invitations(
    db: AsyncSession,
    inviter_id: str,
    game_id: str,
    team_id: str,
    user_ids: list[str],
    group_ids: list[str],
) -> None:
    """Invite more players (directly or via groups) to one team of an existing game.

    Only groups the inviter can see may be invited.
    """
    game = await db.get(Game, game_id)
    if game is None:
        raise NotFoundError("Game not found")

    team = await db.get(GameTeam, team_id)
    if team is None or team.game_id != game_id:
        raise ValidationError("Team does not belong to this game")

    await ensure_users_exist(db, user_ids)
    await ensure_groups_visible(db, inviter_id, group_ids)

    await invite_users(db, game_id, team_id, user_ids)
    for group_id in dict.fromkeys(group_ids):
        await invite_group(db, game_id, team_id, group_id)

    logger.info(
        "Added invitations to game %s team %s: %d user(s), %d group(s)",
        game_id, team_id, len(user_ids), len(group_ids),
    )


async def get_invitation(db: AsyncSession, game_id: str, user_id: str) -> GameInvitation | None:
    return await db.get(GameInvitation, (game_id, user_id))


async def respond_to_invitation(
    db: AsyncSession,
    game_id: str,
    user_id: str,
    response: InvitationResponse,
) -> GameInvitation:
    """Accept or decline. Players without an invitation cannot respond."""
    if await db.get(Game, game_id) is None:
        raise NotFoundError("Game not found")

    invitation = await get_invitation(db, game_id, user_id)
    if invitation is None:
        raise NotFoundError("Invitation not found")

    invitation.respond(response)
    await db.flush()

    logger.info("User %s %s game %s", user_id, response.value, game_id)
    return invitation


async def list_game_invitations(
    db: AsyncSession, game_id: str
) -> list[tuple[User, GameInvitation]]:
    """Invitations of a game with the invited users, oldest first."""
    result = await db.execute(
        select(User, GameInvitation)
        .join(GameInvitation, GameInvitation.user_id == User.id)
        .where(GameInvitation.game_id == game_id)
        .order_by(GameInvitation.invited_at, User.username)
    )
    return [(user, invitation) for user, invitation in result.all()]
