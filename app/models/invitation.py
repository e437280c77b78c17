"""
Game invitation models.
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db import Base
from app.models.base import utcnow


class InvitationStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class InvitationResponse(str, Enum):
    """Statuses a player may answer with (never back to pending)."""

    ACCEPTED = "accepted"
    DECLINED = "declined"


class GameInvitation(Base):
    """Per-player invitation to a game. Exactly one row per (game, user)."""

    __tablename__ = "game_invitations"

    game_id: Mapped[str] = mapped_column(
        ForeignKey("games.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, index=True
    )
    team_id: Mapped[str] = mapped_column(
        ForeignKey("game_teams.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # Set when the invitation came from expanding a group invite
    group_id: Mapped[str | None] = mapped_column(
        ForeignKey("groups.id", ondelete="SET NULL"), nullable=True
    )
    status: Mapped[InvitationStatus] = mapped_column(
        String(20), default=InvitationStatus.PENDING, nullable=False, index=True
    )
    invited_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    responded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def respond(self, response: InvitationResponse) -> None:
        """Record the player's answer."""
        self.status = InvitationStatus(response.value)
        self.responded_at = utcnow()

    def __repr__(self) -> str:
        return f"<GameInvitation game={self.game_id} user={self.user_id} status={self.status}>"


class GroupGameInvitation(Base):
    """Marks that a whole group was invited to a game."""

    __tablename__ = "group_game_invitations"

    game_id: Mapped[str] = mapped_column(
        ForeignKey("games.id", ondelete="CASCADE"), primary_key=True, index=True
    )
    group_id: Mapped[str] = mapped_column(
        ForeignKey("groups.id", ondelete="CASCADE"), primary_key=True, index=True
    )
    invited_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<GroupGameInvitation game={self.game_id} group={self.group_id}>"
