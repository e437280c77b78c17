"""
Game models.

A GameTemplate holds what is shared by every occurrence of a game (title,
type, location, duration, teams and who is invited). Concrete Game rows are
instantiated from a template, either once (one-off) or per occurrence of a
RecurringGame's cron schedule.
"""

from datetime import date, datetime
from enum import Enum

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db import Base
from app.models.base import TimestampMixin, generate_id


class GameType(str, Enum):
    FOOTBALL_5_A_SIDE = "football_5_a_side"
    FOOTBALL_11_A_SIDE = "football_11_a_side"
    BASKETBALL = "basketball"
    TENNIS = "tennis"
    BADMINTON = "badminton"
    CRICKET = "cricket"
    RUGBY = "rugby"
    HOCKEY = "hockey"
    OTHER = "other"


class GameStatus(str, Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class GameTemplate(Base, TimestampMixin):
    """Game metadata shared by all instances of a game."""

    __tablename__ = "game_templates"

    id: Mapped[str] = mapped_column(String(12), primary_key=True, default=generate_id)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    game_type: Mapped[GameType] = mapped_column(String(30), nullable=False)
    location_latitude: Mapped[float] = mapped_column(Numeric(10, 8, asdecimal=False), nullable=False)
    location_longitude: Mapped[float] = mapped_column(Numeric(11, 8, asdecimal=False), nullable=False)
    location_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    duration_minutes: Mapped[int] = mapped_column(nullable=False)
    created_by_user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    def __repr__(self) -> str:
        return f"<GameTemplate {self.id} {self.title!r}>"


class GameTemplateTeam(Base, TimestampMixin):
    """Team definition copied into every instantiated game."""

    __tablename__ = "game_template_teams"

    id: Mapped[str] = mapped_column(String(12), primary_key=True, default=generate_id)
    template_id: Mapped[str] = mapped_column(
        ForeignKey("game_templates.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    color: Mapped[str | None] = mapped_column(String(30), nullable=True)
    position: Mapped[int] = mapped_column(nullable=False)


class GameTemplateInvitation(Base, TimestampMixin):
    """Standing invite of one user or one group to a template team."""

    __tablename__ = "game_template_invitations"
    __table_args__ = (
        CheckConstraint(
            "(user_id IS NOT NULL) != (group_id IS NOT NULL)",
            name="ck_template_invitation_user_xor_group",
        ),
        UniqueConstraint("template_id", "user_id", "group_id", name="uq_template_invitation"),
    )

    id: Mapped[str] = mapped_column(String(12), primary_key=True, default=generate_id)
    template_id: Mapped[str] = mapped_column(
        ForeignKey("game_templates.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str | None] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=True
    )
    group_id: Mapped[str | None] = mapped_column(
        ForeignKey("groups.id", ondelete="CASCADE"), nullable=True
    )
    team_id: Mapped[str] = mapped_column(
        ForeignKey("game_template_teams.id", ondelete="CASCADE"), nullable=False
    )
    # Order the invite was given in; earlier invites win when expansions overlap
    position: Mapped[int] = mapped_column(nullable=False, default=0)


class RecurringGame(Base, TimestampMixin):
    """Cron-driven series that periodically materializes Game rows."""

    __tablename__ = "recurring_games"

    id: Mapped[str] = mapped_column(String(12), primary_key=True, default=generate_id)
    template_id: Mapped[str] = mapped_column(
        ForeignKey("game_templates.id", ondelete="CASCADE"), nullable=False, index=True
    )
    cron_schedule: Mapped[str] = mapped_column(String(120), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    last_generated_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<RecurringGame {self.id} cron={self.cron_schedule!r} active={self.is_active}>"


class Game(Base, TimestampMixin):
    """A concrete, schedulable game instance."""

    __tablename__ = "games"
    __table_args__ = (
        UniqueConstraint("recurring_game_id", "occurrence_date", name="uq_game_occurrence"),
    )

    id: Mapped[str] = mapped_column(String(12), primary_key=True, default=generate_id)
    template_id: Mapped[str] = mapped_column(
        ForeignKey("game_templates.id", ondelete="CASCADE"), nullable=False, index=True
    )
    recurring_game_id: Mapped[str | None] = mapped_column(
        ForeignKey("recurring_games.id", ondelete="CASCADE"), nullable=True, index=True
    )
    scheduled_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    occurrence_date: Mapped[date | None] = mapped_column(Date, nullable=True, index=True)
    status: Mapped[GameStatus] = mapped_column(String(20), default=GameStatus.SCHEDULED, nullable=False)

    # Relationships
    template = relationship("GameTemplate", lazy="selectin")
    recurring_game = relationship("RecurringGame", lazy="selectin")

    def __repr__(self) -> str:
        return f"<Game {self.id} at {self.scheduled_time} status={self.status}>"


class GameTeam(Base, TimestampMixin):
    """One side of a game (a game has one or two)."""

    __tablename__ = "game_teams"

    id: Mapped[str] = mapped_column(String(12), primary_key=True, default=generate_id)
    game_id: Mapped[str] = mapped_column(
        ForeignKey("games.id", ondelete="CASCADE"), nullable=False, index=True
    )
    template_team_id: Mapped[str | None] = mapped_column(
        ForeignKey("game_template_teams.id", ondelete="SET NULL"), nullable=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    color: Mapped[str | None] = mapped_column(String(30), nullable=True)
    position: Mapped[int] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return f"<GameTeam {self.name!r} game={self.game_id} position={self.position}>"
