"""
Game creation, recurring-series materialization and game queries.

Creating a game writes a GameTemplate (with its teams and standing invites)
and then instantiates concrete Game rows from it. Everything runs in the
caller's session, so a failure anywhere rolls the whole creation back.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import Database
from app.models.base import as_utc, utcnow
from app.models.game import (
    Game,
    GameStatus,
    GameTeam,
    GameTemplate,
    GameTemplateInvitation,
    GameTemplateTeam,
    GameType,
    RecurringGame,
)
from app.models.invitation import GameInvitation, GroupGameInvitation
from app.models.user import User
from app.services.errors import NotFoundError, PermissionDeniedError, ValidationError
from app.services.groups import ensure_groups_visible
from app.services.invitations import invite_group, invite_users, list_game_invitations
from app.services.schedule import iter_occurrences, validate_cron
from app.services.users import ensure_users_exist
from app.settings import Settings

logger = logging.getLogger(__name__)

MAX_TEAMS = 2


@dataclass
class NewTeam:
    name: str
    color: str | None = None
    invited_user_ids: list[str] = field(default_factory=list)
    invited_group_ids: list[str] = field(default_factory=list)


@dataclass
class OneOffSchedule:
    scheduled_time: datetime


@dataclass
class RecurringSchedule:
    cron_schedule: str
    start_date: date
    end_date: date | None = None


@dataclass
class NewGame:
    title: str
    game_type: GameType
    latitude: float
    longitude: float
    duration_minutes: int
    teams: list[NewTeam]
    schedule: OneOffSchedule | RecurringSchedule
    location_name: str | None = None


@dataclass
class RecurrencePolicy:
    """How far ahead, and how many games per run, a series is materialized."""

    ahead_days: int = 30
    max_batch: int = 10

    @classmethod
    def from_settings(cls, settings: Settings) -> "RecurrencePolicy":
        return cls(
            ahead_days=settings.recurring_generate_ahead_days,
            max_batch=settings.recurring_max_batch,
        )


@dataclass
class GameDetails:
    game: Game
    teams: list[GameTeam]
    invitations: list[tuple[User, GameInvitation]]

    def team_members(self, team_id: str) -> list[User]:
        return [user for user, invitation in self.invitations if invitation.team_id == team_id]


def _validate_new_game(new_game: NewGame) -> None:
    if not 1 <= len(new_game.teams) <= MAX_TEAMS:
        raise ValidationError("A game needs one or two teams")
    if new_game.duration_minutes <= 0:
        raise ValidationError("duration_minutes must be positive")

    schedule = new_game.schedule
    if isinstance(schedule, RecurringSchedule):
        try:
            validate_cron(schedule.cron_schedule)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        if schedule.end_date is not None and schedule.end_date < schedule.start_date:
            raise ValidationError("end_date must not be before start_date")


async def _create_template(db: AsyncSession, creator_id: str, new_game: NewGame) -> GameTemplate:
    template = GameTemplate(
        title=new_game.title,
        game_type=new_game.game_type,
        location_latitude=new_game.latitude,
        location_longitude=new_game.longitude,
        location_name=new_game.location_name,
        duration_minutes=new_game.duration_minutes,
        created_by_user_id=creator_id,
    )
    db.add(template)
    await db.flush()

    seen_users: set[str] = set()
    seen_groups: set[str] = set()
    invite_position = 0
    for position, team_input in enumerate(new_game.teams, start=1):
        team = GameTemplateTeam(
            template_id=template.id,
            name=team_input.name,
            color=team_input.color,
            position=position,
        )
        db.add(team)
        await db.flush()

        for user_id in team_input.invited_user_ids:
            if user_id in seen_users:
                continue
            seen_users.add(user_id)
            invite_position += 1
            db.add(GameTemplateInvitation(
                template_id=template.id, team_id=team.id, user_id=user_id, position=invite_position
            ))

        for group_id in team_input.invited_group_ids:
            if group_id in seen_groups:
                continue
            seen_groups.add(group_id)
            invite_position += 1
            db.add(GameTemplateInvitation(
                template_id=template.id, team_id=team.id, group_id=group_id, position=invite_position
            ))

    await db.flush()
    return template


async def instantiate_game(
    db: AsyncSession,
    template: GameTemplate,
    scheduled_time: datetime,
    recurring_game: RecurringGame | None = None,
    occurrence_date: date | None = None,
) -> Game:
    """Create a Game from a template: copy its teams and expand its invites.

    Teams are expanded in position order, direct invites before group
    invites, so a player reachable by several paths lands on the first.
    """
    game = Game(
        template=template,
        recurring_game=recurring_game,
        scheduled_time=as_utc(scheduled_time),
        occurrence_date=occurrence_date,
        status=GameStatus.SCHEDULED,
    )
    db.add(game)
    await db.flush()

    result = await db.execute(
        select(GameTemplateTeam)
        .where(GameTemplateTeam.template_id == template.id)
        .order_by(GameTemplateTeam.position)
    )
    template_teams = result.scalars().all()

    result = await db.execute(
        select(GameTemplateInvitation)
        .where(GameTemplateInvitation.template_id == template.id)
        .order_by(GameTemplateInvitation.position)
    )
    template_invitations = result.scalars().all()

    for template_team in template_teams:
        team = GameTeam(
            game_id=game.id,
            template_team_id=template_team.id,
            name=template_team.name,
            color=template_team.color,
            position=template_team.position,
        )
        db.add(team)
        await db.flush()

        team_invites = [inv for inv in template_invitations if inv.team_id == template_team.id]
        await invite_users(
            db, game.id, team.id, [inv.user_id for inv in team_invites if inv.user_id]
        )
        for inv in team_invites:
            if inv.group_id:
                await invite_group(db, game.id, team.id, inv.group_id)

    logger.info("Instantiated game %s from template %s at %s", game.id, template.id, game.scheduled_time)
    return game


async def materialize_recurring_game(
    db: AsyncSession,
    recurring_game: RecurringGame,
    policy: RecurrencePolicy,
    today: date | None = None,
) -> list[Game]:
    """Create the next batch of games for a series.

    Covers occurrences after ``last_generated_date`` (or from ``start_date``)
    up to ``ahead_days`` past today or the start date, whichever is later,
    bounded by ``end_date``. Dates that already have a game are skipped.
    """
    today = today or utcnow().date()

    if recurring_game.last_generated_date is not None:
        first_date = recurring_game.last_generated_date + timedelta(days=1)
    else:
        first_date = recurring_game.start_date
    last_date = max(today, recurring_game.start_date) + timedelta(days=policy.ahead_days)
    if recurring_game.end_date is not None:
        last_date = min(last_date, recurring_game.end_date)

    if first_date > last_date:
        return []

    result = await db.execute(
        select(Game.occurrence_date).where(Game.recurring_game_id == recurring_game.id)
    )
    existing_dates = set(result.scalars().all())

    template = await db.get(GameTemplate, recurring_game.template_id)
    created: list[Game] = []
    last_seen: date | None = None

    for occurrence in iter_occurrences(recurring_game.cron_schedule, first_date, last_date):
        occurrence_date = occurrence.date()
        if occurrence_date in existing_dates:
            last_seen = occurrence_date
            continue
        if len(created) >= policy.max_batch:
            break

        game = await instantiate_game(
            db,
            template,
            occurrence,
            recurring_game=recurring_game,
            occurrence_date=occurrence_date,
        )
        existing_dates.add(occurrence_date)
        created.append(game)
        last_seen = occurrence_date

    if last_seen is not None:
        recurring_game.last_generated_date = last_seen
    await db.flush()

    logger.info("Generated %d game(s) for recurring game %s", len(created), recurring_game.id)
    return created


async def generate_due_recurring_games(
    db: AsyncSession,
    policy: RecurrencePolicy,
    today: date | None = None,
) -> int:
    """One materialization pass over every active series. Returns games created."""
    today = today or utcnow().date()

    result = await db.execute(
        select(RecurringGame).where(RecurringGame.is_active.is_(True)).order_by(RecurringGame.created_at)
    )
    total = 0
    for recurring_game in result.scalars().all():
        total += await _advance_series(db, recurring_game, policy, today)

    await db.flush()
    return total


async def _advance_series(
    db: AsyncSession, recurring_game: RecurringGame, policy: RecurrencePolicy, today: date
) -> int:
    games = await materialize_recurring_game(db, recurring_game, policy, today=today)

    if recurring_game.end_date is not None and recurring_game.end_date < today:
        recurring_game.is_active = False
        logger.info("Recurring game %s ended on %s", recurring_game.id, recurring_game.end_date)
    return len(games)


async def run_recurring_generation(
    database: Database,
    policy: RecurrencePolicy,
    today: date | None = None,
) -> int:
    """Materialize every active series, each in its own transaction.

    A series that fails is rolled back and logged; the others still commit.
    """
    today = today or utcnow().date()

    async with database.session() as db:
        result = await db.execute(
            select(RecurringGame.id)
            .where(RecurringGame.is_active.is_(True))
            .order_by(RecurringGame.created_at)
        )
        series_ids = list(result.scalars().all())

    total = 0
    failed = 0
    for series_id in series_ids:
        try:
            async with database.session() as db:
                recurring_game = await db.get(RecurringGame, series_id)
                if recurring_game is None or not recurring_game.is_active:
                    continue
                created = await _advance_series(db, recurring_game, policy, today)
            total += created
        except Exception:
            failed += 1
            logger.exception("Failed to generate games for recurring game %s", series_id)

    logger.info(
        "Recurring generation done: %d game(s) created, %d of %d series failed",
        total, failed, len(series_ids),
    )
    return total


async def create_game(
    db: AsyncSession,
    creator_id: str,
    new_game: NewGame,
    policy: RecurrencePolicy | None = None,
    today: date | None = None,
) -> Game:
    """Create a game with its teams and invitations.

    Recurring games get their first batch of occurrences immediately; the
    earliest one is returned.
    """
    _validate_new_game(new_game)

    await ensure_users_exist(
        db, [uid for team in new_game.teams for uid in team.invited_user_ids]
    )
    await ensure_groups_visible(
        db, creator_id, [gid for team in new_game.teams for gid in team.invited_group_ids]
    )

    template = await _create_template(db, creator_id, new_game)
    schedule = new_game.schedule

    if isinstance(schedule, OneOffSchedule):
        game = await instantiate_game(db, template, schedule.scheduled_time)
        logger.info("Created game %s (%r) for user %s", game.id, template.title, creator_id)
        return game

    recurring_game = RecurringGame(
        template_id=template.id,
        cron_schedule=schedule.cron_schedule,
        start_date=schedule.start_date,
        end_date=schedule.end_date,
        is_active=True,
    )
    db.add(recurring_game)
    await db.flush()

    games = await materialize_recurring_game(db, recurring_game, policy or RecurrencePolicy(), today=today)
    if not games:
        raise ValidationError("Recurring schedule has no occurrences in the scheduling window")

    logger.info(
        "Created recurring game %s (%r) for user %s with %d occurrence(s)",
        recurring_game.id, template.title, creator_id, len(games),
    )
    return games[0]


async def get_game(db: AsyncSession, game_id: str) -> Game:
    result = await db.execute(select(Game).where(Game.id == game_id))
    game = result.scalar_one_or_none()
    if game is None:
        raise NotFoundError("Game not found")
    return game


async def list_game_teams(db: AsyncSession, game_id: str) -> list[GameTeam]:
    result = await db.execute(
        select(GameTeam).where(GameTeam.game_id == game_id).order_by(GameTeam.position)
    )
    return list(result.scalars().all())


async def get_game_details(db: AsyncSession, game_id: str) -> GameDetails:
    game = await get_game(db, game_id)
    return GameDetails(
        game=game,
        teams=await list_game_teams(db, game_id),
        invitations=await list_game_invitations(db, game_id),
    )


def _games_query():
    return select(Game).join(GameTemplate, Game.template_id == GameTemplate.id)


async def list_user_games(db: AsyncSession, user_id: str) -> list[Game]:
    """Games the user created or is invited to, latest first."""
    invited = select(GameInvitation.game_id).where(GameInvitation.user_id == user_id)
    result = await db.execute(
        _games_query()
        .where(or_(GameTemplate.created_by_user_id == user_id, Game.id.in_(invited)))
        .order_by(Game.scheduled_time.desc(), Game.id)
    )
    return list(result.scalars().all())


async def list_group_games(db: AsyncSession, group_id: str) -> list[Game]:
    """Games the group was invited to, latest first."""
    invited = select(GroupGameInvitation.game_id).where(GroupGameInvitation.group_id == group_id)
    result = await db.execute(
        _games_query().where(Game.id.in_(invited)).order_by(Game.scheduled_time.desc(), Game.id)
    )
    return list(result.scalars().all())


async def delete_game(db: AsyncSession, user_id: str, game_id: str) -> None:
    """Delete a game (creator only). Teams and invitations go with it.

    A one-off game takes its template along; an occurrence of a recurring
    series only removes that occurrence.
    """
    game = await get_game(db, game_id)
    if game.template.created_by_user_id != user_id:
        raise PermissionDeniedError("Only the game creator can delete it")

    if game.recurring_game_id is None:
        await db.execute(delete(GameTemplate).where(GameTemplate.id == game.template_id))
    else:
        await db.execute(delete(Game).where(Game.id == game_id))
    logger.info("Deleted game %s", game_id)
