"""
Games router: creation (one-off or recurring), queries, invitations and
invitation responses.
"""

from datetime import date, datetime
from typing import Annotated, Literal, Union

from fastapi import APIRouter, Response, status
from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator, model_validator

from app.deps import Context, CurrentUser, DBSession
from app.models.base import as_utc
from app.models.game import Game, GameStatus, GameType
from app.models.invitation import InvitationResponse, InvitationStatus
from app.routers.users import Name, UserOut
from app.services import games as game_service
from app.services import invitations as invitation_service
from app.services.errors import PermissionDeniedError
from app.services.schedule import validate_cron

router = APIRouter(prefix="/games", tags=["games"])


# -------------------------------------------------------------------------
# Request models
# -------------------------------------------------------------------------

class Location(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    name: str | None = Field(None, max_length=500)


class TeamIn(BaseModel):
    name: Name
    color: str | None = Field(None, max_length=30)
    invited_user_ids: list[str] = []
    invited_group_ids: list[str] = []


class OneOffScheduleIn(BaseModel):
    type: Literal["one_off"]
    scheduled_time: datetime


class RecurringScheduleIn(BaseModel):
    type: Literal["recurring"]
    cron_schedule: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=120)]
    start_date: date
    end_date: date | None = None

    @field_validator("cron_schedule")
    @classmethod
    def check_cron(cls, v: str) -> str:
        return validate_cron(v)

    @model_validator(mode="after")
    def check_dates(self) -> "RecurringScheduleIn":
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


ScheduleIn = Annotated[Union[OneOffScheduleIn, RecurringScheduleIn], Field(discriminator="type")]


class GameCreate(BaseModel):
    title: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
    game_type: GameType
    location: Location
    duration_minutes: int = Field(..., gt=0)
    teams: list[TeamIn] = Field(..., min_length=1, max_length=game_service.MAX_TEAMS)
    schedule: ScheduleIn

    def to_new_game(self) -> game_service.NewGame:
        if isinstance(self.schedule, OneOffScheduleIn):
            schedule = game_service.OneOffSchedule(scheduled_time=self.schedule.scheduled_time)
        else:
            schedule = game_service.RecurringSchedule(
                cron_schedule=self.schedule.cron_schedule,
                start_date=self.schedule.start_date,
                end_date=self.schedule.end_date,
            )
        return game_service.NewGame(
            title=self.title,
            game_type=self.game_type,
            latitude=self.location.latitude,
            longitude=self.location.longitude,
            location_name=self.location.name,
            duration_minutes=self.duration_minutes,
            teams=[
                game_service.NewTeam(
                    name=team.name,
                    color=team.color,
                    invited_user_ids=team.invited_user_ids,
                    invited_group_ids=team.invited_group_ids,
                )
                for team in self.teams
            ],
            schedule=schedule,
        )


class InvitationsAdd(BaseModel):
    team_id: str
    user_ids: list[str] = []
    group_ids: list[str] = []

    @model_validator(mode="after")
    def check_not_empty(self) -> "InvitationsAdd":
        if not self.user_ids and not self.group_ids:
            raise ValueError("user_ids or group_ids must not both be empty")
        return self


class InvitationRespond(BaseModel):
    response: InvitationResponse


# -------------------------------------------------------------------------
# Response models
# -------------------------------------------------------------------------

class OneOffScheduleOut(BaseModel):
    type: Literal["one_off"] = "one_off"
    scheduled_time: datetime


class RecurringScheduleOut(BaseModel):
    type: Literal["recurring"] = "recurring"
    recurring_game_id: str
    cron_schedule: str
    start_date: date
    end_date: date | None = None
    is_active: bool


class GameOut(BaseModel):
    id: str
    template_id: str
    title: str
    game_type: GameType
    status: GameStatus
    scheduled_time: datetime
    duration_minutes: int
    location: Location
    created_by_user_id: str
    occurrence_date: date | None = None
    schedule: Union[OneOffScheduleOut, RecurringScheduleOut] = Field(discriminator="type")


class InvitationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    game_id: str
    user_id: str
    team_id: str
    group_id: str | None = None
    status: InvitationStatus
    invited_at: datetime
    responded_at: datetime | None = None


class UserInvitationOut(BaseModel):
    user: UserOut
    invitation: InvitationOut


class TeamOut(BaseModel):
    id: str
    name: str
    color: str | None = None
    position: int
    members: list[UserOut]


class GameDetailOut(BaseModel):
    game: GameOut
    teams: list[TeamOut]
    invitations: list[UserInvitationOut]


def serialize_game(game: Game) -> GameOut:
    """Flatten a game and its template into the API shape."""
    template = game.template
    scheduled_time = as_utc(game.scheduled_time)

    if game.recurring_game is not None:
        recurring = game.recurring_game
        schedule = RecurringScheduleOut(
            recurring_game_id=recurring.id,
            cron_schedule=recurring.cron_schedule,
            start_date=recurring.start_date,
            end_date=recurring.end_date,
            is_active=recurring.is_active,
        )
    else:
        schedule = OneOffScheduleOut(scheduled_time=scheduled_time)

    return GameOut(
        id=game.id,
        template_id=template.id,
        title=template.title,
        game_type=template.game_type,
        status=game.status,
        scheduled_time=scheduled_time,
        duration_minutes=template.duration_minutes,
        location=Location(
            latitude=template.location_latitude,
            longitude=template.location_longitude,
            name=template.location_name,
        ),
        created_by_user_id=template.created_by_user_id,
        occurrence_date=game.occurrence_date,
        schedule=schedule,
    )


def serialize_game_details(details: game_service.GameDetails) -> GameDetailOut:
    return GameDetailOut(
        game=serialize_game(details.game),
        teams=[
            TeamOut(
                id=team.id,
                name=team.name,
                color=team.color,
                position=team.position,
                members=[UserOut.model_validate(u) for u in details.team_members(team.id)],
            )
            for team in details.teams
        ],
        invitations=[
            UserInvitationOut(
                user=UserOut.model_validate(user),
                invitation=InvitationOut.model_validate(invitation),
            )
            for user, invitation in details.invitations
        ],
    )


# -------------------------------------------------------------------------
# Endpoints
# -------------------------------------------------------------------------

@router.post("", response_model=GameOut, status_code=status.HTTP_201_CREATED)
async def create_game(user: CurrentUser, db: DBSession, context: Context, data: GameCreate):
    """
    Create a game with one or two teams.

    A recurring schedule also generates its first batch of occurrences; the
    earliest one is returned.
    """
    game = await game_service.create_game(
        db,
        user.id,
        data.to_new_game(),
        policy=game_service.RecurrencePolicy.from_settings(context.settings),
    )
    return serialize_game(game)


@router.get("", response_model=list[GameOut])
async def list_games(user: CurrentUser, db: DBSession):
    """Games the caller created or is invited to, latest first."""
    games = await game_service.list_user_games(db, user.id)
    return [serialize_game(game) for game in games]


@router.get("/{game_id}", response_model=GameDetailOut)
async def get_game(game_id: str, user: CurrentUser, db: DBSession):
    details = await game_service.get_game_details(db, game_id)
    return serialize_game_details(details)


@router.delete("/{game_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_game(game_id: str, user: CurrentUser, db: DBSession):
    await game_service.delete_game(db, user.id, game_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{game_id}/invitations", response_model=GameDetailOut)
async def add_invitations(game_id: str, user: CurrentUser, db: DBSession, data: InvitationsAdd):
    """Invite more players, directly or through groups, to one team."""
    await invitation_service.add_game_invitations(
        db, user.id, game_id, data.team_id, data.user_ids, data.group_ids
    )
    details = await game_service.get_game_details(db, game_id)
    return serialize_game_details(details)


@router.put("/{game_id}/invitations", response_model=InvitationOut)
async def respond_to_own_invitation(
    game_id: str,
    user: CurrentUser,
    db: DBSession,
    data: InvitationRespond,
):
    """Accept or decline the caller's invitation."""
    return await invitation_service.respond_to_invitation(db, game_id, user.id, data.response)


@router.put("/{game_id}/invitations/{user_id}", response_model=InvitationOut)
async def respond_to_invitation(
    game_id: str,
    user_id: str,
    user: CurrentUser,
    db: DBSession,
    data: InvitationRespond,
):
    """Accept or decline an invitation. Players can only answer for themselves."""
    if user_id != user.id:
        raise PermissionDeniedError("You can only respond to your own invitation")
    return await invitation_service.respond_to_invitation(db, game_id, user_id, data.response)
