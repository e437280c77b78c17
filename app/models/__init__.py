# Models package
from app.db import Base
from app.models.user import User
from app.models.group import Group, GroupMember
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
from app.models.invitation import (
    GameInvitation,
    GroupGameInvitation,
    InvitationResponse,
    InvitationStatus,
)

__all__ = [
    "Base",
    "User",
    "Group",
    "GroupMember",
    "Game",
    "GameStatus",
    "GameTeam",
    "GameTemplate",
    "GameTemplateInvitation",
    "GameTemplateTeam",
    "GameType",
    "RecurringGame",
    "GameInvitation",
    "GroupGameInvitation",
    "InvitationResponse",
    "InvitationStatus",
]
