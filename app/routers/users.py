"""
User profile router.

Profiles are created explicitly after sign-in; the token subject is the
profile id.
"""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Query, status
from pydantic import BaseModel, ConfigDict, EmailStr, StringConstraints

from app.deps import CurrentUser, DBSession, TokenSubject
from app.services import users as user_service

router = APIRouter(prefix="/users", tags=["users"])

# Surrounding whitespace is stripped before the length check
Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]


class UserOut(BaseModel):
    """Public user profile."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    first_name: str
    last_name: str
    email: str
    created_at: datetime | None = None


class UserCreate(BaseModel):
    username: Name
    first_name: Name
    last_name: Name
    email: EmailStr


@router.get("/me", response_model=UserOut)
async def get_me(subject: TokenSubject, db: DBSession):
    """The caller's profile (404 until it has been created)."""
    return await user_service.require_user(db, subject)


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def create_user(subject: TokenSubject, db: DBSession, data: UserCreate):
    """Create the caller's profile."""
    return await user_service.create_user(
        db,
        subject,
        username=data.username,
        first_name=data.first_name,
        last_name=data.last_name,
        email=str(data.email),
    )


@router.get("/search", response_model=list[UserOut])
async def search_users(
    user: CurrentUser,
    db: DBSession,
    q: Annotated[str, Query(min_length=1, max_length=100)],
):
    """Find players by username or name, for the invite picker."""
    return await user_service.search_users(db, q)
