"""
FastAPI dependencies for authentication, database, and application context.
"""

import logging
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from app.context import AppContext, get_context
from app.db import get_db
from app.models.user import User
from app.services.errors import AuthenticationError
from app.services.users import require_user

logger = logging.getLogger(__name__)

# Type alias for database dependency
DBSession = Annotated[AsyncSession, Depends(get_db)]
Context = Annotated[AppContext, Depends(get_context)]

http_bearer = HTTPBearer(auto_error=False)


async def get_token_subject(
    context: Context,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(http_bearer)],
) -> str:
    """Verify the bearer token and return its subject claim.

    Tokens are issued by the external identity provider and signed with the
    shared secret. ``exp`` is checked when present; ``aud`` only when an
    audience is configured.
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError("Not authenticated")

    settings = context.settings
    try:
        claims = jwt.decode(
            credentials.credentials,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            options={
                "verify_aud": settings.jwt_audience is not None,
                "require_aud": settings.jwt_audience is not None,
            },
        )
    except JWTError as e:
        logger.info("Rejected bearer token: %s", e)
        raise AuthenticationError("Invalid authentication token") from e

    subject = claims.get("sub")
    if not subject or not isinstance(subject, str):
        raise AuthenticationError("Token has no subject")
    return subject


TokenSubject = Annotated[str, Depends(get_token_subject)]


async def get_current_user(subject: TokenSubject, db: DBSession) -> User:
    """Resolve the token subject to its profile (404 until the profile is created)."""
    return await require_user(db, subject)


CurrentUser = Annotated[User, Depends(get_current_user)]
