"""API dependencies for dependency injection."""

from collections.abc import Generator
from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlmodel import Session

from phone_reminders.config import get_settings
from phone_reminders.db.session import get_session
from phone_reminders.services.reminders import OwnerReminderRepository

security = HTTPBearer()


def get_db_session() -> Generator[Session, None, None]:
    """Get database session dependency."""
    yield from get_session()


DBSession = Annotated[Session, Depends(get_db_session)]


def get_current_owner(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
) -> UUID:
    """Get the owner id (JWT subject) of the authenticated caller."""
    settings = get_settings()
    token = credentials.credentials
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired token",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = jwt.decode(
            token,
            settings.AUTH_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
        subject: str | None = payload.get("sub")
        if subject is None:
            raise credentials_exception
        return UUID(subject)
    except (JWTError, ValueError):
        raise credentials_exception


CurrentOwner = Annotated[UUID, Depends(get_current_owner)]


def get_reminder_repository(session: DBSession, owner_id: CurrentOwner) -> OwnerReminderRepository:
    """Owner-scoped reminder repository for the current request."""
    return OwnerReminderRepository(session, owner_id)


ReminderRepo = Annotated[OwnerReminderRepository, Depends(get_reminder_repository)]
