"""FastAPI dependency utilities."""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from intranet.domain.entities import User
from intranet.infrastructure.database import get_db
from intranet.infrastructure.notifications import (
    NotificationConnectionManager,
    NotificationPublisher,
)
from intranet.infrastructure.repositories import UserRepository
from intranet.infrastructure.security import decode_access_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token")


def _credentials_error(detail: str = "Invalid credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def resolve_current_user(token: str, db: Session) -> User:
    """Resolve the authenticated user for the provided token.

    The token's ``sub`` claim carries the user's e-mail; the user id used for
    ownership checks always comes from the database, never from the client.
    """

    try:
        payload = decode_access_token(token)
    except ValueError as exc:
        raise _credentials_error() from exc

    email = payload.get("sub")
    if not isinstance(email, str) or not email:
        raise _credentials_error()

    user = UserRepository(db).get_by_email(email)
    if user is None:
        raise _credentials_error("User not found")
    return user


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Return the authenticated user from the provided token."""

    return resolve_current_user(token, db)


def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    """Ensure the authenticated user is active."""

    if not current_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Inactive user",
        )
    return current_user


def get_notification_manager(request: Request) -> NotificationConnectionManager:
    """Return the broadcast registry owned by the running application."""

    return request.app.state.notification_manager


def get_notification_publisher(
    manager: NotificationConnectionManager = Depends(get_notification_manager),
) -> NotificationPublisher:
    return NotificationPublisher(manager)
