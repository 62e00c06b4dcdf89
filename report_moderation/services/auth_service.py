"""Bearer-token authentication and request-scoped collaborators.

Tokens are issued by the main account service; this service only verifies
them and reads the ``sub`` claim as the acting user id.
"""
from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from ..config import get_settings
from ..database import get_session
from ..security.secrets import MissingSecretError, require_secret
from .directory import SqlUserDirectory, UserDirectory
from .notification_service import NotificationFanout, SqlNotificationFanout

logger = logging.getLogger(__name__)

_security = HTTPBearer(auto_error=False)


@lru_cache(maxsize=1)
def _get_jwt_secret() -> str:
    try:
        return require_secret("JWT_SECRET_KEY")
    except MissingSecretError as exc:
        raise RuntimeError(str(exc)) from exc


def decode_actor_id(token: str) -> str:
    """Verify a JWT and return its subject."""

    try:
        payload = jwt.decode(token, _get_jwt_secret(), algorithms=[get_settings().jwt_algorithm])
    except JWTError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc

    subject = payload.get("sub")
    if not subject or not isinstance(subject, str):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token payload")
    return subject


async def get_current_actor(
    credentials: HTTPAuthorizationCredentials | None = Depends(_security),
) -> str:
    """Resolve the acting user id from the bearer token."""

    if not credentials or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")
    return decode_actor_id(credentials.credentials)


def get_user_directory(db: Session = Depends(get_session)) -> UserDirectory:
    return SqlUserDirectory(db)


def get_notification_fanout(db: Session = Depends(get_session)) -> NotificationFanout:
    return SqlNotificationFanout(db)


async def require_moderator(
    actor_id: str = Depends(get_current_actor),
    directory: UserDirectory = Depends(get_user_directory),
) -> str:
    role = directory.role_of(actor_id)
    if role is None or role not in get_settings().moderator_role_set:
        logger.info("Rejected moderation request from %s (role=%s)", actor_id, role)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
    return actor_id


__all__ = [
    "decode_actor_id",
    "get_current_actor",
    "get_user_directory",
    "get_notification_fanout",
    "require_moderator",
]
