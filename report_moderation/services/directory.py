"""User directory collaborator: existence checks, roles and account consequences."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..constants import TargetKind
from ..models import ContentItem, User
from ..models.base import utcnow
from .errors import DependencyError, TargetNotFoundError

logger = logging.getLogger(__name__)


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def _longer_suspension(current: datetime | None, requested: datetime | None) -> datetime | None:
    if current is None or requested is None:
        return None
    return max(current, _as_utc(requested))


class UserDirectory(Protocol):
    def exists(self, kind: str, target_id: str) -> bool:
        ...

    def owner_of(self, kind: str, target_id: str) -> Optional[str]:
        ...

    def role_of(self, user_id: str) -> Optional[str]:
        ...

    def suspend(
        self,
        user_id: str,
        until: datetime | None,
        *,
        reason: str | None = None,
        idempotency_key: str | None = None,
    ) -> None:
        ...

    def restrict(self, user_id: str, *, idempotency_key: str | None = None) -> None:
        ...

    def remove_content(self, kind: str, target_id: str, *, idempotency_key: str | None = None) -> None:
        ...


class SqlUserDirectory:
    """Directory backed by the ``users`` and ``content_items`` tables.

    Consequence calls commit immediately; the executor only calls them after
    the report update that requested them has been committed. Storage
    failures surface as :class:`DependencyError` so callers can retry.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def exists(self, kind: str, target_id: str) -> bool:
        with self._reading(f"look up {kind} {target_id}"):
            if kind == TargetKind.USER:
                return self.db.get(User, target_id) is not None
            item = self.db.get(ContentItem, (kind, target_id))
            return item is not None and item.removed_at is None

    def owner_of(self, kind: str, target_id: str) -> Optional[str]:
        if kind == TargetKind.USER:
            return target_id
        with self._reading(f"resolve owner of {kind} {target_id}"):
            return self.db.scalar(
                select(ContentItem.author_id).where(ContentItem.kind == kind, ContentItem.id == target_id)
            )

    def role_of(self, user_id: str) -> Optional[str]:
        with self._reading(f"look up role of {user_id}"):
            user = self.db.get(User, user_id)
        if user is None:
            return None
        return (user.role or "user").lower()

    def suspend(
        self,
        user_id: str,
        until: datetime | None,
        *,
        reason: str | None = None,
        idempotency_key: str | None = None,
    ) -> None:
        user = self._require_user(user_id)
        if idempotency_key and user.suspension_key == idempotency_key:
            return

        if user.account_status == "suspended":
            # An existing suspension is never weakened: no expiry beats any
            # expiry and a later expiry beats an earlier one.
            until = _longer_suspension(_as_utc(user.suspended_until), until)
        else:
            user.account_status = "suspended"
            user.suspended_at = utcnow()
        user.suspended_until = until
        user.suspension_reason = (reason or "")[:500] or None
        user.suspension_key = idempotency_key
        self._commit(f"suspend user {user_id}")
        logger.info("Suspended user %s until %s", user_id, until.isoformat() if until else "indefinitely")

    def restrict(self, user_id: str, *, idempotency_key: str | None = None) -> None:
        user = self._require_user(user_id)
        if user.restricted_at is not None:
            return
        user.restricted_at = utcnow()
        self._commit(f"restrict user {user_id}")

    def remove_content(self, kind: str, target_id: str, *, idempotency_key: str | None = None) -> None:
        with self._reading(f"look up {kind} {target_id}"):
            item = self.db.get(ContentItem, (kind, target_id))
        if item is None:
            raise TargetNotFoundError(f"{kind} {target_id} not found")
        if item.removed_at is not None:
            return
        item.removed_at = utcnow()
        self._commit(f"remove {kind} {target_id}")

    def _require_user(self, user_id: str) -> User:
        with self._reading(f"look up user {user_id}"):
            user = self.db.get(User, user_id)
        if user is None:
            raise TargetNotFoundError(f"User {user_id} not found")
        return user

    @contextmanager
    def _reading(self, description: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.warning("Directory lookup failed (%s): %s", description, exc)
            raise DependencyError(f"Failed to {description}") from exc

    def _commit(self, description: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.warning("Directory update failed (%s): %s", description, exc)
            raise DependencyError(f"Failed to {description}") from exc


__all__ = ["UserDirectory", "SqlUserDirectory"]
