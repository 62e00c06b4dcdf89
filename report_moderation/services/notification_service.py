"""Notification fan-out collaborator for report outcomes."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Iterable, Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import get_settings
from ..models import Notification, User
from ..models.base import utcnow
from .email_service import EmailDeliveryError, send_email
from .errors import DependencyError

logger = logging.getLogger(__name__)


class NotificationType(StrEnum):
    REPORT_REVIEWED = "report.reviewed"
    REPORT_ESCALATED = "report.escalated"
    ACCOUNT_WARNING = "account.warning"
    ACCOUNT_SUSPENDED = "account.suspended"
    ACCOUNT_RESTRICTED = "account.restricted"
    CONTENT_REMOVED = "content.removed"


@dataclass(frozen=True)
class NotificationMessage:
    type: NotificationType | str
    content: str
    payload: dict[str, Any] = field(default_factory=dict)
    email_subject: str | None = None


class NotificationFanout(Protocol):
    def notify(self, recipient_ids: Iterable[str], message: NotificationMessage) -> int:
        ...


class SqlNotificationFanout:
    """Persist one in-app notification per known recipient.

    When ``NOTIFY_BY_EMAIL`` is enabled and a recipient has an address on
    file, a plaintext copy is e-mailed as well. E-mail failures are logged and
    do not reduce the delivered count; the in-app row is the delivery.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def notify(self, recipient_ids: Iterable[str], message: NotificationMessage) -> int:
        unique_ids = list(dict.fromkeys(rid for rid in recipient_ids if rid))
        if not unique_ids:
            return 0

        recipients = list(self.db.scalars(select(User).where(User.id.in_(unique_ids))))
        if len(recipients) != len(unique_ids):
            known = {user.id for user in recipients}
            logger.info("Skipping unknown notification recipients: %s", sorted(set(unique_ids) - known))

        rows = [
            Notification(
                recipient_id=user.id,
                type=str(message.type),
                content=message.content,
                payload=message.payload or None,
                created_at=utcnow(),
            )
            for user in recipients
        ]
        try:
            self.db.add_all(rows)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.warning("Failed to persist %d notifications: %s", len(rows), exc)
            raise DependencyError("Notification storage unavailable") from exc

        if get_settings().notify_by_email:
            self._email_copies(recipients, rows, message)
        return len(rows)

    def _email_copies(self, recipients: list[User], rows: list[Notification], message: NotificationMessage) -> None:
        subject = message.email_subject or "Update on a moderation report"
        for user, row in zip(recipients, rows):
            if not user.email:
                continue
            try:
                send_email(user.email, subject, message.content)
            except EmailDeliveryError as exc:
                logger.warning("Notification e-mail to %s failed: %s", user.id, exc)
                continue
            row.emailed_at = utcnow()
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.warning("Failed to record e-mail delivery timestamps")


__all__ = ["NotificationType", "NotificationMessage", "NotificationFanout", "SqlNotificationFanout"]
