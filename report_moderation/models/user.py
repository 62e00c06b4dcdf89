"""SQLAlchemy ORM models backing the default user directory."""
from __future__ import annotations

from sqlalchemy import Column, DateTime, PrimaryKeyConstraint, String

from report_moderation.database import Base
from .base import TimestampMixin


class User(TimestampMixin, Base):
    __tablename__ = "users"

    id = Column(String(64), primary_key=True)
    username = Column(String(150), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=True)
    role = Column(String(32), nullable=False, server_default="user", default="user")

    # "active" | "suspended"
    account_status = Column(String(16), nullable=False, server_default="active", default="active")
    suspended_at = Column(DateTime(timezone=True), nullable=True)
    suspended_until = Column(DateTime(timezone=True), nullable=True)
    suspension_reason = Column(String(500), nullable=True)
    suspension_key = Column(String(200), nullable=True)
    restricted_at = Column(DateTime(timezone=True), nullable=True)


class ContentItem(TimestampMixin, Base):
    """Reportable content (posts, reels, stories, comments) keyed by kind and id."""

    __tablename__ = "content_items"

    kind = Column(String(16), nullable=False)
    id = Column(String(64), nullable=False)
    author_id = Column(String(64), nullable=False, index=True)
    removed_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (PrimaryKeyConstraint("kind", "id"),)


__all__ = ["User", "ContentItem"]
