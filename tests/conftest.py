"""Shared fixtures for the report moderation test-suite."""
from __future__ import annotations

import os
from typing import Iterator

import pytest
from sqlalchemy import delete

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_report_moderation.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("DISABLE_ENFORCEMENT_SWEEP", "true")
os.environ.setdefault("DISABLE_AUTO_MIGRATIONS", "true")
os.environ["ENFORCEMENT_BACKOFF_SECONDS"] = "0"

from report_moderation.database import Base, SessionLocal, engine  # noqa: E402
from report_moderation.models import (  # noqa: E402
    ContentItem,
    Enforcement,
    Notification,
    Report,
    ReportAuditEntry,
    User,
)
from report_moderation.services.errors import DependencyError, TargetNotFoundError  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def _create_schema() -> Iterator[None]:
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def _clean_database() -> Iterator[None]:
    yield
    with SessionLocal() as session:
        for model in (Notification, Enforcement, ReportAuditEntry, Report, ContentItem, User):
            session.execute(delete(model))
        session.commit()


@pytest.fixture()
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def add_user(db, user_id: str, *, role: str = "user", email: str | None = None) -> User:
    user = User(id=user_id, username=f"{user_id}-name", role=role, email=email)
    db.add(user)
    db.commit()
    return user


def add_content(db, kind: str, content_id: str, author_id: str) -> ContentItem:
    item = ContentItem(kind=kind, id=content_id, author_id=author_id)
    db.add(item)
    db.commit()
    return item


class FakeDirectory:
    """In-memory user directory that records every consequence applied."""

    def __init__(
        self,
        users: set[str] | None = None,
        content: dict[tuple[str, str], str] | None = None,
        roles: dict[str, str] | None = None,
        failures: int = 0,
    ) -> None:
        self.users = set(users or ())
        self.content = dict(content or {})
        self.roles = dict(roles or {})
        self.failures = failures
        self.calls: list[tuple] = []
        self.failed_calls = 0

    def exists(self, kind: str, target_id: str) -> bool:
        if kind == "user":
            return target_id in self.users
        return (kind, target_id) in self.content

    def owner_of(self, kind: str, target_id: str) -> str | None:
        if kind == "user":
            return target_id
        return self.content.get((kind, target_id))

    def role_of(self, user_id: str) -> str | None:
        if user_id in self.roles:
            return self.roles[user_id]
        return "user" if user_id in self.users else None

    def _maybe_fail(self) -> None:
        if self.failures > 0:
            self.failures -= 1
            self.failed_calls += 1
            raise DependencyError("directory unavailable")

    def suspend(self, user_id, until, *, reason=None, idempotency_key=None) -> None:
        self._maybe_fail()
        if user_id not in self.users:
            raise TargetNotFoundError(f"User {user_id} not found")
        self.calls.append(("suspend", user_id, until))

    def restrict(self, user_id, *, idempotency_key=None) -> None:
        self._maybe_fail()
        self.calls.append(("restrict", user_id))

    def remove_content(self, kind, target_id, *, idempotency_key=None) -> None:
        self._maybe_fail()
        self.calls.append(("remove_content", kind, target_id))


class FakeFanout:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.sent: list[tuple[list[str], object]] = []

    def notify(self, recipient_ids, message) -> int:
        if self.fail:
            raise DependencyError("fan-out unavailable")
        recipients = list(recipient_ids)
        self.sent.append((recipients, message))
        return len(recipients)


@pytest.fixture()
def directory() -> FakeDirectory:
    return FakeDirectory(
        users={"u1", "u2", "u3", "m1", "m2"},
        content={("post", "p9"): "u2", ("comment", "c1"): "u3"},
        roles={"m1": "moderator", "m2": "admin"},
    )


@pytest.fixture()
def fanout() -> FakeFanout:
    return FakeFanout()
