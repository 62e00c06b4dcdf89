"""Optimistic concurrency on report updates."""
from __future__ import annotations

import pytest

from report_moderation.constants import ReportStatus
from report_moderation.database import SessionLocal
from report_moderation.services.action_service import action_key, take_action
from report_moderation.services.audit_service import AuditEvent
from report_moderation.services.errors import ConflictError
from report_moderation.services.report_lifecycle import append_action
from report_moderation.services.report_service import get_report, submit_report, update_report


def _report(db, directory):
    return submit_report(
        db,
        directory,
        reporter_id="u1",
        target_kind="user",
        target_id="u2",
        reason_code="bullying",
        narrative="Keeps mocking me in group chats.",
    )


def test_interleaved_warnings_are_both_recorded(db, directory):
    report = _report(db, directory)
    calls = 0

    def _warn_as_m1(current):
        nonlocal calls
        calls += 1
        if calls == 1:
            # A second moderator wins the race between our read and our write.
            with SessionLocal() as other:
                take_action(other, report.id, "warning", "Warning from the second reviewer.", "m2", directory=directory)
        key = action_key(report.id, "warning", "m1")
        append_action(current, action="warning", reason="Warning from the first reviewer.", actor_id="m1",
                      status=ReportStatus.UNDER_REVIEW.value, idempotency_key=key)
        return AuditEvent(event="report.action", actor_id="m1", action="warning", idempotency_key=key)

    updated = update_report(db, report.id, _warn_as_m1)

    assert calls == 2
    assert [entry["actor_id"] for entry in updated.actions_taken] == ["m2", "m1"]
    db.expire_all()
    assert len(get_report(db, report.id).actions_taken) == 2


def test_conflict_is_raised_when_retries_run_out(db, directory):
    report = _report(db, directory)

    def _always_lose(current):
        with SessionLocal() as other:
            competing = other.get(type(current), current.id)
            competing.assigned_to = "m2" if competing.assigned_to != "m2" else "m1"
            other.commit()
        current.supplement = "local edit"
        return AuditEvent(event="report.edit", actor_id="m1")

    with pytest.raises(ConflictError):
        update_report(db, report.id, _always_lose, max_attempts=2)

    db.expire_all()
    assert get_report(db, report.id).supplement is None
