"""Moderator decisions, enforcement and notification behaviour."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from report_moderation.constants import ReportStatus
from report_moderation.models import Enforcement
from report_moderation.services.action_service import (
    assign_report,
    retry_pending_enforcements,
    take_action,
    transition_report,
)
from report_moderation.services.audit_service import list_audit_entries
from report_moderation.services.errors import (
    InvalidActionError,
    InvalidTransitionError,
    ReportNotFoundError,
    ReportValidationError,
)
from report_moderation.services.notification_service import NotificationType
from report_moderation.services.report_service import get_report, purge_report, submit_report

from conftest import FakeFanout


def _post_report(db, directory, **overrides):
    params = {
        "reporter_id": "u1",
        "target_kind": "post",
        "target_id": "p9",
        "reason_code": "harassment",
        "narrative": "Threatening replies on my post.",
        "severity": "high",
    }
    params.update(overrides)
    return submit_report(db, directory, **params)


def test_permanent_ban_resolves_report_and_suspends_author_once(db, directory, fanout):
    report = _post_report(db, directory)
    assert report.priority == "high"

    outcome = take_action(
        db, report.id, "permanent_ban", "Repeated threats after warnings.", "m1", directory=directory, fanout=fanout
    )

    assert outcome.report.status == ReportStatus.RESOLVED
    assert outcome.enforcement_status == "applied"
    assert outcome.notification_status == "sent"
    assert len(outcome.report.actions_taken) == 1
    entry = outcome.report.actions_taken[0]
    assert entry["action"] == "permanent_ban"
    assert entry["actor_id"] == "m1"
    assert directory.calls == [("suspend", "u2", None)]

    recipients = [ids for ids, _message in fanout.sent]
    assert ["u1"] in recipients
    assert ["u2"] in recipients

    replay = take_action(
        db, report.id, "permanent_ban", "Repeated threats after warnings.", "m1", directory=directory, fanout=fanout
    )
    assert replay.replayed is True
    assert len(replay.report.actions_taken) == 1
    assert directory.calls == [("suspend", "u2", None)]
    events = [entry.event for entry in list_audit_entries(db, report.id)]
    assert events.count("report.action") == 1


def test_permanent_ban_on_a_user_report_suspends_that_user(db, directory, fanout):
    report = _post_report(db, directory, target_kind="user", target_id="u2")
    assert report.target_user_id == "u2"

    outcome = take_action(
        db, report.id, "permanent_ban", "Harassment across several threads.", "m1", directory=directory, fanout=fanout
    )
    take_action(
        db, report.id, "permanent_ban", "Harassment across several threads.", "m1", directory=directory, fanout=fanout
    )

    assert outcome.report.status == ReportStatus.RESOLVED
    assert outcome.enforcement_status == "applied"
    assert directory.calls == [("suspend", "u2", None)]
    assert len(get_report(db, report.id).actions_taken) == 1
    events = [entry.event for entry in list_audit_entries(db, report.id)]
    assert events == ["report.submitted", "report.action"]


def test_repeating_an_action_retries_a_pending_consequence(db, directory):
    directory.failures = 10
    report = _post_report(db, directory)
    first = take_action(db, report.id, "permanent_ban", "Ban after review of history.", "m1", directory=directory)
    assert first.enforcement_status == "pending"

    directory.failures = 0
    again = take_action(db, report.id, "permanent_ban", "Ban after review of history.", "m1", directory=directory)

    assert again.replayed is True
    assert again.enforcement_status == "applied"
    assert directory.calls == [("suspend", "u2", None)]
    assert len(again.report.actions_taken) == 1


def test_temporary_ban_sets_expiry(db, directory):
    report = _post_report(db, directory)
    before = datetime.now(timezone.utc)

    take_action(db, report.id, "temporary_ban", "Cooling-off period for abuse.", "m1", directory=directory)

    (kind, user_id, until) = directory.calls[0]
    assert (kind, user_id) == ("suspend", "u2")
    if until.tzinfo is None:
        until = until.replace(tzinfo=timezone.utc)
    assert timedelta(days=7) - timedelta(minutes=1) <= until - before <= timedelta(days=7, minutes=1)


def test_warning_keeps_report_open_and_applies_nothing(db, directory, fanout):
    report = _post_report(db, directory)

    outcome = take_action(db, report.id, "warning", "First offence, warning issued.", "m1", directory=directory, fanout=fanout)

    assert outcome.report.status == ReportStatus.UNDER_REVIEW
    assert outcome.enforcement_status == "not_required"
    assert directory.calls == []
    assert [ids for ids, _message in fanout.sent] == [["u2"]]


def test_content_removal_targets_the_content(db, directory):
    report = _post_report(db, directory, target_kind="comment", target_id="c1", reason_code="spam", severity=2)

    outcome = take_action(db, report.id, "content_removal", "Comment is a link farm.", "m2", directory=directory)

    assert outcome.report.status == ReportStatus.RESOLVED
    assert directory.calls == [("remove_content", "comment", "c1")]


def test_content_removal_is_invalid_for_user_reports(db, directory):
    report = _post_report(db, directory, target_kind="user", target_id="u3", reason_code="impersonation")

    with pytest.raises(InvalidActionError):
        take_action(db, report.id, "content_removal", "Nothing to remove here.", "m1", directory=directory)
    assert get_report(db, report.id).actions_taken == []


def test_unknown_action_and_short_details_are_rejected_before_writes(db, directory):
    report = _post_report(db, directory)
    version = report.version

    with pytest.raises(InvalidActionError):
        take_action(db, report.id, "shadow_ban", "Not a real action at all.", "m1", directory=directory)
    with pytest.raises(ReportValidationError):
        take_action(db, report.id, "warning", "short", "m1", directory=directory)

    stored = get_report(db, report.id)
    assert stored.actions_taken == []
    assert stored.version == version
    assert stored.status == ReportStatus.PENDING


def test_terminal_reports_are_immutable(db, directory):
    report = _post_report(db, directory)
    take_action(db, report.id, "none", "Reviewed, no violation.", "m1", directory=directory)

    with pytest.raises(InvalidTransitionError):
        take_action(db, report.id, "warning", "Changed my mind later.", "m2", directory=directory)
    with pytest.raises(InvalidTransitionError):
        transition_report(db, report.id, "under_review", "m2")

    stored = get_report(db, report.id)
    assert stored.status == ReportStatus.DISMISSED
    assert len(stored.actions_taken) == 1


def test_status_transitions_follow_the_state_machine(db, directory, fanout):
    report = _post_report(db, directory)

    with pytest.raises(InvalidTransitionError):
        transition_report(db, report.id, "resolved", "m1")

    transition_report(db, report.id, "under_review", "m1")
    transition_report(db, report.id, "escalated", "m1", reason="Needs a senior reviewer.")
    transition_report(db, report.id, "under_review", "m2")
    final = transition_report(db, report.id, "resolved", "m2", fanout=fanout)

    assert final.status == ReportStatus.RESOLVED
    assert [entry["status"] for entry in final.actions_taken] == [
        "under_review",
        "escalated",
        "under_review",
        "resolved",
    ]
    assert [ids for ids, _message in fanout.sent] == [["u1"]]


def test_reporter_is_told_when_a_report_is_escalated(db, directory, fanout):
    report = _post_report(db, directory)
    transition_report(db, report.id, "under_review", "m1", fanout=fanout)
    transition_report(db, report.id, "escalated", "m1", reason="Needs a senior reviewer.", fanout=fanout)

    assert [(ids, message.type) for ids, message in fanout.sent] == [(["u1"], NotificationType.REPORT_ESCALATED)]


def test_unknown_status_is_a_validation_error(db, directory):
    report = _post_report(db, directory)
    with pytest.raises(ReportValidationError):
        transition_report(db, report.id, "archived", "m1")


def test_enforcement_retries_through_transient_failures(db, directory):
    directory.failures = 2
    report = _post_report(db, directory)

    outcome = take_action(db, report.id, "permanent_ban", "Ban after review of history.", "m1", directory=directory)

    assert outcome.enforcement_status == "applied"
    assert directory.failed_calls == 2
    assert directory.calls == [("suspend", "u2", None)]
    row = db.query(Enforcement).one()
    assert row.status == "applied"
    assert row.attempts == 3


def test_exhausted_enforcement_stays_pending_until_the_sweep(db, directory):
    directory.failures = 10
    report = _post_report(db, directory)

    outcome = take_action(db, report.id, "permanent_ban", "Ban after review of history.", "m1", directory=directory)

    assert outcome.report.status == ReportStatus.RESOLVED
    assert outcome.enforcement_status == "pending"
    assert directory.calls == []

    directory.failures = 0
    assert retry_pending_enforcements(db, directory) == 1
    assert directory.calls == [("suspend", "u2", None)]
    assert retry_pending_enforcements(db, directory) == 0
    assert db.query(Enforcement).one().status == "applied"


def test_enforcement_against_missing_user_is_marked_failed(db, directory):
    report = _post_report(db, directory)
    directory.users.discard("u2")

    outcome = take_action(db, report.id, "permanent_ban", "Ban after review of history.", "m1", directory=directory)

    assert outcome.enforcement_status == "failed"
    assert outcome.report.status == ReportStatus.RESOLVED


def test_notification_failure_does_not_undo_the_decision(db, directory):
    report = _post_report(db, directory)

    outcome = take_action(
        db,
        report.id,
        "temporary_ban",
        "Cooling-off period for abuse.",
        "m1",
        directory=directory,
        fanout=FakeFanout(fail=True),
    )

    assert outcome.notification_status == "failed"
    assert outcome.enforcement_status == "applied"
    assert get_report(db, report.id).status == ReportStatus.RESOLVED


def test_restriction_is_applied_once_per_report(db, directory):
    report = _post_report(db, directory, target_kind="user", target_id="u3", reason_code="fake_profile")

    take_action(db, report.id, "profile_restriction", "Limit reach pending ID check.", "m1", directory=directory)
    take_action(db, report.id, "profile_restriction", "Agree, keep profile limited.", "m2", directory=directory)

    stored = get_report(db, report.id)
    assert stored.status == ReportStatus.UNDER_REVIEW
    assert len(stored.actions_taken) == 2
    assert directory.calls == [("restrict", "u3")]


def test_assignment_moves_report_under_review(db, directory):
    report = _post_report(db, directory)

    assigned = assign_report(db, report.id, "m2", "m1", directory=directory)
    assert assigned.assigned_to == "m2"
    assert assigned.status == ReportStatus.UNDER_REVIEW

    with pytest.raises(ReportValidationError):
        assign_report(db, report.id, "u3", "m1", directory=directory)


def test_escalated_report_is_reassigned_for_a_second_pass(db, directory):
    report = _post_report(db, directory)
    transition_report(db, report.id, "under_review", "m1")
    transition_report(db, report.id, "escalated", "m1")

    assigned = assign_report(db, report.id, "m2", "m1", directory=directory)
    assert assigned.status == ReportStatus.UNDER_REVIEW
    assert assigned.actions_taken[-1]["action"] == "assigned"


def test_purge_hides_only_closed_reports(db, directory):
    report = _post_report(db, directory)

    with pytest.raises(InvalidTransitionError):
        purge_report(db, report.id, actor_id="m1")

    take_action(db, report.id, "none", "Reviewed, no violation.", "m1", directory=directory)
    purge_report(db, report.id, actor_id="m1")

    with pytest.raises(ReportNotFoundError):
        get_report(db, report.id)
