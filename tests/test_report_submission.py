"""Report intake: validation, target checks, priority and duplicate guarding."""
from __future__ import annotations

import pytest

from report_moderation.constants import ReportStatus
from report_moderation.models import Report, ReportAuditEntry
from report_moderation.services import report_service
from report_moderation.services.action_service import take_action, transition_report
from report_moderation.services.audit_service import list_audit_entries
from report_moderation.services.errors import (
    DuplicateReportError,
    ReportValidationError,
    TargetNotFoundError,
)
from report_moderation.services.report_service import get_report, submit_report


def _submit(db, directory, **overrides):
    params = {
        "reporter_id": "u1",
        "target_kind": "post",
        "target_id": "p9",
        "reason_code": "harassment",
        "narrative": "Repeated insults under my photos.",
        "severity": "high",
    }
    params.update(overrides)
    return submit_report(db, directory, **params)


def test_submit_report_persists_pending_report_with_priority(db, directory):
    report = _submit(db, directory, ip_address="10.0.0.1", user_agent="pytest")

    stored = get_report(db, report.id)
    assert stored.status == ReportStatus.PENDING
    assert stored.priority == "high"
    assert stored.severity == "high"
    assert stored.target_user_id == "u2"
    assert stored.actions_taken == []
    assert stored.submission_context["ip_address"] == "10.0.0.1"

    entries = list_audit_entries(db, report.id)
    assert [entry.event for entry in entries] == ["report.submitted"]


def test_submit_report_defaults_severity_to_medium(db, directory):
    report = _submit(db, directory, severity=None, reason_code="other")
    assert report.severity == "medium"
    assert report.priority == "medium"


def test_user_reports_resolve_target_user_to_the_target(db, directory):
    report = _submit(db, directory, target_kind="user", target_id="u3", reason_code="fake_profile")
    assert report.target_user_id == "u3"


@pytest.mark.parametrize(
    "overrides",
    [
        {"target_kind": "album"},
        {"reason_code": "boredom"},
        {"narrative": "   "},
        {"narrative": "x" * 1001},
        {"supplement": "y" * 501},
        {"severity": 42},
        {"target_kind": "user", "target_id": "u1"},
    ],
)
def test_invalid_submissions_are_rejected_without_writes(db, directory, overrides):
    with pytest.raises(ReportValidationError):
        _submit(db, directory, **overrides)
    assert db.query(Report).count() == 0
    assert db.query(ReportAuditEntry).count() == 0


def test_missing_target_is_reported(db, directory):
    with pytest.raises(TargetNotFoundError):
        _submit(db, directory, target_id="does-not-exist")


def test_second_open_report_on_same_target_is_a_duplicate(db, directory):
    _submit(db, directory)
    with pytest.raises(DuplicateReportError):
        _submit(db, directory, reason_code="spam")

    # A different reporter may still report the same target.
    other = _submit(db, directory, reporter_id="u3")
    assert other.status == ReportStatus.PENDING


def test_terminal_report_no_longer_blocks_a_new_one(db, directory):
    first = _submit(db, directory)
    take_action(db, first.id, "none", "No violation found here.", "m1", directory=directory)

    second = _submit(db, directory)
    transition_report(db, second.id, "under_review", "m1")
    transition_report(db, second.id, "resolved", "m1")

    third = _submit(db, directory)
    assert third.id not in {first.id, second.id}


def test_racing_insert_is_translated_to_duplicate(db, directory, monkeypatch):
    _submit(db, directory)
    # Skip the pre-check so the partial unique index has to catch it.
    monkeypatch.setattr(report_service, "check_duplicate", lambda *args, **kwargs: None)

    with pytest.raises(DuplicateReportError):
        _submit(db, directory)
    assert db.query(Report).count() == 1
