from __future__ import annotations

from datetime import timedelta

import pytest

from report_moderation.models import Report
from report_moderation.models.base import utcnow
from report_moderation.services.action_service import take_action
from report_moderation.services.errors import ReportValidationError
from report_moderation.services.report_service import list_reports, submit_report
from report_moderation.services.triage_service import queue_overview, triage_queue


def _seed(db, directory):
    reports = {
        "spam": submit_report(db, directory, reporter_id="u1", target_kind="post", target_id="p9",
                              reason_code="spam", narrative="Crypto links.", severity=2),
        "violence": submit_report(db, directory, reporter_id="u3", target_kind="post", target_id="p9",
                                  reason_code="violence", narrative="Threat of violence.", severity="low"),
        "bullying": submit_report(db, directory, reporter_id="u1", target_kind="user", target_id="u2",
                                  reason_code="bullying", narrative="Name calling.", severity=9),
        "other": submit_report(db, directory, reporter_id="u2", target_kind="user", target_id="u3",
                               reason_code="other", narrative="Odd messages.", severity="medium"),
    }
    # Spread creation times so ordering inside a tier is deterministic.
    base = utcnow() - timedelta(hours=1)
    for offset, report in enumerate(reports.values()):
        db.get(Report, report.id).created_at = base + timedelta(minutes=offset)
    db.commit()
    return reports


def test_queue_orders_by_priority_then_oldest(db, directory):
    reports = _seed(db, directory)
    extra = submit_report(db, directory, reporter_id="u2", target_kind="comment", target_id="c1",
                          reason_code="self_harm", narrative="Worrying comment.", severity=1)

    queue, total = triage_queue(db)

    assert total == 5
    assert [r.id for r in queue] == [
        reports["bullying"].id,
        reports["violence"].id,
        extra.id,
        reports["other"].id,
        reports["spam"].id,
    ]


def test_queue_excludes_closed_reports_and_paginates(db, directory):
    reports = _seed(db, directory)
    take_action(db, reports["other"].id, "none", "Nothing actionable here.", "m1", directory=directory)

    page_one, total = triage_queue(db, page=1, page_size=2)
    page_two, _ = triage_queue(db, page=2, page_size=2)

    assert total == 3
    assert len(page_one) == 2
    assert len(page_two) == 1
    assert reports["other"].id not in {r.id for r in page_one + page_two}


def test_page_size_limits_are_enforced(db):
    with pytest.raises(ReportValidationError):
        triage_queue(db, page_size=0)
    with pytest.raises(ReportValidationError):
        list_reports(db, page=0)
    with pytest.raises(ReportValidationError):
        list_reports(db, page_size=1000)


def test_list_reports_filters(db, directory):
    reports = _seed(db, directory)

    by_target_user, total = list_reports(db, target_user_id="u2")
    assert total == 3
    assert {r.id for r in by_target_user} == {reports["spam"].id, reports["violence"].id, reports["bullying"].id}

    urgent, total = list_reports(db, priority="urgent")
    assert total == 1
    assert urgent[0].id == reports["bullying"].id

    with pytest.raises(ReportValidationError):
        list_reports(db, status="archived")


def test_overview_counts(db, directory):
    reports = _seed(db, directory)
    take_action(db, reports["spam"].id, "content_removal", "Removed the spam post.", "m1", directory=directory)

    overview = queue_overview(db)

    assert overview["by_status"]["pending"] == 3
    assert overview["by_status"]["resolved"] == 1
    assert overview["open_by_priority"] == {"low": 0, "medium": 1, "high": 1, "urgent": 1}
    assert overview["open_total"] == 3
