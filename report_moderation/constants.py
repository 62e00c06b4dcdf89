"""Project-wide enumerations for the report lifecycle."""
from __future__ import annotations

from enum import StrEnum


class TargetKind(StrEnum):
    USER = "user"
    POST = "post"
    REEL = "reel"
    STORY = "story"
    COMMENT = "comment"


CONTENT_KINDS = frozenset({TargetKind.POST, TargetKind.REEL, TargetKind.STORY, TargetKind.COMMENT})


class ReasonCode(StrEnum):
    INAPPROPRIATE_CONTENT = "inappropriate_content"
    HARASSMENT = "harassment"
    SPAM = "spam"
    HATE_SPEECH = "hate_speech"
    VIOLENCE = "violence"
    SEXUAL_CONTENT = "sexual_content"
    SELF_HARM = "self_harm"
    BULLYING = "bullying"
    MISINFORMATION = "misinformation"
    COPYRIGHT_VIOLATION = "copyright_violation"
    PRIVACY_VIOLATION = "privacy_violation"
    SCAM = "scam"
    OTHER = "other"
    # user-report codes
    FAKE_PROFILE = "fake_profile"
    IMPERSONATION = "impersonation"
    UNDERAGE_USER = "underage_user"


class ReportStatus(StrEnum):
    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"
    ESCALATED = "escalated"


OPEN_STATUSES = frozenset({ReportStatus.PENDING, ReportStatus.UNDER_REVIEW, ReportStatus.ESCALATED})
TERMINAL_STATUSES = frozenset({ReportStatus.RESOLVED, ReportStatus.DISMISSED})


class PriorityTier(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


PRIORITY_RANK: dict[str, int] = {
    PriorityTier.LOW: 1,
    PriorityTier.MEDIUM: 2,
    PriorityTier.HIGH: 3,
    PriorityTier.URGENT: 4,
}


class ReportAction(StrEnum):
    NONE = "none"
    WARNING = "warning"
    TEMPORARY_BAN = "temporary_ban"
    PERMANENT_BAN = "permanent_ban"
    CONTENT_REMOVAL = "content_removal"
    PROFILE_RESTRICTION = "profile_restriction"


ENFORCED_ACTIONS = frozenset(
    {
        ReportAction.TEMPORARY_BAN,
        ReportAction.PERMANENT_BAN,
        ReportAction.CONTENT_REMOVAL,
        ReportAction.PROFILE_RESTRICTION,
    }
)

NARRATIVE_MAX_LENGTH = 1000
SUPPLEMENT_MAX_LENGTH = 500
DETAILS_MIN_LENGTH = 10
DETAILS_MAX_LENGTH = 1000
DEFAULT_SEVERITY = PriorityTier.MEDIUM

__all__ = [
    "TargetKind",
    "CONTENT_KINDS",
    "ReasonCode",
    "ReportStatus",
    "OPEN_STATUSES",
    "TERMINAL_STATUSES",
    "PriorityTier",
    "PRIORITY_RANK",
    "ReportAction",
    "ENFORCED_ACTIONS",
    "NARRATIVE_MAX_LENGTH",
    "SUPPLEMENT_MAX_LENGTH",
    "DETAILS_MIN_LENGTH",
    "DETAILS_MAX_LENGTH",
    "DEFAULT_SEVERITY",
]
