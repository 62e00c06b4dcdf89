"""Typed failures raised by the moderation services."""
from __future__ import annotations

from fastapi import status


class ModerationError(Exception):
    """Base class for report lifecycle errors."""

    kind: str = "Moderation"
    status_code: int = status.HTTP_400_BAD_REQUEST
    detail: str = "moderation_error"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.detail)
        if detail:
            self.detail = detail


class ReportValidationError(ModerationError):
    """Malformed or out-of-range input; never retried."""

    kind = "Validation"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    detail = "validation_error"


class DuplicateReportError(ModerationError):
    """The reporter already has an open report against the target."""

    kind = "Duplicate"
    status_code = status.HTTP_409_CONFLICT
    detail = "duplicate_report"


class TargetNotFoundError(ModerationError):
    kind = "TargetNotFound"
    status_code = status.HTTP_404_NOT_FOUND
    detail = "target_not_found"


class ReportNotFoundError(ModerationError):
    kind = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND
    detail = "report_not_found"


class InvalidTransitionError(ModerationError):
    kind = "InvalidTransition"
    status_code = status.HTTP_409_CONFLICT
    detail = "invalid_transition"


class InvalidActionError(ModerationError):
    kind = "InvalidAction"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    detail = "invalid_action"


class ConflictError(ModerationError):
    """Optimistic-concurrency retries were exhausted."""

    kind = "Conflict"
    status_code = status.HTTP_409_CONFLICT
    detail = "concurrent_update_conflict"


class DependencyError(ModerationError):
    """The user directory or notification fan-out is unavailable."""

    kind = "Dependency"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    detail = "dependency_unavailable"


__all__ = [
    "ModerationError",
    "ReportValidationError",
    "DuplicateReportError",
    "TargetNotFoundError",
    "ReportNotFoundError",
    "InvalidTransitionError",
    "InvalidActionError",
    "ConflictError",
    "DependencyError",
]
