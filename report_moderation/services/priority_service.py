"""Priority derivation from reason taxonomy and stated severity.

Severity arrives either as a coarse tier (``"low"`` .. ``"urgent"``) or as a
number on a 1-10 scale, depending on which client filed the report. Both are
normalised onto the same four-step ordinal scale before reason floors and
ceilings are applied, so the triage queue ordering only ever depends on
``(reason_code, severity)``.
"""
from __future__ import annotations

from ..constants import DEFAULT_SEVERITY, PRIORITY_RANK, PriorityTier, ReasonCode
from .errors import ReportValidationError

_REASON_FLOORS: dict[str, PriorityTier] = {
    ReasonCode.SELF_HARM: PriorityTier.HIGH,
    ReasonCode.VIOLENCE: PriorityTier.HIGH,
}

_REASON_CEILINGS: dict[str, PriorityTier] = {
    ReasonCode.SPAM: PriorityTier.HIGH,
}

_TIERS_BY_RANK = {rank: PriorityTier(name) for name, rank in PRIORITY_RANK.items()}


def _numeric_tier(value: int) -> PriorityTier:
    if value >= 8:
        return PriorityTier.URGENT
    if value >= 6:
        return PriorityTier.HIGH
    if value >= 3:
        return PriorityTier.MEDIUM
    return PriorityTier.LOW


def coerce_severity(severity: str | int | None) -> str:
    """Validate a submitted severity and return its stored string form."""

    if severity is None:
        return DEFAULT_SEVERITY.value
    if isinstance(severity, bool):
        raise ReportValidationError("severity must be a tier name or an integer between 1 and 10")
    if isinstance(severity, int):
        if not 1 <= severity <= 10:
            raise ReportValidationError("severity must be between 1 and 10")
        return str(severity)

    text = str(severity).strip().lower()
    if text.isdigit():
        return coerce_severity(int(text))
    if text not in PRIORITY_RANK:
        raise ReportValidationError(f"Unknown severity: {severity}")
    return text


def normalize_severity(severity: str | int | None) -> PriorityTier:
    """Map a tier name or a 1-10 score onto the ordinal priority scale."""

    stored = coerce_severity(severity)
    if stored.isdigit():
        return _numeric_tier(int(stored))
    return PriorityTier(stored)


def reason_floor(reason_code: str) -> PriorityTier:
    return _REASON_FLOORS.get(reason_code, PriorityTier.LOW)


def priority_of(reason_code: str, severity: str | int | None) -> PriorityTier:
    """Return the triage priority for a reason code and severity."""

    rank = max(PRIORITY_RANK[normalize_severity(severity)], PRIORITY_RANK[reason_floor(reason_code)])
    ceiling = _REASON_CEILINGS.get(reason_code)
    if ceiling is not None:
        rank = min(rank, PRIORITY_RANK[ceiling])
    return _TIERS_BY_RANK[rank]


def priority_rank(priority: str) -> int:
    return PRIORITY_RANK[priority]


__all__ = ["coerce_severity", "normalize_severity", "reason_floor", "priority_of", "priority_rank"]
