"""Helpers for reading signing keys and transport credentials from the environment."""
from __future__ import annotations

import os
from typing import Final

__all__ = ["MissingSecretError", "require_secret", "is_placeholder"]


class MissingSecretError(RuntimeError):
    """Raised when a required secret is unset or still holds a placeholder."""


_PLACEHOLDER_VALUES: Final[frozenset[str]] = frozenset(
    {"changeme", "change-me", "placeholder", "example", "your-key-here"}
)


def is_placeholder(value: str | None) -> bool:
    normalized = (value or "").strip().lower()
    return normalized in _PLACEHOLDER_VALUES or not normalized


def require_secret(name: str) -> str:
    """Return the trimmed value of ``name`` or raise :class:`MissingSecretError`."""

    value = os.getenv(name)
    if is_placeholder(value):
        raise MissingSecretError(f"{name} must be set to a non-placeholder value")
    return value.strip()
