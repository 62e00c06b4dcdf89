"""Run Alembic migrations from application startup.

``init_db`` only creates missing tables. Deployments that evolve the report
schema (new indexes, columns) rely on this runner to upgrade to ``head``
before the first request is served.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _is_truthy(value: str | None) -> bool:
    return (value or "").strip().lower() in _TRUE_VALUES


def should_run_migrations(database_url: str) -> bool:
    if os.getenv("PYTEST_CURRENT_TEST") is not None:
        return False
    if _is_truthy(os.getenv("DISABLE_AUTO_MIGRATIONS")):
        return False
    if _is_truthy(os.getenv("AUTO_MIGRATE")):
        return True
    # SQLite databases are local scratch stores; create_all is enough.
    return not database_url.strip().lower().startswith("sqlite")


def run_migrations_if_needed(*, database_url: str) -> bool:
    """Upgrade the schema to ``head`` when enabled; return whether it ran."""

    if not should_run_migrations(database_url):
        logger.info("Auto-migrations disabled")
        return False

    from alembic import command
    from alembic.config import Config

    repo_root = Path(__file__).resolve().parents[2]
    alembic_ini = repo_root / "alembic.ini"
    if not alembic_ini.exists():
        logger.warning("Auto-migrations skipped: missing alembic.ini at %s", alembic_ini)
        return False

    config = Config(str(alembic_ini))
    config.set_main_option("sqlalchemy.url", database_url)
    config.set_main_option("script_location", str(repo_root / "alembic"))

    logger.info("Upgrading report schema to head")
    command.upgrade(config, "head")
    logger.info("Report schema is up to date")
    return True


__all__ = ["should_run_migrations", "run_migrations_if_needed"]
