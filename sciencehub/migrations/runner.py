from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from sciencehub.migrations.coworking import MigrationResult, run_full_migration
from sciencehub.models import SchemaMigration

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Migration:
    id: str
    description: str
    apply: Callable[[Session], MigrationResult]


@dataclass
class RunReport:
    applied: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: str | None = None
    results: dict[str, MigrationResult] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return self.failed is None


class MigrationRunner:
    """Applies registered data migrations once each, in registration order."""

    def __init__(self) -> None:
        self._migrations: list[Migration] = []

    def register(self, migration: Migration) -> Migration:
        if any(m.id == migration.id for m in self._migrations):
            raise ValueError(f"migration {migration.id} is already registered")
        self._migrations.append(migration)
        return migration

    @property
    def migrations(self) -> list[Migration]:
        return list(self._migrations)

    def _ensure_table(self, db: Session) -> None:
        SchemaMigration.__table__.create(bind=db.connection(), checkfirst=True)
        db.commit()

    def applied_ids(self, db: Session) -> set[str]:
        self._ensure_table(db)
        return set(db.scalars(select(SchemaMigration.id)).all())

    def pending(self, db: Session) -> list[Migration]:
        applied = self.applied_ids(db)
        return [m for m in self._migrations if m.id not in applied]

    def run_pending(self, db: Session) -> RunReport:
        report = RunReport()
        applied = self.applied_ids(db)

        for migration in self._migrations:
            if migration.id in applied:
                report.skipped.append(migration.id)
                continue

            logger.info("migration_started", migration_id=migration.id)
            result = migration.apply(db)
            report.results[migration.id] = result
            if not result.success:
                logger.warning("migration_failed", migration_id=migration.id, errors=result.errors)
                report.failed = migration.id
                break

            try:
                db.add(SchemaMigration(id=migration.id, description=migration.description))
                db.commit()
            except SQLAlchemyError:
                db.rollback()
                logger.exception("migration_record_failed", migration_id=migration.id)
                report.failed = migration.id
                break

            report.applied.append(migration.id)
            logger.info("migration_applied", migration_id=migration.id)

        return report


def default_runner() -> MigrationRunner:
    runner = MigrationRunner()
    runner.register(
        Migration(
            id="0001_coworking_page_settings",
            description="Move coworking header and services into the site settings document",
            apply=run_full_migration,
        )
    )
    return runner
