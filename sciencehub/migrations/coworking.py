"""Move coworking page content from the legacy tables into ``sh_site_settings``.

Legacy layout: a ``site_settings`` row with a ``coworking_header_settings``
JSON blob plus one ``coworking_info_table`` row per service. New layout: one
nested document (see ``coworking_document``) on the singleton settings row.

Every step is safe to call on its own. Steps never raise; failures are
logged and reported through the returned result.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any

import structlog
from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from sciencehub.models import LegacyCoworkingService, LegacySiteSettings
from sciencehub.services import coworking_document as document
from sciencehub.services.coworking_service import settings_row
from sciencehub.services.coworking_document import ValidationReport
from sciencehub.services.exceptions import ServiceError

logger = structlog.get_logger(__name__)

MIGRATION_VERSION = "1.0"

# Failures a step reports instead of raising: store errors and malformed legacy data
STEP_ERRORS = (SQLAlchemyError, ServiceError, ValueError, TypeError, InvalidOperation)

_LEGACY_SERVICE_FIELDS = (
    "id",
    "uuid",
    "name",
    "description",
    "price",
    "currency",
    "period",
    "active",
    "image_url",
    "order",
    "main_service",
)


@dataclass
class StepResult:
    step: str
    success: bool
    message: str
    issues: list[str] = field(default_factory=list)


@dataclass
class MigrationResult:
    success: bool
    message: str
    migrated_services: int = 0
    errors: list[str] = field(default_factory=list)
    steps: list[StepResult] = field(default_factory=list)


def _fail(db: Session, step: str, exc: Exception) -> StepResult:
    db.rollback()
    logger.exception("coworking_migration_step_failed", step=step)
    return StepResult(step=step, success=False, message=f"{step} failed: {exc}", issues=[str(exc)])


def _legacy_header_row(db: Session) -> LegacySiteSettings | None:
    return db.scalar(select(LegacySiteSettings).order_by(LegacySiteSettings.id).limit(1))


def _legacy_services(db: Session) -> list[LegacyCoworkingService]:
    return list(
        db.scalars(
            select(LegacyCoworkingService).order_by(
                LegacyCoworkingService.order.is_(None),
                LegacyCoworkingService.order,
                LegacyCoworkingService.id,
            )
        ).all()
    )


def legacy_service_to_dict(service: LegacyCoworkingService) -> dict[str, Any]:
    data = {name: getattr(service, name) for name in _LEGACY_SERVICE_FIELDS}
    if data["price"] is not None:
        data["price"] = str(data["price"])
    return data


def _legacy_service_from_dict(data: dict[str, Any]) -> LegacyCoworkingService:
    values = {name: data.get(name) for name in _LEGACY_SERVICE_FIELDS if name in data}
    if values.get("price") is not None:
        values["price"] = Decimal(str(values["price"]))
    values["active"] = values.get("active") is not False
    values["main_service"] = values.get("main_service") is not False
    return LegacyCoworkingService(**values)


def backup_legacy_coworking(db: Session) -> StepResult:
    step = "backup"
    logger.info("coworking_migration_step_started", step=step)
    try:
        header_row = _legacy_header_row(db)
        services = _legacy_services(db)
        backup = {
            "timestamp": document.now_iso(),
            "migration_version": MIGRATION_VERSION,
            "site_settings": (
                {
                    "id": header_row.id,
                    "coworking_header_settings": header_row.coworking_header_settings,
                }
                if header_row
                else None
            ),
            "coworking_info_table": [legacy_service_to_dict(s) for s in services],
        }
        row = settings_row(db, create=True)
        row.coworking_backup = backup
        db.commit()
    except STEP_ERRORS as exc:
        return _fail(db, step, exc)

    logger.info("coworking_migration_step_done", step=step, services=len(services))
    return StepResult(step=step, success=True, message=f"backup saved with {len(services)} services")


def migrate_coworking_data(db: Session) -> MigrationResult:
    step = "migrate"
    logger.info("coworking_migration_step_started", step=step)
    try:
        header_row = _legacy_header_row(db)
        legacy_header = header_row.coworking_header_settings if header_row else None
        header = document.merge_header(legacy_header)

        services = []
        for position, legacy in enumerate(_legacy_services(db)):
            raw = legacy_service_to_dict(legacy)
            raw["id"] = legacy.uuid
            services.append(document.normalize_service(raw, position))

        row = settings_row(db, create=True)
        row.coworking_page_settings = document.build_document(header, services)
        row.is_active = True
        db.commit()
    except STEP_ERRORS as exc:
        failed = _fail(db, step, exc)
        return MigrationResult(
            success=False,
            message="coworking migration failed",
            errors=failed.issues,
            steps=[failed],
        )

    message = f"migrated {len(services)} services"
    logger.info("coworking_migration_step_done", step=step, services=len(services))
    return MigrationResult(
        success=True,
        message=message,
        migrated_services=len(services),
        steps=[StepResult(step=step, success=True, message=message)],
    )


def validate_coworking_document(doc: Any) -> ValidationReport:
    return document.validate_document(doc)


def validate_migration(db: Session) -> ValidationReport:
    try:
        row = settings_row(db)
        if row is None or not row.coworking_page_settings:
            report = ValidationReport(valid=False, issues=["coworking settings not found"])
        else:
            report = validate_coworking_document(row.coworking_page_settings)
    except STEP_ERRORS as exc:
        failed = _fail(db, "validate", exc)
        return ValidationReport(valid=False, issues=failed.issues)

    if report.valid:
        logger.info("coworking_migration_valid")
    else:
        logger.warning("coworking_migration_invalid", issues=report.issues)
    return report


def run_full_migration(db: Session) -> MigrationResult:
    steps: list[StepResult] = []
    errors: list[str] = []

    backup = backup_legacy_coworking(db)
    steps.append(backup)
    errors.extend(backup.issues)

    migrated = migrate_coworking_data(db)
    steps.extend(migrated.steps)
    errors.extend(migrated.errors)

    report = validate_migration(db)
    steps.append(
        StepResult(
            step="validate",
            success=report.valid,
            message="validation passed" if report.valid else f"{len(report.issues)} issues found",
            issues=list(report.issues),
        )
    )
    errors.extend(report.issues)

    success = backup.success and migrated.success and report.valid
    return MigrationResult(
        success=success,
        message=(
            f"full migration finished, {migrated.migrated_services} services migrated"
            if success
            else "full migration failed"
        ),
        migrated_services=migrated.migrated_services,
        errors=errors,
        steps=steps,
    )


def restore_legacy_coworking(db: Session) -> StepResult:
    step = "restore"
    logger.info("coworking_migration_step_started", step=step)
    try:
        row = settings_row(db)
        backup = row.coworking_backup if row else None
        if not backup:
            logger.warning("coworking_backup_missing")
            return StepResult(step=step, success=False, message="no backup found", issues=["no backup found"])

        services = [_legacy_service_from_dict(item) for item in backup.get("coworking_info_table") or []]
        db.execute(delete(LegacyCoworkingService))
        db.add_all(services)

        saved_header = backup.get("site_settings") or {}
        header_row = None
        if saved_header.get("id") is not None:
            header_row = db.get(LegacySiteSettings, saved_header["id"])
        if header_row is None:
            header_row = _legacy_header_row(db)
        if header_row is None:
            header_row = LegacySiteSettings(id=saved_header.get("id"))
            db.add(header_row)
        header_row.coworking_header_settings = saved_header.get("coworking_header_settings")
        db.commit()
    except STEP_ERRORS as exc:
        return _fail(db, step, exc)

    logger.info("coworking_migration_step_done", step=step, services=len(services))
    return StepResult(step=step, success=True, message=f"restored {len(services)} services")


def cleanup_legacy_coworking(db: Session) -> StepResult:
    step = "cleanup"
    report = validate_migration(db)
    if not report.valid:
        return StepResult(
            step=step,
            success=False,
            message="migrated data is not valid, cleanup skipped",
            issues=list(report.issues),
        )

    logger.info("coworking_migration_step_started", step=step)
    try:
        db.execute(update(LegacySiteSettings).values(coworking_header_settings=None))
        result = db.execute(update(LegacyCoworkingService).values(active=False))
        db.commit()
    except STEP_ERRORS as exc:
        return _fail(db, step, exc)

    deactivated = result.rowcount or 0
    logger.info("coworking_migration_step_done", step=step, deactivated=deactivated)
    return StepResult(step=step, success=True, message=f"deactivated {deactivated} legacy services")


def check_migration_needed(db: Session) -> bool:
    try:
        row = settings_row(db)
        doc = (row.coworking_page_settings if row else None) or {}
        if doc.get("services"):
            return False
        legacy_count = db.scalar(select(func.count()).select_from(LegacyCoworkingService)) or 0
    except STEP_ERRORS:
        db.rollback()
        logger.exception("coworking_migration_check_failed")
        return False
    return legacy_count > 0
