from __future__ import annotations

from fastapi import APIRouter, HTTPException

from sciencehub.api.v1.schemas.coworking import (
    MigrationResultOut,
    MigrationStatusOut,
    RunReportOut,
    StepResultOut,
    ValidationReportOut,
)
from sciencehub.auth.deps import AdminUser, DBSession
from sciencehub.migrations import (
    backup_legacy_coworking,
    check_migration_needed,
    cleanup_legacy_coworking,
    default_runner,
    migrate_coworking_data,
    restore_legacy_coworking,
    run_full_migration,
    validate_migration,
)

router = APIRouter(prefix="/admin/migrations", tags=["admin"])

STEPS = {
    "backup": (backup_legacy_coworking, StepResultOut),
    "migrate": (migrate_coworking_data, MigrationResultOut),
    "full": (run_full_migration, MigrationResultOut),
    "validate": (validate_migration, ValidationReportOut),
    "restore": (restore_legacy_coworking, StepResultOut),
    "cleanup": (cleanup_legacy_coworking, StepResultOut),
}


@router.get("/coworking", response_model=MigrationStatusOut)
def coworking_migration_status(_: AdminUser, db: DBSession):
    runner = default_runner()
    applied = runner.applied_ids(db)
    return MigrationStatusOut(
        migration_needed=check_migration_needed(db),
        applied=sorted(applied),
        pending=[m.id for m in runner.migrations if m.id not in applied],
    )


@router.post("/coworking/{step}")
def run_coworking_step(step: str, _: AdminUser, db: DBSession):
    if step not in STEPS:
        raise HTTPException(
            status_code=404,
            detail={"code": "STEP_NOT_FOUND", "message": f"unknown migration step: {step}"},
        )
    func, out = STEPS[step]
    return out.model_validate(func(db))


@router.post("/run", response_model=RunReportOut)
def run_pending_migrations(_: AdminUser, db: DBSession):
    return RunReportOut.model_validate(default_runner().run_pending(db))
