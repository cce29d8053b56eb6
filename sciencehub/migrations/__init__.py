from sciencehub.migrations.coworking import (
    MigrationResult,
    StepResult,
    backup_legacy_coworking,
    check_migration_needed,
    cleanup_legacy_coworking,
    migrate_coworking_data,
    restore_legacy_coworking,
    run_full_migration,
    validate_coworking_document,
    validate_migration,
)
from sciencehub.migrations.runner import Migration, MigrationRunner, RunReport, default_runner

__all__ = [
    "MigrationResult",
    "StepResult",
    "backup_legacy_coworking",
    "migrate_coworking_data",
    "run_full_migration",
    "validate_coworking_document",
    "validate_migration",
    "restore_legacy_coworking",
    "cleanup_legacy_coworking",
    "check_migration_needed",
    "Migration",
    "MigrationRunner",
    "RunReport",
    "default_runner",
]
