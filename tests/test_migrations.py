from __future__ import annotations

from decimal import Decimal

import pytest
from sqlalchemy import select

from sciencehub.migrations import (
    Migration,
    MigrationResult,
    MigrationRunner,
    backup_legacy_coworking,
    check_migration_needed,
    cleanup_legacy_coworking,
    default_runner,
    restore_legacy_coworking,
    run_full_migration,
    validate_migration,
)
from sciencehub.models import LegacyCoworkingService, LegacySiteSettings, SchemaMigration
from sciencehub.services import coworking_document as document
from sciencehub.services.coworking_service import settings_row


@pytest.fixture
def legacy_data(db_session):
    db_session.add(
        LegacySiteSettings(
            coworking_header_settings={"title": "Коворкинг Science Hub", "address": ""}
        )
    )
    db_session.add_all(
        [
            LegacyCoworkingService(
                name="Рабочее место", price=Decimal("10.50"), order=2, main_service=True
            ),
            LegacyCoworkingService(
                uuid="room-1",
                name="Переговорная",
                price=Decimal("25.00"),
                period="день",
                order=1,
                main_service=False,
            ),
        ]
    )
    db_session.commit()


def _legacy_services(db_session) -> list[LegacyCoworkingService]:
    db_session.expire_all()
    return list(
        db_session.scalars(select(LegacyCoworkingService).order_by(LegacyCoworkingService.id)).all()
    )


def test_migration_needed_only_with_legacy_rows(db_session, legacy_data):
    assert check_migration_needed(db_session) is True
    run_full_migration(db_session)
    assert check_migration_needed(db_session) is False


def test_migration_not_needed_without_legacy_rows(db_session):
    assert check_migration_needed(db_session) is False


def test_full_migration_builds_document(db_session, legacy_data):
    result = run_full_migration(db_session)

    assert result.success, result.errors
    assert result.migrated_services == 2
    assert [step.step for step in result.steps] == ["backup", "migrate", "validate"]

    doc = settings_row(db_session).coworking_page_settings
    assert doc["header"]["title"] == "Коворкинг Science Hub"
    assert doc["header"]["address"] == document.DEFAULT_HEADER["address"]

    room, desk = doc["services"]
    assert room["id"] == "room-1"
    assert room["period"] == "день"
    assert room["price"] == 25.0
    assert desk["id"]
    assert desk["price"] == 10.5
    assert desk["currency"] == document.DEFAULT_CURRENCY
    assert doc["mainServices"] == [desk]


def test_backup_keeps_legacy_rows(db_session, legacy_data):
    step = backup_legacy_coworking(db_session)
    assert step.success

    backup = settings_row(db_session).coworking_backup
    assert backup["migration_version"] == "1.0"
    assert backup["site_settings"]["coworking_header_settings"]["title"] == "Коворкинг Science Hub"
    prices = sorted(Decimal(s["price"]) for s in backup["coworking_info_table"])
    assert prices == [Decimal("10.50"), Decimal("25.00")]


def test_validate_without_document(db_session):
    report = validate_migration(db_session)
    assert not report.valid
    assert report.issues == ["coworking settings not found"]


def test_cleanup_is_skipped_until_data_is_valid(db_session, legacy_data):
    step = cleanup_legacy_coworking(db_session)
    assert not step.success
    assert all(service.active for service in _legacy_services(db_session))


def test_cleanup_then_restore(db_session, legacy_data):
    assert run_full_migration(db_session).success

    cleanup = cleanup_legacy_coworking(db_session)
    assert cleanup.success
    assert not any(service.active for service in _legacy_services(db_session))
    header = db_session.scalar(select(LegacySiteSettings))
    assert header.coworking_header_settings is None

    restore = restore_legacy_coworking(db_session)
    assert restore.success, restore.issues
    services = _legacy_services(db_session)
    assert [s.name for s in services] == ["Рабочее место", "Переговорная"]
    assert all(service.active for service in services)
    assert services[0].price == Decimal("10.50")
    header = db_session.scalar(select(LegacySiteSettings))
    assert header.coworking_header_settings["title"] == "Коворкинг Science Hub"


def test_restore_without_backup(db_session):
    step = restore_legacy_coworking(db_session)
    assert not step.success
    assert step.message == "no backup found"


def test_runner_applies_each_migration_once(db_session, legacy_data):
    runner = default_runner()

    first = runner.run_pending(db_session)
    assert first.success
    assert first.applied == ["0001_coworking_page_settings"]

    second = runner.run_pending(db_session)
    assert second.applied == []
    assert second.skipped == ["0001_coworking_page_settings"]
    assert runner.pending(db_session) == []
    assert db_session.scalars(select(SchemaMigration.id)).all() == ["0001_coworking_page_settings"]


def test_runner_does_not_record_failed_migrations(db_session):
    calls = []

    def broken(db):
        calls.append(db)
        return MigrationResult(success=False, message="boom", errors=["boom"])

    runner = MigrationRunner()
    runner.register(Migration(id="0002_broken", description="always fails", apply=broken))

    report = runner.run_pending(db_session)
    assert report.failed == "0002_broken"
    assert not report.success
    assert runner.applied_ids(db_session) == set()

    runner.run_pending(db_session)
    assert len(calls) == 2


def test_runner_rejects_duplicate_ids():
    runner = MigrationRunner()
    migration = Migration(id="0001", description="x", apply=run_full_migration)
    runner.register(migration)
    with pytest.raises(ValueError):
        runner.register(migration)
