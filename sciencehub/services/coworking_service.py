from __future__ import annotations

import copy
from typing import Any

import structlog
from sqlalchemy.orm import Session

from sciencehub.models import SiteSettings
from sciencehub.models.site_settings import COWORKING_SETTINGS_ID
from sciencehub.services import coworking_document as document
from sciencehub.services.error_codes import ErrorCode
from sciencehub.services.exceptions import NotFoundError, ValidationError
from sciencehub.services.result import service_result

logger = structlog.get_logger(__name__)


def settings_row(db: Session, *, create: bool = False) -> SiteSettings | None:
    row = db.get(SiteSettings, COWORKING_SETTINGS_ID)
    if row is None and create:
        row = SiteSettings(id=COWORKING_SETTINGS_ID, is_active=True)
        db.add(row)
        db.flush()
    return row


def _current_document(db: Session) -> dict[str, Any]:
    row = settings_row(db)
    if row is None or not row.coworking_page_settings:
        raise NotFoundError(ErrorCode.SETTINGS_NOT_FOUND, "coworking settings not found")
    # JSON columns only detect reassignment, so callers work on a copy
    return copy.deepcopy(row.coworking_page_settings)


def _save_document(db: Session, doc: dict[str, Any]) -> dict[str, Any]:
    doc["mainServices"] = document.main_services(doc.get("services") or [])
    doc["lastUpdated"] = document.now_iso()
    row = settings_row(db, create=True)
    row.coworking_page_settings = doc
    row.is_active = True
    db.commit()
    return doc


@service_result
def get_coworking_page_settings(db: Session) -> dict[str, Any]:
    return _current_document(db)


@service_result
def update_coworking_page_settings(db: Session, changes: dict[str, Any]) -> dict[str, Any]:
    row = settings_row(db)
    if row is not None and row.coworking_page_settings:
        doc = copy.deepcopy(row.coworking_page_settings)
    else:
        doc = document.build_document(document.merge_header(), [])

    for key, value in changes.items():
        if key == "header" and isinstance(value, dict):
            doc["header"] = {**(doc.get("header") or {}), **value}
        else:
            doc[key] = value
    return _save_document(db, doc)


@service_result
def upsert_coworking_service(db: Session, service: dict[str, Any]) -> list[dict[str, Any]]:
    doc = _current_document(db)
    services: list[dict[str, Any]] = doc.get("services") or []

    service_id = service.get("id")
    index = None
    if service_id:
        index = next((i for i, s in enumerate(services) if s.get("id") == service_id), None)
    merged = service if index is None else {**services[index], **service}
    try:
        saved = document.normalize_service(merged, len(services) if index is None else index)
    except (TypeError, ValueError) as exc:
        raise ValidationError(ErrorCode.INVALID_REQUEST, f"invalid service: {exc}") from exc
    if index is None:
        services.append(saved)
    else:
        services[index] = saved

    doc["services"] = services
    _save_document(db, doc)
    logger.info("coworking_service_saved", service_id=saved["id"])
    return services


@service_result
def delete_coworking_service(db: Session, service_id: str) -> list[dict[str, Any]]:
    doc = _current_document(db)
    services = [s for s in doc.get("services") or [] if s.get("id") != service_id]
    if len(services) == len(doc.get("services") or []):
        raise NotFoundError(ErrorCode.SERVICE_NOT_FOUND, "coworking service not found")
    doc["services"] = services
    _save_document(db, doc)
    return services


@service_result
def reorder_coworking_services(db: Session, service_ids: list[str]) -> list[dict[str, Any]]:
    doc = _current_document(db)
    requested = set(service_ids)
    by_id = {s.get("id"): s for s in doc.get("services") or []}

    ordered = [by_id[sid] for sid in service_ids if sid in by_id]
    # services missing from the requested order keep their place after the listed ones
    ordered += [s for s in doc.get("services") or [] if s.get("id") not in requested]
    for position, service in enumerate(ordered):
        service["order"] = position

    doc["services"] = ordered
    _save_document(db, doc)
    return ordered


@service_result
def get_active_coworking_services(db: Session) -> dict[str, list[dict[str, Any]]]:
    row = settings_row(db)
    doc = (row.coworking_page_settings if row else None) or {}
    active = [s for s in doc.get("services") or [] if s.get("active")]
    active.sort(key=lambda s: s.get("order") or 0)
    return {
        "mainServices": [s for s in active if s.get("main_service")],
        "additionalServices": [s for s in active if not s.get("main_service")],
    }
