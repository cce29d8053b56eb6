from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from sciencehub.api.errors import unwrap_or_raise
from sciencehub.api.v1.schemas.coworking import (
    ActiveServicesOut,
    CoworkingServiceIn,
    CoworkingSettingsPatch,
    ServiceOrderIn,
)
from sciencehub.auth.deps import AdminUser, DBSession
from sciencehub.services import coworking_service as coworking

router = APIRouter(prefix="/coworking", tags=["coworking"])
admin_router = APIRouter(prefix="/admin/coworking", tags=["admin"])


@router.get("")
def coworking_page(db: DBSession) -> dict[str, Any]:
    return unwrap_or_raise(coworking.get_coworking_page_settings(db))


@router.get("/services", response_model=ActiveServicesOut)
def active_services(db: DBSession):
    return unwrap_or_raise(coworking.get_active_coworking_services(db))


@admin_router.patch("")
def update_settings(payload: CoworkingSettingsPatch, _: AdminUser, db: DBSession) -> dict[str, Any]:
    changes = payload.model_dump(exclude_unset=True)
    if payload.services is not None:
        changes["services"] = [s.model_dump(exclude_none=True) for s in payload.services]
    return unwrap_or_raise(coworking.update_coworking_page_settings(db, changes))


@admin_router.post("/services")
def save_service(payload: CoworkingServiceIn, _: AdminUser, db: DBSession) -> list[dict[str, Any]]:
    return unwrap_or_raise(
        coworking.upsert_coworking_service(db, payload.model_dump(exclude_unset=True))
    )


@admin_router.put("/services/order")
def reorder_services(payload: ServiceOrderIn, _: AdminUser, db: DBSession) -> list[dict[str, Any]]:
    return unwrap_or_raise(coworking.reorder_coworking_services(db, payload.service_ids))


@admin_router.delete("/services/{service_id}")
def delete_service(service_id: str, _: AdminUser, db: DBSession) -> list[dict[str, Any]]:
    return unwrap_or_raise(coworking.delete_coworking_service(db, service_id))
