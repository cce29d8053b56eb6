from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, File, Query, Response, UploadFile

from sciencehub.api.errors import unwrap_or_raise
from sciencehub.api.v1.schemas.registrations import (
    AvailabilityOut,
    RegistrationOut,
    RegistrationPageOut,
)
from sciencehub.auth.deps import AdminUser, DBSession
from sciencehub.services import capacity_service, export_service, media_service
from sciencehub.services import registrations_service as registrations

router = APIRouter(prefix="/events", tags=["events"])


@router.get("/{event_id}/availability", response_model=AvailabilityOut)
def event_availability(
    event_id: uuid.UUID,
    db: DBSession,
    tickets: Annotated[int, Query(ge=0)] = 1,
):
    return unwrap_or_raise(capacity_service.check_event_availability(db, event_id, tickets))


@router.get("/{event_id}/registrations", response_model=RegistrationPageOut)
def event_registrations(
    event_id: uuid.UUID,
    _: AdminUser,
    db: DBSession,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1)] = 50,
):
    result = unwrap_or_raise(registrations.get_event_registrations(db, event_id, page, limit))
    return RegistrationPageOut(
        items=[RegistrationOut.model_validate(r) for r in result.items],
        total=result.total,
        page=result.page,
        limit=result.limit,
        pages=result.pages,
    )


@router.get("/{event_id}/registrations/export")
def export_registrations(event_id: uuid.UUID, _: AdminUser, db: DBSession):
    body = unwrap_or_raise(export_service.export_event_registrations(db, event_id))
    return Response(
        content=body,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="registrations_{event_id}.csv"'},
    )


@router.get("/{event_id}/waitlist", response_model=list[RegistrationOut])
def event_waitlist(
    event_id: uuid.UUID,
    _: AdminUser,
    db: DBSession,
    limit: Annotated[int, Query(ge=1)] = 20,
):
    return unwrap_or_raise(registrations.get_event_waitlist(db, event_id, limit))


@router.get("/{event_id}/media")
def list_media(event_id: uuid.UUID, _: AdminUser, db: DBSession) -> dict[str, list[str]]:
    return unwrap_or_raise(media_service.list_event_media(db, event_id))


@router.post("/{event_id}/media/{kind}", status_code=201)
def upload_media(
    event_id: uuid.UUID,
    kind: str,
    _: AdminUser,
    db: DBSession,
    file: UploadFile = File(...),
) -> dict[str, str]:
    try:
        uri = unwrap_or_raise(
            media_service.store_event_media(db, event_id, kind, file.filename or "", file.file)
        )
    finally:
        file.file.close()
    return {"uri": uri}


@router.delete("/{event_id}/media/{kind}/{filename}", status_code=204)
def delete_media(event_id: uuid.UUID, kind: str, filename: str, _: AdminUser, db: DBSession):
    unwrap_or_raise(media_service.delete_event_media(db, event_id, kind, filename))
