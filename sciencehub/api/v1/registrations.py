from __future__ import annotations

import uuid
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query

from sciencehub.api.errors import unwrap_or_raise
from sciencehub.api.v1.schemas.registrations import (
    AttendanceIn,
    BulkStatusIn,
    BulkStatusOut,
    QrCodesIn,
    ReasonIn,
    RegistrationCreateIn,
    RegistrationFilters,
    RegistrationOut,
    RegistrationPageOut,
    RegistrationStatsOut,
    RegistrationUpdate,
    TicketCreate,
    TicketOut,
)
from sciencehub.auth.deps import AdminUser, CurrentUser, DBSession, is_admin
from sciencehub.core.config import settings
from sciencehub.models import Registration, User
from sciencehub.models.registration import (
    PaymentStatus,
    RegistrationStatus,
    RegistrationType,
    TicketStatus,
)
from sciencehub.services import registrations_service as registrations

router = APIRouter(prefix="/registrations", tags=["registrations"])
me_router = APIRouter(prefix="/me", tags=["me"])

PageParam = Annotated[int, Query(ge=1)]
LimitParam = Annotated[int, Query(ge=1)]


def registration_filters(
    event_id: uuid.UUID | None = None,
    user_id: uuid.UUID | None = None,
    registration_status: Annotated[list[RegistrationStatus] | None, Query()] = None,
    payment_status: Annotated[list[PaymentStatus] | None, Query()] = None,
    registration_type: Annotated[list[RegistrationType] | None, Query()] = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    search: str | None = None,
) -> RegistrationFilters:
    return RegistrationFilters(
        event_id=event_id,
        user_id=user_id,
        registration_status=registration_status or [],
        payment_status=payment_status or [],
        registration_type=registration_type or [],
        date_from=date_from,
        date_to=date_to,
        search=search,
    )


Filters = Annotated[RegistrationFilters, Depends(registration_filters)]


def _forbidden() -> HTTPException:
    return HTTPException(status_code=403, detail={"code": "FORBIDDEN", "message": "forbidden"})


def _ensure_owner_or_admin(user: User, registration: Registration) -> None:
    if not is_admin(user) and registration.user_id != user.id:
        raise _forbidden()


def _page_out(page) -> RegistrationPageOut:
    return RegistrationPageOut(
        items=[RegistrationOut.model_validate(r) for r in page.items],
        total=page.total,
        page=page.page,
        limit=page.limit,
        pages=page.pages,
    )


@router.get("", response_model=RegistrationPageOut)
def list_registrations(
    _: AdminUser,
    db: DBSession,
    filters: Filters,
    page: PageParam = 1,
    limit: LimitParam = settings.registrations_page_size,
):
    return _page_out(unwrap_or_raise(registrations.list_registrations(db, filters, page, limit)))


@router.post("", response_model=RegistrationOut, status_code=201)
def create_registration(payload: RegistrationCreateIn, user: CurrentUser, db: DBSession):
    if not is_admin(user):
        # Regular users register themselves; status and payment stay with admins
        payload = payload.model_copy(
            update={
                "user_id": user.id,
                "registration_type": RegistrationType.USER,
                "created_by": user.id,
                "registration_status": RegistrationStatus.ACTIVE,
                "payment_status": PaymentStatus.PENDING,
                "external_registration_id": None,
                "notes": None,
                "tickets": [
                    ticket.model_copy(update={"qr_codes": [], "ticket_status": TicketStatus.ACTIVE})
                    for ticket in payload.tickets
                ],
            }
        )
    elif payload.created_by is None:
        payload = payload.model_copy(update={"created_by": user.id})
    return unwrap_or_raise(registrations.create_registration(db, payload, payload.tickets))


@router.get("/stats", response_model=RegistrationStatsOut)
def registration_stats(_: AdminUser, db: DBSession, event_id: uuid.UUID | None = None):
    return unwrap_or_raise(registrations.get_registrations_stats(db, event_id))


@router.post("/bulk-status", response_model=BulkStatusOut)
def bulk_status(payload: BulkStatusIn, _: AdminUser, db: DBSession):
    updated = unwrap_or_raise(
        registrations.bulk_update_registration_status(
            db, payload.registration_ids, payload.status, payload.notes
        )
    )
    return BulkStatusOut(updated=updated)


@router.get("/qr/{qr_code}", response_model=RegistrationOut)
def get_by_qr(qr_code: str, _: AdminUser, db: DBSession):
    return unwrap_or_raise(registrations.get_registration_by_qr(db, qr_code))


@router.delete("/tickets/{ticket_id}", status_code=204)
def remove_ticket(ticket_id: uuid.UUID, _: AdminUser, db: DBSession):
    unwrap_or_raise(registrations.remove_ticket_from_registration(db, ticket_id))


@router.post("/tickets/{ticket_id}/qr-codes", response_model=list[str])
def generate_qr_codes(ticket_id: uuid.UUID, payload: QrCodesIn, _: AdminUser, db: DBSession):
    return unwrap_or_raise(registrations.generate_ticket_qr_codes(db, ticket_id, payload.count))


@router.get("/{registration_id}", response_model=RegistrationOut)
def get_registration(registration_id: uuid.UUID, user: CurrentUser, db: DBSession):
    registration = unwrap_or_raise(registrations.get_registration(db, registration_id))
    _ensure_owner_or_admin(user, registration)
    return registration


@router.patch("/{registration_id}", response_model=RegistrationOut)
def update_registration(
    registration_id: uuid.UUID, payload: RegistrationUpdate, _: AdminUser, db: DBSession
):
    return unwrap_or_raise(registrations.update_registration(db, registration_id, payload))


@router.post("/{registration_id}/cancel", response_model=RegistrationOut)
def cancel_registration(
    registration_id: uuid.UUID,
    user: CurrentUser,
    db: DBSession,
    payload: ReasonIn | None = None,
):
    registration = unwrap_or_raise(registrations.get_registration(db, registration_id))
    _ensure_owner_or_admin(user, registration)
    reason = payload.reason if payload else None
    return unwrap_or_raise(registrations.cancel_registration(db, registration_id, reason))


@router.post("/{registration_id}/restore", response_model=RegistrationOut)
def restore_registration(registration_id: uuid.UUID, _: AdminUser, db: DBSession):
    return unwrap_or_raise(registrations.restore_registration(db, registration_id))


@router.post("/{registration_id}/confirm", response_model=RegistrationOut)
def confirm_registration(registration_id: uuid.UUID, _: AdminUser, db: DBSession):
    return unwrap_or_raise(registrations.confirm_registration(db, registration_id))


@router.post("/{registration_id}/attendance", response_model=RegistrationOut)
def mark_attendance(
    registration_id: uuid.UUID,
    _: AdminUser,
    db: DBSession,
    payload: AttendanceIn | None = None,
):
    notes = payload.notes if payload else None
    return unwrap_or_raise(registrations.mark_attendance(db, registration_id, notes))


@router.post("/{registration_id}/waitlist", response_model=RegistrationOut)
def move_to_waitlist(
    registration_id: uuid.UUID,
    _: AdminUser,
    db: DBSession,
    payload: ReasonIn | None = None,
):
    reason = payload.reason if payload else None
    return unwrap_or_raise(registrations.move_to_waitlist(db, registration_id, reason))


@router.post("/{registration_id}/activate", response_model=RegistrationOut)
def activate_from_waitlist(registration_id: uuid.UUID, _: AdminUser, db: DBSession):
    return unwrap_or_raise(registrations.activate_from_waitlist(db, registration_id))


@router.post("/{registration_id}/tickets", response_model=TicketOut, status_code=201)
def add_ticket(registration_id: uuid.UUID, payload: TicketCreate, _: AdminUser, db: DBSession):
    return unwrap_or_raise(registrations.add_ticket_to_registration(db, registration_id, payload))


@me_router.get("/registrations", response_model=RegistrationPageOut)
def my_registrations(
    user: CurrentUser,
    db: DBSession,
    page: PageParam = 1,
    limit: LimitParam = settings.registrations_page_size,
):
    return _page_out(unwrap_or_raise(registrations.get_user_registrations(db, user.id, page, limit)))
