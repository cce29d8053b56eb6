from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import case, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload, selectinload

from sciencehub.api.v1.schemas.registrations import (
    NOT_NULL_FIELDS,
    RegistrationCreate,
    RegistrationFilters,
    RegistrationUpdate,
    TicketCreate,
)
from sciencehub.core.config import settings
from sciencehub.models import Registration, RegistrationTicket, User
from sciencehub.models.base import utcnow
from sciencehub.models.registration import (
    PaymentStatus,
    RegistrationStatus,
    TicketStatus,
)
from sciencehub.services import qr_codes
from sciencehub.services.capacity_service import availability_for, get_event
from sciencehub.services.error_codes import ErrorCode
from sciencehub.services.exceptions import ConflictError, NotFoundError, ValidationError
from sciencehub.services.result import Page, service_result

logger = structlog.get_logger(__name__)

CANCEL_NOTE = "Отменено пользователем"
CANCEL_NOTE_WITH_REASON = "Отменено: {reason}"
WAITLIST_NOTE = "Перенесено в лист ожидания"
WAITLIST_NOTE_WITH_REASON = "Перенесено в лист ожидания: {reason}"
ACTIVATED_FROM_WAITLIST_NOTE = "Активировано из листа ожидания"

IMMUTABLE_FIELDS = frozenset({"id", "qr_code", "created_at", "updated_at"})

# Ticket status that follows a registration status change, if any
_TICKET_STATUS_FOR = {
    RegistrationStatus.ACTIVE: TicketStatus.ACTIVE,
    RegistrationStatus.CANCELLED: TicketStatus.CANCELLED,
}


@dataclass(frozen=True)
class RegistrationStats:
    total: int
    active: int
    cancelled: int
    waitlist: int
    confirmed: int
    pending: int
    attended: int
    total_tickets: int
    total_amount: Decimal
    average_tickets_per_registration: float


def _append_note(existing: str | None, note: str) -> str:
    if not existing:
        return note
    return f"{existing}\n{note}"


def _with_relations(stmt):
    return stmt.options(
        selectinload(Registration.tickets),
        joinedload(Registration.event),
        joinedload(Registration.user),
    )


def _filter_conditions(filters: RegistrationFilters) -> list[Any]:
    conditions: list[Any] = []
    if filters.event_id:
        conditions.append(Registration.event_id == filters.event_id)
    if filters.user_id:
        conditions.append(Registration.user_id == filters.user_id)
    if filters.registration_status:
        conditions.append(Registration.registration_status.in_(filters.registration_status))
    if filters.payment_status:
        conditions.append(Registration.payment_status.in_(filters.payment_status))
    if filters.registration_type:
        conditions.append(Registration.registration_type.in_(filters.registration_type))
    if filters.date_from:
        conditions.append(Registration.created_at >= filters.date_from)
    if filters.date_to:
        conditions.append(Registration.created_at <= filters.date_to)
    if filters.search:
        term = filters.search
        conditions.append(
            or_(
                Registration.full_name.icontains(term, autoescape=True),
                Registration.email.icontains(term, autoescape=True),
                Registration.phone.icontains(term, autoescape=True),
                Registration.external_registration_id.icontains(term, autoescape=True),
            )
        )
    return conditions


def _get_registration(db: Session, **criteria: Any) -> Registration:
    stmt = _with_relations(select(Registration).filter_by(**criteria)).execution_options(
        populate_existing=True
    )
    registration = db.scalar(stmt)
    if not registration:
        raise NotFoundError(ErrorCode.REGISTRATION_NOT_FOUND, "registration not found")
    return registration


def _load(db: Session, registration_id: Any) -> Registration:
    registration = db.get(Registration, registration_id)
    if not registration:
        raise NotFoundError(ErrorCode.REGISTRATION_NOT_FOUND, "registration not found")
    return registration


def _set_ticket_status(db: Session, registration_ids: list[Any], status: TicketStatus) -> None:
    db.execute(
        update(RegistrationTicket)
        .where(RegistrationTicket.registration_id.in_(registration_ids))
        .values(ticket_status=status)
    )


def _page_bounds(page: int, limit: int) -> tuple[int, int]:
    if page < 1 or limit < 1:
        raise ValidationError(ErrorCode.INVALID_PAGINATION, "page and limit must be >= 1")
    return page, min(limit, settings.registrations_max_page_size)


def _list_registrations(
    db: Session,
    filters: RegistrationFilters | None,
    page: int,
    limit: int,
) -> Page[Registration]:
    filters = filters or RegistrationFilters()
    page, limit = _page_bounds(page, limit)
    conditions = _filter_conditions(filters)

    total = int(
        db.scalar(select(func.count()).select_from(Registration).where(*conditions)) or 0
    )
    if total == 0:
        return Page.empty(page, limit)

    stmt = (
        _with_relations(select(Registration))
        .where(*conditions)
        .order_by(Registration.created_at.desc(), Registration.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    items = list(db.scalars(stmt).all())
    return Page(items=items, total=total, page=page, limit=limit)


@service_result
def list_registrations(
    db: Session,
    filters: RegistrationFilters | None = None,
    page: int = 1,
    limit: int = 20,
) -> Page[Registration]:
    return _list_registrations(db, filters, page, limit)


def get_event_registrations(db: Session, event_id: Any, page: int = 1, limit: int = 50):
    return list_registrations(db, RegistrationFilters(event_id=event_id), page, limit)


def get_user_registrations(db: Session, user_id: Any, page: int = 1, limit: int = 20):
    return list_registrations(db, RegistrationFilters(user_id=user_id), page, limit)


@service_result
def get_event_waitlist(db: Session, event_id: Any, limit: int = 20) -> list[Registration]:
    filters = RegistrationFilters(
        event_id=event_id, registration_status=[RegistrationStatus.WAITLIST]
    )
    return _list_registrations(db, filters, 1, limit).items


@service_result
def get_registration(db: Session, registration_id: Any) -> Registration:
    return _get_registration(db, id=registration_id)


@service_result
def get_registration_by_qr(db: Session, qr_code: str) -> Registration:
    return _get_registration(db, qr_code=qr_code)


@service_result
def create_registration(
    db: Session,
    payload: RegistrationCreate,
    tickets: list[TicketCreate] | None = None,
) -> Registration:
    event = get_event(db, payload.event_id, lock=True)
    if payload.user_id is not None and db.get(User, payload.user_id) is None:
        raise NotFoundError(ErrorCode.USER_NOT_FOUND, "user not found")

    data = payload.model_dump(exclude={"tickets"})
    status = payload.registration_status
    seats = payload.adult_tickets + payload.child_tickets
    if status == RegistrationStatus.ACTIVE and event.max_attendees is not None:
        availability = availability_for(db, event, seats)
        if not availability.available:
            if not event.allow_waitlist:
                raise ConflictError(ErrorCode.EVENT_FULL, "event is full")
            status = RegistrationStatus.WAITLIST
            data["notes"] = _append_note(data.get("notes"), WAITLIST_NOTE)
            logger.info(
                "registration_waitlisted",
                event_id=str(event.id),
                requested=seats,
                remaining=availability.remaining_spots,
            )
    data["registration_status"] = status

    registration = Registration(**data, qr_code=qr_codes.registration_token())
    registration.tickets = [RegistrationTicket(**ticket.model_dump()) for ticket in tickets or []]
    db.add(registration)

    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError(
            ErrorCode.QR_CODE_CONFLICT, "registration conflicts with existing data"
        ) from exc

    logger.info(
        "registration_created",
        registration_id=str(registration.id),
        event_id=str(event.id),
        status=status.value,
        tickets=len(registration.tickets),
    )
    return _get_registration(db, id=registration.id)


@service_result
def update_registration(
    db: Session,
    registration_id: Any,
    patch: RegistrationUpdate | dict[str, Any],
) -> Registration:
    if isinstance(patch, RegistrationUpdate):
        patch_data = patch.model_dump(exclude_unset=True)
    else:
        patch_data = dict(patch)

    blocked = sorted(IMMUTABLE_FIELDS & patch_data.keys())
    if blocked:
        raise ValidationError(
            ErrorCode.IMMUTABLE_FIELD, f"fields cannot be updated: {', '.join(blocked)}"
        )
    unknown = sorted(patch_data.keys() - RegistrationUpdate.model_fields.keys())
    if unknown:
        raise ValidationError(ErrorCode.INVALID_REQUEST, f"unknown fields: {', '.join(unknown)}")
    nulled = sorted(name for name in NOT_NULL_FIELDS & patch_data.keys() if patch_data[name] is None)
    if nulled:
        raise ValidationError(
            ErrorCode.INVALID_REQUEST, f"fields cannot be null: {', '.join(nulled)}"
        )
    if not isinstance(patch, RegistrationUpdate):
        try:
            patch_data = RegistrationUpdate.model_validate(patch_data).model_dump(exclude_unset=True)
        except PydanticValidationError as exc:
            raise ValidationError(ErrorCode.INVALID_REQUEST, str(exc)) from exc

    registration = _load(db, registration_id)
    for key, value in patch_data.items():
        setattr(registration, key, value)
    registration.updated_at = utcnow()
    db.commit()
    return _get_registration(db, id=registration_id)


@service_result
def cancel_registration(db: Session, registration_id: Any, reason: str | None = None) -> Registration:
    registration = _load(db, registration_id)
    note = CANCEL_NOTE_WITH_REASON.format(reason=reason) if reason else CANCEL_NOTE

    registration.registration_status = RegistrationStatus.CANCELLED
    registration.notes = _append_note(registration.notes, note)
    registration.updated_at = utcnow()
    _set_ticket_status(db, [registration.id], TicketStatus.CANCELLED)
    db.commit()

    logger.info("registration_cancelled", registration_id=str(registration_id))
    return _get_registration(db, id=registration_id)


@service_result
def restore_registration(db: Session, registration_id: Any) -> Registration:
    registration = _load(db, registration_id)
    if registration.registration_status != RegistrationStatus.ACTIVE:
        event = get_event(db, registration.event_id, lock=True)
        availability = availability_for(db, event, registration.total_tickets)
        if not availability.available:
            raise ConflictError(
                ErrorCode.INSUFFICIENT_CAPACITY, "not enough free spots to restore registration"
            )

    registration.registration_status = RegistrationStatus.ACTIVE
    registration.updated_at = utcnow()
    _set_ticket_status(db, [registration.id], TicketStatus.ACTIVE)
    db.commit()

    logger.info("registration_restored", registration_id=str(registration_id))
    return _get_registration(db, id=registration_id)


@service_result
def confirm_registration(db: Session, registration_id: Any) -> Registration:
    registration = _load(db, registration_id)
    now = utcnow()
    registration.payment_status = PaymentStatus.CONFIRMED
    registration.confirmed_at = now
    registration.updated_at = now
    db.commit()
    return _get_registration(db, id=registration_id)


@service_result
def mark_attendance(db: Session, registration_id: Any, notes: str | None = None) -> Registration:
    registration = _load(db, registration_id)
    now = utcnow()
    registration.attended_at = now
    registration.attendee_notes = notes or None
    registration.updated_at = now
    db.commit()
    logger.info("registration_attended", registration_id=str(registration_id))
    return _get_registration(db, id=registration_id)


@service_result
def bulk_update_registration_status(
    db: Session,
    registration_ids: list[Any],
    status: RegistrationStatus,
    notes: str | None = None,
) -> int:
    if not registration_ids:
        return 0

    values: dict[str, Any] = {"registration_status": status, "updated_at": utcnow()}
    if notes:
        values["notes"] = notes

    result = db.execute(
        update(Registration).where(Registration.id.in_(registration_ids)).values(**values)
    )
    ticket_status = _TICKET_STATUS_FOR.get(status)
    if ticket_status is not None:
        _set_ticket_status(db, registration_ids, ticket_status)
    db.commit()

    updated = result.rowcount or 0
    logger.info("registrations_bulk_status", status=status.value, updated=updated)
    return updated


@service_result
def move_to_waitlist(db: Session, registration_id: Any, reason: str | None = None) -> Registration:
    registration = _load(db, registration_id)
    note = WAITLIST_NOTE_WITH_REASON.format(reason=reason) if reason else WAITLIST_NOTE
    registration.registration_status = RegistrationStatus.WAITLIST
    registration.notes = _append_note(registration.notes, note)
    registration.updated_at = utcnow()
    db.commit()
    return _get_registration(db, id=registration_id)


@service_result
def activate_from_waitlist(db: Session, registration_id: Any) -> Registration:
    registration = _load(db, registration_id)
    if registration.registration_status != RegistrationStatus.WAITLIST:
        raise ConflictError(
            ErrorCode.REGISTRATION_NOT_WAITLISTED, "registration is not on the waitlist"
        )

    event = get_event(db, registration.event_id, lock=True)
    availability = availability_for(db, event, registration.total_tickets)
    if not availability.available:
        raise ConflictError(ErrorCode.INSUFFICIENT_CAPACITY, "not enough free spots")

    registration.registration_status = RegistrationStatus.ACTIVE
    registration.notes = _append_note(registration.notes, ACTIVATED_FROM_WAITLIST_NOTE)
    registration.updated_at = utcnow()
    db.commit()

    logger.info("registration_promoted", registration_id=str(registration_id))
    return _get_registration(db, id=registration_id)


@service_result
def get_registrations_stats(db: Session, event_id: Any | None = None) -> RegistrationStats:
    def _count_if(condition):
        return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)

    stmt = select(
        func.count(Registration.id),
        _count_if(Registration.registration_status == RegistrationStatus.ACTIVE),
        _count_if(Registration.registration_status == RegistrationStatus.CANCELLED),
        _count_if(Registration.registration_status == RegistrationStatus.WAITLIST),
        _count_if(Registration.payment_status == PaymentStatus.CONFIRMED),
        _count_if(Registration.payment_status == PaymentStatus.PENDING),
        _count_if(Registration.attended_at.is_not(None)),
        func.coalesce(func.sum(Registration.adult_tickets + Registration.child_tickets), 0),
        func.coalesce(func.sum(Registration.total_amount), 0),
    )
    if event_id is not None:
        stmt = stmt.where(Registration.event_id == event_id)

    row = db.execute(stmt).one()
    total = int(row[0] or 0)
    total_tickets = int(row[7] or 0)
    return RegistrationStats(
        total=total,
        active=int(row[1]),
        cancelled=int(row[2]),
        waitlist=int(row[3]),
        confirmed=int(row[4]),
        pending=int(row[5]),
        attended=int(row[6]),
        total_tickets=total_tickets,
        total_amount=Decimal(str(row[8] or 0)),
        average_tickets_per_registration=round(total_tickets / total, 2) if total else 0.0,
    )


@service_result
def add_ticket_to_registration(
    db: Session, registration_id: Any, ticket: TicketCreate
) -> RegistrationTicket:
    registration = _load(db, registration_id)
    row = RegistrationTicket(registration_id=registration.id, **ticket.model_dump())
    db.add(row)
    db.flush()

    # Same transaction as the insert, so the cached total cannot drift
    db.execute(
        update(Registration)
        .where(Registration.id == registration.id)
        .values(
            total_amount=Registration.total_amount + row.total_price,
            updated_at=utcnow(),
        )
    )
    db.commit()
    logger.info(
        "ticket_added",
        registration_id=str(registration.id),
        ticket_id=str(row.id),
        total_price=str(row.total_price),
    )
    return row


@service_result
def remove_ticket_from_registration(db: Session, ticket_id: Any) -> bool:
    ticket = db.get(RegistrationTicket, ticket_id)
    if not ticket:
        raise NotFoundError(ErrorCode.TICKET_NOT_FOUND, "ticket not found")

    registration_id = ticket.registration_id
    price = ticket.total_price
    db.delete(ticket)
    db.flush()
    db.execute(
        update(Registration)
        .where(Registration.id == registration_id)
        .values(
            total_amount=Registration.total_amount - price,
            updated_at=utcnow(),
        )
    )
    db.commit()
    logger.info("ticket_removed", registration_id=str(registration_id), ticket_id=str(ticket_id))
    return True


@service_result
def generate_ticket_qr_codes(db: Session, ticket_id: Any, count: int) -> list[str]:
    if count < 1:
        raise ValidationError(ErrorCode.INVALID_REQUEST, "count must be >= 1")

    ticket = db.get(RegistrationTicket, ticket_id)
    if not ticket:
        raise NotFoundError(ErrorCode.TICKET_NOT_FOUND, "ticket not found")

    codes = qr_codes.ticket_tokens(ticket.id, count)
    ticket.qr_codes = codes
    db.commit()
    return codes
