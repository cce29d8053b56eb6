from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from sciencehub.models import Event, Registration
from sciencehub.models.registration import RegistrationStatus
from sciencehub.services.error_codes import ErrorCode
from sciencehub.services.exceptions import NotFoundError, ValidationError
from sciencehub.services.result import service_result


@dataclass(frozen=True)
class Availability:
    available: bool
    # None when the event has no attendee limit
    remaining_spots: int | None
    max_attendees: int | None
    current_registrations: int


def _active_ticket_count(db: Session, event_id: Any) -> int:
    return int(
        db.scalar(
            select(
                func.coalesce(
                    func.sum(Registration.adult_tickets + Registration.child_tickets), 0
                )
            ).where(
                Registration.event_id == event_id,
                Registration.registration_status == RegistrationStatus.ACTIVE,
            )
        )
        or 0
    )


def get_event(db: Session, event_id: Any, *, lock: bool = False) -> Event:
    stmt = select(Event).where(Event.id == event_id)
    if lock:
        # Serializes seat allocation per event for the rest of the transaction
        stmt = stmt.with_for_update()
    event = db.scalar(stmt)
    if not event:
        raise NotFoundError(ErrorCode.EVENT_NOT_FOUND, "event not found")
    return event


def availability_for(db: Session, event: Event, requested_tickets: int) -> Availability:
    if requested_tickets < 0:
        raise ValidationError(ErrorCode.INVALID_REQUEST, "requested tickets must be >= 0")

    current = _active_ticket_count(db, event.id)
    if event.max_attendees is None:
        return Availability(
            available=True,
            remaining_spots=None,
            max_attendees=None,
            current_registrations=current,
        )

    remaining = event.max_attendees - current
    return Availability(
        available=remaining >= requested_tickets,
        remaining_spots=max(0, remaining),
        max_attendees=event.max_attendees,
        current_registrations=current,
    )


@service_result
def check_event_availability(db: Session, event_id: Any, requested_tickets: int) -> Availability:
    event = get_event(db, event_id)
    return availability_for(db, event, requested_tickets)
