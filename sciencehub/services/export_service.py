from __future__ import annotations

import csv
import io
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any
from zoneinfo import ZoneInfo

import structlog
from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from sciencehub.core.config import settings
from sciencehub.models import Registration
from sciencehub.services.capacity_service import get_event
from sciencehub.services.result import service_result

logger = structlog.get_logger(__name__)

EXPORT_HEADERS = [
    "ID",
    "Внешний ID",
    "Имя",
    "Email",
    "Телефон",
    "Взрослые билеты",
    "Детские билеты",
    "Общая сумма",
    "Валюта",
    "Статус регистрации",
    "Статус оплаты",
    "QR код",
    "Дата регистрации",
    "Дата подтверждения",
    "Дата посещения",
    "Заметки",
    "Особые требования",
]

# Matches what browsers print for toLocaleString("ru-RU")
RU_DATETIME_FORMAT = "%d.%m.%Y, %H:%M:%S"


def format_ru_datetime(value: datetime | None, tz: ZoneInfo) -> str:
    if value is None:
        return ""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(tz).strftime(RU_DATETIME_FORMAT)


def _enum_value(value: Any) -> str:
    return getattr(value, "value", value) or ""


def registration_row(registration: Registration, tz: ZoneInfo) -> list[Any]:
    return [
        str(registration.id),
        registration.external_registration_id or "",
        registration.full_name,
        registration.email,
        registration.phone or "",
        registration.adult_tickets,
        registration.child_tickets,
        registration.total_amount,
        registration.currency,
        _enum_value(registration.registration_status),
        _enum_value(registration.payment_status),
        registration.qr_code,
        format_ru_datetime(registration.created_at, tz),
        format_ru_datetime(registration.confirmed_at, tz),
        format_ru_datetime(registration.attended_at, tz),
        registration.notes or "",
        registration.special_requirements or "",
    ]


def render_registrations_csv(registrations: Iterable[Registration], tz: ZoneInfo | None = None) -> str:
    """Render registrations as CSV text, one line per registration.

    Fields holding a comma, a double quote or a line break are quoted and
    embedded quotes are doubled; everything else is written bare.
    """
    tz = tz or ZoneInfo(settings.export_timezone)
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(EXPORT_HEADERS)
    for registration in registrations:
        writer.writerow(registration_row(registration, tz))
    return buffer.getvalue().rstrip("\n")


@service_result
def export_event_registrations(db: Session, event_id: Any) -> str:
    event = get_event(db, event_id)
    registrations = db.scalars(
        select(Registration)
        .options(joinedload(Registration.event), joinedload(Registration.user))
        .where(Registration.event_id == event.id)
        .order_by(Registration.created_at.desc(), Registration.id.desc())
    ).all()

    logger.info("registrations_exported", event_id=str(event.id), rows=len(registrations))
    return render_registrations_csv(registrations)
