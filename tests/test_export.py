from __future__ import annotations

import csv
import io
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

from sciencehub.models.registration import PaymentStatus
from sciencehub.services.export_service import (
    EXPORT_HEADERS,
    export_event_registrations,
    format_ru_datetime,
    render_registrations_csv,
)
from sciencehub.services.result import ErrorKind


def _rows(body: str) -> list[list[str]]:
    return list(csv.reader(io.StringIO(body)))


def test_export_escapes_and_orders_rows(db_session, make_event, make_registration):
    event = make_event()
    make_registration(
        event,
        full_name="Petrović, Ana",
        email="ana@example.com",
        adult_tickets=2,
        child_tickets=1,
        total_amount=Decimal("1500"),
        payment_status=PaymentStatus.CONFIRMED,
        notes='Просила место "у окна"\nи парковку',
        created_at=datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc),
        confirmed_at=datetime(2024, 3, 2, 8, 30, tzinfo=timezone.utc),
    )
    make_registration(
        event,
        full_name="Marko",
        email="marko@example.com",
        created_at=datetime(2024, 3, 5, 10, 0, tzinfo=timezone.utc),
    )

    body = export_event_registrations(db_session, event.id).unwrap()
    rows = _rows(body)

    assert rows[0] == EXPORT_HEADERS
    assert len(rows) == 3
    assert all(len(row) == 17 for row in rows)
    assert [row[2] for row in rows[1:]] == ["Marko", "Petrović, Ana"]

    ana = rows[2]
    assert ana[3] == "ana@example.com"
    assert ana[5:7] == ["2", "1"]
    assert Decimal(ana[7]) == Decimal("1500")
    assert ana[9:11] == ["active", "confirmed"]
    assert ana[12] == "01.03.2024, 11:00:00"
    assert ana[13] == "02.03.2024, 09:30:00"
    assert ana[14] == ""
    assert ana[15] == 'Просила место "у окна"\nи парковку'
    assert '"Petrović, Ana"' in body
    assert not body.endswith("\n")


def test_export_of_event_without_registrations(db_session, make_event):
    body = export_event_registrations(db_session, make_event().id).unwrap()
    assert _rows(body) == [EXPORT_HEADERS]


def test_export_unknown_event(db_session):
    result = export_event_registrations(db_session, uuid.uuid4())
    assert result.kind == ErrorKind.NOT_FOUND


def test_render_without_rows():
    assert render_registrations_csv([]) == ",".join(EXPORT_HEADERS)


def test_format_ru_datetime_treats_naive_values_as_utc():
    tz = ZoneInfo("Europe/Belgrade")
    assert format_ru_datetime(datetime(2024, 7, 1, 12, 0), tz) == "01.07.2024, 14:00:00"
    assert format_ru_datetime(None, tz) == ""
