"""Shape of the coworking page document stored in ``sh_site_settings``.

The document is a single JSON object::

    {
        "header": {"title": ..., "description": ..., ...},
        "services": [{"id": ..., "name": ..., "price": 10.0, ...}, ...],
        "mainServices": [...],  # active services flagged main_service
        "lastUpdated": "2026-10-18T12:00:00+00:00",
    }
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

DEFAULT_HEADER: dict[str, Any] = {
    "title": "Коворкинг пространство",
    "description": "Комфортные рабочие места для исследователей и стартапов",
    "heroImage": "",
    "address": "Сараевская, 48",
    "phone": "+381",
    "working_hours": "10:00-18:00",
    "email": "info@sciencehub.site",
    "telegram": "@sciencehub",
    "metaDescription": "Современное коворкинг пространство для исследователей и стартапов в Сербии",
    "showBookingForm": True,
    "bookingFormFields": ["name", "contact", "phone", "comment"],
}

DEFAULT_CURRENCY = "euro"
DEFAULT_PERIOD = "час"


@dataclass(frozen=True)
class ValidationReport:
    valid: bool
    issues: list[str] = field(default_factory=list)


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _price(value: Any) -> float:
    if value is None or value == "":
        return 0.0
    return float(value)


def normalize_service(raw: dict[str, Any], position: int) -> dict[str, Any]:
    """Fill defaults for a service entry; ``position`` is used when order is unset."""
    order = raw.get("order")
    return {
        "id": raw.get("id") or str(uuid.uuid4()),
        "name": raw.get("name") or "",
        "description": raw.get("description") or "",
        "price": _price(raw.get("price")),
        "currency": raw.get("currency") or DEFAULT_CURRENCY,
        "period": raw.get("period") or DEFAULT_PERIOD,
        "active": raw.get("active") is not False,
        "image_url": raw.get("image_url") or "",
        "order": order if isinstance(order, int) and not isinstance(order, bool) else position,
        "main_service": raw.get("main_service") is not False,
    }


def merge_header(*sources: dict[str, Any] | None) -> dict[str, Any]:
    """First non-empty value per field wins; defaults fill the rest."""
    header: dict[str, Any] = {}
    for key, default in DEFAULT_HEADER.items():
        value = default
        for source in sources:
            if source and source.get(key) not in (None, ""):
                value = source[key]
                break
        header[key] = value
    return header


def main_services(services: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [s for s in services if s.get("main_service") and s.get("active")]


def build_document(header: dict[str, Any], services: list[dict[str, Any]]) -> dict[str, Any]:
    return {
        "header": header,
        "services": services,
        "mainServices": main_services(services),
        "lastUpdated": now_iso(),
    }


def validate_document(document: Any) -> ValidationReport:
    issues: list[str] = []
    if not isinstance(document, dict):
        return ValidationReport(valid=False, issues=["coworking document is missing"])

    header = document.get("header")
    if not isinstance(header, dict):
        issues.append("header is missing")
    elif not isinstance(header.get("title"), str) or not header["title"].strip():
        issues.append("header title is missing")

    services = document.get("services")
    if not isinstance(services, list):
        issues.append("services must be a list")
    else:
        for index, service in enumerate(services, start=1):
            if not isinstance(service, dict):
                issues.append(f"service {index}: not an object")
                continue
            if not service.get("id"):
                issues.append(f"service {index}: missing id")
            if not service.get("name"):
                issues.append(f"service {index}: missing name")
            price = service.get("price")
            if isinstance(price, bool) or not isinstance(price, (int, float)):
                issues.append(f"service {index}: price is not numeric")

    if not document.get("lastUpdated"):
        issues.append("lastUpdated is missing")

    return ValidationReport(valid=not issues, issues=issues)
