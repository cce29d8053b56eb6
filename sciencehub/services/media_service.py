from __future__ import annotations

from pathlib import PurePosixPath
from typing import Any, BinaryIO

import structlog
from sqlalchemy.orm import Session

from sciencehub.models.base import utcnow
from sciencehub.services.capacity_service import get_event
from sciencehub.services.error_codes import ErrorCode
from sciencehub.services.exceptions import NotFoundError, ServiceError, ValidationError
from sciencehub.services.result import service_result
from sciencehub.storage import StorageAdapter, event_media_key, event_media_prefix, get_storage
from sciencehub.storage.media import MEDIA_KINDS

logger = structlog.get_logger(__name__)

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".gif"}


def _media_key(slug: str, kind: str, filename: str) -> str:
    if kind not in MEDIA_KINDS:
        raise ValidationError(ErrorCode.INVALID_MEDIA, f"kind must be one of {', '.join(MEDIA_KINDS)}")
    try:
        key = event_media_key(slug, kind, filename)
    except ValueError as exc:
        raise ValidationError(ErrorCode.INVALID_MEDIA, str(exc)) from exc
    if PurePosixPath(key).suffix.lower() not in IMAGE_EXTENSIONS:
        raise ValidationError(ErrorCode.INVALID_MEDIA, "only image files are allowed")
    return key


@service_result
def store_event_media(
    db: Session,
    event_id: Any,
    kind: str,
    filename: str,
    fileobj: BinaryIO,
    storage: StorageAdapter | None = None,
) -> str:
    event = get_event(db, event_id)
    key = _media_key(event.slug, kind, filename)
    storage = storage or get_storage()
    try:
        uri = storage.put_file(key, fileobj)
    except OSError as exc:
        raise ServiceError(ErrorCode.STORAGE_WRITE_FAILED, "failed to store media file") from exc

    if kind == "cover":
        event.cover_image_url = uri
        event.updated_at = utcnow()
        db.commit()

    logger.info("event_media_stored", event_id=str(event.id), key=key)
    return uri


@service_result
def list_event_media(
    db: Session, event_id: Any, storage: StorageAdapter | None = None
) -> dict[str, list[str]]:
    event = get_event(db, event_id)
    storage = storage or get_storage()
    return {kind: storage.list(event_media_prefix(event.slug, kind)) for kind in MEDIA_KINDS}


@service_result
def delete_event_media(
    db: Session,
    event_id: Any,
    kind: str,
    filename: str,
    storage: StorageAdapter | None = None,
) -> bool:
    event = get_event(db, event_id)
    key = _media_key(event.slug, kind, filename)
    storage = storage or get_storage()
    if not storage.delete(key):
        raise NotFoundError(ErrorCode.MEDIA_NOT_FOUND, "media file not found")

    if kind == "cover" and event.cover_image_url == storage.resolve_uri(key):
        event.cover_image_url = None
        event.updated_at = utcnow()
        db.commit()

    logger.info("event_media_deleted", event_id=str(event.id), key=key)
    return True
