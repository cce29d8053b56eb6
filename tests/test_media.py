from __future__ import annotations

import io
import re

import pytest

from sciencehub.services import media_service
from sciencehub.services.result import ErrorKind
from sciencehub.storage import LocalStorageAdapter, event_media_key


@pytest.fixture
def storage(tmp_path):
    return LocalStorageAdapter(tmp_path / "storage")


def test_event_media_keys():
    assert event_media_key("open-lab", "cover", "Main Photo.JPG") == "events/event_open-lab/cover/Main_Photo.JPG"
    assert event_media_key("open-lab", "media", "../../etc/passwd.png") == "events/event_open-lab/media/passwd.png"
    with pytest.raises(ValueError):
        event_media_key("open-lab", "avatars", "a.png")


def test_local_storage_rejects_escaping_keys(storage):
    with pytest.raises(ValueError):
        storage.put_file("../outside.txt", io.BytesIO(b"x"))
    with pytest.raises(ValueError):
        storage.exists("")


def test_local_storage_round_trip(storage):
    uri = storage.put_file("events/event_a/media/1.png", io.BytesIO(b"png-bytes"))
    assert uri == "local://events/event_a/media/1.png"
    assert storage.exists("events/event_a/media/1.png")
    with storage.open("events/event_a/media/1.png") as fh:
        assert fh.read() == b"png-bytes"
    assert storage.list("events/event_a") == ["events/event_a/media/1.png"]
    assert storage.list("events/event_b") == []
    assert storage.delete("events/event_a/media/1.png") is True
    assert storage.delete("events/event_a/media/1.png") is False


def test_cover_upload_updates_event(db_session, make_event, storage):
    event = make_event(slug="science-slam")

    uri = media_service.store_event_media(
        db_session, event.id, "cover", "poster.png", io.BytesIO(b"img"), storage=storage
    ).unwrap()
    assert uri == "local://events/event_science-slam/cover/poster.png"
    assert event.cover_image_url == uri

    media_service.store_event_media(
        db_session, event.id, "media", "hall.jpg", io.BytesIO(b"img"), storage=storage
    ).unwrap()
    listing = media_service.list_event_media(db_session, event.id, storage=storage).unwrap()
    assert listing == {
        "cover": ["events/event_science-slam/cover/poster.png"],
        "media": ["events/event_science-slam/media/hall.jpg"],
    }

    assert media_service.delete_event_media(
        db_session, event.id, "cover", "poster.png", storage=storage
    ).unwrap() is True
    assert event.cover_image_url is None

    again = media_service.delete_event_media(
        db_session, event.id, "cover", "poster.png", storage=storage
    )
    assert again.kind == ErrorKind.NOT_FOUND
    assert again.code == "MEDIA_NOT_FOUND"


def test_media_validation(db_session, make_event, storage):
    event = make_event()

    not_image = media_service.store_event_media(
        db_session, event.id, "media", "notes.txt", io.BytesIO(b"x"), storage=storage
    )
    assert not_image.kind == ErrorKind.VALIDATION
    assert not_image.code == "INVALID_MEDIA"

    bad_kind = media_service.store_event_media(
        db_session, event.id, "avatars", "a.png", io.BytesIO(b"x"), storage=storage
    )
    assert bad_kind.kind == ErrorKind.VALIDATION
    assert re.search("cover", bad_kind.message)
