"""Storage keys for event media."""

from __future__ import annotations

import re
from pathlib import PurePosixPath

MEDIA_KINDS = ("cover", "media")

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")


def safe_filename(filename: str) -> str:
    name = _UNSAFE.sub("_", PurePosixPath(filename.replace("\\", "/")).name).strip("._")
    if not name:
        raise ValueError(f"invalid file name: {filename!r}")
    return name


def event_media_prefix(slug: str, kind: str) -> str:
    if kind not in MEDIA_KINDS:
        raise ValueError(f"unknown media kind: {kind!r}")
    return f"events/event_{slug}/{kind}"


def event_media_key(slug: str, kind: str, filename: str) -> str:
    return f"{event_media_prefix(slug, kind)}/{safe_filename(filename)}"
