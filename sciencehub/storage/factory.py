from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from sciencehub.core.config import settings
from sciencehub.storage.base import StorageAdapter
from sciencehub.storage.local import LocalStorageAdapter


def create_storage(backend: str | None = None, root: str | Path | None = None) -> StorageAdapter:
    name = (backend or settings.storage_backend).strip().lower()
    if name == "local":
        return LocalStorageAdapter(Path(root or settings.storage_root))
    raise ValueError(f"unsupported storage backend: {name}")


@lru_cache(maxsize=1)
def get_storage() -> StorageAdapter:
    return create_storage()
