from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import BinaryIO

from sciencehub.storage.base import StorageAdapter

CHUNK_SIZE = 1024 * 1024


class LocalStorageAdapter(StorageAdapter):
    def __init__(self, root: Path) -> None:
        self.root = root.resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def normalize_key(key: str) -> str:
        cleaned = key.strip().strip("/")
        parts = PurePosixPath(cleaned).parts
        if not cleaned or ".." in parts or "." in parts:
            raise ValueError(f"invalid storage key: {key!r}")
        return "/".join(parts)

    def _path(self, key: str) -> Path:
        return self.root.joinpath(*self.normalize_key(key).split("/"))

    def put_file(self, key: str, fileobj: BinaryIO) -> str:
        target = self._path(key)
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("wb") as out:
            for chunk in iter(lambda: fileobj.read(CHUNK_SIZE), b""):
                out.write(chunk)
        return self.resolve_uri(key)

    def open(self, key: str) -> BinaryIO:
        return self._path(key).open("rb")

    def delete(self, key: str) -> bool:
        target = self._path(key)
        if not target.is_file():
            return False
        target.unlink()
        return True

    def exists(self, key: str) -> bool:
        return self._path(key).is_file()

    def list(self, prefix: str) -> list[str]:
        base = self._path(prefix)
        if not base.is_dir():
            return []
        return sorted(p.relative_to(self.root).as_posix() for p in base.rglob("*") if p.is_file())

    def resolve_uri(self, key: str) -> str:
        return f"local://{self.normalize_key(key)}"
