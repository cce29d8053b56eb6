from __future__ import annotations

from abc import ABC, abstractmethod
from typing import BinaryIO


class StorageAdapter(ABC):
    @abstractmethod
    def put_file(self, key: str, fileobj: BinaryIO) -> str:
        """Store content under key and return its URI."""

    @abstractmethod
    def open(self, key: str) -> BinaryIO:
        """Open key for binary reading."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Delete key; return whether anything was removed."""

    @abstractmethod
    def exists(self, key: str) -> bool: ...

    @abstractmethod
    def list(self, prefix: str) -> list[str]:
        """Keys stored under prefix, sorted."""

    @abstractmethod
    def resolve_uri(self, key: str) -> str: ...
