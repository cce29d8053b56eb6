from sciencehub.storage.base import StorageAdapter
from sciencehub.storage.factory import create_storage, get_storage
from sciencehub.storage.local import LocalStorageAdapter
from sciencehub.storage.media import event_media_key, event_media_prefix

__all__ = [
    "StorageAdapter",
    "LocalStorageAdapter",
    "create_storage",
    "get_storage",
    "event_media_key",
    "event_media_prefix",
]
