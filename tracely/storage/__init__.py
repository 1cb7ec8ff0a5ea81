"""Persistence backends for observations, aggregates and the tracker catalog.

Use :func:`create_store` to build the backend selected in
:class:`tracely.config.Settings`.
"""

from __future__ import annotations

from tracely import config
from tracely.storage.base import Store
from tracely.storage.json_store import JsonFileStore
from tracely.storage.memory import MemoryStore


def create_store(settings: config.Settings) -> Store:
    """Instantiate the configured storage backend."""
    if settings.storage_backend == "json":
        return JsonFileStore(settings.data_dir)
    return MemoryStore()


__all__ = ["JsonFileStore", "MemoryStore", "Store", "create_store"]
