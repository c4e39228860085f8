"""Backends de almacenamiento (implementaciones de `core.interfaces.storage.Storage`)."""

from adapters.storage.json_file import JsonFileStorage
from adapters.storage.memory import MemoryStorage

__all__ = [
    "JsonFileStorage",
    "MemoryStorage",
]
