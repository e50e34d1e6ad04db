"""Persistence layer: models, database handle and storage adapters."""

from sacrewards.storage.base import (
    AdminStats,
    DuplicateRecordError,
    Storage,
    StorageError,
    UserStats,
)
from sacrewards.storage.db import Database
from sacrewards.storage.memory import MemoryStorage
from sacrewards.storage.sql import SqlStorage

__all__ = [
    "AdminStats",
    "Database",
    "DuplicateRecordError",
    "MemoryStorage",
    "SqlStorage",
    "Storage",
    "StorageError",
    "UserStats",
]
