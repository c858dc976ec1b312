"""
Storage Services Package

Provides the abstract collection storage interface and the JSON file
backend. The store only depends on the interface.
"""

from asset_ledger.services.storage.interface import (
    CollectionStorageInterface,
    NotFoundError,
    PersistenceError,
    StoreError,
    ValidationError,
)
from asset_ledger.services.storage.json_files import JsonFileCollectionStorage

__all__ = [
    # Interfaces
    "CollectionStorageInterface",
    # Exceptions
    "NotFoundError",
    "PersistenceError",
    "StoreError",
    "ValidationError",
    # JSON file implementation
    "JsonFileCollectionStorage",
]
