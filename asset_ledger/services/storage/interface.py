"""
Abstract Storage Interface

DESIGN DECISION: The store talks to durable storage through this interface.
This allows us to:
1. Keep the store's consistency rules independent of the file format
2. Use in-memory storage for testing
3. Inject failing storage to exercise the best-effort persistence policy

The interface is intentionally small: the store always writes the full
collections, so there is nothing to query here.
"""

from abc import ABC, abstractmethod
from typing import Optional

from asset_ledger.models.asset import Category, Item


class CollectionStorageInterface(ABC):
    """
    Abstract interface for persisting the item and category collections.

    Any backend must write each collection to its own durable slot,
    overwriting previous contents.
    """

    @abstractmethod
    def load(self) -> Optional[tuple[list[Item], list[Category]]]:
        """
        Read both collections.

        Returns:
            (items, categories), or None when nothing has been
            persisted yet (first run)

        Raises:
            PersistenceError: If persisted data exists but cannot be
                read or parsed
        """
        pass

    @abstractmethod
    def save(self, items: list[Item], categories: list[Category]) -> None:
        """
        Write both collections, replacing what was stored before.

        The two writes are independent. A failure between them can leave
        the slots out of sync with each other.

        Raises:
            PersistenceError: If serialization or a write fails
        """
        pass


class StoreError(Exception):
    """Base exception for store operations."""
    pass


class ValidationError(StoreError):
    """A record was rejected (duplicate id, unknown reference, bad input)."""
    pass


class NotFoundError(StoreError):
    """No record with the given id exists."""
    pass


class PersistenceError(StoreError):
    """Serializing, reading or writing the persisted collections failed."""
    pass
