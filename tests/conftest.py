"""
Shared fixtures.

No test touches the real data directory: settings point at tmp_path,
and the store gets in-memory or tmp_path-backed collaborators.
"""

from typing import Optional

import pytest

from asset_ledger.audit import AuditLogger
from asset_ledger.config import get_settings
from asset_ledger.models import AuditEvent, AuditEventType, Category, Item
from asset_ledger.services.image import ImageBlobStore
from asset_ledger.services.storage import (
    CollectionStorageInterface,
    JsonFileCollectionStorage,
    PersistenceError,
)
from asset_ledger.store import AssetStore


class RecordingAuditLogger(AuditLogger):
    """AuditLogger that also keeps every event for assertions."""

    def __init__(self):
        super().__init__()
        self.events: list[AuditEvent] = []

    def log(self, event: AuditEvent) -> None:
        self.events.append(event)
        super().log(event)

    def of_type(self, event_type: AuditEventType) -> list[AuditEvent]:
        return [event for event in self.events if event.event_type == event_type]


class InMemoryCollectionStorage(CollectionStorageInterface):
    """Keeps the last saved collections and counts saves."""

    def __init__(self, initial: Optional[tuple[list[Item], list[Category]]] = None):
        self.saved = initial
        self.save_count = 0

    def load(self) -> Optional[tuple[list[Item], list[Category]]]:
        if self.saved is None:
            return None
        items, categories = self.saved
        return list(items), list(categories)

    def save(self, items: list[Item], categories: list[Category]) -> None:
        self.save_count += 1
        self.saved = (
            [item.model_copy(deep=True) for item in items],
            [category.model_copy(deep=True) for category in categories],
        )


class FailingCollectionStorage(InMemoryCollectionStorage):
    """Saves and/or loads raise PersistenceError."""

    def __init__(self, fail_save: bool = True, fail_load: bool = False):
        super().__init__()
        self.fail_save = fail_save
        self.fail_load = fail_load

    def load(self):
        if self.fail_load:
            raise PersistenceError("items.json is not valid JSON")
        return super().load()

    def save(self, items, categories):
        if self.fail_save:
            self.save_count += 1
            raise PersistenceError("disk full")
        super().save(items, categories)


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point every settings-derived path at a temporary directory."""
    monkeypatch.setenv("ASSET_LEDGER_DATA_DIR", str(tmp_path / "data"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def audit_logger():
    return RecordingAuditLogger()


@pytest.fixture
def memory_storage():
    return InMemoryCollectionStorage()


@pytest.fixture
def file_storage(tmp_path):
    return JsonFileCollectionStorage(
        items_path=tmp_path / "data" / "items.json",
        categories_path=tmp_path / "data" / "categories.json",
    )


@pytest.fixture
def image_store(tmp_path):
    return ImageBlobStore(directory=tmp_path / "data" / "images")


@pytest.fixture
def store(memory_storage, image_store, audit_logger):
    """An empty store (no seed data) backed by in-memory storage."""
    return AssetStore(
        storage=memory_storage,
        image_store=image_store,
        audit_logger=audit_logger,
        recent_items_limit=10,
    )


@pytest.fixture
def failing_storage():
    return FailingCollectionStorage()


@pytest.fixture
def make_store(image_store, audit_logger):
    """Build a store around any storage backend."""
    def factory(storage):
        return AssetStore(
            storage=storage,
            image_store=image_store,
            audit_logger=audit_logger,
            recent_items_limit=10,
        )
    return factory


@pytest.fixture
def storage_factory():
    """Build in-memory or failing storages inside a test."""
    def factory(initial=None, fail_save=False, fail_load=False):
        if fail_save or fail_load:
            return FailingCollectionStorage(fail_save=fail_save, fail_load=fail_load)
        return InMemoryCollectionStorage(initial)
    return factory
