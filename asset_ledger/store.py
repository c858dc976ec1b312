"""
Asset Store

The single authoritative owner of the item and category collections.
Every read goes through it and it is the only writer of durable state.

Mutation flow (every mutator):
1. Validate against the current collections (raise before changing anything)
2. Mutate the in-memory collections
3. Persist both collections synchronously
4. Notify observers

DESIGN DECISION: Persistence is best-effort.
A failed write is reported to the audit log and does NOT roll back the
in-memory change. Callers must not read a failed persist as a failed
mutation. Image cleanup follows the same rule: a blob that cannot be
deleted is reported and the record is removed anyway.

DESIGN DECISION: Construction does no I/O.
AssetStore.open() is the startup path: load, or seed when nothing is
persisted, or fall back to defaults when persisted data is unreadable.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Callable, Iterable, NamedTuple, Optional, Union
from uuid import UUID

from pydantic import ValidationError as SchemaError

from asset_ledger.audit import AuditLogger
from asset_ledger.config import get_settings
from asset_ledger.models.asset import (
    Category,
    Item,
    Reminder,
    ValueRecord,
    utcnow,
)
from asset_ledger.queries import aggregates
from asset_ledger.queries.search import search_items
from asset_ledger.services.image import ImageBlobStore, new_image_name
from asset_ledger.services.storage import (
    CollectionStorageInterface,
    JsonFileCollectionStorage,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from asset_ledger.validation import check_amount, check_title


class ChangeKind(str, Enum):
    """What a store notification is about."""
    ITEM_ADDED = "item_added"
    ITEM_UPDATED = "item_updated"
    ITEM_DELETED = "item_deleted"
    CATEGORY_ADDED = "category_added"
    CATEGORY_UPDATED = "category_updated"
    CATEGORY_DELETED = "category_deleted"
    RESET = "reset"


class StoreChange(NamedTuple):
    kind: ChangeKind
    entity_id: Optional[UUID] = None


Observer = Callable[[StoreChange], None]

ItemRef = Union[Item, UUID]
CategoryRef = Union[Category, UUID]


# =============================================================================
# SEED DATA
# =============================================================================

def default_categories() -> list[Category]:
    """Category set used when persisted data cannot be loaded."""
    return [
        Category(name="Electronics", icon_name="iphone", color_hex="#007AFF"),
        Category(name="Furniture", icon_name="bed.double", color_hex="#A2845E"),
        Category(name="Clothing", icon_name="tshirt", color_hex="#AF52DE"),
        Category(name="Jewelry", icon_name="sparkles", color_hex="#FFCC00"),
        Category(name="Collectibles", icon_name="star", color_hex="#FF9500"),
        Category(name="Other", icon_name="archivebox", color_hex="#8E8E93"),
    ]


def first_run_seed(now: Optional[datetime] = None) -> tuple[list[Item], list[Category]]:
    """Example categories and items for a store with no persisted state."""
    now = now or utcnow()

    electronics = Category(name="Electronics", icon_name="iphone", color_hex="#007AFF")
    pets = Category(name="Pets", icon_name="pawprint.fill", color_hex="#FF9500")

    phone = Item(
        name="iPhone 15",
        value=Decimal("7999"),
        purchase_price=Decimal("7999"),
        purchase_date=now,
        image_name="iphone",
        category_ids={electronics.id},
        description="iPhone 15 256GB Black",
        created_date=now,
    )
    dog = Item(
        name="Border Collie",
        value=Decimal("3000"),
        purchase_price=Decimal("3000"),
        purchase_date=now - timedelta(days=365),
        image_name="dog",
        category_ids={pets.id},
        description="A lovely border collie",
        created_date=now,
    )

    return [phone, dog], [electronics, pets]


def _id_of(ref: Union[Item, Category, UUID]) -> UUID:
    return ref if isinstance(ref, UUID) else ref.id


# =============================================================================
# STORE
# =============================================================================

class AssetStore:
    """
    In-memory item and category collections with synchronous persistence.

    Single-threaded: drive it from one control flow. There is no locking,
    and two processes sharing one data directory will overwrite each other.

    Records handed in are copied, and records handed out are copies, so
    callers can never change the collections without going through a
    mutator.
    """

    def __init__(
        self,
        storage: Optional[CollectionStorageInterface] = None,
        image_store: Optional[ImageBlobStore] = None,
        audit_logger: Optional[AuditLogger] = None,
        recent_items_limit: Optional[int] = None,
    ):
        self._storage = storage or JsonFileCollectionStorage()
        self._image_store = image_store or ImageBlobStore()
        self._audit = audit_logger or AuditLogger()
        self._recent_items_limit = (
            recent_items_limit or get_settings().storage.recent_items_limit
        )

        self._items: list[Item] = []
        self._categories: list[Category] = []
        self._observers: list[Observer] = []

    @classmethod
    def open(
        cls,
        storage: Optional[CollectionStorageInterface] = None,
        image_store: Optional[ImageBlobStore] = None,
        audit_logger: Optional[AuditLogger] = None,
    ) -> "AssetStore":
        """
        Create a store and bring it to a usable state.

        - Persisted data loads: the store holds exactly that data
        - Nothing persisted yet: example data is seeded and written
        - Persisted data unreadable: empty items plus the default
          categories are written over it
        """
        store = cls(storage=storage, image_store=image_store, audit_logger=audit_logger)
        try:
            loaded = store.load()
        except PersistenceError as e:
            store._audit.log_store_load_failed(str(e))
            store.reset_to_defaults()
        else:
            if not loaded:
                store.initialize_with_defaults()
        return store

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def load(self) -> bool:
        """
        Replace the collections with the persisted ones.

        Returns:
            True if persisted data was restored, False if there was none

        Raises:
            PersistenceError: If persisted data exists but is unreadable.
                The collections are left untouched.
        """
        loaded = self._storage.load()
        if loaded is None:
            return False

        items, categories = loaded
        items, repaired = self._drop_dangling_refs(items, categories)
        self._items = items
        self._categories = list(categories)
        self._audit.log_store_loaded(len(self._items), len(self._categories))
        if repaired:
            self._audit.log_error(
                "dangling_category_refs",
                f"Removed references to missing categories from {repaired} items",
                {"repaired_items": repaired},
            )
        self._notify(StoreChange(ChangeKind.RESET))
        return True

    @staticmethod
    def _drop_dangling_refs(
        items: list[Item],
        categories: list[Category],
    ) -> tuple[list[Item], int]:
        """
        Strip category ids with no matching category.

        The two files are written separately, so a crash between the writes
        can leave items pointing at categories the other file never got.
        """
        known = {category.id for category in categories}
        repaired = 0
        result = []
        for item in items:
            if item.category_ids <= known:
                result.append(item)
            else:
                result.append(item.model_copy(update={"category_ids": item.category_ids & known}))
                repaired += 1
        return result, repaired

    def initialize_with_defaults(self, now: Optional[datetime] = None) -> None:
        """Seed example categories and items, then persist."""
        self._items, self._categories = first_run_seed(now)
        self._audit.log_store_seeded("first_run", len(self._items), len(self._categories))
        self._persist("initialize_with_defaults")
        self._notify(StoreChange(ChangeKind.RESET))

    def reset_to_defaults(self) -> None:
        """Drop all items, restore the default categories, then persist."""
        self._items = []
        self._categories = default_categories()
        self._audit.log_store_seeded("fallback", 0, len(self._categories))
        self._persist("reset_to_defaults")
        self._notify(StoreChange(ChangeKind.RESET))

    # -------------------------------------------------------------------------
    # Observers
    # -------------------------------------------------------------------------

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """
        Call ``observer`` after every mutation.

        Returns:
            A function that removes the subscription
        """
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def _notify(self, change: StoreChange) -> None:
        for observer in list(self._observers):
            try:
                observer(change)
            except Exception as e:
                # One failing observer must not starve the others
                self._audit.log_observer_failed(str(e), change.kind.value)

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def _persist(self, operation: str) -> bool:
        """Write both collections. Failures are logged, never raised."""
        try:
            self._storage.save(self._items, self._categories)
            return True
        except PersistenceError as e:
            self._audit.log_persist_failed(str(e), operation)
            return False

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def _item_index(self, item_id: UUID) -> Optional[int]:
        for index, item in enumerate(self._items):
            if item.id == item_id:
                return index
        return None

    def _category_index(self, category_id: UUID) -> Optional[int]:
        for index, category in enumerate(self._categories):
            if category.id == category_id:
                return index
        return None

    def _require_item(self, item_id: UUID) -> tuple[int, Item]:
        index = self._item_index(item_id)
        if index is None:
            raise NotFoundError(f"Item not found: {item_id}")
        return index, self._items[index]

    def _check_category_refs(self, item: Item) -> None:
        known = {category.id for category in self._categories}
        unknown = item.category_ids - known
        if unknown:
            listed = ", ".join(sorted(str(category_id) for category_id in unknown))
            raise ValidationError(f"Item {item.id} references unknown categories: {listed}")

    @property
    def items(self) -> list[Item]:
        return [item.model_copy(deep=True) for item in self._items]

    @property
    def categories(self) -> list[Category]:
        return [category.model_copy(deep=True) for category in self._categories]

    def get_item(self, item_id: UUID) -> Optional[Item]:
        """Look up an item by id. Returns None if it does not exist."""
        index = self._item_index(item_id)
        if index is None:
            return None
        return self._items[index].model_copy(deep=True)

    def get_category(self, category_id: UUID) -> Optional[Category]:
        index = self._category_index(category_id)
        if index is None:
            return None
        return self._categories[index].model_copy(deep=True)

    def categories_for(self, item: ItemRef) -> list[Category]:
        """Resolve an item's category ids to the live categories, in collection order."""
        if isinstance(item, UUID):
            _, item = self._require_item(item)
        return [
            category.model_copy(deep=True)
            for category in self._categories
            if category.id in item.category_ids
        ]

    # -------------------------------------------------------------------------
    # Items
    # -------------------------------------------------------------------------

    def add_item(self, item: Item) -> None:
        """
        Add a new item.

        Raises:
            ValidationError: If the id is already taken or a category id
                is unknown
        """
        if self._item_index(item.id) is not None:
            raise ValidationError(f"Item already exists: {item.id}")
        self._check_category_refs(item)

        self._items.append(item.model_copy(deep=True))
        self._audit.log_item_added(item.id, item.name, str(item.value))
        self._persist("add_item")
        self._notify(StoreChange(ChangeKind.ITEM_ADDED, item.id))

    def update_item(self, item: Item) -> None:
        """
        Replace the item with the same id.

        Raises:
            NotFoundError: If no item has this id
            ValidationError: If a category id is unknown
        """
        index, _ = self._require_item(item.id)
        self._check_category_refs(item)

        self._items[index] = item.model_copy(deep=True)
        self._audit.log_item_updated(item.id, item.name)
        self._persist("update_item")
        self._notify(StoreChange(ChangeKind.ITEM_UPDATED, item.id))

    def _replace_item(self, index: int, item: Item, operation: str) -> None:
        self._items[index] = item
        self._audit.log_item_updated(item.id, item.name)
        self._persist(operation)
        self._notify(StoreChange(ChangeKind.ITEM_UPDATED, item.id))

    def delete_item(self, item: ItemRef) -> None:
        """
        Delete an item, removing its custom image blob first.

        A blob that cannot be removed is reported and may be left orphaned;
        the record is removed regardless.

        Raises:
            NotFoundError: If no item has this id
        """
        index, stored = self._require_item(_id_of(item))

        image_removed = None
        if stored.is_custom_image:
            image_removed = self._image_store.delete(stored.image_name)
            if not image_removed:
                self._audit.log_image_delete_failed(stored.id, stored.image_name)

        del self._items[index]
        self._audit.log_item_deleted(stored.id, stored.name, image_removed)
        self._persist("delete_item")
        self._notify(StoreChange(ChangeKind.ITEM_DELETED, stored.id))

    def set_item_image(self, item: ItemRef, data: bytes, extension: str = ".jpg") -> bool:
        """
        Store ``data`` as the item's custom image.

        The bytes are saved under a fresh name before the previous custom
        blob (if any) is deleted.

        Returns:
            False if the new blob could not be saved; the item is then
            left unchanged

        Raises:
            NotFoundError: If no item has this id
        """
        index, stored = self._require_item(_id_of(item))

        image_name = new_image_name(extension)
        if not self._image_store.save(data, image_name):
            self._audit.log_image_save_failed(stored.id, image_name)
            return False
        self._audit.log_image_saved(stored.id, image_name)

        if stored.is_custom_image and not self._image_store.delete(stored.image_name):
            self._audit.log_image_delete_failed(stored.id, stored.image_name)

        updated = stored.model_copy(
            update={"image_name": image_name, "is_custom_image": True}
        )
        self._replace_item(index, updated, "set_item_image")
        return True

    # -------------------------------------------------------------------------
    # Value history
    # -------------------------------------------------------------------------

    def add_value_record(
        self,
        item: ItemRef,
        value: Decimal,
        date: Optional[datetime] = None,
    ) -> ValueRecord:
        """
        Append a value observation and make it the item's current value.

        Raises:
            NotFoundError: If no item has this id
            ValidationError: If the value is negative
        """
        index, stored = self._require_item(_id_of(item))

        check_amount(value, "value")
        try:
            record = ValueRecord(value=value, date=date or utcnow())
        except SchemaError as e:
            raise ValidationError(f"Invalid value record: {e}") from e

        updated = stored.model_copy(
            update={
                "value": record.value,
                "value_history": [*stored.value_history, record],
            }
        )
        self._audit.log_value_recorded(stored.id, record.id, str(record.value))
        self._replace_item(index, updated, "add_value_record")
        return record

    def delete_value_record(self, item: ItemRef, record_id: UUID) -> None:
        """
        Remove a value record. The item's current value is not changed.

        Raises:
            NotFoundError: If the item or the record does not exist
        """
        index, stored = self._require_item(_id_of(item))

        remaining = [record for record in stored.value_history if record.id != record_id]
        if len(remaining) == len(stored.value_history):
            raise NotFoundError(f"Value record not found: {record_id}")

        updated = stored.model_copy(update={"value_history": remaining})
        self._replace_item(index, updated, "delete_value_record")

    # -------------------------------------------------------------------------
    # Reminders
    # -------------------------------------------------------------------------

    def add_reminder(self, item: ItemRef, title: str, date: datetime) -> Reminder:
        """
        Attach a new open reminder to an item.

        Raises:
            NotFoundError: If no item has this id
            ValidationError: If the title is empty
        """
        index, stored = self._require_item(_id_of(item))

        title = check_title(title)
        try:
            reminder = Reminder(title=title, date=date)
        except SchemaError as e:
            raise ValidationError(f"Invalid reminder: {e}") from e

        updated = stored.model_copy(update={"reminders": [*stored.reminders, reminder]})
        self._replace_item(index, updated, "add_reminder")
        return reminder

    def update_reminder(self, item: ItemRef, reminder: Reminder) -> None:
        """
        Replace the reminder with the same id.

        Raises:
            NotFoundError: If the item or the reminder does not exist
        """
        index, stored = self._require_item(_id_of(item))

        if not any(existing.id == reminder.id for existing in stored.reminders):
            raise NotFoundError(f"Reminder not found: {reminder.id}")

        reminders = [
            reminder.model_copy() if existing.id == reminder.id else existing
            for existing in stored.reminders
        ]
        updated = stored.model_copy(update={"reminders": reminders})
        self._replace_item(index, updated, "update_reminder")

    def toggle_reminder(self, item: ItemRef, reminder_id: UUID) -> Reminder:
        """
        Flip a reminder between open and completed.

        Returns:
            The reminder as stored after the toggle

        Raises:
            NotFoundError: If the item or the reminder does not exist
        """
        _, stored = self._require_item(_id_of(item))

        for existing in stored.reminders:
            if existing.id == reminder_id:
                toggled = existing.model_copy(update={"is_completed": not existing.is_completed})
                self.update_reminder(stored.id, toggled)
                return toggled

        raise NotFoundError(f"Reminder not found: {reminder_id}")

    def delete_reminder(self, item: ItemRef, reminder_id: UUID) -> None:
        """
        Remove a reminder.

        Raises:
            NotFoundError: If the item or the reminder does not exist
        """
        index, stored = self._require_item(_id_of(item))

        remaining = [reminder for reminder in stored.reminders if reminder.id != reminder_id]
        if len(remaining) == len(stored.reminders):
            raise NotFoundError(f"Reminder not found: {reminder_id}")

        updated = stored.model_copy(update={"reminders": remaining})
        self._replace_item(index, updated, "delete_reminder")

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    def add_category(self, category: Category) -> None:
        """
        Add a new category.

        Raises:
            ValidationError: If the id is already taken
        """
        if self._category_index(category.id) is not None:
            raise ValidationError(f"Category already exists: {category.id}")

        self._categories.append(category.model_copy(deep=True))
        self._audit.log_category_added(category.id, category.name)
        self._persist("add_category")
        self._notify(StoreChange(ChangeKind.CATEGORY_ADDED, category.id))

    def update_category(self, category: Category) -> None:
        """
        Replace the category with the same id.

        Items reference categories by id, so they see the change at once.

        Raises:
            NotFoundError: If no category has this id
        """
        index = self._category_index(category.id)
        if index is None:
            raise NotFoundError(f"Category not found: {category.id}")

        self._categories[index] = category.model_copy(deep=True)
        self._audit.log_category_updated(category.id, category.name)
        self._persist("update_category")
        self._notify(StoreChange(ChangeKind.CATEGORY_UPDATED, category.id))

    def delete_category(self, category: CategoryRef) -> None:
        """
        Delete a category and remove it from every item that references it.

        All item updates and the removal are written in a single persist.

        Raises:
            NotFoundError: If no category has this id
        """
        category_id = _id_of(category)
        index = self._category_index(category_id)
        if index is None:
            raise NotFoundError(f"Category not found: {category_id}")

        affected = 0
        for item_index, item in enumerate(self._items):
            if category_id in item.category_ids:
                self._items[item_index] = item.model_copy(
                    update={"category_ids": item.category_ids - {category_id}}
                )
                affected += 1

        removed = self._categories.pop(index)
        self._audit.log_category_deleted(removed.id, removed.name, affected)
        self._persist("delete_category")
        self._notify(StoreChange(ChangeKind.CATEGORY_DELETED, removed.id))

    # -------------------------------------------------------------------------
    # Derived reads (recomputed on every call)
    # -------------------------------------------------------------------------

    def total_value(self) -> Decimal:
        """Sum of all current item values."""
        return aggregates.total_value(self._items)

    def recent_items(self, n: Optional[int] = None) -> list[Item]:
        """Most recently created items, newest first."""
        limit = self._recent_items_limit if n is None else n
        return [
            item.model_copy(deep=True)
            for item in aggregates.recent_items(self._items, limit)
        ]

    def categories_with_live_counts(self) -> list[Category]:
        """Each category with item_count/total_value computed from the items."""
        return aggregates.category_summaries(self._categories, self._items)

    def items_in_category(self, category: CategoryRef) -> list[Item]:
        """Items tagged with the category, most valuable first."""
        return [
            item.model_copy(deep=True)
            for item in aggregates.items_in_category(self._items, _id_of(category))
        ]

    def search(
        self,
        text: Optional[str] = None,
        category_ids: Optional[Iterable[UUID]] = None,
        min_value: Optional[Decimal] = None,
        max_value: Optional[Decimal] = None,
    ) -> list[Item]:
        return [
            item.model_copy(deep=True)
            for item in search_items(self._items, text, category_ids, min_value, max_value)
        ]
