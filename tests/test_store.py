"""Tests for the AssetStore."""

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

from asset_ledger.models import AuditEventType, Category, Item, Reminder
from asset_ledger.queries import annualized_return
from asset_ledger.services.storage import NotFoundError, ValidationError
from asset_ledger.store import AssetStore, ChangeKind, StoreChange, default_categories


NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def electronics():
    return Category(name="Electronics", icon_name="iphone", color_hex="#007AFF")


@pytest.fixture
def changes(store):
    """Record every notification the store sends."""
    received = []
    store.subscribe(received.append)
    return received


class TestStartup:
    """Tests for AssetStore.open and the lifecycle operations."""

    def test_construction_does_no_io(self, memory_storage, image_store, audit_logger):
        store = AssetStore(storage=memory_storage, image_store=image_store, audit_logger=audit_logger)
        assert store.items == []
        assert store.categories == []
        assert memory_storage.save_count == 0
        assert audit_logger.events == []

    def test_first_run_seeds_and_persists(self, memory_storage, image_store, audit_logger):
        store = AssetStore.open(storage=memory_storage, image_store=image_store, audit_logger=audit_logger)

        assert {item.name for item in store.items} == {"iPhone 15", "Border Collie"}
        assert {category.name for category in store.categories} == {"Electronics", "Pets"}
        assert memory_storage.save_count == 1
        assert audit_logger.of_type(AuditEventType.STORE_SEEDED)[0].details["reason"] == "first_run"

    def test_existing_data_is_loaded_verbatim(self, storage_factory, image_store, audit_logger, electronics):
        item = Item(name="Laptop", value=Decimal("900"), category_ids={electronics.id})
        storage = storage_factory(initial=([item], [electronics]))

        store = AssetStore.open(storage=storage, image_store=image_store, audit_logger=audit_logger)

        assert [loaded.model_dump() for loaded in store.items] == [item.model_dump()]
        assert store.categories == [electronics]
        assert storage.save_count == 0
        assert audit_logger.of_type(AuditEventType.STORE_LOADED)

    def test_unreadable_data_falls_back_to_defaults(self, storage_factory, image_store, audit_logger):
        storage = storage_factory(fail_load=True)

        store = AssetStore.open(storage=storage, image_store=image_store, audit_logger=audit_logger)

        assert store.items == []
        assert [category.name for category in store.categories] == [
            "Electronics", "Furniture", "Clothing", "Jewelry", "Collectibles", "Other",
        ]
        assert storage.save_count == 1
        assert audit_logger.of_type(AuditEventType.STORE_LOAD_FAILED)

    def test_open_keeps_records_outside_form_rules(self, file_storage, image_store, audit_logger):
        """Test a negative value or long description never triggers the fallback reset."""
        file_storage.save(
            [
                Item(name="Car loan", value=Decimal("-4200"), purchase_price=Decimal("10000")),
                Item(name="Piano", value=Decimal("8000"), description="y" * 1500),
            ],
            [],
        )

        store = AssetStore.open(storage=file_storage, image_store=image_store, audit_logger=audit_logger)

        assert sorted(item.name for item in store.items) == ["Car loan", "Piano"]
        assert audit_logger.of_type(AuditEventType.STORE_LOAD_FAILED) == []
        assert store.total_value() == Decimal("3800")

        reopened, _ = file_storage.load()
        assert len(reopened) == 2

    def test_load_repairs_dangling_category_references(self, storage_factory, make_store, audit_logger, electronics):
        missing = uuid4()
        item = Item(name="Lamp", value=Decimal("40"), category_ids={electronics.id, missing})
        store = make_store(storage_factory(initial=([item], [electronics])))

        assert store.load() is True
        assert store.get_item(item.id).category_ids == {electronics.id}
        errors = audit_logger.of_type(AuditEventType.SYSTEM_ERROR)
        assert errors[0].details["repaired_items"] == 1

    def test_load_without_persisted_data(self, store):
        assert store.load() is False

    def test_initialize_with_defaults_seed(self, store):
        store.initialize_with_defaults(now=NOW)

        dog = next(item for item in store.items if item.name == "Border Collie")
        assert dog.purchase_date == NOW - timedelta(days=365)
        assert store.categories_for(dog)[0].name == "Pets"
        assert annualized_return(dog, now=NOW) == pytest.approx(0.0)
        assert store.total_value() == Decimal("10999")

    def test_reset_to_defaults_drops_items(self, store, electronics):
        store.add_category(electronics)
        store.add_item(Item(name="Phone", value=Decimal("1"), category_ids={electronics.id}))

        store.reset_to_defaults()

        assert store.items == []
        assert len(store.categories) == len(default_categories())

    def test_file_backed_reopen(self, file_storage, image_store, audit_logger):
        first = AssetStore.open(storage=file_storage, image_store=image_store, audit_logger=audit_logger)
        first.add_item(Item(name="Watch", value=Decimal("1234.56")))

        second = AssetStore.open(storage=file_storage, image_store=image_store, audit_logger=audit_logger)

        assert sorted(item.name for item in second.items) == ["Border Collie", "Watch", "iPhone 15"]
        watch = next(item for item in second.items if item.name == "Watch")
        assert watch.value == Decimal("1234.56")


class TestItems:
    """Tests for item mutators."""

    def test_add_item_with_category_and_live_counts(self, store, electronics):
        """Test adding then removing a category keeps counts live."""
        store.add_category(electronics)
        item = Item(name="MacBook", value=Decimal("12999"), category_ids={electronics.id})
        store.add_item(item)

        summary = store.categories_with_live_counts()[0]
        assert summary.item_count == 1
        assert summary.total_value == Decimal("12999")

        store.delete_category(electronics)

        assert store.categories == []
        assert store.get_item(item.id).category_ids == set()
        assert store.categories_for(item.id) == []

    def test_duplicate_id_rejected(self, store):
        item = Item(name="Chair", value=Decimal("80"))
        store.add_item(item)

        with pytest.raises(ValidationError, match="already exists"):
            store.add_item(item)
        assert len(store.items) == 1

    def test_unknown_category_rejected(self, store, memory_storage):
        item = Item(name="Orphan", value=Decimal("1"), category_ids={uuid4()})

        with pytest.raises(ValidationError, match="unknown categories"):
            store.add_item(item)
        assert store.items == []
        assert memory_storage.save_count == 0

    def test_update_item(self, store):
        item = Item(name="Bike", value=Decimal("500"))
        store.add_item(item)

        store.update_item(item.model_copy(update={"name": "Road bike", "value": Decimal("450")}))

        stored = store.get_item(item.id)
        assert stored.name == "Road bike"
        assert stored.value == Decimal("450")

    def test_update_missing_item(self, store):
        with pytest.raises(NotFoundError):
            store.update_item(Item(name="Ghost", value=Decimal("1")))

    def test_delete_missing_item(self, store):
        with pytest.raises(NotFoundError):
            store.delete_item(uuid4())

    def test_returned_records_are_copies(self, store):
        item = Item(name="Desk", value=Decimal("200"))
        store.add_item(item)

        # mutating the caller's object or a returned copy does not leak in
        item.name = "Changed"
        copy = store.get_item(item.id)
        copy.value = Decimal("1")

        stored = store.get_item(item.id)
        assert stored.name == "Desk"
        assert stored.value == Decimal("200")

    def test_get_missing_item_returns_none(self, store):
        assert store.get_item(uuid4()) is None
        assert store.get_category(uuid4()) is None

    def test_recent_items_uses_configured_limit(self, store):
        for day in range(12):
            store.add_item(Item(name=f"item-{day}", value=Decimal("1"), created_date=NOW - timedelta(days=day)))

        recent = store.recent_items()
        assert len(recent) == 10
        assert recent[0].name == "item-0"
        assert len(store.recent_items(3)) == 3

    def test_search_and_items_in_category(self, store, electronics):
        store.add_category(electronics)
        store.add_item(Item(name="Phone", value=Decimal("100"), category_ids={electronics.id}))
        store.add_item(Item(name="Tablet", value=Decimal("300"), category_ids={electronics.id}))
        store.add_item(Item(name="Sofa", value=Decimal("900")))

        assert [item.name for item in store.items_in_category(electronics)] == ["Tablet", "Phone"]
        assert [item.name for item in store.search(text="tab")] == ["Tablet"]
        assert [item.name for item in store.search(min_value=Decimal("500"))] == ["Sofa"]


class TestImages:
    """Tests for custom image handling."""

    def test_set_item_image_stores_blob(self, store, image_store):
        item = Item(name="Painting", value=Decimal("800"))
        store.add_item(item)

        assert store.set_item_image(item, b"jpeg bytes") is True

        stored = store.get_item(item.id)
        assert stored.is_custom_image is True
        assert image_store.load(stored.image_name) == b"jpeg bytes"

    def test_replacing_image_removes_previous_blob(self, store, image_store):
        item = Item(name="Painting", value=Decimal("800"))
        store.add_item(item)
        store.set_item_image(item, b"first")
        first_name = store.get_item(item.id).image_name

        store.set_item_image(item, b"second")

        assert not image_store.exists(first_name)
        assert image_store.load(store.get_item(item.id).image_name) == b"second"

    def test_delete_item_removes_custom_blob(self, store, image_store):
        item = Item(name="Painting", value=Decimal("800"))
        store.add_item(item)
        store.set_item_image(item, b"jpeg bytes")
        image_name = store.get_item(item.id).image_name

        store.delete_item(item)

        assert store.items == []
        assert not image_store.exists(image_name)

    def test_blob_delete_failure_does_not_block_deletion(self, store, audit_logger):
        item = Item(name="Vase", value=Decimal("60"), image_name="MISSING.jpg", is_custom_image=True)
        store.add_item(item)

        store.delete_item(item.id)

        assert store.items == []
        assert audit_logger.of_type(AuditEventType.IMAGE_DELETE_FAILED)
        assert audit_logger.of_type(AuditEventType.ITEM_DELETED)[0].details["image_removed"] is False

    def test_bundled_image_is_never_deleted(self, store, image_store):
        image_store.save(b"bundled", "defaultAsset")
        item = Item(name="Rug", value=Decimal("150"))
        store.add_item(item)

        store.delete_item(item)

        assert image_store.exists("defaultAsset")

    def test_set_image_on_missing_item(self, store):
        with pytest.raises(NotFoundError):
            store.set_item_image(uuid4(), b"data")


class TestValueHistory:
    """Tests for value records."""

    def test_add_value_record_updates_current_value(self, store):
        item = Item(name="Guitar", value=Decimal("400"), purchase_price=Decimal("400"))
        store.add_item(item)

        record = store.add_value_record(item, Decimal("500"), date=NOW)

        stored = store.get_item(item.id)
        assert stored.value == Decimal("500")
        assert stored.value_history == [record]

    def test_negative_value_record_rejected(self, store):
        item = Item(name="Guitar", value=Decimal("400"))
        store.add_item(item)

        with pytest.raises(ValidationError):
            store.add_value_record(item, Decimal("-1"))
        assert store.get_item(item.id).value_history == []

    def test_delete_value_record_keeps_current_value(self, store):
        item = Item(name="Guitar", value=Decimal("400"))
        store.add_item(item)
        record = store.add_value_record(item, Decimal("450"))

        store.delete_value_record(item, record.id)

        stored = store.get_item(item.id)
        assert stored.value_history == []
        assert stored.value == Decimal("450")

    def test_delete_missing_value_record(self, store):
        item = Item(name="Guitar", value=Decimal("400"))
        store.add_item(item)

        with pytest.raises(NotFoundError):
            store.delete_value_record(item, uuid4())


class TestReminders:
    """Tests for reminders."""

    @pytest.fixture
    def car(self, store):
        item = Item(name="Car", value=Decimal("15000"))
        store.add_item(item)
        return item

    def test_add_and_toggle(self, store, car):
        reminder = store.add_reminder(car, "Service", NOW)
        assert reminder.is_completed is False

        toggled = store.toggle_reminder(car, reminder.id)

        assert toggled.is_completed is True
        assert store.get_item(car.id).reminders[0].is_completed is True

    def test_update_reminder(self, store, car):
        reminder = store.add_reminder(car, "Service", NOW)

        store.update_reminder(car, reminder.model_copy(update={"title": "Annual service"}))

        assert store.get_item(car.id).reminders[0].title == "Annual service"

    def test_update_unknown_reminder(self, store, car):
        with pytest.raises(NotFoundError):
            store.update_reminder(car, Reminder(title="Other", date=NOW))

    def test_delete_reminder(self, store, car):
        reminder = store.add_reminder(car, "Service", NOW)
        store.delete_reminder(car, reminder.id)
        assert store.get_item(car.id).reminders == []

        with pytest.raises(NotFoundError):
            store.delete_reminder(car, reminder.id)

    def test_blank_title_rejected(self, store, car):
        with pytest.raises(ValidationError):
            store.add_reminder(car, "   ", NOW)

    def test_overlong_title_rejected(self, store, car):
        with pytest.raises(ValidationError, match="longer than"):
            store.add_reminder(car, "t" * 201, NOW)
        assert store.get_item(car.id).reminders == []


class TestCategories:
    """Tests for category mutators."""

    def test_duplicate_category_rejected(self, store, electronics):
        store.add_category(electronics)
        with pytest.raises(ValidationError):
            store.add_category(electronics)
        assert len(store.categories) == 1

    def test_update_category_is_seen_through_items(self, store, electronics):
        store.add_category(electronics)
        item = Item(name="Phone", value=Decimal("100"), category_ids={electronics.id})
        store.add_item(item)

        store.update_category(electronics.model_copy(update={"name": "Gadgets", "color_hex": "#FF0000"}))

        resolved = store.categories_for(item.id)
        assert resolved[0].name == "Gadgets"
        assert resolved[0].color == (255, 0, 0)

    def test_update_missing_category(self, store):
        with pytest.raises(NotFoundError):
            store.update_category(Category(name="Ghost"))

    def test_delete_missing_category(self, store):
        with pytest.raises(NotFoundError):
            store.delete_category(uuid4())

    def test_delete_category_persists_once(self, store, memory_storage, audit_logger, electronics):
        store.add_category(electronics)
        for name in ("Phone", "Tablet", "Laptop"):
            store.add_item(Item(name=name, value=Decimal("1"), category_ids={electronics.id}))
        saves_before = memory_storage.save_count

        store.delete_category(electronics.id)

        assert memory_storage.save_count == saves_before + 1
        assert audit_logger.of_type(AuditEventType.CATEGORY_DELETED)[0].details["affected_items"] == 3
        saved_items, saved_categories = memory_storage.saved
        assert saved_categories == []
        assert all(item.category_ids == set() for item in saved_items)


class TestPersistencePolicy:
    """Tests for best-effort persistence."""

    def test_failed_persist_keeps_in_memory_change(self, storage_factory, make_store, audit_logger, electronics):
        store = make_store(storage_factory(fail_save=True))
        received = []
        store.subscribe(received.append)

        store.add_category(electronics)

        assert store.categories == [electronics]
        failures = audit_logger.of_type(AuditEventType.PERSIST_FAILED)
        assert failures[0].details["operation"] == "add_category"
        assert received == [StoreChange(ChangeKind.CATEGORY_ADDED, electronics.id)]

    def test_every_mutation_persists(self, store, memory_storage, electronics):
        store.add_category(electronics)
        item = Item(name="Phone", value=Decimal("100"), category_ids={electronics.id})
        store.add_item(item)
        store.add_value_record(item, Decimal("90"))
        store.delete_item(item)

        assert memory_storage.save_count == 4
        assert memory_storage.saved[0] == []


class TestObservers:
    """Tests for change notification."""

    def test_notified_after_each_mutation(self, store, changes, electronics):
        item = Item(name="Phone", value=Decimal("100"))
        store.add_category(electronics)
        store.add_item(item)
        store.delete_item(item)

        assert changes == [
            StoreChange(ChangeKind.CATEGORY_ADDED, electronics.id),
            StoreChange(ChangeKind.ITEM_ADDED, item.id),
            StoreChange(ChangeKind.ITEM_DELETED, item.id),
        ]

    def test_rejected_mutation_does_not_notify(self, store, changes):
        with pytest.raises(NotFoundError):
            store.delete_item(uuid4())
        assert changes == []

    def test_unsubscribe(self, store):
        received = []
        unsubscribe = store.subscribe(received.append)
        unsubscribe()

        store.add_item(Item(name="Phone", value=Decimal("100")))

        assert received == []

    def test_failing_observer_does_not_starve_others(self, store, audit_logger):
        def broken(change):
            raise RuntimeError("boom")

        received = []
        store.subscribe(broken)
        store.subscribe(received.append)

        store.add_item(Item(name="Phone", value=Decimal("100")))

        assert len(received) == 1
        assert audit_logger.of_type(AuditEventType.OBSERVER_FAILED)[0].error_message == "boom"

    def test_reset_notification(self, store, changes):
        store.reset_to_defaults()
        assert changes == [StoreChange(ChangeKind.RESET)]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
