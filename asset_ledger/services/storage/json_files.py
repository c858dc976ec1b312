"""
JSON File Storage Implementation

Each collection lives in its own JSON file (items.json, categories.json).

TRADEOFFS:
- Each file is replaced atomically (temp file + rename), but the pair is
  not. A crash between the two writes leaves them out of sync.
- No file locking. Two processes writing the same directory race and
  the last writer wins.

File layout is kept compatible with existing data files:
camelCase keys, items embedding full category snapshots under
"categories", colors as hex strings, amounts as JSON numbers.
"""

import json
import os
from pathlib import Path
from typing import Any, Optional
from uuid import UUID

from pydantic import ValidationError as SchemaError

from asset_ledger.config import get_settings
from asset_ledger.models.asset import Category, Item
from asset_ledger.services.storage.interface import (
    CollectionStorageInterface,
    PersistenceError,
)


# Key order of a persisted item record
ITEM_KEYS = [
    "id",
    "name",
    "value",
    "purchasePrice",
    "purchaseDate",
    "imageName",
    "categories",
    "description",
    "createdDate",
    "valueHistory",
    "reminders",
    "isCustomImage",
]


class JsonFileCollectionStorage(CollectionStorageInterface):
    """
    File-backed collection storage.

    Category membership is kept as ids in memory. On write, each item's
    ids are expanded to full category snapshots taken from the category
    collection being written; on read, only the snapshot ids are kept.
    """

    def __init__(
        self,
        items_path: Optional[Path] = None,
        categories_path: Optional[Path] = None,
    ):
        settings = get_settings().storage
        self._items_path = Path(items_path) if items_path else settings.items_path
        self._categories_path = (
            Path(categories_path) if categories_path else settings.categories_path
        )

    @property
    def items_path(self) -> Path:
        return self._items_path

    @property
    def categories_path(self) -> Path:
        return self._categories_path

    # -------------------------------------------------------------------------
    # Record conversion
    # -------------------------------------------------------------------------

    def _category_to_record(self, category: Category) -> dict:
        """Convert a Category to its persisted dict."""
        return category.model_dump(mode="json", by_alias=True)

    def _record_to_category(self, record: Any) -> Category:
        """Convert a persisted dict to a Category."""
        return Category.model_validate(record)

    def _item_to_record(
        self,
        item: Item,
        categories_by_id: dict[UUID, Category],
    ) -> dict:
        """Convert an Item to its persisted dict with embedded category snapshots."""
        record = item.model_dump(mode="json", by_alias=True, exclude={"category_ids"})

        snapshots = []
        for category_id in sorted(item.category_ids, key=str):
            category = categories_by_id.get(category_id)
            if category is None:
                raise PersistenceError(
                    f"Item {item.id} references unknown category {category_id}"
                )
            snapshots.append(self._category_to_record(category))
        record["categories"] = snapshots

        return {key: record[key] for key in ITEM_KEYS}

    def _record_to_item(self, record: Any) -> Item:
        """Convert a persisted dict to an Item, keeping only category ids."""
        if not isinstance(record, dict):
            raise PersistenceError(f"Expected an item object, got {type(record).__name__}")

        data = dict(record)
        category_ids = []
        for entry in data.pop("categories", None) or []:
            # Older files embed full snapshots; plain id strings are accepted too
            category_ids.append(entry["id"] if isinstance(entry, dict) else entry)
        data["category_ids"] = category_ids

        return Item.model_validate(data)

    # -------------------------------------------------------------------------
    # Encoding
    # -------------------------------------------------------------------------

    def encode_categories(self, categories: list[Category]) -> str:
        """Serialize the category collection to JSON text."""
        return json.dumps(
            [self._category_to_record(category) for category in categories],
            ensure_ascii=False,
            indent=2,
        )

    def encode_items(self, items: list[Item], categories: list[Category]) -> str:
        """Serialize the item collection to JSON text."""
        categories_by_id = {category.id: category for category in categories}
        return json.dumps(
            [self._item_to_record(item, categories_by_id) for item in items],
            ensure_ascii=False,
            indent=2,
        )

    def decode_categories(self, text: str) -> list[Category]:
        """Parse JSON text into the category collection."""
        try:
            records = json.loads(text)
            if not isinstance(records, list):
                raise PersistenceError("Categories file does not hold a JSON array")
            categories = [self._record_to_category(record) for record in records]
        except PersistenceError:
            raise
        except (ValueError, TypeError, KeyError, SchemaError) as e:
            raise PersistenceError(f"Failed to parse categories: {e}") from e

        self._check_unique_ids([category.id for category in categories], "category")
        return categories

    def decode_items(self, text: str) -> list[Item]:
        """Parse JSON text into the item collection."""
        try:
            records = json.loads(text)
            if not isinstance(records, list):
                raise PersistenceError("Items file does not hold a JSON array")
            items = [self._record_to_item(record) for record in records]
        except PersistenceError:
            raise
        except (ValueError, TypeError, KeyError, SchemaError) as e:
            raise PersistenceError(f"Failed to parse items: {e}") from e

        self._check_unique_ids([item.id for item in items], "item")
        return items

    def _check_unique_ids(self, ids: list[UUID], kind: str) -> None:
        if len(ids) != len(set(ids)):
            raise PersistenceError(f"Persisted {kind} collection contains duplicate ids")

    # -------------------------------------------------------------------------
    # CollectionStorageInterface
    # -------------------------------------------------------------------------

    def load(self) -> Optional[tuple[list[Item], list[Category]]]:
        """Read both files. None if neither exists yet."""
        if not self._items_path.exists() and not self._categories_path.exists():
            return None

        try:
            items_text = self._items_path.read_text(encoding="utf-8")
            categories_text = self._categories_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceError(f"Failed to read persisted collections: {e}") from e

        categories = self.decode_categories(categories_text)
        items = self.decode_items(items_text)
        return items, categories

    def save(self, items: list[Item], categories: list[Category]) -> None:
        """Serialize both collections, then write items.json and categories.json."""
        # Serialize everything before touching either file
        try:
            items_text = self.encode_items(items, categories)
            categories_text = self.encode_categories(categories)
        except PersistenceError:
            raise
        except (ValueError, TypeError) as e:
            raise PersistenceError(f"Failed to serialize collections: {e}") from e

        self._write_atomic(self._items_path, items_text)
        self._write_atomic(self._categories_path, categories_text)

    def _write_atomic(self, path: Path, text: str) -> None:
        """Replace ``path`` with ``text`` via a temp file in the same directory."""
        tmp_path = path.with_name(path.name + ".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(text, encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as e:
            raise PersistenceError(f"Failed to write {path}: {e}") from e
