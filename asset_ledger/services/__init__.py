"""Services package."""

from asset_ledger.services.image import (
    BlobError,
    ImageBlobStore,
    InvalidBlobNameError,
    new_image_name,
)
from asset_ledger.services.storage import (
    CollectionStorageInterface,
    JsonFileCollectionStorage,
    NotFoundError,
    PersistenceError,
    StoreError,
    ValidationError,
)

__all__ = [
    # Image services
    "BlobError",
    "ImageBlobStore",
    "InvalidBlobNameError",
    "new_image_name",
    # Storage services
    "CollectionStorageInterface",
    "JsonFileCollectionStorage",
    "NotFoundError",
    "PersistenceError",
    "StoreError",
    "ValidationError",
]
