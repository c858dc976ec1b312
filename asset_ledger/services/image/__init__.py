"""Image blob storage package."""

from asset_ledger.services.image.blob_store import (
    BlobError,
    ImageBlobStore,
    InvalidBlobNameError,
    new_image_name,
)

__all__ = [
    "BlobError",
    "ImageBlobStore",
    "InvalidBlobNameError",
    "new_image_name",
]
