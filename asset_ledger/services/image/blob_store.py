"""
Image Blob Store

Stores user-supplied item images as opaque files in one directory,
keyed by file name. The store never interprets the bytes; Pillow is
only used by the convenience helpers that encode or decode images.

Failures of save/load/delete are reported through return values
(and the log), never raised: the caller decides how much a missing
image matters.
"""

from io import BytesIO
from pathlib import Path
from typing import Optional
from uuid import uuid4

import structlog
from PIL import Image, UnidentifiedImageError

from asset_ledger.config import get_settings


logger = structlog.get_logger(__name__)


class BlobError(Exception):
    """Base exception for image blob errors."""
    pass


class InvalidBlobNameError(BlobError):
    """Blob name would resolve outside the image directory."""
    pass


def new_image_name(extension: str = ".jpg") -> str:
    """Fresh, collision-free blob name (``<uuid>.jpg``)."""
    if extension and not extension.startswith("."):
        extension = "." + extension
    return f"{str(uuid4()).upper()}{extension}"


class ImageBlobStore:
    """
    File-backed blob store for custom item images.

    Names are caller-chosen. Use new_image_name() so that two items never
    share (and silently overwrite) the same blob.
    """

    def __init__(
        self,
        directory: Optional[Path] = None,
        jpeg_quality: Optional[int] = None,
    ):
        settings = get_settings().storage
        self._directory = Path(directory) if directory else settings.images_dir
        self._jpeg_quality = jpeg_quality or settings.jpeg_quality

    @property
    def directory(self) -> Path:
        return self._directory

    def _path_for(self, name: str) -> Path:
        """Resolve a blob name to its file path."""
        if (
            not name
            or name == "."
            or ".." in name
            or "/" in name
            or "\\" in name
            or "\x00" in name
        ):
            raise InvalidBlobNameError(f"Invalid blob name: {name!r}")
        return self._directory / name

    def save(self, data: bytes, name: str) -> bool:
        """
        Write ``data`` under ``name``.

        Returns:
            True if the blob was written
        """
        try:
            path = self._path_for(name)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
            return True
        except (BlobError, OSError) as e:
            logger.error("image_save_failed", image_name=name, error=str(e))
            return False

    def load(self, name: str) -> Optional[bytes]:
        """Return the blob, or None if it does not exist or cannot be read."""
        try:
            path = self._path_for(name)
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except (BlobError, OSError) as e:
            logger.error("image_load_failed", image_name=name, error=str(e))
            return None

    def delete(self, name: str) -> bool:
        """
        Remove the blob.

        Returns:
            True if the blob was removed, False if it was missing or the
            removal failed
        """
        try:
            path = self._path_for(name)
            path.unlink()
            return True
        except (BlobError, OSError) as e:
            logger.warning("image_delete_failed", image_name=name, error=str(e))
            return False

    def exists(self, name: str) -> bool:
        try:
            return self._path_for(name).is_file()
        except BlobError:
            return False

    def save_image(self, image: Image.Image, name: str) -> bool:
        """Encode a Pillow image as JPEG and save it under ``name``."""
        if image.mode not in ("RGB", "L"):
            image = image.convert("RGB")

        buffer = BytesIO()
        try:
            image.save(buffer, format="JPEG", quality=self._jpeg_quality)
        except (OSError, ValueError) as e:
            logger.error("image_encode_failed", image_name=name, error=str(e))
            return False

        return self.save(buffer.getvalue(), name)

    def load_image(self, name: str) -> Optional[Image.Image]:
        """
        Load and decode a stored image.

        Returns:
            The decoded image, or None if the blob does not exist

        Raises:
            BlobError: If the blob exists but is not a readable image
        """
        data = self.load(name)
        if data is None:
            return None

        try:
            image = Image.open(BytesIO(data))
            image.load()
        except (UnidentifiedImageError, OSError) as e:
            raise BlobError(f"Blob {name!r} is not a readable image: {e}") from e

        return image
