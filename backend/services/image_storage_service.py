"""
Image Storage Service

Local store for mission and inspection photos uploaded by drivers.
- Compresses uploads to JPEG with Pillow
- Organizes files by upload date (YYYY/MM/DD)
- Content-addressed names, so re-uploading the same image returns the
  existing reference instead of writing a copy
- References are "images/YYYY/MM/DD/<name>.jpg", relative to the parent of
  IMAGE_STORAGE_ROOT, and are what mission/inspection metadata keep
"""

import hashlib
import logging
import re
from io import BytesIO
from pathlib import Path
from typing import Optional

from flask import current_app
from PIL import Image, UnidentifiedImageError

from backend.services.errors import ValidationError, UpstreamFailure, NotFoundError
from backend.utils.timezone_utils import utc_now

logger = logging.getLogger(__name__)

REFERENCE_PREFIX = "images"
_PREFIX_RE = re.compile(r'[^A-Za-z0-9_-]+')


class ImageStorageService:
    """
    Stores image bytes under a storage root.

    Args:
        storage_root: Base directory of the image tree (e.g., ../dispatch-storage/images)
    """

    def __init__(self, storage_root: str):
        self.storage_root = Path(storage_root)

    @classmethod
    def from_config(cls) -> "ImageStorageService":
        return cls(current_app.config['IMAGE_STORAGE_ROOT'])

    def get_date_based_directory(self, now=None) -> Path:
        now = now or utc_now()
        return self.storage_root / now.strftime("%Y") / now.strftime("%m") / now.strftime("%d")

    @staticmethod
    def compress(data: bytes, max_size_mb: float, quality: int = 85) -> bytes:
        """
        Re-encode any Pillow-readable image as an optimized JPEG.

        Raises:
            ValidationError: if the bytes are not an image or the result is
                still larger than max_size_mb
        """
        try:
            img = Image.open(BytesIO(data))
            if img.mode not in ("RGB", "L"):
                img = img.convert("RGB")
            img_io = BytesIO()
            img.save(img_io, format='JPEG', optimize=True, quality=quality)
        except (UnidentifiedImageError, OSError) as e:
            raise ValidationError(f"Image processing failed: {e}")

        size_mb = len(img_io.getbuffer()) / (1024 * 1024)
        if size_mb > max_size_mb:
            raise ValidationError(f"File exceeds max size of {max_size_mb} MB after compression")
        return img_io.getvalue()

    def store(self, data: bytes, prefix: str = "image", now=None) -> str:
        """
        Write `data` and return its reference. Same bytes on the same day give
        the same reference.

        Raises:
            UpstreamFailure: if the file cannot be written
        """
        file_hash = hashlib.md5(data).hexdigest()
        safe_prefix = _PREFIX_RE.sub('_', prefix or 'image').strip('_') or 'image'
        filename = f"{safe_prefix}_{file_hash[:16]}.jpg"

        target_dir = self.get_date_based_directory(now)
        target = target_dir / filename
        reference = f"{REFERENCE_PREFIX}/{target_dir.relative_to(self.storage_root).as_posix()}/{filename}"

        if target.exists():
            logger.info(f"Image already stored (idempotent): {reference}")
            return reference

        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            logger.error(f"Failed to store image {reference}: {e}", exc_info=True)
            raise UpstreamFailure("Could not store the image. Please try again later.")

        logger.info(f"Stored image {reference} ({len(data)} bytes)")
        return reference

    def resolve(self, reference: str) -> Optional[Path]:
        """
        Filesystem path of a stored reference.

        Raises:
            NotFoundError: for malformed references, paths escaping the
                storage root, or files that do not exist
        """
        parts = Path(reference or '').parts
        if len(parts) < 2 or parts[0] != REFERENCE_PREFIX:
            raise NotFoundError("Image not found")

        root = self.storage_root.resolve()
        path = root.joinpath(*parts[1:]).resolve()
        if root not in path.parents or not path.is_file():
            raise NotFoundError("Image not found")
        return path
