"""
app/services/photo_service.py

Purpose: Booking photo storage

- Accepts common raster images only (jpeg/jpg/png/gif)
- Enforces per-file size and per-booking count limits
- Stores files on local disk under unique names
- Always closes the upload stream, and cleans up partial batches
"""

import os
import secrets
import time
from pathlib import Path
from typing import List, Sequence

from fastapi import UploadFile

from app.core.exceptions import ValidationError
from app.core.logging import get_logger
from utils.validation_utils import is_allowed_image

logger = get_logger(__name__)

# Read uploads in chunks so an oversized file is rejected early
CHUNK_SIZE = 64 * 1024


class PhotoStore:
    """Stores uploaded booking photos in a local directory"""

    def __init__(self, upload_dir: str, max_files: int = 5, max_file_bytes: int = 5 * 1024 * 1024):
        self.upload_dir = Path(upload_dir)
        self.max_files = max_files
        self.max_file_bytes = max_file_bytes

    def _unique_name(self, original_name: str) -> str:
        ext = os.path.splitext(original_name)[1].lower()
        return f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{ext}"

    async def save(self, upload: UploadFile) -> str:
        """
        Writes one upload to disk.

        Returns:
            Stored file name (relative to the upload directory)

        Raises:
            ValidationError: Wrong type or file too large
        """
        try:
            if not is_allowed_image(upload.filename, upload.content_type):
                raise ValidationError(
                    "Only image files are allowed!",
                    details={"filename": upload.filename, "content_type": upload.content_type}
                )

            self.upload_dir.mkdir(parents=True, exist_ok=True)
            name = self._unique_name(upload.filename)
            path = self.upload_dir / name

            written = 0
            try:
                with open(path, "wb") as buffer:
                    while True:
                        chunk = await upload.read(CHUNK_SIZE)
                        if not chunk:
                            break
                        written += len(chunk)
                        if written > self.max_file_bytes:
                            raise ValidationError(
                                f"File too large (limit {self.max_file_bytes // (1024 * 1024)}MB)",
                                details={"filename": upload.filename}
                            )
                        buffer.write(chunk)
            except Exception:
                path.unlink(missing_ok=True)
                raise

            logger.info(f"Stored photo {name} ({written} bytes)")
            return name
        finally:
            await upload.close()

    async def save_all(self, uploads: Sequence[UploadFile]) -> List[str]:
        """
        Stores a batch of uploads; on any failure removes what this call wrote.
        """
        uploads = [u for u in uploads if u is not None and u.filename]
        if len(uploads) > self.max_files:
            for upload in uploads:
                await upload.close()
            raise ValidationError(
                f"Too many photos (limit {self.max_files})",
                details={"count": len(uploads)}
            )

        stored: List[str] = []
        try:
            for index, upload in enumerate(uploads):
                try:
                    stored.append(await self.save(upload))
                except Exception:
                    # Remaining uploads still need their streams released
                    for pending in uploads[index + 1:]:
                        await pending.close()
                    raise
        except Exception:
            self.delete(stored)
            raise
        return stored

    def delete(self, names: Sequence[str]):
        for name in names:
            try:
                (self.upload_dir / name).unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"Could not remove photo {name}: {e}")
