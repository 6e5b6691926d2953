"""
Generated image storage (Supabase Storage).

Images are written to `generated/{generation_id}/variant_{n}.png` in the
configured bucket, which is served publicly.
"""

from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from repositories import client as db
from repositories.errors import RepositoryError
from settings import get_settings

logger = logging.getLogger(__name__)


def generated_image_path(generation_id: UUID, variant_index: int) -> str:
    return f"generated/{generation_id}/variant_{variant_index}.png"


def upload_generated_image(
    content: bytes,
    generation_id: UUID,
    variant_index: int,
    *,
    bucket: Optional[str] = None,
) -> str:
    """
    Upload PNG bytes and return the public URL.

    Raises:
    - RepositoryError if the upload fails.
    """

    bucket = bucket or get_settings().storage_bucket
    path = generated_image_path(generation_id, variant_index)
    storage = db.get_supabase().storage.from_(bucket)

    try:
        storage.upload(path, content, {"content-type": "image/png", "upsert": "true"})
    except Exception as e:  # storage3 raises its own StorageException hierarchy
        logger.error(
            "Failed to upload generated image",
            extra={"generation_id": str(generation_id), "variant": variant_index, "bucket": bucket},
        )
        raise RepositoryError(f"Failed to upload generated image to {bucket}/{path}: {e}") from e

    return storage.get_public_url(path)


__all__ = ["generated_image_path", "upload_generated_image"]
