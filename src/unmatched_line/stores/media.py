"""Cover image gallery."""

from __future__ import annotations

import logging
from pathlib import Path

from unmatched_line.cancellation import CancelToken
from unmatched_line.client import COVER_IMAGES_PATH
from unmatched_line.errors import ContentServiceError, Unauthorized
from unmatched_line.models import CoverImage, CoverImageList, MutationResult
from unmatched_line.stores.base import Store, is_stale

logger = logging.getLogger(__name__)

MAX_UPLOAD_FILES = 5


class CoverImageStore(Store):
    """Cached listing of cover images plus admin upload and delete."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.images: list[CoverImage] = []

    def fetch(self, token: CancelToken | None = None) -> None:
        if is_stale(token):
            return
        self._begin(token)
        try:
            data = self._cached_get(COVER_IMAGES_PATH, CoverImageList, token=token)
        except ContentServiceError as exc:
            self._fail(exc, "Failed to fetch cover images", token)
            return
        if is_stale(token):
            return
        self._set(images=list(data.cover_images), loading=False)

    def upload(self, paths: list[Path]) -> MutationResult:
        if not paths or len(paths) > MAX_UPLOAD_FILES:
            message = f"Please upload between 1 and {MAX_UPLOAD_FILES} images"
            self._set(error=message)
            return MutationResult(success=False, message=message)

        self._begin()
        try:
            data = self.client.upload_cover_images(paths)
        except Unauthorized:
            return self._auth_required()
        except ContentServiceError as exc:
            return MutationResult(success=False, message=self._fail(exc, "Failed to upload images"))

        self._invalidate()
        self._set(images=[*data.cover_images, *self.images], loading=False)
        logger.info("Uploaded %d cover image(s)", len(data.cover_images))
        return MutationResult(success=True, entity=data.cover_images)

    def delete(self, image_id: str) -> MutationResult:
        self._begin()
        try:
            response = self.client.delete_cover_image(image_id)
        except Unauthorized:
            return self._auth_required()
        except ContentServiceError as exc:
            return MutationResult(success=False, message=self._fail(exc, "Failed to delete image"))

        self._invalidate()
        self._set(images=[i for i in self.images if i.id != image_id], loading=False)
        return MutationResult(success=True, message=response.message)
