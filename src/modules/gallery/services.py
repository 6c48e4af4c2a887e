"""Gallery service.

Archives approved cake photos.  Tags are filtered against the cake
catalog from the settings collaborator: unknown keys or values are
dropped instead of rejecting the photo.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.db import DatabaseError, transaction

from modules.core.settings_provider import DjangoSettingsProvider, ISettingsProvider
from modules.gallery.exceptions import GalleryUnavailable
from modules.gallery.models import GalleryPhoto

logger = structlog.get_logger(__name__)

# Tag key -> catalog list it is checked against.
TAG_CATALOG_KEYS: dict[str, str] = {
    "shape": "shapes",
    "flavor": "flavors",
    "size": "sizes",
}


class GalleryService:
    def __init__(self, settings_provider: Optional[ISettingsProvider] = None) -> None:
        self._settings = settings_provider or DjangoSettingsProvider()

    def filter_tags(self, tags: Dict[str, str]) -> Dict[str, str]:
        catalog = self._settings.cake_catalog()
        kept: Dict[str, str] = {}
        for key, value in (tags or {}).items():
            allowed = catalog.get(TAG_CATALOG_KEYS.get(key, ""), [])
            if value in allowed:
                kept[key] = value
            else:
                logger.info("gallery.tag_dropped", tag=key, value=value)
        return kept

    def add_photo(
        self, image_url: str, tags: Dict[str, str], order_info: Dict[str, Any]
    ) -> GalleryPhoto:
        """Persist one photo.

        Raises:
            GalleryUnavailable: the archive write failed.
        """
        clean_tags = self.filter_tags(tags)
        try:
            with transaction.atomic():
                photo = GalleryPhoto.objects.create(
                    image_url=image_url,
                    order_id=order_info.get("order_id"),
                    tags=clean_tags,
                    order_info=dict(order_info),
                )
        except DatabaseError as exc:
            logger.error("gallery.add_failed", image_url=image_url, error=str(exc))
            raise GalleryUnavailable(f"Could not archive {image_url}.") from exc

        logger.info(
            "gallery.photo_added",
            photo_id=str(photo.id),
            order_id=order_info.get("order_id"),
            tags=clean_tags,
        )
        return photo

    def list_photos(self, order_id: Optional[str] = None) -> List[GalleryPhoto]:
        queryset = GalleryPhoto.objects.all()
        if order_id:
            queryset = queryset.filter(order_id=order_id)
        return list(queryset)
