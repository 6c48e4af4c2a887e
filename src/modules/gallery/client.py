"""Gallery collaborator contract used by the approval transition."""

from __future__ import annotations

from typing import Any, Dict, Protocol

from modules.gallery.models import GalleryPhoto


class IGalleryClient(Protocol):
    def add_photo(
        self, image_url: str, tags: Dict[str, str], order_info: Dict[str, Any]
    ) -> GalleryPhoto: ...
