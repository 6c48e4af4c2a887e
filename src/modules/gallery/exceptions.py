"""Gallery exceptions."""

from __future__ import annotations

from shared.domain.exceptions import SideEffectError


class GalleryUnavailable(SideEffectError):
    """A photo could not be archived in the gallery."""

    code = "gallery_unavailable"
