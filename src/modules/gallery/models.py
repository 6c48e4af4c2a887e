"""Gallery photo archive."""

from __future__ import annotations

from django.db import models

from modules.core.models import BaseModel


class GalleryPhoto(BaseModel):
    """A finished-cake photo archived for reuse as a design reference.

    ``tags`` holds catalog values keyed by ``shape`` / ``flavor`` / ``size``;
    ``order_info`` is a snapshot of the order at archive time.
    """

    image_url: models.CharField = models.CharField(max_length=1024)
    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="gallery_photos",
    )
    tags: models.JSONField = models.JSONField(default=dict, blank=True)
    order_info: models.JSONField = models.JSONField(default=dict, blank=True)

    class Meta:
        db_table = "gallery_photos"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.image_url
