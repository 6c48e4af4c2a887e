"""Order, OrderRevision and OrderLog models.

Rules implemented here:
- ``kitchen_status`` is optional and always re-derivable from ``status``;
  when present it must map onto ``status`` (a database check constraint).
- ``revision_count`` only grows; ``OrderRevision`` rows are append-only.
- ``OrderLog`` is the append-only audit trail: one row per transition.
- Two field-group versions guard concurrent writers: ``status_version``
  covers status, kitchen status, photos and revision fields;
  ``assignment_version`` covers the delivery assignment.  Status writes
  guard the status group only, except the move to ``ready-to-deliver``;
  that move and every assignment write guard both groups, since the
  preliminary flag follows the status.
- The delivery assignment is stored inline: at most one active assignment,
  overwritten on reassignment.  The log keeps the history.  Orders ready
  for or out on delivery never hold a preliminary assignment (a database
  check constraint).
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

import structlog
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel
from modules.orders.constants import (
    DELIVERY_READY_STATES,
    ORDER_NUMBER_MAX_RETRIES,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    KitchenStatus,
    OrderLogType,
    OrderStatus,
)
from modules.orders.kitchen import map_kitchen_status_to_order_status

logger = structlog.get_logger(__name__)

KITCHEN_PRODUCTION_STEPS = sorted(
    value
    for value in KitchenStatus.values
    if map_kitchen_status_to_order_status(value) == OrderStatus.IN_KITCHEN
)


@dataclass(frozen=True)
class DeliveryAssignment:
    """Read view of the inline assignment columns."""

    driver_type: str
    is_preliminary: bool
    assigned_at: datetime
    vehicle_info: str = ""


class Order(BaseModel):
    """Order aggregate root.

    ``order_number`` is a human-readable identifier auto-generated on first
    save (format: ``CK-YYYYMMDD-XXXXXX``).  The UUIDv7 ``id`` is used for
    all internal references and API lookups.
    """

    order_number: models.CharField = models.CharField(
        max_length=20, unique=True, editable=False
    )
    customer_name: models.CharField = models.CharField(max_length=255)
    customer_phone: models.CharField = models.CharField(max_length=32, blank=True, default="")
    delivery_address: models.TextField = models.TextField(blank=True, default="")
    cake_description: models.TextField = models.TextField(blank=True, default="")
    notes: models.TextField = models.TextField(blank=True, default="")

    status: models.CharField = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.IN_QUEUE,
    )
    kitchen_status: models.CharField = models.CharField(  # noqa: DJ01
        max_length=24,
        choices=KitchenStatus.choices,
        null=True,
        blank=True,
    )
    delivery_date: models.DateField = models.DateField()
    delivery_time_slot: models.CharField = models.CharField(
        max_length=32, blank=True, default=""
    )

    finished_cake_photos: models.JSONField = models.JSONField(default=list, blank=True)
    revision_count: models.PositiveIntegerField = models.PositiveIntegerField(default=0)
    revision_notes: models.TextField = models.TextField(blank=True, default="")
    approved_by: models.CharField = models.CharField(max_length=255, blank=True, default="")
    approved_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)
    delivered_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)

    assignment_driver_type: models.CharField = models.CharField(  # noqa: DJ01
        max_length=20, null=True, blank=True
    )
    assignment_is_preliminary: models.BooleanField = models.BooleanField(default=False)
    assignment_assigned_at: models.DateTimeField = models.DateTimeField(
        null=True, blank=True
    )
    assignment_vehicle_info: models.CharField = models.CharField(
        max_length=255, blank=True, default=""
    )

    status_version: models.PositiveIntegerField = models.PositiveIntegerField(default=0)
    assignment_version: models.PositiveIntegerField = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "orders"
        ordering = ["delivery_date", "delivery_time_slot", "created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["delivery_date"], name="orders_delivery_date_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                check=models.Q(kitchen_status__isnull=True)
                | models.Q(kitchen_status__in=KITCHEN_PRODUCTION_STEPS, status=OrderStatus.IN_KITCHEN)
                | models.Q(
                    kitchen_status=KitchenStatus.DONE_WAITING_APPROVAL,
                    status=OrderStatus.WAITING_PHOTO,
                ),
                name="orders_kitchen_status_matches_status",
            ),
            models.CheckConstraint(
                check=~models.Q(
                    status__in=sorted(DELIVERY_READY_STATES),
                    assignment_is_preliminary=True,
                ),
                name="orders_ready_assignment_confirmed",
            ),
        ]

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        """Return ``True`` if the order is in a terminal state."""
        return self.status in TERMINAL_STATES

    def can_transition_to(self, new_status: str) -> bool:
        """Check whether transitioning to *new_status* is valid."""
        allowed = VALID_TRANSITIONS.get(self.status, set())
        return new_status in allowed

    @property
    def delivery_assignment(self) -> Optional[DeliveryAssignment]:
        if not self.assignment_driver_type or self.assignment_assigned_at is None:
            return None
        return DeliveryAssignment(
            driver_type=self.assignment_driver_type,
            is_preliminary=self.assignment_is_preliminary,
            assigned_at=self.assignment_assigned_at,
            vehicle_info=self.assignment_vehicle_info,
        )

    # ------------------------------------------------------------------
    # Order number generation
    # ------------------------------------------------------------------

    @staticmethod
    def generate_order_number() -> str:
        """Generate a human-readable order number: ``CK-YYYYMMDD-XXXXXX``."""
        now = timezone.now()
        suffix = secrets.token_hex(3).upper()
        return f"CK-{now:%Y%m%d}-{suffix}"

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.order_number:
            for _attempt in range(ORDER_NUMBER_MAX_RETRIES):
                candidate = self.generate_order_number()
                if not Order.objects.filter(order_number=candidate).exists():
                    self.order_number = candidate
                    break
            else:
                raise RuntimeError(
                    f"Failed to generate unique order_number after "
                    f"{ORDER_NUMBER_MAX_RETRIES} attempts"
                )
        super().save(*args, **kwargs)

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def __str__(self) -> str:
        return f"{self.order_number} ({self.status})"


class OrderRevision(BaseModel):
    """One entry of the append-only revision history.

    Captures the photos that were rejected and the notes explaining what
    needs to change.  Never updated or deleted.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="revisions",
    )
    revision_number: models.PositiveIntegerField = models.PositiveIntegerField()
    notes: models.TextField = models.TextField()
    photos: models.JSONField = models.JSONField(default=list)
    requested_by: models.CharField = models.CharField(max_length=255)

    class Meta:
        db_table = "order_revisions"
        ordering = ["revision_number"]
        constraints = [
            models.UniqueConstraint(
                fields=["order", "revision_number"],
                name="order_revisions_unique_number",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order} revision #{self.revision_number}"


class OrderLog(BaseModel):
    """Append-only audit trail for every transition the engine performs.

    ``user`` is a display name supplied by the identity collaborator;
    ``"System"`` marks automatic changes.  Log rows are separate inserts,
    so racing transitions never overwrite each other's entries.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="logs",
    )
    log_type: models.CharField = models.CharField(
        max_length=32,
        choices=OrderLogType.choices,
        default=OrderLogType.STATUS_CHANGE,
    )
    previous_status: models.CharField = models.CharField(  # noqa: DJ01
        max_length=20,
        choices=OrderStatus.choices,
        null=True,
        blank=True,
    )
    new_status: models.CharField = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
    )
    note: models.TextField = models.TextField(blank=True, default="")
    user: models.CharField = models.CharField(max_length=255)

    class Meta:
        db_table = "order_logs"
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(
                fields=["order", "created_at"],
                name="order_logs_order_created_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order_id} : {self.previous_status} -> {self.new_status}"
