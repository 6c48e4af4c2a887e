"""Delivery trip models.

A trip batches orders for one driver on one calendar day.  Membership is
a separate row per order, so an order is never listed twice in a trip.
Whether an order may sit in several open trips at once is decided by the
``TRIP_EXCLUSIVE_MEMBERSHIP`` setting, not by the schema.
"""

from __future__ import annotations

from django.db import models

from modules.core.models import BaseModel
from modules.delivery.constants import OPEN_TRIP_STATUSES, DriverType, TripStatus


class DeliveryTrip(BaseModel):
    driver_type: models.CharField = models.CharField(
        max_length=20, choices=DriverType.choices
    )
    trip_date: models.DateField = models.DateField()
    trip_number: models.PositiveIntegerField = models.PositiveIntegerField()
    name: models.CharField = models.CharField(max_length=120)
    departure_time: models.TimeField = models.TimeField(null=True, blank=True)
    status: models.CharField = models.CharField(
        max_length=20, choices=TripStatus.choices, default=TripStatus.PLANNED
    )
    orders: models.ManyToManyField = models.ManyToManyField(
        "orders.Order",
        through="delivery.TripMembership",
        related_name="trips",
    )

    class Meta:
        db_table = "delivery_trips"
        ordering = ["trip_date", "driver_type", "trip_number"]
        constraints = [
            models.UniqueConstraint(
                fields=["driver_type", "trip_date", "trip_number"],
                name="delivery_trips_unique_number",
            ),
        ]

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_TRIP_STATUSES

    def __str__(self) -> str:
        return f"{self.name} ({self.trip_date})"


class TripMembership(BaseModel):
    trip: models.ForeignKey = models.ForeignKey(
        "delivery.DeliveryTrip",
        on_delete=models.CASCADE,
        related_name="memberships",
    )
    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="trip_memberships",
    )

    class Meta:
        db_table = "delivery_trip_memberships"
        ordering = ["created_at", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["trip", "order"],
                name="delivery_trip_memberships_unique_order",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.trip_id} <- {self.order_id}"
