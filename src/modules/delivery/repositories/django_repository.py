"""Django ORM implementation of the delivery trip repository."""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction

from modules.delivery.constants import OPEN_TRIP_STATUSES
from modules.delivery.models import DeliveryTrip, TripMembership
from modules.delivery.repositories.interfaces import ITripRepository

logger = structlog.get_logger(__name__)


class TripDjangoRepository(ITripRepository):
    """Concrete trip repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[DeliveryTrip]:
        try:
            return DeliveryTrip.objects.prefetch_related("orders").filter(id=id).first()
        except (ValueError, DjangoValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[DeliveryTrip]:
        queryset = DeliveryTrip.objects.prefetch_related("orders")
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def list_by_driver_and_date(self, driver_type: str, trip_date: date) -> List[DeliveryTrip]:
        return self.list({"driver_type": driver_type, "trip_date": trip_date})

    def create(self, data: Dict[str, Any]) -> DeliveryTrip:
        # Savepoint: a numbering collision must not poison the outer transaction.
        with transaction.atomic():
            trip = DeliveryTrip.objects.create(**data)
        logger.info(
            "trip.created",
            trip_id=str(trip.id),
            driver_type=trip.driver_type,
            trip_date=str(trip.trip_date),
            trip_number=trip.trip_number,
        )
        return trip

    def add_order(self, trip_id: str, order_id: str) -> bool:
        _, created = TripMembership.objects.get_or_create(trip_id=trip_id, order_id=order_id)
        if created:
            logger.info("trip.order_added", trip_id=str(trip_id), order_id=str(order_id))
        return created

    def remove_order(self, trip_id: str, order_id: str) -> bool:
        deleted, _ = TripMembership.objects.filter(trip_id=trip_id, order_id=order_id).delete()
        if deleted:
            logger.info("trip.order_removed", trip_id=str(trip_id), order_id=str(order_id))
        return bool(deleted)

    def open_trips_for_order(self, order_id: str) -> List[DeliveryTrip]:
        return list(
            DeliveryTrip.objects.filter(
                memberships__order_id=order_id, status__in=OPEN_TRIP_STATUSES
            ).distinct()
        )
