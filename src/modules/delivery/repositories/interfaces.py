"""Delivery trip repository interface.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from datetime import date
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.delivery.models import DeliveryTrip


class ITripRepository(IRepository["DeliveryTrip"]):
    @abstractmethod
    def get_by_id(self, id: str) -> Optional[DeliveryTrip]:
        """Retrieve a trip with its member orders, or ``None``."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[DeliveryTrip]:
        """List trips with optional ORM-style filters."""

    @abstractmethod
    def list_by_driver_and_date(self, driver_type: str, trip_date: date) -> List[DeliveryTrip]:
        ...

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> DeliveryTrip:
        """Insert a trip.

        Raises:
            django.db.IntegrityError: the trip number is already taken.
        """

    @abstractmethod
    def add_order(self, trip_id: str, order_id: str) -> bool:
        """Add *order_id* to the trip; ``False`` if it was already a member."""

    @abstractmethod
    def remove_order(self, trip_id: str, order_id: str) -> bool:
        """Remove *order_id* from the trip; ``False`` if it was not a member."""

    @abstractmethod
    def open_trips_for_order(self, order_id: str) -> List[DeliveryTrip]:
        """Planned or in-progress trips that contain *order_id*."""
