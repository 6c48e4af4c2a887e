"""Trip assignment service (Use Cases).

Creates delivery trips, attaches orders to them and quick-assigns
drivers.  Attaching an order never touches its status: it only writes the
order's assignment field group.  The write is guarded by
``assignment_version`` and, because the preliminary flag follows the
status, by ``status_version`` as well; a transition committed after the
read turns the assignment into a ``StaleOrder`` conflict.
Each assignment write appends one ``delivery-assignment`` log entry in
the same transaction.
"""

from __future__ import annotations

from datetime import date, time
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

import structlog
from django.conf import settings
from django.db import IntegrityError, transaction

from modules.core.clock import Clock, system_clock
from modules.core.identity import SYSTEM_USER
from modules.core.settings_provider import DjangoSettingsProvider, ISettingsProvider
from modules.delivery.assignment import (
    assignment_changes,
    has_non_ready_orders,
    is_eligible_for_assignment,
    status_breakdown,
)
from modules.delivery.constants import TRIP_NUMBER_MAX_RETRIES, DriverType
from modules.delivery.dtos import TripCreationResult
from modules.delivery.exceptions import (
    TripClosed,
    TripNotFound,
    TripNumberUnavailable,
    UnknownDriver,
)
from modules.orders.constants import OrderLogType
from modules.orders.exceptions import OrderNotFound, StaleOrder
from modules.orders.repositories.interfaces import ASSIGNMENT_GROUP, STATUS_GROUP

if TYPE_CHECKING:
    from modules.delivery.models import DeliveryTrip
    from modules.delivery.repositories.interfaces import ITripRepository
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


class TripService:
    """Application service for delivery trips and driver assignment."""

    def __init__(
        self,
        trip_repository: ITripRepository,
        order_repository: IOrderRepository,
        settings_provider: Optional[ISettingsProvider] = None,
        clock: Clock = system_clock,
        exclusive_membership: Optional[bool] = None,
    ) -> None:
        self._trip_repo = trip_repository
        self._order_repo = order_repository
        self._settings = settings_provider or DjangoSettingsProvider()
        self._clock = clock
        if exclusive_membership is None:
            exclusive_membership = getattr(settings, "TRIP_EXCLUSIVE_MEMBERSHIP", True)
        self._exclusive = exclusive_membership

    # ------------------------------------------------------------------
    # Trips
    # ------------------------------------------------------------------

    def create_trip(
        self,
        driver_type: str,
        trip_date: date,
        departure_time: Optional[time] = None,
    ) -> DeliveryTrip:
        """Create the next numbered trip for a driver on a day.

        Raises:
            UnknownDriver: *driver_type* is not a known driver.
            TripNumberUnavailable: every retry lost the numbering race.
        """
        self._ensure_driver(driver_type)
        display_name = self.driver_display_name(driver_type)

        for attempt in range(TRIP_NUMBER_MAX_RETRIES):
            existing = self._trip_repo.list_by_driver_and_date(driver_type, trip_date)
            trip_number = max((trip.trip_number for trip in existing), default=0) + 1
            try:
                return self._trip_repo.create(
                    {
                        "driver_type": driver_type,
                        "trip_date": trip_date,
                        "trip_number": trip_number,
                        "name": f"{display_name} Trip #{trip_number}",
                        "departure_time": departure_time,
                    }
                )
            except IntegrityError:
                logger.warning(
                    "trip.number_collision",
                    driver_type=driver_type,
                    trip_date=str(trip_date),
                    trip_number=trip_number,
                    attempt=attempt + 1,
                )

        raise TripNumberUnavailable(
            f"Could not allocate a trip number for {driver_type} on {trip_date} "
            f"after {TRIP_NUMBER_MAX_RETRIES} attempts."
        )

    def create_trip_with_orders(
        self,
        driver_type: str,
        trip_date: date,
        order_ids: Sequence[str],
        departure_time: Optional[time] = None,
        user: str = SYSTEM_USER,
    ) -> TripCreationResult:
        """Create a trip and attach *order_ids* to it in one transaction.

        Closed or unknown orders are skipped and reported instead of
        failing the whole batch.
        """
        skipped: List[str] = []
        added: List[Order] = []
        with transaction.atomic():
            trip = self.create_trip(driver_type, trip_date, departure_time)
            for order_id in dict.fromkeys(str(oid) for oid in order_ids):
                order = self._order_repo.get_by_id(order_id)
                if order is None or not is_eligible_for_assignment(order.status):
                    skipped.append(order_id)
                    continue
                added.append(self._attach(trip, order, user))

        if skipped:
            logger.info("trip.orders_skipped", trip_id=str(trip.id), order_ids=skipped)

        return TripCreationResult(
            trip=self.get_trip(str(trip.id)),
            status_breakdown=status_breakdown(added),
            has_non_ready_orders=has_non_ready_orders(added),
            skipped_order_ids=skipped,
        )

    def add_order_to_trip(
        self, trip_id: str, order_id: str, user: str = SYSTEM_USER
    ) -> DeliveryTrip:
        """Attach an order to a trip; idempotent.

        The order's status is left alone.  Its assignment becomes the
        trip's driver, preliminary while the order is not yet ready.

        Raises:
            TripNotFound / OrderNotFound: unknown ids.
            TripClosed: the trip is completed.
            IneligibleForAssignment: the order is closed or a draft.
        """
        trip = self.get_trip(trip_id)
        order = self._get_order(order_id)
        with transaction.atomic():
            self._attach(trip, order, user)
        return self.get_trip(trip_id)

    def remove_order_from_trip(self, trip_id: str, order_id: str) -> DeliveryTrip:
        """Detach an order from a trip.  Its driver assignment is kept."""
        trip = self.get_trip(trip_id)
        removed = self._trip_repo.remove_order(str(trip.id), str(order_id))
        if not removed:
            logger.info("trip.remove_noop", trip_id=str(trip_id), order_id=str(order_id))
        return self.get_trip(trip_id)

    # ------------------------------------------------------------------
    # Quick assign
    # ------------------------------------------------------------------

    def assign_driver(
        self,
        order_id: str,
        driver_type: str,
        vehicle_info: Optional[str] = None,
        user: str = SYSTEM_USER,
        expected_version: Optional[int] = None,
    ) -> Order:
        """Assign (or reassign) a driver without a trip.

        Raises:
            UnknownDriver: *driver_type* is not a known driver.
            IneligibleForAssignment: the order is closed or a draft.
            StaleOrder: the assignment changed since *expected_version*.
        """
        self._ensure_driver(driver_type)
        order = self._get_order(order_id)
        if expected_version is not None and order.assignment_version != expected_version:
            raise StaleOrder(f"Order {order_id} assignment was modified concurrently.")

        with transaction.atomic():
            self._write_assignment(order, driver_type, vehicle_info, user, note_prefix="Assigned to")
        return self._get_order(order_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_trip(self, trip_id: str) -> DeliveryTrip:
        trip = self._trip_repo.get_by_id(str(trip_id))
        if trip is None:
            raise TripNotFound(f"Trip {trip_id} not found.")
        return trip

    def list_trips(
        self, driver_type: Optional[str] = None, trip_date: Optional[date] = None
    ) -> List[DeliveryTrip]:
        filters: Dict[str, Any] = {}
        if driver_type:
            filters["driver_type"] = driver_type
        if trip_date:
            filters["trip_date"] = trip_date
        return self._trip_repo.list(filters)

    def find_open_trip_for_order(self, order_id: str) -> Optional[DeliveryTrip]:
        trips = self._trip_repo.open_trips_for_order(str(order_id))
        return trips[0] if trips else None

    def driver_display_name(self, driver_type: str) -> str:
        configured = self._settings.driver_display_name(driver_type)
        if configured:
            return configured
        return DriverType(driver_type).label

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_driver(self, driver_type: str) -> None:
        if driver_type not in DriverType.values:
            raise UnknownDriver(f"Unknown driver {driver_type!r}.")

    def _get_order(self, order_id: str) -> Order:
        order = self._order_repo.get_by_id(str(order_id))
        if order is None:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def _attach(self, trip: DeliveryTrip, order: Order, user: str) -> Order:
        if not trip.is_open:
            raise TripClosed(f"Trip {trip.name} is {trip.status}.")

        # Raises IneligibleForAssignment before any membership change.
        assignment_changes(order, trip.driver_type, self._clock.now())

        if self._exclusive:
            for other in self._trip_repo.open_trips_for_order(str(order.id)):
                if other.id != trip.id:
                    self._trip_repo.remove_order(str(other.id), str(order.id))
                    logger.info(
                        "trip.order_moved",
                        order_id=str(order.id),
                        from_trip_id=str(other.id),
                        to_trip_id=str(trip.id),
                    )

        added = self._trip_repo.add_order(str(trip.id), str(order.id))
        if not added and order.assignment_driver_type == trip.driver_type:
            return order
        return self._write_assignment(
            order, trip.driver_type, None, user, note_prefix=f"Added to {trip.name}:"
        )

    def _write_assignment(
        self,
        order: Order,
        driver_type: str,
        vehicle_info: Optional[str],
        user: str,
        note_prefix: str,
    ) -> Order:
        vehicle = vehicle_info if vehicle_info is not None else self._settings.driver_vehicle(driver_type)
        changes = assignment_changes(order, driver_type, self._clock.now(), vehicle)
        # The preliminary flag is derived from the status read here.
        updated = self._order_repo.update_guarded(
            str(order.id),
            changes,
            {
                ASSIGNMENT_GROUP: order.assignment_version,
                STATUS_GROUP: order.status_version,
            },
        )
        kind = "preliminary" if changes["assignment_is_preliminary"] else "confirmed"
        self._order_repo.add_log(
            order_id=str(order.id),
            log_type=OrderLogType.DELIVERY_ASSIGNMENT,
            previous_status=order.status,
            new_status=order.status,
            note=f"{note_prefix} {self.driver_display_name(driver_type)} ({kind})",
            user=user,
        )
        logger.info(
            "assignment.saved",
            order_id=str(order.id),
            driver_type=driver_type,
            preliminary=changes["assignment_is_preliminary"],
            previous_driver_type=order.assignment_driver_type,
        )
        return updated
