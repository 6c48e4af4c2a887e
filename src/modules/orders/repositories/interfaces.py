"""Order repository interface.

Extends ``IRepository[Order]`` with the guarded write used by every
state-machine transition, plus the append-only log and revision records.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.models import Order, OrderLog, OrderRevision


STATUS_GROUP = "status"
ASSIGNMENT_GROUP = "assignment"

FIELD_GROUPS: Dict[str, frozenset[str]] = {
    STATUS_GROUP: frozenset(
        {
            "status",
            "kitchen_status",
            "finished_cake_photos",
            "revision_count",
            "revision_notes",
            "approved_by",
            "approved_at",
            "delivered_at",
        }
    ),
    ASSIGNMENT_GROUP: frozenset(
        {
            "assignment_driver_type",
            "assignment_is_preliminary",
            "assignment_assigned_at",
            "assignment_vehicle_info",
        }
    ),
}


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    ``update_guarded`` is a compare-and-swap: it only applies *changes*
    when every version in *expected_versions* still matches, and bumps the
    versions of the groups it writes.  A group that was only read (the
    status behind an assignment's preliminary flag) may be guarded without
    being bumped.
    """

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order from intake data (customer, delivery date, slot)."""

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with its logs and revisions, or ``None``."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        """List orders with optional ORM-style filters."""

    @abstractmethod
    def update_guarded(
        self,
        order_id: str,
        changes: Dict[str, Any],
        expected_versions: Dict[str, int],
    ) -> Order:
        """Apply *changes* if every group in *expected_versions* is current.

        Raises:
            OrderNotFound: the order does not exist.
            StaleOrder: a guarded version moved on.
        """

    @abstractmethod
    def add_log(
        self,
        order_id: str,
        log_type: str,
        new_status: str,
        previous_status: Optional[str] = None,
        note: str = "",
        user: str = "System",
    ) -> OrderLog:
        """Append an entry to the order's audit trail."""

    @abstractmethod
    def add_revision(
        self,
        order_id: str,
        revision_number: int,
        notes: str,
        photos: List[str],
        requested_by: str,
    ) -> OrderRevision:
        """Append an entry to the order's revision history."""
