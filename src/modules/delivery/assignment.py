"""Delivery assignment rules.

Pure functions over an order's status and inline assignment columns.
They compute the field changes; ``OrderService`` and ``TripService``
apply them through the guarded order repository.

Preliminary assignment: a driver may be planned for an order that is
still in production or approval.  The assignment is marked preliminary
until the order reaches ``ready-to-deliver``, at which point the
promotion rule confirms it in the same write as the status change.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime
from typing import Any, Dict, Iterable

from modules.delivery.exceptions import IneligibleForAssignment
from modules.orders.constants import (
    DELIVERY_READY_STATES,
    PRE_ASSIGNMENT_STATES,
    OrderStatus,
)
from modules.orders.kitchen import derive_kitchen_status


def is_eligible_for_assignment(status: str) -> bool:
    return status in PRE_ASSIGNMENT_STATES or status in DELIVERY_READY_STATES


def is_preliminary_for(status: str) -> bool:
    """An assignment made now would be preliminary."""
    return status not in DELIVERY_READY_STATES


def assignment_changes(
    order: Any,
    driver_type: str,
    assigned_at: datetime,
    vehicle_info: str = "",
) -> Dict[str, Any]:
    """Field changes that (re)assign *order* to *driver_type*.

    Overwrites any previous assignment.

    Raises:
        IneligibleForAssignment: the order is closed or still a draft.
    """
    if not is_eligible_for_assignment(order.status):
        raise IneligibleForAssignment(
            f"Order {order.id} in status {order.status} cannot be assigned a driver."
        )
    return {
        "assignment_driver_type": driver_type,
        "assignment_is_preliminary": is_preliminary_for(order.status),
        "assignment_assigned_at": assigned_at,
        "assignment_vehicle_info": vehicle_info or "",
    }


def promote_preliminary_assignment(order: Any) -> Dict[str, Any]:
    """Changes confirming a preliminary assignment, or ``{}`` if none.

    Only ``assignment_is_preliminary`` changes; driver, timestamp, vehicle
    and trip membership stay as planned.
    """
    if order.assignment_driver_type and order.assignment_is_preliminary:
        return {"assignment_is_preliminary": False}
    return {}


def production_stage(order: Any) -> str:
    """Kitchen stage shown next to preliminary assignments on the board."""
    if order.status in (OrderStatus.IN_QUEUE, OrderStatus.IN_KITCHEN, OrderStatus.WAITING_PHOTO):
        return derive_kitchen_status(order).value
    return str(order.status)


def status_breakdown(orders: Iterable[Any]) -> Dict[str, int]:
    return dict(Counter(str(order.status) for order in orders))


def has_non_ready_orders(orders: Iterable[Any]) -> bool:
    return any(order.status not in DELIVERY_READY_STATES for order in orders)
