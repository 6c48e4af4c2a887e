"""Kitchen sub-status derivation.

The coarse ``Order.status`` only says an order is somewhere in
production.  The explicit ``kitchen_status`` field refines it, but older
orders never had one, so this module is the single place that derives the
sub-status, maps it back to a coarse status and keeps the two consistent.
"""

from __future__ import annotations

from typing import Any, Optional

from modules.orders.constants import KitchenStatus, OrderStatus

ALL_KITCHEN_STATUSES = "all"

KITCHEN_STATUS_SEQUENCE: tuple[str, ...] = (
    KitchenStatus.WAITING_BAKER,
    KitchenStatus.WAITING_CRUMBCOAT,
    KitchenStatus.WAITING_COVER,
    KitchenStatus.DECORATING,
    KitchenStatus.DONE_WAITING_APPROVAL,
)

_DERIVED_FROM_STATUS: dict[str, str] = {
    OrderStatus.IN_QUEUE: KitchenStatus.WAITING_BAKER,
    OrderStatus.WAITING_PHOTO: KitchenStatus.DONE_WAITING_APPROVAL,
    # The coarse status cannot tell crumbcoat, cover and decorating apart.
    OrderStatus.IN_KITCHEN: KitchenStatus.WAITING_COVER,
}

_COLORS: dict[str, str] = {
    KitchenStatus.WAITING_BAKER: "orange",
    KitchenStatus.WAITING_CRUMBCOAT: "yellow",
    KitchenStatus.WAITING_COVER: "blue",
    KitchenStatus.DECORATING: "purple",
    KitchenStatus.DONE_WAITING_APPROVAL: "green",
    ALL_KITCHEN_STATUSES: "slate",
}
DEFAULT_COLOR = "gray"


def derive_kitchen_status(order: Any) -> KitchenStatus:
    """Return the kitchen sub-status of *order*.

    An explicit ``kitchen_status`` always wins.  Otherwise the value is
    derived from ``status``; unrecognised statuses fall back to
    ``waiting-baker`` instead of failing.
    """
    explicit = getattr(order, "kitchen_status", None)
    if explicit in KitchenStatus.values:
        return KitchenStatus(explicit)
    status = getattr(order, "status", None)
    return KitchenStatus(_DERIVED_FROM_STATUS.get(status, KitchenStatus.WAITING_BAKER))


def map_kitchen_status_to_order_status(kitchen_status: str) -> OrderStatus:
    if kitchen_status == KitchenStatus.DONE_WAITING_APPROVAL:
        return OrderStatus.WAITING_PHOTO
    return OrderStatus.IN_KITCHEN


def next_kitchen_status(kitchen_status: str) -> Optional[KitchenStatus]:
    """Next production step, or ``None`` once the cake is done."""
    try:
        index = KITCHEN_STATUS_SEQUENCE.index(kitchen_status)
    except ValueError:
        return KitchenStatus.WAITING_BAKER
    if index + 1 >= len(KITCHEN_STATUS_SEQUENCE):
        return None
    return KitchenStatus(KITCHEN_STATUS_SEQUENCE[index + 1])


def reconcile_kitchen_status(
    new_status: str, kitchen_status: Optional[str]
) -> Optional[str]:
    """Kitchen sub-status to store alongside *new_status*.

    Keeps the explicit value while it still maps onto *new_status*; an
    order entering ``waiting-photo`` is done in the kitchen; every other
    status has no kitchen sub-status.
    """
    if kitchen_status and map_kitchen_status_to_order_status(kitchen_status) == new_status:
        return kitchen_status
    if new_status == OrderStatus.WAITING_PHOTO:
        return KitchenStatus.DONE_WAITING_APPROVAL
    return None


def kitchen_status_display_name(kitchen_status: Optional[str]) -> str:
    if kitchen_status == ALL_KITCHEN_STATUSES:
        return "All Kitchen Orders"
    if kitchen_status in KitchenStatus.values:
        return KitchenStatus(kitchen_status).label
    return "Unknown Status"


def kitchen_status_color(kitchen_status: Optional[str]) -> str:
    return _COLORS.get(kitchen_status, DEFAULT_COLOR)
