"""Delivery board filter engine.

Three composable predicates (status, date, time slot) over any iterable
of order-like objects.  Each filter is pure and keeps input order, so
applying them in any sequence yields the same result.  An unrecognised
status key falls back to the delivery union; it never hides every order.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from modules.delivery.constants import (
    DateBucket,
    StatusFilter,
    TimeSlot,
    TimeSlotFilter,
    TimeUrgency,
)
from modules.delivery.time_buckets import (
    classify_delivery_date,
    classify_time_slot,
    matches_date_filter,
    time_slot_category,
)
from modules.orders.constants import CLOSED_STATES, OrderStatus
from modules.orders.status_helpers import matches_status, status_priority

DELIVERY_STATUSES: tuple[str, ...] = (
    OrderStatus.READY_TO_DELIVER,
    OrderStatus.IN_DELIVERY,
    OrderStatus.PENDING_APPROVAL,
    OrderStatus.NEEDS_REVISION,
)

_SINGLE_STATUS: dict[str, str] = {
    StatusFilter.READY: OrderStatus.READY_TO_DELIVER,
    StatusFilter.IN_TRANSIT: OrderStatus.IN_DELIVERY,
    StatusFilter.PENDING_APPROVAL: OrderStatus.PENDING_APPROVAL,
    StatusFilter.NEEDS_REVISION: OrderStatus.NEEDS_REVISION,
}

_SLOT_ORDER = {slot: index for index, slot in enumerate(TimeSlot.values)}
UNSCHEDULED = "unscheduled"


def status_matches_filter(order_status: Optional[str], status_filter: Optional[str]) -> bool:
    if status_filter in _SINGLE_STATUS:
        return matches_status(order_status, _SINGLE_STATUS[status_filter])
    if status_filter == StatusFilter.ALL_STATUSES:
        return order_status is not None and order_status not in CLOSED_STATES
    return any(matches_status(order_status, status) for status in DELIVERY_STATUSES)


def filter_by_status(orders: Iterable[Any], status_filter: Optional[str]) -> List[Any]:
    return [order for order in orders if status_matches_filter(order.status, status_filter)]


def filter_by_date(
    orders: Iterable[Any], date_filter: Optional[str], now: datetime
) -> List[Any]:
    return [
        order
        for order in orders
        if matches_date_filter(order.delivery_date, date_filter, now)
    ]


def matches_time_slot_filter(order: Any, slot_filter: Optional[str], now: datetime) -> bool:
    if not slot_filter or slot_filter == TimeSlotFilter.ALL:
        return True
    if slot_filter in (TimeSlotFilter.LATE, TimeSlotFilter.WITHIN_2_HOURS):
        urgency = classify_time_slot(order.delivery_date, order.delivery_time_slot, now)
        return urgency == slot_filter
    if slot_filter in TimeSlot.values:
        return time_slot_category(order.delivery_time_slot) == slot_filter
    return True


def filter_by_time_slot(
    orders: Iterable[Any], slot_filter: Optional[str], now: datetime
) -> List[Any]:
    return [order for order in orders if matches_time_slot_filter(order, slot_filter, now)]


def apply_filters(
    orders: Iterable[Any],
    *,
    now: datetime,
    status: Optional[str] = StatusFilter.DELIVERY_STATUSES,
    date: Optional[str] = None,
    time_slot: Optional[str] = None,
) -> List[Any]:
    """Compose the status, date and time-slot filters."""
    result = filter_by_status(orders, status)
    result = filter_by_date(result, date, now)
    return filter_by_time_slot(result, time_slot, now)


def sort_for_board(orders: Iterable[Any]) -> List[Any]:
    """Sort by status priority, then time slot, then delivery date."""

    def key(order: Any):
        category = time_slot_category(order.delivery_time_slot)
        return (
            status_priority(order.status),
            _SLOT_ORDER.get(category, len(_SLOT_ORDER)),
            order.delivery_date,
        )

    return sorted(orders, key=key)


def group_by_time_slot(orders: Iterable[Any]) -> Dict[str, List[Any]]:
    """Group orders under ``slot1..slot3`` or ``unscheduled``, in slot order."""
    groups: Dict[str, List[Any]] = {slot: [] for slot in TimeSlot.values}
    groups[UNSCHEDULED] = []
    for order in orders:
        groups[time_slot_category(order.delivery_time_slot) or UNSCHEDULED].append(order)
    return {slot: members for slot, members in groups.items() if members}


def summarize(orders: Iterable[Any], now: datetime) -> Dict[str, Dict[str, int]]:
    """Dashboard counters for open orders.

    ``date_buckets`` counts every open order by calendar bucket,
    ``status_filters`` counts the orders each status filter would show and
    ``urgency`` counts late / within-2-hours deliveries on the board.
    """
    open_orders = filter_by_status(orders, StatusFilter.ALL_STATUSES)

    date_buckets = Counter(
        str(classify_delivery_date(order.delivery_date, now)) for order in open_orders
    )
    status_filters = {
        str(key): len(filter_by_status(open_orders, key)) for key in StatusFilter.values
    }

    urgency: Counter = Counter()
    for order in filter_by_status(open_orders, StatusFilter.DELIVERY_STATUSES):
        label = classify_time_slot(order.delivery_date, order.delivery_time_slot, now)
        if label in TimeUrgency.values:
            urgency[str(label)] += 1

    return {
        "date_buckets": {str(bucket): date_buckets.get(bucket, 0) for bucket in DateBucket.values},
        "status_filters": status_filters,
        "urgency": {str(key): urgency.get(key, 0) for key in TimeUrgency.values},
    }
