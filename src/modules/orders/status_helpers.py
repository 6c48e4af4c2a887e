"""Status compatibility helpers.

Filters and derivation code written against old status names call
``matches_status`` instead of comparing strings, so a rename only has to
touch ``LEGACY_STATUS_ALIASES``.
"""

from __future__ import annotations

from typing import Optional

from modules.orders.constants import (
    DEFAULT_STATUS_PRIORITY,
    LEGACY_STATUS_ALIASES,
    STATUS_PRIORITY,
    OrderStatus,
)


def canonical_status(name: Optional[str]) -> Optional[str]:
    """Resolve a possibly-legacy status name to its canonical value."""
    if name is None:
        return None
    return LEGACY_STATUS_ALIASES.get(name, name)


def matches_status(order_status: Optional[str], target_status: Optional[str]) -> bool:
    """Return ``True`` if *order_status* is the status *target_status* names.

    *target_status* may be a canonical value or a legacy alias.  Never
    raises; unknown names simply do not match.
    """
    if order_status is None or target_status is None:
        return False
    return str(order_status) == str(canonical_status(target_status))


def status_priority(status: Optional[str]) -> int:
    """Dashboard priority of *status* (lower sorts first)."""
    return STATUS_PRIORITY.get(status, DEFAULT_STATUS_PRIORITY)


def status_display_name(status: Optional[str]) -> str:
    if status in OrderStatus.values:
        return OrderStatus(status).label
    if not status:
        return "Unknown Status"
    return str(status).replace("-", " ").title()
