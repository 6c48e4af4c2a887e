"""Time-bucket classification of delivery dates and time slots.

Pure functions: every one takes an explicit ``now`` so callers (and
tests) decide what "now" means.  Results feed urgency highlighting and
are recomputed on every read; nothing here is persisted.

Dates are compared by calendar day, never by 24h distance.  Aware
``now`` values are converted to the configured local time first.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta
from typing import Dict, Optional, Tuple

from django.utils import timezone

from modules.delivery.constants import (
    END_OF_DELIVERY_DAY,
    TIME_SLOT_WINDOWS,
    URGENCY_WINDOW_HOURS,
    DateBucket,
    DateFilter,
    TimeSlot,
    TimeUrgency,
)

_TIME_RE = re.compile(r"(\d{1,2})[:.](\d{2})")

THIS_WEEK_DAYS = 7


def _local(now: datetime) -> datetime:
    if timezone.is_aware(now):
        return timezone.localtime(now)
    return now


def _as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return _local(value).date()
    return value


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


def classify_delivery_date(delivery_date: date | datetime, now: datetime) -> DateBucket:
    """Bucket *delivery_date* relative to the calendar day of *now*."""
    days = (_as_date(delivery_date) - _local(now).date()).days
    if days < 0:
        return DateBucket.PAST
    if days == 0:
        return DateBucket.TODAY
    if days == 1:
        return DateBucket.TOMORROW
    if days == 2:
        return DateBucket.D_PLUS_2
    if days < THIS_WEEK_DAYS:
        return DateBucket.THIS_WEEK
    return DateBucket.LATER


def matches_date_filter(
    delivery_date: date | datetime, date_filter: Optional[str], now: datetime
) -> bool:
    """Return ``True`` if *delivery_date* falls in *date_filter*.

    ``this-week`` spans today and the following six days.  Unknown filter
    keys behave like ``all``.
    """
    if date_filter not in DateFilter.values or date_filter == DateFilter.ALL:
        return True
    days = (_as_date(delivery_date) - _local(now).date()).days
    if date_filter == DateFilter.TODAY:
        return days == 0
    if date_filter == DateFilter.TOMORROW:
        return days == 1
    if date_filter == DateFilter.D_PLUS_2:
        return days == 2
    return 0 <= days < THIS_WEEK_DAYS


def date_filter_titles(now: datetime) -> Dict[str, str]:
    today = _local(now).date()
    return {
        DateFilter.TODAY: f"Today ({today:%d %b})",
        DateFilter.TOMORROW: f"Tomorrow ({today + timedelta(days=1):%d %b})",
        DateFilter.D_PLUS_2: f"{today + timedelta(days=2):%d %b}",
        DateFilter.THIS_WEEK: "This Week",
        DateFilter.ALL: DateFilter.ALL.label,
    }


# ---------------------------------------------------------------------------
# Time slots
# ---------------------------------------------------------------------------


def parse_time_slot(time_slot: Optional[str]) -> Optional[Tuple[time, time]]:
    """Window ``(start, end)`` of a preset or custom slot, or ``None``.

    Custom slots are ``"HH:MM - HH:MM"``; a single ``"HH:MM"`` is taken as
    a one-hour window.
    """
    if not time_slot:
        return None
    if time_slot in TIME_SLOT_WINDOWS:
        return TIME_SLOT_WINDOWS[time_slot]

    matches = _TIME_RE.findall(time_slot)
    if not matches:
        return None
    try:
        start = time(int(matches[0][0]), int(matches[0][1]))
        if len(matches) > 1:
            end = time(int(matches[1][0]), int(matches[1][1]))
        else:
            end = (datetime.combine(date.min, start) + timedelta(hours=1)).time()
    except ValueError:
        return None
    if end <= start:
        end = time.max
    return start, end


def classify_time_slot(
    delivery_date: date | datetime, time_slot: Optional[str], now: datetime
) -> Optional[str]:
    """Urgency of a delivery, or its plain slot identifier.

    - ``late``: *now* is past the slot end on the delivery day (for an
      order without a usable slot, past the end of the delivery day).
    - ``within-2-hours``: from two hours before the slot start until the
      slot end.
    - otherwise the slot itself (``None`` when the order has no slot).
    """
    local_now = _local(now)
    day = _as_date(delivery_date)
    window = parse_time_slot(time_slot)

    end = window[1] if window else END_OF_DELIVERY_DAY
    deadline = datetime.combine(day, end)
    naive_now = local_now.replace(tzinfo=None)
    if naive_now > deadline:
        return TimeUrgency.LATE

    if window is not None:
        start = datetime.combine(day, window[0])
        if start - timedelta(hours=URGENCY_WINDOW_HOURS) <= naive_now <= deadline:
            return TimeUrgency.WITHIN_2_HOURS

    return time_slot or None


def format_time_slot(time_slot: Optional[str]) -> str:
    if not time_slot:
        return "-"
    if time_slot in TimeSlot.values:
        return TimeSlot(time_slot).label
    return time_slot


def time_slot_category(time_slot: Optional[str]) -> Optional[str]:
    """Preset slot a custom window visually belongs to.

    Custom windows starting before 10:00 group with ``slot1``, before 15:00
    with ``slot2``, later ones with ``slot3``.
    """
    if not time_slot:
        return None
    if time_slot in TimeSlot.values:
        return time_slot
    window = parse_time_slot(time_slot)
    if window is None:
        return None
    hour = window[0].hour
    if hour < 10:
        return TimeSlot.SLOT1
    if hour < 15:
        return TimeSlot.SLOT2
    return TimeSlot.SLOT3
