"""Delivery domain constants: drivers, trips, time slots and board filters."""

from datetime import time

from django.db import models


class DriverType(models.TextChoices):
    DRIVER_1 = "driver-1", "Driver 1"
    DRIVER_2 = "driver-2", "Driver 2"
    THIRD_PARTY = "3rd-party", "3rd Party"


class TripStatus(models.TextChoices):
    PLANNED = "planned", "Planned"
    IN_PROGRESS = "in-progress", "In Progress"
    COMPLETED = "completed", "Completed"


OPEN_TRIP_STATUSES: set[str] = {TripStatus.PLANNED, TripStatus.IN_PROGRESS}


class TimeSlot(models.TextChoices):
    SLOT1 = "slot1", "10:00 - 13:00"
    SLOT2 = "slot2", "13:00 - 16:00"
    SLOT3 = "slot3", "16:00 - 20:00"


TIME_SLOT_WINDOWS: dict[str, tuple[time, time]] = {
    TimeSlot.SLOT1: (time(10, 0), time(13, 0)),
    TimeSlot.SLOT2: (time(13, 0), time(16, 0)),
    TimeSlot.SLOT3: (time(16, 0), time(20, 0)),
}

# Without a slot, an order is late once the delivery day's last window closes.
END_OF_DELIVERY_DAY = time(20, 0)
URGENCY_WINDOW_HOURS = 2


class DateBucket(models.TextChoices):
    PAST = "past", "Past"
    TODAY = "today", "Today"
    TOMORROW = "tomorrow", "Tomorrow"
    D_PLUS_2 = "d-plus-2", "In 2 days"
    THIS_WEEK = "this-week", "This week"
    LATER = "later", "Later"


class DateFilter(models.TextChoices):
    TODAY = "today", "Today"
    TOMORROW = "tomorrow", "Tomorrow"
    D_PLUS_2 = "d-plus-2", "In 2 days"
    THIS_WEEK = "this-week", "This week"
    ALL = "all", "All Delivery Dates"


class TimeUrgency(models.TextChoices):
    LATE = "late", "Late"
    WITHIN_2_HOURS = "within-2-hours", "Within 2 Hours"


class TimeSlotFilter(models.TextChoices):
    ALL = "all", "All Times"
    LATE = "late", "Late"
    WITHIN_2_HOURS = "within-2-hours", "Within 2 Hours"
    SLOT1 = "slot1", "Slot 1 (10:00-13:00)"
    SLOT2 = "slot2", "Slot 2 (13:00-16:00)"
    SLOT3 = "slot3", "Slot 3 (16:00-20:00)"


class StatusFilter(models.TextChoices):
    READY = "ready", "Ready"
    IN_TRANSIT = "in-transit", "In Transit"
    PENDING_APPROVAL = "pending-approval", "Pending Approval"
    NEEDS_REVISION = "needs-revision", "Needs Revision"
    DELIVERY_STATUSES = "delivery-statuses", "Delivery Only"
    ALL_STATUSES = "all-statuses", "All Orders"


TRIP_NUMBER_MAX_RETRIES = 5
