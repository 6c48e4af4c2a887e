"""Order domain constants.

Defines the canonical status vocabulary, the kitchen sub-status
vocabulary, and the valid transitions of the order state machine.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    INCOMPLETE = "incomplete", "Incomplete"
    IN_QUEUE = "in-queue", "In Queue"
    IN_KITCHEN = "in-kitchen", "In Kitchen"
    WAITING_PHOTO = "waiting-photo", "Waiting Photo"
    PENDING_APPROVAL = "pending-approval", "Pending Approval"
    NEEDS_REVISION = "needs-revision", "Needs Revision"
    READY_TO_DELIVER = "ready-to-deliver", "Ready to Deliver"
    IN_DELIVERY = "in-delivery", "In Delivery"
    WAITING_FEEDBACK = "waiting-feedback", "Waiting Feedback"
    FINISHED = "finished", "Finished"
    ARCHIVED = "archived", "Archived"
    CANCELLED = "cancelled", "Cancelled"


class KitchenStatus(models.TextChoices):
    WAITING_BAKER = "waiting-baker", "Waiting Baker"
    WAITING_CRUMBCOAT = "waiting-crumbcoat", "Waiting Crumbcoat"
    WAITING_COVER = "waiting-cover", "Waiting Cover"
    DECORATING = "decorating", "Decorating"
    DONE_WAITING_APPROVAL = "done-waiting-approval", "Done, Waiting Approval"


class OrderLogType(models.TextChoices):
    STATUS_CHANGE = "status-change", "Status change"
    KITCHEN_STATUS = "kitchen-status", "Kitchen status change"
    PHOTO_UPLOAD = "photo-upload", "Photo upload"
    REVISION_REQUEST = "revision-request", "Revision request"
    APPROVAL = "approval", "Approval"
    DELIVERY_ASSIGNMENT = "delivery-assignment", "Delivery assignment"


VALID_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.INCOMPLETE: {OrderStatus.IN_QUEUE, OrderStatus.CANCELLED},
    OrderStatus.IN_QUEUE: {OrderStatus.IN_KITCHEN, OrderStatus.CANCELLED},
    OrderStatus.IN_KITCHEN: {OrderStatus.WAITING_PHOTO, OrderStatus.CANCELLED},
    OrderStatus.WAITING_PHOTO: {
        OrderStatus.IN_KITCHEN,
        OrderStatus.PENDING_APPROVAL,
        OrderStatus.CANCELLED,
    },
    OrderStatus.PENDING_APPROVAL: {
        OrderStatus.READY_TO_DELIVER,
        OrderStatus.NEEDS_REVISION,
        OrderStatus.CANCELLED,
    },
    OrderStatus.NEEDS_REVISION: {OrderStatus.PENDING_APPROVAL, OrderStatus.CANCELLED},
    OrderStatus.READY_TO_DELIVER: {OrderStatus.IN_DELIVERY, OrderStatus.CANCELLED},
    OrderStatus.IN_DELIVERY: {OrderStatus.WAITING_FEEDBACK, OrderStatus.READY_TO_DELIVER},
    OrderStatus.WAITING_FEEDBACK: {OrderStatus.FINISHED},
    OrderStatus.FINISHED: {OrderStatus.ARCHIVED},
    OrderStatus.ARCHIVED: set(),
    OrderStatus.CANCELLED: set(),
}

TERMINAL_STATES: set[str] = {OrderStatus.ARCHIVED, OrderStatus.CANCELLED}

# Hidden from the "all statuses" views unless explicitly asked for.
CLOSED_STATES: set[str] = {
    OrderStatus.CANCELLED,
    OrderStatus.FINISHED,
    OrderStatus.ARCHIVED,
}

KITCHEN_STATES: set[str] = {OrderStatus.IN_KITCHEN, OrderStatus.WAITING_PHOTO}

# Non-terminal, non-delivery states in which a driver may be pre-assigned.
PRE_ASSIGNMENT_STATES: set[str] = {
    OrderStatus.IN_QUEUE,
    OrderStatus.IN_KITCHEN,
    OrderStatus.WAITING_PHOTO,
    OrderStatus.PENDING_APPROVAL,
    OrderStatus.NEEDS_REVISION,
}

DELIVERY_READY_STATES: set[str] = {OrderStatus.READY_TO_DELIVER, OrderStatus.IN_DELIVERY}

# Old status names still used by stored filters and integrations.
LEGACY_STATUS_ALIASES: dict[str, str] = {
    "confirmed": OrderStatus.IN_QUEUE,
    "ready": OrderStatus.READY_TO_DELIVER,
    "delivered": OrderStatus.WAITING_FEEDBACK,
    "finished": OrderStatus.FINISHED,
    "waiting-feedback": OrderStatus.WAITING_FEEDBACK,
    "archived": OrderStatus.ARCHIVED,
}

STATUS_PRIORITY: dict[str, int] = {
    OrderStatus.PENDING_APPROVAL: 1,
    OrderStatus.NEEDS_REVISION: 2,
    OrderStatus.READY_TO_DELIVER: 3,
    OrderStatus.IN_DELIVERY: 4,
    OrderStatus.WAITING_PHOTO: 5,
    OrderStatus.IN_KITCHEN: 6,
    OrderStatus.IN_QUEUE: 7,
    OrderStatus.INCOMPLETE: 8,
}
DEFAULT_STATUS_PRIORITY = 10

ORDER_NUMBER_MAX_RETRIES = 5
