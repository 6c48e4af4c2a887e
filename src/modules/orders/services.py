"""Order service layer (Use Cases).

Orchestrates the order state machine: intake, kitchen progress, the photo
approval / revision cycle, delivery progress and cancellation.

Every transition follows the same shape:

1. Read the order (and reject it early if the caller's snapshot is stale).
2. Validate the transition against the state machine and its guards.
3. Inside one ``transaction.atomic()`` block, apply the field changes
   through the guarded repository write and append exactly one log row.
4. After the block, publish domain events and run best-effort side
   effects (gallery archive).  Their failures never undo step 3.

The promotion rule lives in step 3: any transition into
``ready-to-deliver`` also confirms a preliminary driver assignment.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence
from uuid import UUID

import structlog
from django.db import transaction
from django.utils import timezone

from modules.core.identity import SYSTEM_USER
from modules.delivery.assignment import promote_preliminary_assignment
from modules.orders.approval import (
    validate_photo_submission,
    validate_revision_request,
)
from modules.orders.constants import (
    KITCHEN_STATES,
    KitchenStatus,
    OrderLogType,
    OrderStatus,
)
from modules.orders.dtos import ApprovalResult, gallery_order_info
from modules.orders.events import (
    AssignmentPromoted,
    OrderApproved,
    OrderCreated,
    OrderStatusChanged,
    RevisionRequested,
)
from modules.orders.exceptions import (
    InvalidKitchenStatus,
    InvalidOrderStatus,
    OrderNotFound,
    StaleOrder,
)
from modules.orders.kitchen import (
    derive_kitchen_status,
    kitchen_status_display_name,
    map_kitchen_status_to_order_status,
    next_kitchen_status,
    reconcile_kitchen_status,
)
from modules.orders.repositories.interfaces import ASSIGNMENT_GROUP, STATUS_GROUP
from shared.domain.events import DomainEvent

if TYPE_CHECKING:
    from modules.gallery.client import IGalleryClient
    from modules.orders.dtos import CreateOrderDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from shared.domain.bus import IEventBus

logger = structlog.get_logger(__name__)

# Statuses the kitchen sub-status control may be used from.
KITCHEN_CONTROL_STATES: set[str] = {OrderStatus.IN_QUEUE} | KITCHEN_STATES

# Targets reachable only through their dedicated use case.
_DEDICATED_TARGETS: dict[str, str] = {
    OrderStatus.PENDING_APPROVAL: "Submit cake photos to request approval.",
    OrderStatus.CANCELLED: "Use cancel_order for cancellations.",
}


class OrderService:
    """Application service for Order use-cases.

    Receives its collaborators via constructor injection (DIP).  The
    gallery client and event bus are optional; without a gallery client,
    "add to gallery on approval" yields a warning instead of an archive.
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        gallery_client: Optional[IGalleryClient] = None,
        event_bus: Optional[IEventBus] = None,
    ) -> None:
        self._order_repo = order_repository
        self._gallery = gallery_client
        if event_bus is None:
            from shared.infrastructure.bus import event_bus as default_bus

            event_bus = default_bus
        self._event_bus = event_bus

    # ------------------------------------------------------------------
    # Intake
    # ------------------------------------------------------------------

    def create_order(self, dto: CreateOrderDTO, user: str = SYSTEM_USER) -> Order:
        """Create an order in its intake status and log its creation."""
        with transaction.atomic():
            order = self._order_repo.create(dto.model_dump())
            self._order_repo.add_log(
                order_id=str(order.id),
                log_type=OrderLogType.STATUS_CHANGE,
                new_status=order.status,
                note="Order created",
                user=user,
            )

        logger.info("order.intake_completed", order_id=str(order.id), status=order.status)
        self._event_bus.publish(OrderCreated(aggregate_id=order.id))
        return self.get_order(str(order.id))

    # ------------------------------------------------------------------
    # Generic transitions
    # ------------------------------------------------------------------

    def update_status(
        self,
        order_id: UUID | str,
        new_status: str,
        notes: str = "",
        user: str = SYSTEM_USER,
        expected_version: Optional[int] = None,
    ) -> Order:
        """Transition an order to *new_status* along the state machine.

        Approval-cycle targets are routed to their dedicated use case so
        their guards always apply: ``needs-revision`` requires *notes*,
        and ``ready-to-deliver`` from ``pending-approval`` is an approval.

        Raises:
            OrderNotFound: order does not exist.
            InvalidOrderStatus: transition is not allowed.
            StaleOrder: the order changed since *expected_version*.
        """
        order = self._load(order_id, expected_version)

        if new_status in _DEDICATED_TARGETS:
            raise InvalidOrderStatus(_DEDICATED_TARGETS[new_status])
        if new_status == OrderStatus.NEEDS_REVISION:
            return self.request_revision(order_id, notes, user, order.status_version)
        if (
            new_status == OrderStatus.READY_TO_DELIVER
            and order.status == OrderStatus.PENDING_APPROVAL
        ):
            return self.approve(order_id, user=user, expected_version=order.status_version).order

        self._ensure_transition(order, new_status)

        extra: Dict[str, Any] = {}
        if new_status == OrderStatus.WAITING_FEEDBACK:
            extra["delivered_at"] = timezone.now()

        return self._transition(
            order,
            new_status,
            log_type=OrderLogType.STATUS_CHANGE,
            note=notes,
            user=user,
            extra=extra,
        )

    def cancel_order(
        self,
        order_id: UUID | str,
        notes: str = "",
        user: str = SYSTEM_USER,
        expected_version: Optional[int] = None,
    ) -> Order:
        """Shunt a non-terminal order to ``cancelled``.

        Raises:
            OrderNotFound: order does not exist.
            InvalidOrderStatus: cancellation not allowed from current status.
        """
        order = self._load(order_id, expected_version)
        if not order.can_transition_to(OrderStatus.CANCELLED):
            logger.warning("order.cancel_not_allowed", order_id=str(order_id), status=order.status)
            raise InvalidOrderStatus(f"Cannot cancel order in status {order.status}.")

        return self._transition(
            order,
            OrderStatus.CANCELLED,
            log_type=OrderLogType.STATUS_CHANGE,
            note=notes or "Order cancelled",
            user=user,
        )

    # ------------------------------------------------------------------
    # Kitchen
    # ------------------------------------------------------------------

    def set_kitchen_status(
        self,
        order_id: UUID | str,
        kitchen_status: str,
        user: str = SYSTEM_USER,
        expected_version: Optional[int] = None,
    ) -> Order:
        """Pick a kitchen sub-status; sets both ``kitchen_status`` and ``status``.

        Choosing the value the order already holds explicitly is a no-op.

        Raises:
            InvalidKitchenStatus: unknown value or order not in production.
            InvalidOrderStatus: the implied coarse transition is not allowed.
        """
        if kitchen_status not in KitchenStatus.values:
            raise InvalidKitchenStatus(f"Unknown kitchen status {kitchen_status!r}.")

        order = self._load(order_id, expected_version)
        if order.status not in KITCHEN_CONTROL_STATES:
            raise InvalidKitchenStatus(
                f"Order in status {order.status} is not in production."
            )
        if order.kitchen_status == kitchen_status:
            return order

        new_status = map_kitchen_status_to_order_status(kitchen_status)
        label = kitchen_status_display_name(kitchen_status)

        if new_status == order.status:
            return self._transition(
                order,
                new_status,
                log_type=OrderLogType.KITCHEN_STATUS,
                note=f"Kitchen status: {label}",
                user=user,
                extra={"kitchen_status": kitchen_status},
                announce=False,
            )

        self._ensure_transition(order, new_status)
        return self._transition(
            order,
            new_status,
            log_type=OrderLogType.KITCHEN_STATUS,
            note=f"Kitchen status: {label}",
            user=user,
            extra={"kitchen_status": kitchen_status},
        )

    def start_production(
        self,
        order_id: UUID | str,
        user: str = SYSTEM_USER,
        expected_version: Optional[int] = None,
    ) -> Order:
        """Move a queued order into the kitchen, waiting for the baker."""
        order = self._load(order_id, expected_version)
        if order.status != OrderStatus.IN_QUEUE:
            raise InvalidOrderStatus(
                f"Cannot start production for an order in status {order.status}."
            )
        return self.set_kitchen_status(
            order_id, KitchenStatus.WAITING_BAKER, user, order.status_version
        )

    def advance_kitchen_status(
        self,
        order_id: UUID | str,
        user: str = SYSTEM_USER,
        expected_version: Optional[int] = None,
    ) -> Order:
        """Move the order to the next kitchen step.

        Raises:
            InvalidKitchenStatus: the order is already done in the kitchen.
        """
        order = self._load(order_id, expected_version)
        if order.status == OrderStatus.IN_QUEUE:
            return self.start_production(order_id, user, order.status_version)

        current = derive_kitchen_status(order)
        upcoming = next_kitchen_status(current)
        if upcoming is None or order.status not in KITCHEN_STATES:
            raise InvalidKitchenStatus(
                f"Order {order.order_number} has no further kitchen step."
            )
        return self.set_kitchen_status(order_id, upcoming, user, order.status_version)

    # ------------------------------------------------------------------
    # Approval / revision cycle
    # ------------------------------------------------------------------

    def submit_photos(
        self,
        order_id: UUID | str,
        photos: Sequence[str],
        user: str = SYSTEM_USER,
        expected_version: Optional[int] = None,
    ) -> Order:
        """Submit finished-cake photos for approval.

        Raises:
            MissingPhotos: no photo attached.
            InvalidOrderStatus: order is not waiting for (new) photos.
        """
        order = self._load(order_id, expected_version)
        cleaned = validate_photo_submission(order, photos)

        resubmission = order.status == OrderStatus.NEEDS_REVISION
        if resubmission:
            note = f"Revision #{order.revision_count} photos submitted ({len(cleaned)})"
        else:
            note = f"Cake photos submitted ({len(cleaned)})"

        extra: Dict[str, Any] = {"finished_cake_photos": cleaned}
        if resubmission:
            extra["revision_notes"] = ""

        return self._transition(
            order,
            OrderStatus.PENDING_APPROVAL,
            log_type=OrderLogType.PHOTO_UPLOAD,
            note=note,
            user=user,
            extra=extra,
        )

    def request_revision(
        self,
        order_id: UUID | str,
        notes: str,
        user: str = SYSTEM_USER,
        expected_version: Optional[int] = None,
    ) -> Order:
        """Send the cake back to the kitchen with revision notes.

        Increments ``revision_count`` once and appends one revision record
        holding the rejected photos.

        Raises:
            MissingRevisionNotes: notes are blank.
            InvalidOrderStatus: order is not pending approval.
        """
        order = self._load(order_id, expected_version)
        cleaned_notes = validate_revision_request(order, notes)
        revision_number = order.revision_count + 1

        updated = self._transition(
            order,
            OrderStatus.NEEDS_REVISION,
            log_type=OrderLogType.REVISION_REQUEST,
            note=f"Revision requested: {cleaned_notes}",
            user=user,
            extra={"revision_count": revision_number, "revision_notes": cleaned_notes},
            within_transaction=lambda: self._order_repo.add_revision(
                order_id=str(order.id),
                revision_number=revision_number,
                notes=cleaned_notes,
                photos=list(order.finished_cake_photos or []),
                requested_by=user,
            ),
            events=[RevisionRequested(aggregate_id=order.id, revision_number=revision_number)],
        )
        return updated

    def approve(
        self,
        order_id: UUID | str,
        user: str = SYSTEM_USER,
        add_to_gallery: bool = False,
        gallery_tags: Optional[Dict[str, str]] = None,
        expected_version: Optional[int] = None,
    ) -> ApprovalResult:
        """Approve the cake photos; the order becomes ready to deliver.

        Approving an already-approved order is a no-op (no write, no log).
        When *add_to_gallery* is set, each photo is archived afterwards;
        archive failures come back as warnings.

        Raises:
            InvalidOrderStatus: order is neither pending approval nor ready.
        """
        order = self._load(order_id, expected_version)
        if order.status == OrderStatus.READY_TO_DELIVER:
            logger.info("order.approve_noop", order_id=str(order.id))
            return ApprovalResult(order=order, changed=False)
        self._ensure_transition(order, OrderStatus.READY_TO_DELIVER, required=OrderStatus.PENDING_APPROVAL)

        updated = self._transition(
            order,
            OrderStatus.READY_TO_DELIVER,
            log_type=OrderLogType.APPROVAL,
            note="Cake photos approved",
            user=user,
            extra={"approved_by": user, "approved_at": timezone.now()},
            events=[OrderApproved(aggregate_id=order.id, approved_by=user)],
        )

        warnings: List[str] = []
        if add_to_gallery:
            warnings = self._archive_to_gallery(updated, gallery_tags or {})
        return ApprovalResult(order=updated, changed=True, warnings=warnings)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str) -> Order:
        """Retrieve a single order by ID.

        Raises:
            OrderNotFound: if the order does not exist.
        """
        order = self._order_repo.get_by_id(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def list_orders(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        """Return a list of orders, optionally filtered."""
        return self._order_repo.list(filters)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _load(self, order_id: UUID | str, expected_version: Optional[int]) -> Order:
        order = self.get_order(str(order_id))
        if expected_version is not None and order.status_version != expected_version:
            logger.warning(
                "order.stale_snapshot",
                order_id=str(order_id),
                expected_version=expected_version,
                current_version=order.status_version,
            )
            raise StaleOrder(f"Order {order_id} was modified concurrently.")
        return order

    def _ensure_transition(
        self, order: Order, new_status: str, required: Optional[str] = None
    ) -> None:
        if (required is not None and order.status != required) or not order.can_transition_to(
            new_status
        ):
            logger.warning(
                "order.invalid_transition",
                order_id=str(order.id),
                current_status=order.status,
                new_status=new_status,
            )
            raise InvalidOrderStatus(
                f"Cannot transition from {order.status} to {new_status}."
            )

    def _transition(
        self,
        order: Order,
        new_status: str,
        *,
        log_type: str,
        note: str,
        user: str,
        extra: Optional[Dict[str, Any]] = None,
        within_transaction=None,
        events: Optional[List[DomainEvent]] = None,
        announce: bool = True,
    ) -> Order:
        """Apply one guarded transition with its log entry, atomically."""
        extra = dict(extra or {})
        changes: Dict[str, Any] = {"status": new_status}
        changes["kitchen_status"] = reconcile_kitchen_status(
            new_status, extra.pop("kitchen_status", order.kitchen_status)
        )
        changes.update(extra)
        expected = {STATUS_GROUP: order.status_version}

        events = list(events or [])
        promotion: Dict[str, Any] = {}
        if new_status == OrderStatus.READY_TO_DELIVER:
            # The promotion decision reads the assignment group, so it is
            # guarded even when nothing is promoted.
            expected[ASSIGNMENT_GROUP] = order.assignment_version
            promotion = promote_preliminary_assignment(order)
        if promotion:
            changes.update(promotion)
            events.append(
                AssignmentPromoted(
                    aggregate_id=order.id, driver_type=order.assignment_driver_type or ""
                )
            )

        with transaction.atomic():
            self._order_repo.update_guarded(str(order.id), changes, expected)
            if within_transaction is not None:
                within_transaction()
            self._order_repo.add_log(
                order_id=str(order.id),
                log_type=log_type,
                previous_status=order.status,
                new_status=new_status,
                note=note,
                user=user,
            )

        log = logger.bind(
            order_id=str(order.id),
            previous_status=order.status,
            new_status=new_status,
            log_type=log_type,
        )
        log.info("order.status_updated")
        if promotion:
            log.info("assignment.promoted", driver_type=order.assignment_driver_type)

        if announce and new_status != order.status:
            events.insert(
                0,
                OrderStatusChanged(
                    aggregate_id=order.id,
                    previous_status=order.status,
                    new_status=new_status,
                ),
            )
        self._event_bus.publish_all(events)
        return self.get_order(str(order.id))

    def _archive_to_gallery(self, order: Order, tags: Dict[str, str]) -> List[str]:
        """Best-effort gallery archive; failures become warnings."""
        if self._gallery is None:
            logger.warning("order.gallery_unconfigured", order_id=str(order.id))
            return ["Gallery is not configured; photos were not archived."]

        warnings: List[str] = []
        info = gallery_order_info(order)
        for photo in order.finished_cake_photos or []:
            try:
                self._gallery.add_photo(image_url=photo, tags=tags, order_info=info)
            except Exception as exc:  # noqa: BLE001
                logger.warning(
                    "order.gallery_archive_failed",
                    order_id=str(order.id),
                    image_url=photo,
                    error=str(exc),
                )
                warnings.append(f"Photo {photo} was not added to the gallery: {exc}")
        return warnings
