"""Event handlers for Orders domain events."""

from __future__ import annotations

import structlog

from modules.orders.events import (
    AssignmentPromoted,
    OrderApproved,
    OrderCreated,
    OrderStatusChanged,
    RevisionRequested,
)
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class OrderCreatedHandler(IEventHandler[OrderCreated]):
    def handle(self, event: OrderCreated) -> None:
        logger.info("order.event.created", order_id=str(event.aggregate_id))


class OrderStatusChangedHandler(IEventHandler[OrderStatusChanged]):
    def handle(self, event: OrderStatusChanged) -> None:
        logger.info(
            "order.event.status_changed",
            order_id=str(event.aggregate_id),
            previous_status=event.previous_status,
            new_status=event.new_status,
        )


class RevisionRequestedHandler(IEventHandler[RevisionRequested]):
    def handle(self, event: RevisionRequested) -> None:
        logger.info(
            "order.event.revision_requested",
            order_id=str(event.aggregate_id),
            revision_number=event.revision_number,
        )


class OrderApprovedHandler(IEventHandler[OrderApproved]):
    def handle(self, event: OrderApproved) -> None:
        logger.info(
            "order.event.approved",
            order_id=str(event.aggregate_id),
            approved_by=event.approved_by,
        )


class AssignmentPromotedHandler(IEventHandler[AssignmentPromoted]):
    def handle(self, event: AssignmentPromoted) -> None:
        logger.info(
            "order.event.assignment_promoted",
            order_id=str(event.aggregate_id),
            driver_type=event.driver_type,
        )


order_created_handler = OrderCreatedHandler()
order_status_changed_handler = OrderStatusChangedHandler()
revision_requested_handler = RevisionRequestedHandler()
order_approved_handler = OrderApprovedHandler()
assignment_promoted_handler = AssignmentPromotedHandler()
