"""Unit tests for the Order state machine in ``OrderService``.

Covers:
- Intake (create_order) and its creation log entry.
- Kitchen sub-status control and its coarse status mapping.
- Generic transitions, dedicated-target routing and invalid moves.
- Cancellation from every non-terminal state.
"""

from __future__ import annotations

from datetime import date
from uuid import uuid4

import pytest

from modules.orders.constants import (
    TERMINAL_STATES,
    KitchenStatus,
    OrderLogType,
    OrderStatus,
)
from modules.orders.dtos import CreateOrderDTO
from modules.orders.exceptions import (
    InvalidKitchenStatus,
    InvalidOrderStatus,
    OrderNotFound,
)
from modules.orders.models import OrderLog

pytestmark = pytest.mark.unit


class TestCreateOrder:
    def test_create_logs_creation(self, order_service):
        dto = CreateOrderDTO(
            customer_name="Rina",
            delivery_date=date(2025, 6, 12),
            delivery_time_slot="slot1",
        )

        order = order_service.create_order(dto, user="Front Desk")

        assert order.status == OrderStatus.IN_QUEUE
        assert order.order_number.startswith("CK-")
        entry = OrderLog.objects.get(order=order)
        assert entry.log_type == OrderLogType.STATUS_CHANGE
        assert entry.previous_status is None
        assert entry.new_status == OrderStatus.IN_QUEUE
        assert entry.user == "Front Desk"

    def test_draft_intake(self, order_service):
        dto = CreateOrderDTO(
            customer_name="Rina", delivery_date=date(2025, 6, 12), status="incomplete"
        )
        assert order_service.create_order(dto).status == OrderStatus.INCOMPLETE


class TestKitchenControl:
    def test_start_production(self, order_service, make_order):
        order = make_order(OrderStatus.IN_QUEUE)

        updated = order_service.start_production(order.id)

        assert updated.status == OrderStatus.IN_KITCHEN
        assert updated.kitchen_status == KitchenStatus.WAITING_BAKER

    def test_set_kitchen_status_within_kitchen_keeps_status(self, order_service, make_order):
        order = make_order(OrderStatus.IN_KITCHEN, KitchenStatus.WAITING_BAKER)

        updated = order_service.set_kitchen_status(order.id, KitchenStatus.DECORATING)

        assert updated.status == OrderStatus.IN_KITCHEN
        assert updated.kitchen_status == KitchenStatus.DECORATING
        entry = OrderLog.objects.get(order=order)
        assert entry.log_type == OrderLogType.KITCHEN_STATUS
        assert entry.note == "Kitchen status: Decorating"

    def test_done_moves_to_waiting_photo(self, order_service, make_order):
        order = make_order(OrderStatus.IN_KITCHEN, KitchenStatus.DECORATING)

        updated = order_service.set_kitchen_status(order.id, KitchenStatus.DONE_WAITING_APPROVAL)

        assert updated.status == OrderStatus.WAITING_PHOTO
        assert updated.kitchen_status == KitchenStatus.DONE_WAITING_APPROVAL

    def test_back_from_waiting_photo_to_kitchen(self, order_service, make_order):
        order = make_order(OrderStatus.WAITING_PHOTO)

        updated = order_service.set_kitchen_status(order.id, KitchenStatus.DECORATING)

        assert updated.status == OrderStatus.IN_KITCHEN
        assert updated.kitchen_status == KitchenStatus.DECORATING

    def test_same_value_is_noop(self, order_service, make_order):
        order = make_order(OrderStatus.IN_KITCHEN, KitchenStatus.DECORATING)

        updated = order_service.set_kitchen_status(order.id, KitchenStatus.DECORATING)

        assert updated.status_version == 0
        assert not OrderLog.objects.filter(order=order).exists()

    def test_unknown_kitchen_status(self, order_service, make_order):
        order = make_order(OrderStatus.IN_KITCHEN)
        with pytest.raises(InvalidKitchenStatus):
            order_service.set_kitchen_status(order.id, "frosting")

    def test_not_in_production(self, order_service, make_order):
        order = make_order(OrderStatus.PENDING_APPROVAL)
        with pytest.raises(InvalidKitchenStatus):
            order_service.set_kitchen_status(order.id, KitchenStatus.DECORATING)

    def test_advance_walks_the_sequence(self, order_service, make_order):
        order = make_order(OrderStatus.IN_QUEUE)

        seen = []
        for _ in range(5):
            updated = order_service.advance_kitchen_status(order.id)
            seen.append(updated.kitchen_status)

        assert seen == [
            KitchenStatus.WAITING_BAKER,
            KitchenStatus.WAITING_CRUMBCOAT,
            KitchenStatus.WAITING_COVER,
            KitchenStatus.DECORATING,
            KitchenStatus.DONE_WAITING_APPROVAL,
        ]
        assert updated.status == OrderStatus.WAITING_PHOTO

        with pytest.raises(InvalidKitchenStatus):
            order_service.advance_kitchen_status(order.id)


class TestGenericTransitions:
    def test_valid_transition(self, order_service, make_order):
        order = make_order(OrderStatus.READY_TO_DELIVER)

        updated = order_service.update_status(order.id, OrderStatus.IN_DELIVERY, user="Driver")

        assert updated.status == OrderStatus.IN_DELIVERY
        entry = OrderLog.objects.get(order=order)
        assert entry.previous_status == OrderStatus.READY_TO_DELIVER
        assert entry.new_status == OrderStatus.IN_DELIVERY

    def test_delivery_sets_delivered_at(self, order_service, make_order):
        order = make_order(OrderStatus.IN_DELIVERY)
        updated = order_service.update_status(order.id, OrderStatus.WAITING_FEEDBACK)
        assert updated.delivered_at is not None

    def test_failed_delivery_returns_to_ready(self, order_service, make_order):
        order = make_order(OrderStatus.IN_DELIVERY)
        updated = order_service.update_status(order.id, OrderStatus.READY_TO_DELIVER)
        assert updated.status == OrderStatus.READY_TO_DELIVER

    def test_skipping_states_rejected(self, order_service, make_order):
        order = make_order(OrderStatus.IN_QUEUE)
        with pytest.raises(InvalidOrderStatus):
            order_service.update_status(order.id, OrderStatus.READY_TO_DELIVER)

    def test_pending_approval_requires_photos_endpoint(self, order_service, make_order):
        order = make_order(OrderStatus.WAITING_PHOTO)
        with pytest.raises(InvalidOrderStatus):
            order_service.update_status(order.id, OrderStatus.PENDING_APPROVAL)

    def test_ready_from_pending_approval_is_an_approval(self, order_service, make_order):
        order = make_order(OrderStatus.PENDING_APPROVAL, finished_cake_photos=["a.jpg"])

        updated = order_service.update_status(order.id, OrderStatus.READY_TO_DELIVER, user="Manager")

        assert updated.approved_by == "Manager"
        assert OrderLog.objects.get(order=order).log_type == OrderLogType.APPROVAL

    def test_full_lifecycle_to_archive(self, order_service, make_order):
        order = make_order(OrderStatus.READY_TO_DELIVER)
        for status in (
            OrderStatus.IN_DELIVERY,
            OrderStatus.WAITING_FEEDBACK,
            OrderStatus.FINISHED,
            OrderStatus.ARCHIVED,
        ):
            order = order_service.update_status(order.id, status)
        assert order.is_terminal
        assert OrderLog.objects.filter(order=order).count() == 4

    def test_unknown_order(self, order_service):
        with pytest.raises(OrderNotFound):
            order_service.update_status(uuid4(), OrderStatus.IN_KITCHEN)


class TestCancellation:
    @pytest.mark.parametrize(
        "status",
        [
            OrderStatus.INCOMPLETE,
            OrderStatus.IN_QUEUE,
            OrderStatus.IN_KITCHEN,
            OrderStatus.WAITING_PHOTO,
            OrderStatus.PENDING_APPROVAL,
            OrderStatus.NEEDS_REVISION,
            OrderStatus.READY_TO_DELIVER,
        ],
    )
    def test_cancel_allowed(self, order_service, make_order, status):
        order = make_order(status)

        updated = order_service.cancel_order(order.id, notes="Customer called")

        assert updated.status == OrderStatus.CANCELLED
        assert updated.kitchen_status is None
        assert OrderLog.objects.get(order=order).note == "Customer called"

    @pytest.mark.parametrize("status", sorted(TERMINAL_STATES) + [OrderStatus.IN_DELIVERY])
    def test_cancel_rejected(self, order_service, make_order, status):
        order = make_order(status)
        with pytest.raises(InvalidOrderStatus):
            order_service.cancel_order(order.id)

    def test_generic_update_cannot_cancel(self, order_service, make_order):
        order = make_order(OrderStatus.IN_QUEUE)
        with pytest.raises(InvalidOrderStatus):
            order_service.update_status(order.id, OrderStatus.CANCELLED)
