"""Interleaved-update tests for the optimistic concurrency guards.

Two operators work from snapshots of the same order.  The interleaving is
driven step by step so the outcome is deterministic on any database.
"""

from __future__ import annotations

import pytest

from modules.orders.constants import KitchenStatus, OrderLogType, OrderStatus
from modules.orders.exceptions import StaleOrder
from modules.orders.models import OrderLog
from modules.orders.repositories.interfaces import ASSIGNMENT_GROUP, STATUS_GROUP

pytestmark = pytest.mark.unit


class TestStaleSnapshots:
    def test_second_writer_with_stale_snapshot_is_rejected(self, order_service, make_order):
        order = make_order(OrderStatus.PENDING_APPROVAL, finished_cake_photos=["a.jpg"])
        kitchen_view = order_service.get_order(order.id)
        manager_view = order_service.get_order(order.id)

        order_service.request_revision(
            order.id, "fix text", expected_version=kitchen_view.status_version
        )

        with pytest.raises(StaleOrder):
            order_service.approve(order.id, expected_version=manager_view.status_version)

        current = order_service.get_order(order.id)
        assert current.status == OrderStatus.NEEDS_REVISION
        assert current.approved_by == ""

    def test_retry_after_refetch_succeeds(self, order_service, make_order):
        order = make_order(OrderStatus.IN_KITCHEN, KitchenStatus.WAITING_BAKER)
        stale = order_service.get_order(order.id)
        order_service.set_kitchen_status(order.id, KitchenStatus.WAITING_COVER)

        with pytest.raises(StaleOrder):
            order_service.set_kitchen_status(
                order.id, KitchenStatus.DECORATING, expected_version=stale.status_version
            )

        fresh = order_service.get_order(order.id)
        updated = order_service.set_kitchen_status(
            order.id, KitchenStatus.DECORATING, expected_version=fresh.status_version
        )
        assert updated.kitchen_status == KitchenStatus.DECORATING

    def test_guard_rejects_write_computed_from_old_read(
        self, order_repository, order_service, make_order, monkeypatch
    ):
        """A racing writer commits between the service's read and its write."""
        order = make_order(OrderStatus.READY_TO_DELIVER)
        original_update = order_repository.update_guarded
        raced = {"done": False}

        def racing_update(order_id, changes, expected_versions):
            if not raced["done"]:
                raced["done"] = True
                original_update(order_id, {"status": OrderStatus.CANCELLED}, expected_versions)
            return original_update(order_id, changes, expected_versions)

        monkeypatch.setattr(order_repository, "update_guarded", racing_update)

        with pytest.raises(StaleOrder):
            order_service.update_status(order.id, OrderStatus.IN_DELIVERY)

        assert raced["done"] is True
        assert not OrderLog.objects.filter(order=order, new_status=OrderStatus.IN_DELIVERY).exists()


class TestFieldGroups:
    def test_assignment_write_does_not_conflict_with_status_write(
        self, order_service, trip_service, make_order
    ):
        order = make_order(OrderStatus.IN_KITCHEN, KitchenStatus.DECORATING)
        kitchen_view = order_service.get_order(order.id)

        trip_service.assign_driver(str(order.id), "driver-1")
        updated = order_service.set_kitchen_status(
            order.id,
            KitchenStatus.DONE_WAITING_APPROVAL,
            expected_version=kitchen_view.status_version,
        )

        assert updated.status == OrderStatus.WAITING_PHOTO
        assert updated.assignment_driver_type == "driver-1"
        assert updated.assignment_is_preliminary is True

    def test_stale_assignment_version_rejected(self, trip_service, make_order):
        order = make_order(OrderStatus.READY_TO_DELIVER)
        trip_service.assign_driver(str(order.id), "driver-1")

        with pytest.raises(StaleOrder):
            trip_service.assign_driver(str(order.id), "driver-2", expected_version=0)


class TestLogsSurvive:
    def test_both_racing_writers_keep_their_log_entries(self, order_service, trip_service, make_order):
        order = make_order(OrderStatus.PENDING_APPROVAL, finished_cake_photos=["a.jpg"])

        trip_service.assign_driver(str(order.id), "driver-2")
        order_service.approve(order.id, user="Manager")

        types = set(OrderLog.objects.filter(order=order).values_list("log_type", flat=True))
        assert types == {OrderLogType.DELIVERY_ASSIGNMENT, OrderLogType.APPROVAL}

    def test_rejected_transition_writes_no_log(self, order_service, make_order):
        order = make_order(OrderStatus.PENDING_APPROVAL, finished_cake_photos=["a.jpg"])
        stale_version = order.status_version
        order_service.approve(order.id)

        with pytest.raises(StaleOrder):
            order_service.cancel_order(order.id, expected_version=stale_version)

        assert OrderLog.objects.filter(order=order).count() == 1


class TestAssignmentAgainstApproval:
    """Approval and a driver assignment racing on the same order.

    The preliminary flag is computed from the status each writer read, so
    whichever commits second must be rejected rather than leave a ready
    order with a preliminary assignment.
    """

    @pytest.fixture()
    def pending(self, make_order):
        return make_order(OrderStatus.PENDING_APPROVAL, finished_cake_photos=["a.jpg"])

    def test_assignment_committed_during_approval_rejects_the_approval(
        self, order_repository, order_service, trip_service, pending, monkeypatch
    ):
        original_update = order_repository.update_guarded
        raced = {"done": False}

        def assign_first(order_id, changes, expected_versions):
            if not raced["done"] and changes.get("status") == OrderStatus.READY_TO_DELIVER:
                raced["done"] = True
                trip_service.assign_driver(order_id, "driver-1")
            return original_update(order_id, changes, expected_versions)

        monkeypatch.setattr(order_repository, "update_guarded", assign_first)

        with pytest.raises(StaleOrder):
            order_service.approve(pending.id, user="Manager")

        current = order_service.get_order(pending.id)
        assert raced["done"] is True
        assert current.status == OrderStatus.PENDING_APPROVAL
        assert not OrderLog.objects.filter(order=pending, log_type=OrderLogType.APPROVAL).exists()

    def test_approval_committed_during_assignment_rejects_the_assignment(
        self, order_repository, order_service, trip_service, pending, monkeypatch
    ):
        original_update = order_repository.update_guarded
        raced = {"done": False}

        def approve_first(order_id, changes, expected_versions):
            if not raced["done"] and "assignment_driver_type" in changes:
                raced["done"] = True
                order_service.approve(order_id, user="Manager")
            return original_update(order_id, changes, expected_versions)

        monkeypatch.setattr(order_repository, "update_guarded", approve_first)

        with pytest.raises(StaleOrder):
            trip_service.assign_driver(str(pending.id), "driver-1")

        current = order_service.get_order(pending.id)
        assert raced["done"] is True
        assert current.assignment_driver_type is None
        assert not OrderLog.objects.filter(
            order=pending, log_type=OrderLogType.DELIVERY_ASSIGNMENT
        ).exists()

    def test_retry_after_conflict_confirms_the_assignment(
        self, order_service, trip_service, pending
    ):
        trip_service.assign_driver(str(pending.id), "driver-1")
        order_service.approve(pending.id, user="Manager")

        current = order_service.get_order(pending.id)
        assert current.status == OrderStatus.READY_TO_DELIVER
        assert current.assignment_driver_type == "driver-1"
        assert current.assignment_is_preliminary is False

    def test_ready_transition_guards_the_assignment_even_without_a_driver(
        self, order_repository, order_service, pending, monkeypatch
    ):
        seen = []
        original_update = order_repository.update_guarded

        def recording_update(order_id, changes, expected_versions):
            seen.append(dict(expected_versions))
            return original_update(order_id, changes, expected_versions)

        monkeypatch.setattr(order_repository, "update_guarded", recording_update)

        order_service.approve(pending.id)

        assert seen == [{STATUS_GROUP: 0, ASSIGNMENT_GROUP: 0}]
