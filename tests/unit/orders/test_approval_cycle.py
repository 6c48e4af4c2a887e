"""Unit tests for the photo approval / revision cycle.

Covers:
- Photo submission guards (photos required, status required).
- Revision requests: notes required, count increments once, history kept.
- Approval: ready-to-deliver, approver recorded, no-op when already ready.
- One log entry per transition.
- Best-effort gallery archive on approval.
"""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from modules.orders.approval import revision_history_newest_first, revision_label
from modules.orders.constants import OrderLogType, OrderStatus
from modules.orders.exceptions import (
    InvalidOrderStatus,
    MissingPhotos,
    MissingRevisionNotes,
)
from modules.orders.models import OrderLog
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.gallery.exceptions import GalleryUnavailable

pytestmark = pytest.mark.unit


class TestPhotoSubmission:
    def test_submit_moves_to_pending_approval(self, order_service, make_order):
        order = make_order(OrderStatus.WAITING_PHOTO)

        updated = order_service.submit_photos(order.id, ["a.jpg", "b.jpg"], user="Kitchen")

        assert updated.status == OrderStatus.PENDING_APPROVAL
        assert updated.finished_cake_photos == ["a.jpg", "b.jpg"]
        assert updated.kitchen_status is None

    def test_empty_photo_set_rejected_and_nothing_written(self, order_service, make_order):
        order = make_order(OrderStatus.WAITING_PHOTO)

        with pytest.raises(MissingPhotos, match="At least one photo required"):
            order_service.submit_photos(order.id, [])

        order.refresh_from_db()
        assert order.status == OrderStatus.WAITING_PHOTO
        assert order.status_version == 0
        assert not OrderLog.objects.filter(order=order).exists()

    def test_blank_references_do_not_count(self, order_service, make_order):
        order = make_order(OrderStatus.WAITING_PHOTO)
        with pytest.raises(MissingPhotos):
            order_service.submit_photos(order.id, ["", "   "])

    def test_submit_from_wrong_status_rejected(self, order_service, make_order):
        order = make_order(OrderStatus.IN_KITCHEN)
        with pytest.raises(InvalidOrderStatus):
            order_service.submit_photos(order.id, ["a.jpg"])

    def test_log_entry_type_is_photo_upload(self, order_service, make_order):
        order = make_order(OrderStatus.WAITING_PHOTO)
        order_service.submit_photos(order.id, ["a.jpg"], user="Kitchen")

        entry = OrderLog.objects.get(order=order)
        assert entry.log_type == OrderLogType.PHOTO_UPLOAD
        assert entry.previous_status == OrderStatus.WAITING_PHOTO
        assert entry.new_status == OrderStatus.PENDING_APPROVAL
        assert entry.user == "Kitchen"


class TestRevisionRequest:
    def test_request_revision(self, order_service, make_order):
        order = make_order(OrderStatus.PENDING_APPROVAL, finished_cake_photos=["a.jpg", "b.jpg"])

        updated = order_service.request_revision(order.id, "fix text", user="Manager")

        assert updated.status == OrderStatus.NEEDS_REVISION
        assert updated.revision_count == 1
        assert updated.revision_notes == "fix text"
        revisions = list(updated.revisions.all())
        assert len(revisions) == 1
        assert revisions[0].notes == "fix text"
        assert revisions[0].photos == ["a.jpg", "b.jpg"]
        assert revisions[0].requested_by == "Manager"

    @pytest.mark.parametrize("notes", ["", "   ", None])
    def test_notes_required(self, order_service, make_order, notes):
        order = make_order(OrderStatus.PENDING_APPROVAL)

        with pytest.raises(MissingRevisionNotes, match="Revision notes required"):
            order_service.request_revision(order.id, notes)

        order.refresh_from_db()
        assert order.status == OrderStatus.PENDING_APPROVAL
        assert order.revision_count == 0

    def test_only_from_pending_approval(self, order_service, make_order):
        order = make_order(OrderStatus.READY_TO_DELIVER)
        with pytest.raises(InvalidOrderStatus):
            order_service.request_revision(order.id, "too late")

    def test_generic_update_routes_through_revision_guard(self, order_service, make_order):
        order = make_order(OrderStatus.PENDING_APPROVAL)
        with pytest.raises(MissingRevisionNotes):
            order_service.update_status(order.id, OrderStatus.NEEDS_REVISION)

    def test_resubmission_clears_notes_keeps_count(self, order_service, make_order):
        order = make_order(OrderStatus.PENDING_APPROVAL, finished_cake_photos=["a.jpg"])
        order_service.request_revision(order.id, "more sprinkles")

        updated = order_service.submit_photos(order.id, ["c.jpg"])

        assert updated.status == OrderStatus.PENDING_APPROVAL
        assert updated.revision_count == 1
        assert updated.revision_notes == ""
        assert revision_label(updated) == "Revision #1 Pending Approval"

    def test_history_newest_first(self, order_service, make_order):
        order = make_order(OrderStatus.PENDING_APPROVAL, finished_cake_photos=["a.jpg"])
        order_service.request_revision(order.id, "first")
        order_service.submit_photos(order.id, ["b.jpg"])
        updated = order_service.request_revision(order.id, "second")

        assert updated.revision_count == 2
        history = revision_history_newest_first(updated)
        assert [r.notes for r in history] == ["second", "first"]
        assert history[0].photos == ["b.jpg"]


class TestApproval:
    def test_approve_sets_ready_and_approver(self, order_service, make_order):
        order = make_order(OrderStatus.PENDING_APPROVAL, finished_cake_photos=["a.jpg"])

        result = order_service.approve(order.id, user="Manager")

        assert result.changed is True
        assert result.warnings == []
        assert result.order.status == OrderStatus.READY_TO_DELIVER
        assert result.order.approved_by == "Manager"
        assert result.order.approved_at is not None

    def test_approve_already_ready_is_noop(self, order_service, make_order):
        order = make_order(OrderStatus.READY_TO_DELIVER)

        result = order_service.approve(order.id)

        assert result.changed is False
        assert not OrderLog.objects.filter(order=order).exists()

    def test_approve_from_other_status_rejected(self, order_service, make_order):
        order = make_order(OrderStatus.WAITING_PHOTO)
        with pytest.raises(InvalidOrderStatus):
            order_service.approve(order.id)

    def test_full_cycle_logs_one_entry_per_transition(self, order_service, make_order):
        order = make_order(OrderStatus.WAITING_PHOTO)

        order_service.submit_photos(order.id, ["p1.jpg", "p2.jpg"])
        after_revision = order_service.request_revision(order.id, "fix text")
        assert after_revision.revision_count == 1
        assert [r.photos for r in after_revision.revisions.all()] == [["p1.jpg", "p2.jpg"]]
        order_service.submit_photos(order.id, ["p3.jpg", "p4.jpg"])
        result = order_service.approve(order.id)

        assert result.order.status == OrderStatus.READY_TO_DELIVER
        types = list(
            OrderLog.objects.filter(order=order).values_list("log_type", flat=True)
        )
        assert types == [
            OrderLogType.PHOTO_UPLOAD,
            OrderLogType.REVISION_REQUEST,
            OrderLogType.PHOTO_UPLOAD,
            OrderLogType.APPROVAL,
        ]


class TestGalleryArchive:
    def test_photos_sent_to_gallery(self, make_order):
        gallery = MagicMock()
        service = OrderService(order_repository=OrderDjangoRepository(), gallery_client=gallery)
        order = make_order(OrderStatus.PENDING_APPROVAL, finished_cake_photos=["a.jpg", "b.jpg"])

        result = service.approve(order.id, add_to_gallery=True, gallery_tags={"shape": "round"})

        assert result.warnings == []
        assert gallery.add_photo.call_count == 2
        kwargs = gallery.add_photo.call_args_list[0].kwargs
        assert kwargs["image_url"] == "a.jpg"
        assert kwargs["tags"] == {"shape": "round"}
        assert kwargs["order_info"]["order_number"] == order.order_number

    def test_gallery_failure_becomes_warning(self, make_order):
        gallery = MagicMock()
        gallery.add_photo.side_effect = GalleryUnavailable("archive down")
        service = OrderService(order_repository=OrderDjangoRepository(), gallery_client=gallery)
        order = make_order(OrderStatus.PENDING_APPROVAL, finished_cake_photos=["a.jpg"])

        result = service.approve(order.id, add_to_gallery=True)

        assert result.changed is True
        assert len(result.warnings) == 1
        order.refresh_from_db()
        assert order.status == OrderStatus.READY_TO_DELIVER

    def test_missing_gallery_client_is_a_warning(self, order_service, make_order):
        order = make_order(OrderStatus.PENDING_APPROVAL, finished_cake_photos=["a.jpg"])
        result = order_service.approve(order.id, add_to_gallery=True)
        assert result.order.status == OrderStatus.READY_TO_DELIVER
        assert result.warnings


class TestRevisionLabel:
    @pytest.mark.parametrize(
        "status,count,expected",
        [
            (OrderStatus.NEEDS_REVISION, 2, "Revision #2 Needed"),
            (OrderStatus.PENDING_APPROVAL, 1, "Revision #1 Pending Approval"),
            (OrderStatus.PENDING_APPROVAL, 0, "Pending Approval"),
        ],
    )
    def test_label(self, status, count, expected):
        assert revision_label(SimpleNamespace(status=status, revision_count=count)) == expected
