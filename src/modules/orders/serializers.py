"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py`` or plain validated values.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.approval import revision_history_newest_first, revision_label
from modules.orders.constants import KitchenStatus, OrderStatus
from modules.orders.kitchen import derive_kitchen_status, kitchen_status_display_name
from modules.orders.models import Order, OrderLog, OrderRevision
from modules.orders.status_helpers import status_display_name

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class CreateOrderSerializer(serializers.Serializer):
    """Validates the order intake payload."""

    customer_name = serializers.CharField(max_length=255)
    customer_phone = serializers.CharField(max_length=32, required=False, default="", allow_blank=True)
    delivery_address = serializers.CharField(required=False, default="", allow_blank=True)
    cake_description = serializers.CharField(required=False, default="", allow_blank=True)
    notes = serializers.CharField(required=False, default="", allow_blank=True)
    delivery_date = serializers.DateField()
    delivery_time_slot = serializers.CharField(
        max_length=32, required=False, default="", allow_blank=True
    )
    status = serializers.ChoiceField(
        choices=[OrderStatus.INCOMPLETE, OrderStatus.IN_QUEUE],
        required=False,
        default=OrderStatus.IN_QUEUE,
    )


class VersionedActionSerializer(serializers.Serializer):
    """Base for actions accepting the ``status_version`` the client last read."""

    expected_version = serializers.IntegerField(min_value=0, required=False, allow_null=True)


class StatusUpdateSerializer(VersionedActionSerializer):
    status = serializers.CharField()
    notes = serializers.CharField(required=False, default="", allow_blank=True)


class KitchenStatusSerializer(VersionedActionSerializer):
    kitchen_status = serializers.ChoiceField(choices=KitchenStatus.choices)


class PhotoSubmissionSerializer(VersionedActionSerializer):
    photos = serializers.ListField(
        child=serializers.CharField(allow_blank=True), allow_empty=True
    )


class RevisionRequestSerializer(VersionedActionSerializer):
    notes = serializers.CharField(allow_blank=True)


class ApproveSerializer(VersionedActionSerializer):
    add_to_gallery = serializers.BooleanField(required=False, default=False)
    gallery_tags = serializers.DictField(
        child=serializers.CharField(allow_blank=True), required=False, default=dict
    )


class CancelSerializer(VersionedActionSerializer):
    notes = serializers.CharField(required=False, default="", allow_blank=True)


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderLogSerializer(serializers.ModelSerializer):
    """Read serializer for audit trail entries."""

    type = serializers.CharField(source="log_type", read_only=True)
    timestamp = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = OrderLog
        fields = [
            "id",
            "timestamp",
            "type",
            "previous_status",
            "new_status",
            "note",
            "user",
        ]
        read_only_fields = fields


class OrderRevisionSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderRevision
        fields = [
            "revision_number",
            "notes",
            "photos",
            "requested_by",
            "created_at",
        ]
        read_only_fields = fields


class DeliveryAssignmentSerializer(serializers.Serializer):
    driver_type = serializers.CharField(read_only=True)
    is_preliminary = serializers.BooleanField(read_only=True)
    assigned_at = serializers.DateTimeField(read_only=True)
    vehicle_info = serializers.CharField(read_only=True)


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for order lists (no nested history)."""

    status_display = serializers.SerializerMethodField()
    effective_kitchen_status = serializers.SerializerMethodField()
    delivery_assignment = DeliveryAssignmentSerializer(read_only=True, allow_null=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer_name",
            "status",
            "status_display",
            "kitchen_status",
            "effective_kitchen_status",
            "delivery_date",
            "delivery_time_slot",
            "revision_count",
            "delivery_assignment",
            "status_version",
            "assignment_version",
            "created_at",
        ]
        read_only_fields = fields

    def get_status_display(self, obj: Order) -> str:
        return status_display_name(obj.status)

    def get_effective_kitchen_status(self, obj: Order) -> str:
        return derive_kitchen_status(obj).value


class OrderSerializer(OrderListSerializer):
    """Read serializer for a single order with its history."""

    kitchen_status_display = serializers.SerializerMethodField()
    revision_label = serializers.SerializerMethodField()
    logs = OrderLogSerializer(many=True, read_only=True)
    revisions = serializers.SerializerMethodField()

    class Meta(OrderListSerializer.Meta):
        fields = OrderListSerializer.Meta.fields + [
            "customer_phone",
            "delivery_address",
            "cake_description",
            "notes",
            "kitchen_status_display",
            "finished_cake_photos",
            "revision_notes",
            "revision_label",
            "approved_by",
            "approved_at",
            "delivered_at",
            "updated_at",
            "logs",
            "revisions",
        ]
        read_only_fields = fields

    def get_kitchen_status_display(self, obj: Order) -> str:
        return kitchen_status_display_name(derive_kitchen_status(obj))

    def get_revision_label(self, obj: Order) -> str:
        return revision_label(obj)

    def get_revisions(self, obj: Order) -> list:
        """Revision history, newest request first."""
        return OrderRevisionSerializer(revision_history_newest_first(obj), many=True).data
