"""Delivery DRF serializers for API input/output."""

from __future__ import annotations

from rest_framework import serializers

from modules.delivery.assignment import production_stage
from modules.delivery.constants import DriverType
from modules.delivery.models import DeliveryTrip
from modules.delivery.time_buckets import (
    classify_delivery_date,
    classify_time_slot,
    format_time_slot,
)
from modules.orders.serializers import OrderListSerializer

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class BoardQuerySerializer(serializers.Serializer):
    """Filter keys are free text; unknown keys fall back to defaults."""

    status = serializers.CharField(required=False, default="delivery-statuses")
    date = serializers.CharField(required=False, default="all")
    time_slot = serializers.CharField(required=False, default="all")


class AssignDriverSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()
    driver_type = serializers.ChoiceField(choices=DriverType.choices)
    vehicle_info = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)
    expected_version = serializers.IntegerField(min_value=0, required=False, allow_null=True)


class CreateTripSerializer(serializers.Serializer):
    driver_type = serializers.ChoiceField(choices=DriverType.choices)
    trip_date = serializers.DateField()
    departure_time = serializers.TimeField(required=False, allow_null=True, default=None)
    order_ids = serializers.ListField(child=serializers.UUIDField(), required=False, default=list)


class TripOrderSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()


class TripListQuerySerializer(serializers.Serializer):
    driver_type = serializers.ChoiceField(choices=DriverType.choices, required=False)
    trip_date = serializers.DateField(required=False)


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class BoardOrderSerializer(OrderListSerializer):
    """Order row on the delivery board, with "now"-relative urgency.

    Requires ``now`` in the serializer context.
    """

    date_bucket = serializers.SerializerMethodField()
    urgency = serializers.SerializerMethodField()
    time_slot_display = serializers.SerializerMethodField()
    production_stage = serializers.SerializerMethodField()

    class Meta(OrderListSerializer.Meta):
        fields = OrderListSerializer.Meta.fields + [
            "date_bucket",
            "urgency",
            "time_slot_display",
            "production_stage",
        ]
        read_only_fields = fields

    def get_date_bucket(self, obj) -> str:
        return str(classify_delivery_date(obj.delivery_date, self.context["now"]))

    def get_urgency(self, obj) -> str | None:
        label = classify_time_slot(obj.delivery_date, obj.delivery_time_slot, self.context["now"])
        return str(label) if label else None

    def get_time_slot_display(self, obj) -> str:
        return format_time_slot(obj.delivery_time_slot)

    def get_production_stage(self, obj) -> str:
        return production_stage(obj)


class TripSerializer(serializers.ModelSerializer):
    driver_display = serializers.CharField(source="get_driver_type_display", read_only=True)
    orders = OrderListSerializer(many=True, read_only=True)
    order_count = serializers.SerializerMethodField()

    class Meta:
        model = DeliveryTrip
        fields = [
            "id",
            "name",
            "driver_type",
            "driver_display",
            "trip_date",
            "trip_number",
            "departure_time",
            "status",
            "order_count",
            "orders",
            "created_at",
        ]
        read_only_fields = fields

    def get_order_count(self, obj: DeliveryTrip) -> int:
        return len(obj.orders.all())


class TripCreationResultSerializer(serializers.Serializer):
    trip = TripSerializer(read_only=True)
    status_breakdown = serializers.DictField(child=serializers.IntegerField(), read_only=True)
    has_non_ready_orders = serializers.BooleanField(read_only=True)
    skipped_order_ids = serializers.ListField(child=serializers.CharField(), read_only=True)
