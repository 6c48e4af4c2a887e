"""Delivery API views.

The delivery board and trip endpoints.  Board filters run in Python over
open orders because urgency depends on "now"; the view's ``clock`` is the
single source of that instant.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet, ViewSet

from modules.core.clock import system_clock
from modules.core.identity import resolve_actor
from modules.delivery.dtos import CreateTripDTO
from modules.delivery.filtering import (
    apply_filters,
    group_by_time_slot,
    sort_for_board,
    summarize,
)
from modules.delivery.models import DeliveryTrip
from modules.delivery.repositories.django_repository import TripDjangoRepository
from modules.delivery.serializers import (
    AssignDriverSerializer,
    BoardOrderSerializer,
    BoardQuerySerializer,
    CreateTripSerializer,
    TripCreationResultSerializer,
    TripListQuerySerializer,
    TripOrderSerializer,
    TripSerializer,
)
from modules.delivery.services import TripService
from modules.delivery.time_buckets import date_filter_titles
from modules.orders.constants import CLOSED_STATES, OrderStatus
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import OrderSerializer


def build_trip_service() -> TripService:
    return TripService(
        trip_repository=TripDjangoRepository(),
        order_repository=OrderDjangoRepository(),
        clock=system_clock,
    )


class DeliveryViewSet(ViewSet):
    """Read-side delivery board plus quick driver assignment."""

    clock = system_clock

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._orders = OrderDjangoRepository()

    def _open_orders(self):
        return self._orders.list({"status__in": self._open_statuses()})

    @staticmethod
    def _open_statuses() -> list[str]:
        return [value for value in OrderStatus.values if value not in CLOSED_STATES]

    @action(detail=False, methods=["get"])
    def board(self, request: Request) -> Response:
        """GET /api/v1/delivery/board/?status=&date=&time_slot="""
        query = BoardQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        params = query.validated_data

        now = self.clock.now()
        orders = apply_filters(
            self._open_orders(),
            now=now,
            status=params["status"],
            date=params["date"],
            time_slot=params["time_slot"],
        )
        ordered = sort_for_board(orders)
        results = BoardOrderSerializer(ordered, many=True, context={"now": now})
        return Response(
            {
                "count": len(orders),
                "filters": params,
                "date_titles": date_filter_titles(now),
                "results": results.data,
                "by_time_slot": {
                    slot: [str(order.id) for order in members]
                    for slot, members in group_by_time_slot(ordered).items()
                },
            }
        )

    @action(detail=False, methods=["get"])
    def summary(self, request: Request) -> Response:
        """GET /api/v1/delivery/summary/"""
        return Response(summarize(self._open_orders(), self.clock.now()))

    @action(detail=False, methods=["post"])
    def assignments(self, request: Request) -> Response:
        """POST /api/v1/delivery/assignments/"""
        serializer = AssignDriverSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        order = build_trip_service().assign_driver(
            order_id=str(data["order_id"]),
            driver_type=data["driver_type"],
            vehicle_info=data.get("vehicle_info"),
            user=resolve_actor(request.user),
            expected_version=data.get("expected_version"),
        )
        return Response(OrderSerializer(order).data)


class TripViewSet(GenericViewSet):
    """Trips: create, list, inspect and manage membership."""

    queryset = DeliveryTrip.objects.all()
    serializer_class = TripSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_trip_service()

    def list(self, request: Request) -> Response:
        """GET /api/v1/trips/?driver_type=&trip_date="""
        query = TripListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        trips = self._service.list_trips(
            driver_type=query.validated_data.get("driver_type"),
            trip_date=query.validated_data.get("trip_date"),
        )
        return Response(TripSerializer(trips, many=True).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/trips/

        With ``order_ids`` the trip is created together with its orders
        and the response carries the ready / not-ready breakdown.
        """
        serializer = CreateTripSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        dto = CreateTripDTO(
            **{**data, "order_ids": [str(order_id) for order_id in data["order_ids"]]}
        )

        result = self._service.create_trip_with_orders(
            driver_type=dto.driver_type,
            trip_date=dto.trip_date,
            order_ids=dto.order_ids,
            departure_time=dto.departure_time,
            user=resolve_actor(request.user),
        )
        return Response(
            TripCreationResultSerializer(result).data, status=status.HTTP_201_CREATED
        )

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/trips/{pk}/"""
        return Response(TripSerializer(self._service.get_trip(pk)).data)

    @action(detail=True, methods=["post"], url_path="orders")
    def add_order(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/trips/{pk}/orders/"""
        serializer = TripOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        trip = self._service.add_order_to_trip(
            trip_id=pk,
            order_id=str(serializer.validated_data["order_id"]),
            user=resolve_actor(request.user),
        )
        return Response(TripSerializer(trip).data)

    @action(detail=True, methods=["delete"], url_path=r"orders/(?P<order_id>[^/.]+)")
    def remove_order(self, request: Request, pk: str | None = None, order_id: str | None = None) -> Response:
        """DELETE /api/v1/trips/{pk}/orders/{order_id}/"""
        trip = self._service.remove_order_from_trip(trip_id=pk, order_id=order_id)
        return Response(TripSerializer(trip).data)
