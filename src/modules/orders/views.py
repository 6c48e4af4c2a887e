"""Order API views.

Exposes the ``OrderService`` via HTTP using DRF ViewSets.
Domain exceptions propagate to ``api_exception_handler``, which renders
them in the standard error envelope; views only translate HTTP payloads
into service calls.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.core.identity import resolve_actor
from modules.core.pagination import StandardResultsSetPagination
from modules.gallery.services import GalleryService
from modules.orders.dtos import CreateOrderDTO
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    ApproveSerializer,
    CancelSerializer,
    CreateOrderSerializer,
    KitchenStatusSerializer,
    OrderListSerializer,
    OrderSerializer,
    PhotoSubmissionSerializer,
    RevisionRequestSerializer,
    StatusUpdateSerializer,
    VersionedActionSerializer,
)
from modules.orders.services import OrderService


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Uses ``OrderService`` with injected repositories (DIP).
    Does **not** extend ``ModelViewSet``: every write goes through the
    service so the state machine guards always apply.
    """

    queryset = Order.objects.all()
    filterset_class = OrderFilter
    search_fields = ["order_number", "customer_name"]
    ordering_fields = ["created_at", "delivery_date", "status"]
    ordering = ["delivery_date", "delivery_time_slot", "created_at"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = OrderService(
            order_repository=OrderDjangoRepository(),
            gallery_client=GalleryService(),
        )

    def _actor(self, request: Request) -> str:
        return resolve_actor(request.user)

    def _validated(self, serializer_class, request: Request) -> dict:
        serializer = serializer_class(data=request.data)
        serializer.is_valid(raise_exception=True)
        return serializer.validated_data

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/"""
        data = self._validated(CreateOrderSerializer, request)
        order = self._service.create_order(CreateOrderDTO(**data), user=self._actor(request))
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def get_queryset(self):
        return Order.objects.all()

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Filtering (status, kitchen status, driver, delivery date range) is
        handled by ``OrderFilter``; ordering by ``OrderingFilter``.
        """
        queryset = self.filter_queryset(self.get_queryset())

        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request)
        serializer = OrderListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        order = self._service.get_order(pk)
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Status update
    # ------------------------------------------------------------------

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/

        Generic state-machine transition.  Cancellations and photo
        submissions have dedicated endpoints.
        """
        data = self._validated(StatusUpdateSerializer, request)
        order = self._service.update_status(
            order_id=pk,
            new_status=data["status"],
            notes=data["notes"],
            user=self._actor(request),
            expected_version=data.get("expected_version"),
        )
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Kitchen
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"], url_path="kitchen-status")
    def kitchen_status(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/kitchen-status/"""
        data = self._validated(KitchenStatusSerializer, request)
        order = self._service.set_kitchen_status(
            order_id=pk,
            kitchen_status=data["kitchen_status"],
            user=self._actor(request),
            expected_version=data.get("expected_version"),
        )
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"], url_path="advance-kitchen")
    def advance_kitchen(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/advance-kitchen/"""
        data = self._validated(VersionedActionSerializer, request)
        order = self._service.advance_kitchen_status(
            order_id=pk,
            user=self._actor(request),
            expected_version=data.get("expected_version"),
        )
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Approval cycle
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"])
    def photos(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/photos/"""
        data = self._validated(PhotoSubmissionSerializer, request)
        order = self._service.submit_photos(
            order_id=pk,
            photos=data["photos"],
            user=self._actor(request),
            expected_version=data.get("expected_version"),
        )
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"], url_path="request-revision")
    def request_revision(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/request-revision/"""
        data = self._validated(RevisionRequestSerializer, request)
        order = self._service.request_revision(
            order_id=pk,
            notes=data["notes"],
            user=self._actor(request),
            expected_version=data.get("expected_version"),
        )
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def approve(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/approve/

        Gallery archive failures do not fail the approval; they are
        returned in ``warnings``.
        """
        data = self._validated(ApproveSerializer, request)
        result = self._service.approve(
            order_id=pk,
            user=self._actor(request),
            add_to_gallery=data["add_to_gallery"],
            gallery_tags=data["gallery_tags"],
            expected_version=data.get("expected_version"),
        )
        payload = OrderSerializer(result.order).data
        payload["changed"] = result.changed
        payload["warnings"] = list(result.warnings)
        return Response(payload)

    # ------------------------------------------------------------------
    # Cancel (dedicated action)
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/cancel/"""
        data = self._validated(CancelSerializer, request)
        order = self._service.cancel_order(
            order_id=pk,
            notes=data["notes"],
            user=self._actor(request),
            expected_version=data.get("expected_version"),
        )
        return Response(OrderSerializer(order).data)
