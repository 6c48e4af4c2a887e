"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.

Concurrency control is optimistic: ``update_guarded`` issues a single
``UPDATE ... WHERE id = %s AND <group>_version = %s`` and treats zero
affected rows on an existing order as a conflict.  Unlike
``select_for_update`` this also rejects writes computed from a snapshot
the caller read in an earlier request.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from modules.orders.constants import OrderStatus
from modules.orders.exceptions import OrderNotFound, StaleOrder
from modules.orders.models import Order, OrderLog, OrderRevision
from modules.orders.repositories.interfaces import FIELD_GROUPS, IOrderRepository

logger = structlog.get_logger(__name__)

_CREATE_FIELDS = (
    "customer_name",
    "customer_phone",
    "delivery_address",
    "cake_description",
    "notes",
    "delivery_date",
    "delivery_time_slot",
)


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order.

        ``data`` keys: ``customer_name`` and ``delivery_date`` (required),
        ``status`` (defaults to ``in-queue``) and the optional descriptive
        fields in ``_CREATE_FIELDS``.
        """
        values = {key: data[key] for key in _CREATE_FIELDS if data.get(key) is not None}
        order = Order(status=data.get("status") or OrderStatus.IN_QUEUE, **values)
        order.save()

        logger.info("order.created", order_id=str(order.id), status=order.status)
        return order

    # ------------------------------------------------------------------
    # Guarded update
    # ------------------------------------------------------------------

    @transaction.atomic
    def update_guarded(
        self,
        order_id: str,
        changes: Dict[str, Any],
        expected_versions: Dict[str, int],
    ) -> Order:
        touched = {
            group for group, fields in FIELD_GROUPS.items() if fields & changes.keys()
        }
        unknown = set(changes) - set().union(*FIELD_GROUPS.values())
        if unknown:
            raise ValueError(f"Fields outside any guarded group: {sorted(unknown)}")
        unguarded = touched - expected_versions.keys()
        if unguarded:
            raise ValueError(f"Missing expected version for groups: {sorted(unguarded)}")

        guard = {f"{group}_version": version for group, version in expected_versions.items()}
        bumps = {f"{group}_version": F(f"{group}_version") + 1 for group in touched}

        try:
            UUID(str(order_id))
        except ValueError:
            raise OrderNotFound(f"Order {order_id} not found.") from None

        updated = Order.objects.filter(id=order_id, **guard).update(
            **changes, **bumps, updated_at=timezone.now()
        )

        log = logger.bind(order_id=str(order_id), groups=sorted(touched), **guard)
        if not updated:
            if not Order.objects.filter(id=order_id).exists():
                raise OrderNotFound(f"Order {order_id} not found.")
            log.warning("order.guarded_update_conflict")
            raise StaleOrder(f"Order {order_id} was modified concurrently.")

        log.info("order.guarded_update_applied", fields=sorted(changes))
        order = self.get_by_id(str(order_id))
        if order is None:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with prefetched logs and revisions.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return (
                Order.objects.prefetch_related("logs", "revisions")
                .filter(id=id)
                .first()
            )
        except (ValueError, DjangoValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        """List orders with optional filters.

        Supported filter keys are any ORM lookups on ``Order``, e.g.
        ``status__in``, ``delivery_date``, ``delivery_date__range``,
        ``assignment_driver_type``.
        """
        queryset = Order.objects.prefetch_related("logs", "revisions")
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    # ------------------------------------------------------------------
    # Append-only records
    # ------------------------------------------------------------------

    def add_log(
        self,
        order_id: str,
        log_type: str,
        new_status: str,
        previous_status: Optional[str] = None,
        note: str = "",
        user: str = "System",
    ) -> OrderLog:
        entry = OrderLog.objects.create(
            order_id=order_id,
            log_type=log_type,
            previous_status=previous_status,
            new_status=new_status,
            note=note,
            user=user,
        )
        logger.info(
            "order.log_added",
            order_id=str(order_id),
            log_type=log_type,
            previous_status=previous_status,
            new_status=new_status,
        )
        return entry

    def add_revision(
        self,
        order_id: str,
        revision_number: int,
        notes: str,
        photos: List[str],
        requested_by: str,
    ) -> OrderRevision:
        revision = OrderRevision.objects.create(
            order_id=order_id,
            revision_number=revision_number,
            notes=notes,
            photos=list(photos),
            requested_by=requested_by,
        )
        logger.info(
            "order.revision_added",
            order_id=str(order_id),
            revision_number=revision_number,
            photo_count=len(photos),
        )
        return revision
