from django.apps import AppConfig


class OrdersConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.orders"
    label = "orders"

    def ready(self) -> None:
        from modules.orders.events import (
            AssignmentPromoted,
            OrderApproved,
            OrderCreated,
            OrderStatusChanged,
            RevisionRequested,
        )
        from modules.orders.handlers import (
            assignment_promoted_handler,
            order_approved_handler,
            order_created_handler,
            order_status_changed_handler,
            revision_requested_handler,
        )
        from shared.infrastructure.bus import event_bus

        event_bus.subscribe(OrderCreated, order_created_handler)
        event_bus.subscribe(OrderStatusChanged, order_status_changed_handler)
        event_bus.subscribe(RevisionRequested, revision_requested_handler)
        event_bus.subscribe(OrderApproved, order_approved_handler)
        event_bus.subscribe(AssignmentPromoted, assignment_promoted_handler)
