from __future__ import annotations

import random
from datetime import timedelta

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from modules.delivery.constants import DriverType, TimeSlot
from modules.delivery.repositories.django_repository import TripDjangoRepository
from modules.delivery.services import TripService
from modules.orders.constants import KitchenStatus, OrderStatus
from modules.orders.dtos import CreateOrderDTO
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService

SEED_CUSTOMERS = [
    ("Ayu Lestari", "Rainbow layer cake, 3 tiers"),
    ("Budi Santoso", "Chocolate drip cake with gold leaf"),
    ("Citra Dewi", "Pandan chiffon, heart shape"),
    ("Dimas Pratama", "Red velvet with cream cheese frosting"),
    ("Eka Wulandari", "Unicorn fondant cake"),
    ("Fajar Nugroho", "Cheese cake with blueberry topping"),
    ("Gita Permata", "Vanilla sponge, number 5 shape"),
    ("Hendra Wijaya", "Black forest, square"),
]

# Stage each seeded order is driven to, in rotation.
STAGES = [
    "in-queue",
    "in-kitchen",
    "waiting-photo",
    "pending-approval",
    "needs-revision",
    "ready-to-deliver",
    "in-delivery",
]


class Command(BaseCommand):
    help = "Seed database with demo cake orders and delivery trips."

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users_created = self._seed_users()
        orders = self._seed_orders()
        trips_created = self._seed_trips(orders)

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={users_created}, "
                f"orders={len(orders)}, "
                f"trips={trips_created}"
            )
        )

    def _seed_users(self) -> int:
        User = get_user_model()
        created = 0
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser("admin", password="admin123")
            created += 1
        if not User.objects.filter(username="kitchen").exists():
            User.objects.create_user(
                "kitchen", password="kitchen123", first_name="Kitchen", last_name="Lead"
            )
            created += 1
        return created

    def _seed_orders(self) -> list[Order]:
        self.stdout.write("Creating orders...")
        if Order.objects.exists():
            self.stdout.write(self.style.WARNING("Orders already exist; skipping."))
            return list(Order.objects.all())

        service = OrderService(order_repository=OrderDjangoRepository())
        today = timezone.localdate()
        orders: list[Order] = []
        with transaction.atomic():
            for index, (name, description) in enumerate(SEED_CUSTOMERS):
                order = service.create_order(
                    CreateOrderDTO(
                        customer_name=name,
                        cake_description=description,
                        delivery_date=today + timedelta(days=random.randint(0, 4)),
                        delivery_time_slot=random.choice(TimeSlot.values),
                    ),
                    user="Seeder",
                )
                orders.append(self._advance(service, order, STAGES[index % len(STAGES)]))
        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return orders

    def _advance(self, service: OrderService, order: Order, stage: str) -> Order:
        order_id = str(order.id)
        photo = f"https://example.com/cakes/{order.order_number}.jpg"
        if stage == OrderStatus.IN_QUEUE:
            return order

        order = service.set_kitchen_status(order_id, KitchenStatus.DECORATING, user="Seeder")
        if stage == OrderStatus.IN_KITCHEN:
            return order

        order = service.set_kitchen_status(
            order_id, KitchenStatus.DONE_WAITING_APPROVAL, user="Seeder"
        )
        if stage == OrderStatus.WAITING_PHOTO:
            return order

        order = service.submit_photos(order_id, [photo], user="Seeder")
        if stage == OrderStatus.PENDING_APPROVAL:
            return order
        if stage == OrderStatus.NEEDS_REVISION:
            return service.request_revision(order_id, "Smoother frosting on the sides.", user="Seeder")

        order = service.approve(order_id, user="Seeder").order
        if stage == OrderStatus.READY_TO_DELIVER:
            return order
        return service.update_status(order_id, OrderStatus.IN_DELIVERY, user="Seeder")

    def _seed_trips(self, orders: list[Order]) -> int:
        self.stdout.write("Creating trips...")
        service = TripService(
            trip_repository=TripDjangoRepository(),
            order_repository=OrderDjangoRepository(),
        )
        if service.list_trips():
            self.stdout.write(self.style.WARNING("Trips already exist; skipping."))
            return 0

        today = timezone.localdate()
        candidates = [
            str(order.id)
            for order in orders
            if order.status not in (OrderStatus.INCOMPLETE, OrderStatus.IN_DELIVERY)
        ]
        half = len(candidates) // 2
        service.create_trip_with_orders(DriverType.DRIVER_1, today, candidates[:half], user="Seeder")
        service.create_trip_with_orders(DriverType.DRIVER_2, today, candidates[half:], user="Seeder")
        self.stdout.write(self.style.SUCCESS("Creating trips... Done!"))
        return 2
