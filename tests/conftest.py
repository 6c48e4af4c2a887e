from datetime import date, datetime

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient

from modules.core.clock import FixedClock
from modules.core.settings_provider import StaticSettingsProvider
from modules.delivery.repositories.django_repository import TripDjangoRepository
from modules.delivery.services import TripService
from modules.orders.kitchen import reconcile_kitchen_status
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService

# Wednesday 2025-06-11, 11:30 local time.
FIXED_NOW = timezone.make_aware(datetime(2025, 6, 11, 11, 30))
TODAY = date(2025, 6, 11)

TEST_DRIVERS = {
    "driver-1": {"name": "Driver 1", "vehicle": "Motorbike B 1234 XY"},
    "driver-2": {"name": "Driver 2", "vehicle": "Van B 5678 ZZ"},
}
TEST_CATALOG = {
    "shapes": ["round", "heart"],
    "flavors": ["chocolate", "pandan"],
    "sizes": ["18cm", "22cm"],
}


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def user():
    return get_user_model().objects.create_user(
        username="sari", password="testpass123", first_name="Sari", last_name="Manager"
    )


@pytest.fixture()
def auth_client(user):
    """APIClient with a force-authenticated Django user."""
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture()
def fixed_clock():
    return FixedClock(FIXED_NOW)


@pytest.fixture()
def settings_provider():
    return StaticSettingsProvider(drivers=TEST_DRIVERS, catalog=TEST_CATALOG)


@pytest.fixture()
def order_repository():
    return OrderDjangoRepository()


@pytest.fixture()
def order_service(order_repository):
    return OrderService(order_repository=order_repository)


@pytest.fixture()
def trip_service(order_repository, settings_provider, fixed_clock):
    return TripService(
        trip_repository=TripDjangoRepository(),
        order_repository=order_repository,
        settings_provider=settings_provider,
        clock=fixed_clock,
        exclusive_membership=True,
    )


@pytest.fixture()
def make_order():
    """Factory for orders already sitting in a given status."""

    def _make(status="in-queue", kitchen_status=None, **fields):
        fields.setdefault("customer_name", "Rina")
        fields.setdefault("delivery_date", TODAY)
        fields.setdefault("delivery_time_slot", "slot2")
        return Order.objects.create(
            status=status,
            kitchen_status=reconcile_kitchen_status(status, kitchen_status),
            **fields,
        )

    return _make
