"""Trip endpoints."""

from uuid import uuid4

import pytest

from modules.orders.constants import OrderStatus

pytestmark = pytest.mark.integration

TRIPS_URL = "/api/v1/trips/"


def create_trip(client, driver_type="driver-1", order_ids=()):
    return client.post(
        TRIPS_URL,
        {"driver_type": driver_type, "trip_date": "2025-06-01", "order_ids": [str(i) for i in order_ids]},
        format="json",
    )


def test_trip_numbers_per_driver_and_day(auth_client):
    first = create_trip(auth_client).json()["trip"]
    second = create_trip(auth_client).json()["trip"]

    assert (first["trip_number"], first["name"]) == (1, "Driver 1 Trip #1")
    assert (second["trip_number"], second["name"]) == (2, "Driver 1 Trip #2")


def test_create_with_mixed_orders(auth_client, make_order):
    ready = make_order(OrderStatus.READY_TO_DELIVER)
    baking = make_order(OrderStatus.IN_KITCHEN)
    cancelled = make_order(OrderStatus.CANCELLED)

    response = create_trip(auth_client, order_ids=[ready.id, baking.id, cancelled.id])

    body = response.json()
    assert response.status_code == 201
    assert body["has_non_ready_orders"] is True
    assert body["status_breakdown"] == {"ready-to-deliver": 1, "in-kitchen": 1}
    assert body["skipped_order_ids"] == [str(cancelled.id)]
    assert body["trip"]["order_count"] == 2


def test_add_and_remove_order(auth_client, make_order):
    order = make_order(OrderStatus.WAITING_PHOTO)
    trip = create_trip(auth_client, driver_type="driver-2").json()["trip"]

    added = auth_client.post(f"{TRIPS_URL}{trip['id']}/orders/", {"order_id": str(order.id)}, format="json")
    assert added.status_code == 200
    [member] = added.json()["orders"]
    assert member["delivery_assignment"]["driver_type"] == "driver-2"
    assert member["delivery_assignment"]["is_preliminary"] is True
    assert member["status"] == OrderStatus.WAITING_PHOTO

    removed = auth_client.delete(f"{TRIPS_URL}{trip['id']}/orders/{order.id}/")
    assert removed.status_code == 200
    assert removed.json()["order_count"] == 0
    order.refresh_from_db()
    assert order.assignment_driver_type == "driver-2"


def test_list_and_retrieve(auth_client):
    create_trip(auth_client, driver_type="driver-1")
    trip = create_trip(auth_client, driver_type="driver-2").json()["trip"]

    listed = auth_client.get(TRIPS_URL, {"driver_type": "driver-2"}).json()
    assert [t["id"] for t in listed] == [trip["id"]]
    assert auth_client.get(f"{TRIPS_URL}{trip['id']}/").json()["driver_display"] == "Driver 2"


def test_unknown_trip_is_404(auth_client):
    response = auth_client.get(f"{TRIPS_URL}{uuid4()}/")
    assert response.status_code == 404
    assert response.json()["errors"][0]["code"] == "trip_not_found"
