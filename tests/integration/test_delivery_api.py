"""Delivery board, summary and quick-assign endpoints."""

from datetime import date

import pytest

from modules.core.clock import FixedClock
from modules.delivery.views import DeliveryViewSet
from modules.orders.constants import OrderStatus

pytestmark = pytest.mark.integration

BOARD_URL = "/api/v1/delivery/board/"


@pytest.fixture(autouse=True)
def frozen_board_clock(monkeypatch, fixed_clock):
    monkeypatch.setattr(DeliveryViewSet, "clock", fixed_clock)


@pytest.fixture()
def board_orders(make_order):
    return {
        "ready": make_order(OrderStatus.READY_TO_DELIVER, customer_name="Ayu", delivery_time_slot="slot2"),
        "late": make_order(OrderStatus.IN_DELIVERY, customer_name="Budi", delivery_time_slot="08:00 - 09:00"),
        "pending": make_order(
            OrderStatus.PENDING_APPROVAL, customer_name="Citra", delivery_date=date(2025, 6, 12)
        ),
        "kitchen": make_order(OrderStatus.IN_KITCHEN, "decorating", customer_name="Dimas"),
        "done": make_order(OrderStatus.FINISHED, customer_name="Eka"),
    }


def customers(response):
    return [row["customer_name"] for row in response.json()["results"]]


class TestBoard:
    def test_default_board_shows_delivery_statuses(self, auth_client, board_orders):
        response = auth_client.get(BOARD_URL)
        body = response.json()

        assert response.status_code == 200
        assert body["count"] == 3
        assert customers(response) == ["Citra", "Ayu", "Budi"]
        assert body["date_titles"]["today"] == "Today (11 Jun)"

    def test_board_groups_rows_by_time_slot(self, auth_client, board_orders):
        body = auth_client.get(BOARD_URL).json()

        assert body["by_time_slot"] == {
            "slot1": [str(board_orders["late"].id)],
            "slot2": [str(board_orders["pending"].id), str(board_orders["ready"].id)],
        }
        assert list(body["by_time_slot"]) == ["slot1", "slot2"]

    def test_rows_carry_urgency(self, auth_client, board_orders):
        rows = {row["customer_name"]: row for row in auth_client.get(BOARD_URL).json()["results"]}

        assert rows["Budi"]["urgency"] == "late"
        assert rows["Ayu"]["urgency"] == "within-2-hours"
        assert rows["Citra"]["urgency"] == "slot2"
        assert rows["Citra"]["date_bucket"] == "tomorrow"
        assert rows["Ayu"]["time_slot_display"] == "13:00 - 16:00"

    def test_combined_filters(self, auth_client, board_orders):
        response = auth_client.get(
            BOARD_URL, {"status": "all-statuses", "date": "today", "time_slot": "slot2"}
        )
        assert customers(response) == ["Ayu", "Dimas"]

    def test_unknown_status_filter_falls_back(self, auth_client, board_orders):
        response = auth_client.get(BOARD_URL, {"status": "nonsense"})
        assert response.json()["count"] == 3

    def test_summary(self, auth_client, board_orders):
        body = auth_client.get("/api/v1/delivery/summary/").json()

        assert body["date_buckets"]["today"] == 3
        assert body["status_filters"]["all-statuses"] == 4
        assert body["urgency"] == {"late": 1, "within-2-hours": 1}


class TestQuickAssign:
    def test_preliminary_assignment(self, auth_client, board_orders):
        order = board_orders["kitchen"]

        response = auth_client.post(
            "/api/v1/delivery/assignments/",
            {"order_id": str(order.id), "driver_type": "driver-2"},
            format="json",
        )

        body = response.json()
        assert response.status_code == 200
        assert body["status"] == OrderStatus.IN_KITCHEN
        assert body["delivery_assignment"]["driver_type"] == "driver-2"
        assert body["delivery_assignment"]["is_preliminary"] is True
        assert body["assignment_version"] == 1

    def test_preliminary_assignment_visible_on_board(self, auth_client, board_orders):
        order = board_orders["pending"]
        auth_client.post(
            "/api/v1/delivery/assignments/",
            {"order_id": str(order.id), "driver_type": "driver-1"},
            format="json",
        )

        rows = {r["customer_name"]: r for r in auth_client.get(BOARD_URL).json()["results"]}
        assert rows["Citra"]["delivery_assignment"]["is_preliminary"] is True
        assert rows["Citra"]["production_stage"] == "pending-approval"

    def test_closed_order_rejected(self, auth_client, board_orders):
        response = auth_client.post(
            "/api/v1/delivery/assignments/",
            {"order_id": str(board_orders["done"].id), "driver_type": "driver-1"},
            format="json",
        )
        assert response.status_code == 400
        assert response.json()["errors"][0]["code"] == "ineligible_for_assignment"

    def test_unknown_driver_rejected(self, auth_client, board_orders):
        response = auth_client.post(
            "/api/v1/delivery/assignments/",
            {"order_id": str(board_orders["ready"].id), "driver_type": "driver-9"},
            format="json",
        )
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "driver_type"
