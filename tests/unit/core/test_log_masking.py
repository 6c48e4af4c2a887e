"""Sensitive values never reach the log output."""

import pytest

from config.settings import mask_sensitive_data

pytestmark = pytest.mark.unit

MASK = "***MASKED***"


def mask(**event):
    return mask_sensitive_data(None, "info", dict(event))


def test_sensitive_keys_are_masked():
    event = mask(customer_phone="081234567890", password="hunter2", token="abc")
    assert event == {"customer_phone": MASK, "password": MASK, "token": MASK}


@pytest.mark.parametrize(
    "text",
    [
        "call 081234567890 before delivery",
        "call +62 812-3456-7890 before delivery",
    ],
)
def test_phone_numbers_in_text_are_masked(text):
    event = mask(event=text)
    assert event["event"] == f"call {MASK} before delivery"


def test_credentials_in_text_are_masked():
    event = mask(detail="login failed password=hunter2")
    assert "hunter2" not in event["detail"]


@pytest.mark.parametrize(
    "value",
    ["2025-06-11", "2025-06-11T11:30:00+07:00", "CK-20250611-AB12CD", "slot2"],
)
def test_dates_and_identifiers_are_kept(value):
    assert mask(value=value)["value"] == value


def test_non_string_values_untouched():
    assert mask(photo_count=2, customer_phone="") == {"photo_count": 2, "customer_phone": ""}
