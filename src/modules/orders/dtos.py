"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.  These are the
contracts between the API layer (DRF Serializers) and the Service layer.
DTOs are immutable (``frozen=True``).

- ``CreateOrderDTO``: intake of a new order (draft or queued).
- ``ApprovalResult``: outcome of an approval, with best-effort warnings.
"""

from __future__ import annotations

import re
from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from modules.orders.constants import OrderStatus

_CUSTOM_SLOT_RE = re.compile(r"^\d{1,2}[:.]\d{2}(\s*-\s*\d{1,2}[:.]\d{2})?$")
_PRESET_SLOTS = {"slot1", "slot2", "slot3"}
_INTAKE_STATUSES = {OrderStatus.INCOMPLETE, OrderStatus.IN_QUEUE}


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order intake.

    Validates:
    - ``customer_name`` must not be blank.
    - ``status`` must be an intake status (``incomplete`` or ``in-queue``).
    - ``delivery_time_slot`` must be a preset slot or a ``HH:MM[ - HH:MM]``
      custom window.
    """

    model_config = ConfigDict(frozen=True)

    customer_name: str
    delivery_date: date
    delivery_time_slot: Optional[str] = ""
    customer_phone: Optional[str] = ""
    delivery_address: Optional[str] = ""
    cake_description: Optional[str] = ""
    notes: Optional[str] = ""
    status: str = OrderStatus.IN_QUEUE

    @field_validator("customer_name")
    @classmethod
    def customer_name_must_not_be_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Customer name is required.")
        return v.strip()

    @field_validator("status")
    @classmethod
    def status_must_be_intake_status(cls, v: str) -> str:
        if v not in _INTAKE_STATUSES:
            raise ValueError("New orders start as 'incomplete' or 'in-queue'.")
        return v

    @field_validator("delivery_time_slot")
    @classmethod
    def time_slot_must_be_known(cls, v: Optional[str]) -> str:
        v = (v or "").strip()
        if v and v not in _PRESET_SLOTS and not _CUSTOM_SLOT_RE.match(v):
            raise ValueError(f"Unknown delivery time slot: {v!r}.")
        return v


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class ApprovalResult(BaseModel):
    """Outcome of ``OrderService.approve``.

    ``changed`` is ``False`` when the order was already approved (no write,
    no log entry).  ``warnings`` lists best-effort side effects that failed.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    order: Any
    changed: bool
    warnings: List[str] = []


def gallery_order_info(order: Any) -> Dict[str, Any]:
    """Order metadata attached to photos archived in the gallery."""
    return {
        "order_id": str(order.id),
        "order_number": order.order_number,
        "customer_name": order.customer_name,
        "cake_description": order.cake_description,
        "delivery_date": order.delivery_date.isoformat(),
    }
