"""Delivery DTOs (Pydantic v2, immutable)."""

from __future__ import annotations

from datetime import date, time
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from modules.delivery.constants import DriverType


class CreateTripDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    driver_type: str
    trip_date: date
    departure_time: Optional[time] = None
    order_ids: List[str] = []

    @field_validator("driver_type")
    @classmethod
    def driver_must_be_known(cls, v: str) -> str:
        if v not in DriverType.values:
            raise ValueError(f"Unknown driver {v!r}.")
        return v


class TripCreationResult(BaseModel):
    """Outcome of ``TripService.create_trip_with_orders``.

    Mixing ready and not-yet-ready orders never blocks creation; the
    breakdown lets the caller show a notice instead.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    trip: Any
    status_breakdown: Dict[str, int]
    has_non_ready_orders: bool
    skipped_order_ids: List[str] = []
