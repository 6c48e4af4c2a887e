"""Domain events for the Orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderCreated(DomainEvent):
    """Raised when an order is created."""


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    """Raised after every committed status transition."""

    previous_status: str = ""
    new_status: str = ""


@dataclass(frozen=True)
class RevisionRequested(DomainEvent):
    """Raised when a manager sends cake photos back to the kitchen."""

    revision_number: int = 0


@dataclass(frozen=True)
class OrderApproved(DomainEvent):
    """Raised when cake photos are approved and the order is ready."""

    approved_by: str = ""


@dataclass(frozen=True)
class AssignmentPromoted(DomainEvent):
    """Raised when a preliminary driver assignment is confirmed."""

    driver_type: str = ""
