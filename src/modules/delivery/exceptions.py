"""Delivery domain exceptions."""

from __future__ import annotations

from shared.domain.exceptions import (
    ConflictError,
    NotFoundError,
    ValidationError,
)


class TripNotFound(NotFoundError):
    """The requested delivery trip does not exist."""

    code = "trip_not_found"


class UnknownDriver(ValidationError):
    """The driver identifier is not one of the configured drivers."""

    code = "unknown_driver"


class IneligibleForAssignment(ValidationError):
    """The order's status does not allow a driver or trip assignment."""

    code = "ineligible_for_assignment"


class TripClosed(ValidationError):
    """Orders cannot be added to a completed trip."""

    code = "trip_closed"


class TripNumberUnavailable(ConflictError):
    """Concurrent trip creation kept taking the next trip number."""

    code = "trip_number_unavailable"

