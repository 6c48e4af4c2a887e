"""Order domain exceptions.

Raised by the Service Layer when a transition guard fails.  Each one is a
subclass of the shared taxonomy so the API layer can translate it into a
status code without knowing the order module.
"""

from __future__ import annotations

from shared.domain.exceptions import ConflictError, NotFoundError, ValidationError


class OrderNotFound(NotFoundError):
    """The requested order does not exist."""

    code = "order_not_found"


class InvalidOrderStatus(ValidationError):
    """A transition not allowed by the state machine was attempted."""

    code = "invalid_status_transition"


class InvalidKitchenStatus(ValidationError):
    """The kitchen sub-status is unknown or the order is not in production."""

    code = "invalid_kitchen_status"


class MissingPhotos(ValidationError):
    """Photo submission without any photo attached."""

    code = "photos_required"


class MissingRevisionNotes(ValidationError):
    """Revision requested without notes explaining what to fix."""

    code = "revision_notes_required"


class StaleOrder(ConflictError):
    """The order changed since the caller read it (guarded write rejected)."""

    code = "stale_order"
