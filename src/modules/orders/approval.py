"""Photo approval / revision cycle rules.

::

    waiting-photo --submit photos--> pending-approval
    pending-approval --approve--> ready-to-deliver
    pending-approval --request revision--> needs-revision
    needs-revision --submit photos--> pending-approval

Guards raise before anything is written.
"""

from __future__ import annotations

from typing import Any, Iterable, List

from modules.orders.constants import OrderStatus
from modules.orders.exceptions import (
    InvalidOrderStatus,
    MissingPhotos,
    MissingRevisionNotes,
)

PHOTO_SUBMISSION_SOURCES: set[str] = {OrderStatus.WAITING_PHOTO, OrderStatus.NEEDS_REVISION}


def clean_photos(photos: Iterable[str] | None) -> List[str]:
    """Drop blank references, keep submission order."""
    return [photo.strip() for photo in photos or [] if photo and photo.strip()]


def validate_photo_submission(order: Any, photos: Iterable[str] | None) -> List[str]:
    """Return the cleaned photo list for a submission.

    Raises:
        MissingPhotos: no photo attached.
        InvalidOrderStatus: the order is not waiting for photos.
    """
    cleaned = clean_photos(photos)
    if not cleaned:
        raise MissingPhotos("At least one photo required.")
    if order.status not in PHOTO_SUBMISSION_SOURCES:
        raise InvalidOrderStatus(
            f"Cannot submit photos for an order in status {order.status}."
        )
    return cleaned


def validate_revision_request(order: Any, notes: str | None) -> str:
    """Return the stripped revision notes.

    Raises:
        MissingRevisionNotes: notes are empty or blank.
        InvalidOrderStatus: the order is not pending approval.
    """
    cleaned = (notes or "").strip()
    if not cleaned:
        raise MissingRevisionNotes("Revision notes required.")
    if order.status != OrderStatus.PENDING_APPROVAL:
        raise InvalidOrderStatus(
            f"Cannot request a revision for an order in status {order.status}."
        )
    return cleaned


def revision_label(order: Any) -> str:
    """Approval-queue caption for *order*."""
    count = order.revision_count or 0
    if order.status == OrderStatus.NEEDS_REVISION:
        return f"Revision #{count} Needed"
    if order.status == OrderStatus.PENDING_APPROVAL and count > 0:
        return f"Revision #{count} Pending Approval"
    return "Pending Approval"


def revision_history_newest_first(order: Any) -> list:
    return sorted(order.revisions.all(), key=lambda r: r.revision_number, reverse=True)
