"""Booking rejection taxonomy.

Every rule the booking pipeline enforces maps to one stable ``RejectionKind``.
The HTTP layer renders any ``BookingError`` as ``{"detail", "kind", "timestamp"}``
with the status code carried by the exception class.
"""
from enum import StrEnum

from fastapi import status


class RejectionKind(StrEnum):
    MISSING_FIELDS = "MissingFields"
    TOPIC_NOT_FOUND = "TopicNotFound"
    BRANCH_NOT_FOUND = "BranchNotFound"
    UNSUPPORTED_TOPIC_FOR_BRANCH = "UnsupportedTopicForBranch"
    INVALID_DATE_TIME = "InvalidDateTime"
    PAST_APPOINTMENT = "PastAppointment"
    MISALIGNED_SLOT = "MisalignedSlot"
    OUTSIDE_BUSINESS_HOURS = "OutsideBusinessHours"
    SLOT_TAKEN = "SlotTaken"
    TRANSIENT_STORE = "TransientStore"


class BookingError(Exception):
    """Base class for a rejected booking or slot query."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, kind: RejectionKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message


class BookingValidationError(BookingError):
    """Malformed, misaligned, past or out-of-hours input. Retrying won't help."""


class CatalogReferenceError(BookingError):
    """Unknown topic/branch or an unsupported pairing."""

    def __init__(self, kind: RejectionKind, message: str) -> None:
        super().__init__(kind, message)
        if kind in (RejectionKind.TOPIC_NOT_FOUND, RejectionKind.BRANCH_NOT_FOUND):
            self.status_code = status.HTTP_404_NOT_FOUND


class SlotTakenError(BookingError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str = "Time slot is no longer available") -> None:
        super().__init__(RejectionKind.SLOT_TAKEN, message)


class TransientStoreError(BookingError):
    """Store timed out or was unavailable; the whole request is safe to retry."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, message: str = "Appointment store is temporarily unavailable") -> None:
        super().__init__(RejectionKind.TRANSIENT_STORE, message)
