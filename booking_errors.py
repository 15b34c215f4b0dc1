"""Error codes and exceptions raised by the booking engine and record store."""

from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    """Machine-readable error codes."""

    VALIDATION_FAILED = "VALIDATION_FAILED"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    TIER_NOT_FOUND = "TIER_NOT_FOUND"
    BOOKING_NOT_FOUND = "BOOKING_NOT_FOUND"
    INSUFFICIENT_INVENTORY = "INSUFFICIENT_INVENTORY"
    PERSISTENCE_FAILED = "PERSISTENCE_FAILED"


class BookingError(Exception):
    """Base error with code and user-safe message."""

    code = ErrorCode.VALIDATION_FAILED

    def __init__(self, message: str, code: Optional[ErrorCode] = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class ValidationError(BookingError):
    """Raised for malformed input: dates, names, numbers, menu selections."""

    code = ErrorCode.VALIDATION_FAILED


class NotFoundError(BookingError):
    """Base for unknown user, event, tier or booking references."""


class UserNotFoundError(NotFoundError):
    code = ErrorCode.USER_NOT_FOUND

    def __init__(self, user_id: int) -> None:
        super().__init__(f"User ID {user_id} not found")
        self.user_id = user_id


class EventNotFoundError(NotFoundError):
    code = ErrorCode.EVENT_NOT_FOUND

    def __init__(self, event_id: int) -> None:
        super().__init__(f"Event ID {event_id} not found")
        self.event_id = event_id


class TierNotFoundError(NotFoundError):
    code = ErrorCode.TIER_NOT_FOUND

    def __init__(self, event_id: int, tier_name: str) -> None:
        super().__init__(f"Ticket tier '{tier_name}' not found for event {event_id}")
        self.event_id = event_id
        self.tier_name = tier_name


class BookingNotFoundError(NotFoundError):
    """Raised for an unknown booking id, or one that is already cancelled."""

    code = ErrorCode.BOOKING_NOT_FOUND

    def __init__(self, booking_id: int) -> None:
        super().__init__("Booking not found or already cancelled")
        self.booking_id = booking_id


class InsufficientInventoryError(BookingError):
    code = ErrorCode.INSUFFICIENT_INVENTORY

    def __init__(self, requested: int, available: int) -> None:
        if requested <= 0:
            message = "Please book at least 1 ticket"
        else:
            message = f"Only {available} tickets available"
        super().__init__(message)
        self.requested = requested
        self.available = available


class PersistenceError(BookingError):
    """Raised by the record store when a collection cannot be written."""

    code = ErrorCode.PERSISTENCE_FAILED

    def __init__(self, collection: str, reason: str) -> None:
        super().__init__(f"Could not save {collection}: {reason}")
        self.collection = collection
