"""Typed failures of the booking engine.

Every class carries the HTTP status the API layer answers with, so routes never
translate errors by hand. Client-caused failures are 4xx; ``StorageError`` and
``LockTimeout`` are infrastructure failures and map to 5xx.
"""

from fastapi import status


class BookingError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail: str = "Internal server error"

    def __init__(self, detail: str | None = None) -> None:
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class InvalidInput(BookingError):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Invalid input"


class InvalidTimeFormat(InvalidInput):
    detail = "Invalid time format, expected HH:MM"


class InvalidRange(InvalidInput):
    detail = "Invalid time range"


class NoAvailability(BookingError):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Requested time is not inside an availability window"


class Forbidden(BookingError):
    status_code = status.HTTP_403_FORBIDDEN
    detail = "Forbidden"


class NotFound(BookingError):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "Not found"


class OverlapConflict(BookingError):
    status_code = status.HTTP_409_CONFLICT
    detail = "Overlapping availability"


class SlotConflict(BookingError):
    status_code = status.HTTP_409_CONFLICT
    detail = "Slot already booked"


class LockTimeout(BookingError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    detail = "Timed out waiting for a concurrent request, retry later"


class StorageError(BookingError):
    detail = "Storage failure"
