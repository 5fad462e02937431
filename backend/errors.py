from typing import Optional


class BookingError(Exception):
    status_code = 500
    message = "Internal error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        if message:
            self.message = message


class InvalidInput(BookingError):
    status_code = 400
    message = "Invalid input"


class SlotTaken(BookingError):
    status_code = 409
    message = "Slot already booked"


class StoreUnavailable(BookingError):
    """Storage could not be reached. Safe to retry with backoff."""
    status_code = 503
    message = "Booking store unavailable"


class InternalError(BookingError):
    status_code = 500
    message = "Internal error"
