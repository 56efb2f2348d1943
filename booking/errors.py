"""
Error taxonomy of the booking engine.

Every error carries a stable ``code`` and the HTTP status it maps to; the
mapping happens once, in the app's error handler.
"""


class BookingError(Exception):
    status_code = 500
    code = "BOOKING_ERROR"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(BookingError):
    status_code = 400
    code = "VALIDATION_ERROR"


class InvalidDateError(BookingError):
    """Date does not fall on the template's weekday (or a bad date range)."""
    status_code = 400
    code = "INVALID_DATE"


class CapacityExceededError(BookingError):
    """Session is full. Retry against another session, not this one."""
    status_code = 409
    code = "CAPACITY_EXCEEDED"


class ScheduleConflictError(BookingError):
    """Client already holds a reservation overlapping the requested window."""
    status_code = 409
    code = "SCHEDULE_CONFLICT"


class InvalidTransitionError(BookingError):
    status_code = 400
    code = "INVALID_TRANSITION"


class NotFoundError(BookingError):
    status_code = 404
    code = "NOT_FOUND"


class SessionInUseError(BookingError):
    """Session still holds capacity and cannot be shrunk, withdrawn or deleted."""
    status_code = 409
    code = "SESSION_IN_USE"
