"""
Booking domain errors

Raised by the service layer and translated to HTTP responses by the
exception handlers registered in main.py.
"""


class BookingDomainError(Exception):
    """Base class for errors that map to a client-facing HTTP status"""

    status_code = 400
    error_code = "booking_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidServiceError(BookingDomainError):
    """Referenced service is missing or inactive"""

    status_code = 400
    error_code = "invalid_service"


class InvalidDateError(BookingDomainError):
    """Requested slot is in the past or outside the booking window"""

    status_code = 400
    error_code = "invalid_date"


class ConflictError(BookingDomainError):
    """Requested interval overlaps an active booking"""

    status_code = 409
    error_code = "conflict"


class InvalidTransitionError(BookingDomainError):
    """Requested status or payment transition is not allowed"""

    status_code = 409
    error_code = "invalid_transition"


class NotFoundError(BookingDomainError):
    status_code = 404
    error_code = "not_found"


class StoreUnavailable(BookingDomainError):
    """Transient storage failure after bounded retries"""

    status_code = 503
    error_code = "store_unavailable"

    def __init__(self, message: str = "Service temporarily unavailable, please try again"):
        super().__init__(message)
