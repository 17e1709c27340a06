"""
Domain-specific exception hierarchy for the counselling slots application.
"""

from typing import Any, Dict


class CounsellingSlotsError(Exception):
    """Base class for all application-level errors."""


class BookingStoreError(CounsellingSlotsError):
    """Raised when booking data cannot be read or written."""


class BookingValidationError(CounsellingSlotsError):
    """
    A deterministic rejection of caller input.

    Carries a machine-readable ``code`` and the HTTP status a web layer
    would answer with. Never retried.
    """

    code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        """Serialise in the error envelope used by API responses."""
        return {
            "success": False,
            "error": {"code": self.code, "message": self.message},
        }


class InvalidServiceError(BookingValidationError):
    """Raised when the service identifier is not in the catalog."""

    code = "INVALID_SERVICE"


class InvalidDateError(BookingValidationError):
    """Raised when a date string cannot be parsed."""

    code = "INVALID_DATE"


class PastDateError(BookingValidationError):
    """Raised when a date precedes the current calendar day."""

    code = "PAST_DATE"


class InvalidCustomerTypeError(BookingValidationError):
    code = "INVALID_CUSTOMER_TYPE"


class InvalidTimeError(BookingValidationError):
    """Raised when a start time is not one of the generated slots."""

    code = "INVALID_TIME"


class BookingStateError(BookingValidationError):
    """Raised when a booking's status does not allow the requested change."""

    code = "INVALID_BOOKING_STATE"


class BookingNotFoundError(BookingValidationError):
    code = "BOOKING_NOT_FOUND"
    status_code = 404


class SlotUnavailableError(BookingValidationError):
    """Raised when a start time is already claimed by an active booking."""

    code = "SLOT_UNAVAILABLE"
    status_code = 409
