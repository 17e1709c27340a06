"""
Input validation shared by the application services.

Everything here turns raw caller input into domain values or raises a
``BookingValidationError`` subclass.
"""

import re
from typing import Optional

import pendulum
from pendulum import Date, DateTime

from ..domain.exceptions import (
    BookingValidationError,
    InvalidCustomerTypeError,
    InvalidDateError,
    InvalidServiceError,
    InvalidTimeError,
    PastDateError,
)
from ..domain.models import BookingStatus, CustomerType, ServiceCatalog, ServiceType, SessionType

_START_TIME_PATTERN = re.compile(r"^([01][0-9]|2[0-3]):[0-5][0-9]$")


def parse_service(service_id: str, catalog: ServiceCatalog) -> ServiceType:
    """Resolve a service identifier against the configured catalog."""
    try:
        service = ServiceType(service_id.strip().lower())
    except ValueError:
        service = None

    if service is None or service not in catalog:
        valid = ", ".join(s.value for s in catalog.services())
        raise InvalidServiceError(f"Invalid service type: '{service_id}'. Valid services: {valid}")
    return service


def parse_date(value: str) -> Date:
    """
    Parse a calendar date, ignoring any time-of-day component.

    Raises:
        InvalidDateError: If the value is not a date
    """
    try:
        parsed = pendulum.parse(value.strip(), exact=True)
    except (ValueError, TypeError) as exc:
        raise InvalidDateError(f"Invalid date format: '{value}'") from exc

    # DateTime subclasses Date, so check it first
    if isinstance(parsed, DateTime):
        return parsed.date()
    if isinstance(parsed, Date):
        return parsed
    raise InvalidDateError(f"Invalid date format: '{value}'")


def ensure_not_past(date: Date, today: Date) -> None:
    if date < today:
        raise PastDateError(f"Cannot book in the past: {date.to_date_string()}")


def parse_customer_type(value: Optional[str]) -> Optional[CustomerType]:
    if value is None:
        return None
    try:
        return CustomerType(value.strip().lower())
    except ValueError:
        valid = ", ".join(c.value for c in CustomerType)
        raise InvalidCustomerTypeError(
            f"Invalid customer type: '{value}'. Valid types: {valid}"
        ) from None


def parse_session_type(value: str) -> SessionType:
    try:
        return SessionType(value.strip().lower())
    except ValueError:
        valid = ", ".join(s.value for s in SessionType)
        raise BookingValidationError(
            f"Invalid session type: '{value}'. Valid types: {valid}"
        ) from None


def parse_status(value: Optional[str]) -> Optional[BookingStatus]:
    if value is None:
        return None
    try:
        return BookingStatus(value.strip().lower())
    except ValueError:
        valid = ", ".join(s.value for s in BookingStatus)
        raise BookingValidationError(
            f"Invalid booking status: '{value}'. Valid statuses: {valid}"
        ) from None


def parse_start_time(value: str) -> str:
    """Check a start time is a zero-padded ``HH:MM`` string."""
    value = value.strip()
    if not _START_TIME_PATTERN.match(value):
        raise InvalidTimeError(f"Invalid time format: '{value}'. Use HH:MM")
    return value
