"""
Domain models for services, the operating window and bookings.
"""

from dataclasses import dataclass, field
from datetime import time
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, List, Mapping, Optional

import pendulum
from pendulum import Date, DateTime


class ServiceType(str, Enum):
    """Counselling services offered by the practice."""
    FAMILY = "family"
    INDIVIDUAL = "individual"
    STUDENT = "student"
    CHILD = "child"
    ADDICTION = "addiction"
    COACHING = "coaching"


SERVICE_NAMES: Dict[ServiceType, str] = {
    ServiceType.FAMILY: "Family Counselling",
    ServiceType.INDIVIDUAL: "Individual Therapy",
    ServiceType.STUDENT: "Student Support",
    ServiceType.CHILD: "Child & Youth Therapy",
    ServiceType.ADDICTION: "Addiction Recovery",
    ServiceType.COACHING: "Life Stabilization & Coaching",
}

DEFAULT_SERVICE_DURATIONS: Dict[ServiceType, int] = {
    ServiceType.FAMILY: 60,
    ServiceType.INDIVIDUAL: 50,
    ServiceType.STUDENT: 50,
    ServiceType.CHILD: 40,
    ServiceType.ADDICTION: 60,
    ServiceType.COACHING: 50,
}


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"
    NO_SHOW = "no-show"


# Bookings in these states hold their start time.
ACTIVE_STATUSES: FrozenSet[BookingStatus] = frozenset(
    {BookingStatus.PENDING, BookingStatus.CONFIRMED}
)


class SessionType(str, Enum):
    IN_PERSON = "in-person"
    VIRTUAL = "virtual"
    PHONE = "phone"


class CustomerType(str, Enum):
    NEW = "new"
    EXISTING = "existing"
    PAID = "paid"


@dataclass(frozen=True)
class ServiceCatalog:
    """
    Immutable mapping from service to session duration in minutes.

    Looking up a service that is not configured raises ``KeyError``;
    resolving user input to a known service is the caller's job.
    """
    durations: Mapping[ServiceType, int]

    def __post_init__(self):
        for service, minutes in self.durations.items():
            if minutes <= 0:
                raise ValueError(f"Duration for {service.value} must be positive, got {minutes}")
        object.__setattr__(self, "durations", MappingProxyType(dict(self.durations)))

    @classmethod
    def default(cls) -> "ServiceCatalog":
        return cls(durations=DEFAULT_SERVICE_DURATIONS)

    def __contains__(self, service: object) -> bool:
        return service in self.durations

    def duration_for(self, service: ServiceType) -> int:
        """Return the session duration for a service."""
        return self.durations[service]

    def name_for(self, service: ServiceType) -> str:
        """Return the display name for a service."""
        return SERVICE_NAMES[service]

    def services(self) -> List[ServiceType]:
        return list(self.durations)


def _at(day: Date, wall_clock: time) -> DateTime:
    # Naive datetimes keep the arithmetic in wall-clock minutes across DST changes.
    return pendulum.naive(day.year, day.month, day.day, wall_clock.hour, wall_clock.minute)


@dataclass(frozen=True)
class OperatingWindow:
    """
    A day's bookable window with a lunch break and a buffer between sessions.

    Invariant: start <= lunch_start < lunch_end <= end and start < end.
    """
    start: time
    end: time
    lunch_start: time
    lunch_end: time
    buffer_minutes: int = 10
    rest_days: FrozenSet[int] = frozenset({6})  # 0=Monday, 6=Sunday

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")
        if not self.start <= self.lunch_start < self.lunch_end <= self.end:
            raise ValueError(
                f"Lunch break {self.lunch_start}-{self.lunch_end} must lie within "
                f"{self.start}-{self.end}"
            )
        if self.buffer_minutes < 0:
            raise ValueError(f"Buffer must not be negative, got {self.buffer_minutes}")
        object.__setattr__(self, "rest_days", frozenset(self.rest_days))

    def is_operating_day(self, day: Date) -> bool:
        """Check if sessions can be held on a given date."""
        return day.day_of_week not in self.rest_days

    def opens_at(self, day: Date) -> DateTime:
        return _at(day, self.start)

    def closes_at(self, day: Date) -> DateTime:
        return _at(day, self.end)

    def lunch_for(self, day: Date) -> "tuple[DateTime, DateTime]":
        """Return the lunch break bounds on a given date."""
        return _at(day, self.lunch_start), _at(day, self.lunch_end)


def calculate_end_time(start_time: str, duration_minutes: int) -> str:
    """Add a duration to an ``HH:MM`` start time."""
    hours, minutes = (int(part) for part in start_time.split(":"))
    total = hours * 60 + minutes + duration_minutes
    return f"{total // 60:02d}:{total % 60:02d}"


@dataclass
class Booking:
    """
    A customer's claim on a start time for one session.
    """
    id: str
    customer_email: str
    service: ServiceType
    booking_date: Date
    start_time: str
    session_duration: int
    end_time: str = ""
    session_type: SessionType = SessionType.IN_PERSON
    customer_type: CustomerType = CustomerType.NEW
    status: BookingStatus = BookingStatus.PENDING
    phone: Optional[str] = None
    customer_notes: Optional[str] = None
    special_requests: Optional[str] = None
    created_at: DateTime = field(default_factory=pendulum.now)
    updated_at: Optional[DateTime] = None
    cancelled_at: Optional[DateTime] = None
    cancellation_reason: Optional[str] = None

    def __post_init__(self):
        if not self.end_time:
            self.end_time = calculate_end_time(self.start_time, self.session_duration)

    @property
    def service_name(self) -> str:
        return SERVICE_NAMES[self.service]

    def is_active(self) -> bool:
        """Whether this booking occupies its start time."""
        return self.status in ACTIVE_STATUSES

    def can_be_cancelled(self) -> bool:
        return self.is_active()

    def can_be_rescheduled(self, today: Date) -> bool:
        """Active bookings can be moved until the day they take place."""
        return self.is_active() and self.booking_date > today

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "customerEmail": self.customer_email,
            "service": self.service.value,
            "serviceName": self.service_name,
            "bookingDate": self.booking_date.to_date_string(),
            "startTime": self.start_time,
            "endTime": self.end_time,
            "sessionDuration": self.session_duration,
            "sessionType": self.session_type.value,
            "customerType": self.customer_type.value,
            "status": self.status.value,
            "phone": self.phone,
            "customerNotes": self.customer_notes,
            "specialRequests": self.special_requests,
            "createdAt": self.created_at.to_iso8601_string(),
            "updatedAt": self.updated_at.to_iso8601_string() if self.updated_at else None,
            "cancelledAt": self.cancelled_at.to_iso8601_string() if self.cancelled_at else None,
            "cancellationReason": self.cancellation_reason,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Booking":
        """
        Rebuild a booking from its serialised form.

        Raises:
            KeyError: If a required field is missing
            ValueError: If a field holds an unknown value
        """
        def _timestamp(key: str) -> Optional[DateTime]:
            value = data.get(key)
            return pendulum.parse(value) if value else None

        return cls(
            id=data["id"],
            customer_email=data["customerEmail"],
            service=ServiceType(data["service"]),
            booking_date=pendulum.from_format(data["bookingDate"], "YYYY-MM-DD").date(),
            start_time=data["startTime"],
            end_time=data.get("endTime", ""),
            session_duration=int(data["sessionDuration"]),
            session_type=SessionType(data.get("sessionType", SessionType.IN_PERSON.value)),
            customer_type=CustomerType(data.get("customerType", CustomerType.NEW.value)),
            status=BookingStatus(data.get("status", BookingStatus.PENDING.value)),
            phone=data.get("phone"),
            customer_notes=data.get("customerNotes"),
            special_requests=data.get("specialRequests"),
            created_at=_timestamp("createdAt") or pendulum.now(),
            updated_at=_timestamp("updatedAt"),
            cancelled_at=_timestamp("cancelledAt"),
            cancellation_reason=data.get("cancellationReason"),
        )


@dataclass
class SlotAvailability:
    """
    Free and booked start times for one service on one date.
    """
    date: Date
    service: ServiceType
    duration: int
    available_slots: List[str]
    booked_slots: List[str]
    total_slots: int
    customer_type: Optional[CustomerType] = None
    message: Optional[str] = None

    @property
    def free_slots(self) -> int:
        return len(self.available_slots)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "date": self.date.to_date_string(),
            "service": self.service.value,
            "duration": self.duration,
            "availableSlots": list(self.available_slots),
            "bookedSlots": list(self.booked_slots),
            "totalSlots": self.total_slots,
            "freeSlots": self.free_slots,
        }
        if self.customer_type is not None:
            result["customerType"] = self.customer_type.value
        if self.message:
            result["message"] = self.message
        return result


@dataclass
class AvailableDate:
    """A date with at least one free slot."""
    date: Date
    available_slots: int

    @property
    def day_of_week(self) -> str:
        return self.date.format("dddd", locale="en")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.to_date_string(),
            "dayOfWeek": self.day_of_week,
            "availableSlots": self.available_slots,
        }
