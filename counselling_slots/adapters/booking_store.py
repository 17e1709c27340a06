"""
Booking stores that track which start times are taken.
"""

import json
import logging
import threading
from dataclasses import replace
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol, Set

from pendulum import Date, DateTime

from ..domain.exceptions import BookingNotFoundError, BookingStoreError, SlotUnavailableError
from ..domain.models import Booking, BookingStatus

logger = logging.getLogger(__name__)


class BookingStoreProtocol(Protocol):
    """Protocol describing the booking store behaviour needed by the services."""

    def occupied_start_times(self, date: Date) -> Set[str]:
        """Return start times of pending or confirmed bookings on a date."""

    def get(self, booking_id: str) -> Booking:
        ...

    def list_bookings(self, status: Optional[BookingStatus] = None) -> List[Booking]:
        ...

    def add(self, booking: Booking) -> Booking:
        ...

    def move(
        self,
        booking_id: str,
        date: Date,
        start_time: str,
        end_time: str,
        status: Optional[BookingStatus] = None,
        updated_at: Optional[DateTime] = None,
    ) -> Booking:
        ...

    def save(self, booking: Booking) -> Booking:
        ...


class InMemoryBookingStore:
    """
    Keeps bookings in a dict guarded by a lock.

    Slot exclusivity is enforced here, at write time: a second active
    booking for the same date and start time is rejected.
    """

    def __init__(self, bookings: Optional[Iterable[Booking]] = None):
        self._lock = threading.RLock()
        self._bookings: Dict[str, Booking] = {}
        for booking in bookings or []:
            self._bookings[booking.id] = booking

    def occupied_start_times(self, date: Date) -> Set[str]:
        with self._lock:
            return {
                booking.start_time
                for booking in self._bookings.values()
                if booking.booking_date == date and booking.is_active()
            }

    def get(self, booking_id: str) -> Booking:
        """
        Look up a booking by id.

        Raises:
            BookingNotFoundError: If no booking has that id
        """
        with self._lock:
            try:
                return self._bookings[booking_id]
            except KeyError:
                raise BookingNotFoundError(f"Booking not found: {booking_id}") from None

    def list_bookings(self, status: Optional[BookingStatus] = None) -> List[Booking]:
        """Return bookings ordered by date and start time."""
        with self._lock:
            bookings = [
                booking for booking in self._bookings.values()
                if status is None or booking.status == status
            ]
        return sorted(bookings, key=lambda b: (b.booking_date, b.start_time))

    def add(self, booking: Booking) -> Booking:
        """
        Store a new booking.

        Raises:
            SlotUnavailableError: If the start time is already taken
        """
        with self._lock:
            self._ensure_free(booking.booking_date, booking.start_time)
            self._commit(booking)
        logger.info(
            "Stored booking %s for %s %s",
            booking.id, booking.booking_date.to_date_string(), booking.start_time
        )
        return booking

    def move(
        self,
        booking_id: str,
        date: Date,
        start_time: str,
        end_time: str,
        status: Optional[BookingStatus] = None,
        updated_at: Optional[DateTime] = None,
    ) -> Booking:
        """
        Move a booking to a new start time, checking for conflicts.

        The booking's own current slot does not count as a conflict. The
        new slot, status and timestamp are written together.

        Returns:
            The moved booking, a new object; the stored one is replaced
        """
        with self._lock:
            current = self.get(booking_id)
            self._ensure_free(date, start_time, ignore_id=booking_id)
            moved = replace(
                current,
                booking_date=date,
                start_time=start_time,
                end_time=end_time,
                status=status or current.status,
                updated_at=updated_at or current.updated_at,
            )
            self._commit(moved)
        return moved

    def save(self, booking: Booking) -> Booking:
        """Persist changes made to a booking that is already stored."""
        with self._lock:
            if booking.id not in self._bookings:
                raise BookingNotFoundError(f"Booking not found: {booking.id}")
            self._commit(booking)
        return booking

    def _commit(self, booking: Booking) -> None:
        """Store a booking and persist, restoring the previous entry if the write fails."""
        previous = self._bookings.get(booking.id)
        self._bookings[booking.id] = booking
        try:
            self._persist()
        except BookingStoreError:
            if previous is None:
                del self._bookings[booking.id]
            else:
                self._bookings[booking.id] = previous
            raise

    def _ensure_free(self, date: Date, start_time: str, ignore_id: Optional[str] = None) -> None:
        for other in self._bookings.values():
            if other.id == ignore_id or not other.is_active():
                continue
            if other.booking_date == date and other.start_time == start_time:
                raise SlotUnavailableError(
                    f"The {start_time} slot on {date.to_date_string()} is already booked"
                )

    def _persist(self) -> None:
        """Hook for stores that write through to durable storage."""


class JsonFileBookingStore(InMemoryBookingStore):
    """
    Booking store backed by a JSON file.

    The whole file is loaded on start-up and rewritten after every change.
    """

    def __init__(self, path: Path):
        self.path = path
        super().__init__(self._load())

    def _load(self) -> List[Booking]:
        if not self.path.exists():
            return []

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                records = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise BookingStoreError(f"Could not read bookings from {self.path}: {exc}") from exc

        if not isinstance(records, list):
            raise BookingStoreError(f"Bookings file {self.path} must contain a JSON list")

        bookings: List[Booking] = []
        for record in records:
            try:
                bookings.append(Booking.from_dict(record))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping malformed booking record in %s: %s", self.path, exc)
        return bookings

    def _persist(self) -> None:
        records = [booking.to_dict() for booking in self._bookings.values()]
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(records, f, indent=2)
            tmp_path.replace(self.path)
        except OSError as exc:
            raise BookingStoreError(f"Could not write bookings to {self.path}: {exc}") from exc
