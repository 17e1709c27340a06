"""
Tests for the BookingService lifecycle.
"""

import pendulum
import pytest

from counselling_slots.domain.exceptions import (
    BookingNotFoundError,
    BookingStateError,
    BookingStoreError,
    BookingValidationError,
    InvalidTimeError,
    PastDateError,
    SlotUnavailableError,
)
from counselling_slots.domain.models import BookingStatus, CustomerType, SessionType


def _book(booking_service, **overrides):
    data = dict(
        customer_email="Jane@Example.com",
        service_id="individual",
        date_str="2026-11-03",
        start_time="09:00",
    )
    data.update(overrides)
    return booking_service.create_booking(**data)


class TestCreateBooking:
    """Tests for BookingService.create_booking."""

    def test_creates_pending_booking(self, booking_service, store):
        """Test a valid request stores a pending booking holding its slot."""
        booking = _book(booking_service, session_type="virtual", customer_type="existing")

        assert booking.status == BookingStatus.PENDING
        assert booking.customer_email == "jane@example.com"
        assert booking.end_time == "09:50"
        assert booking.session_duration == 50
        assert booking.session_type == SessionType.VIRTUAL
        assert booking.phone is None
        assert booking.customer_type == CustomerType.EXISTING
        assert store.occupied_start_times(pendulum.date(2026, 11, 3)) == {"09:00"}

    def test_contact_details_recorded(self, booking_service):
        booking = _book(
            booking_service,
            phone=" +49 30 1234567 ",
            customer_notes="First session",
            special_requests="Ground floor room",
        )

        assert booking.phone == "+49 30 1234567"
        assert booking.customer_notes == "First session"
        assert booking.special_requests == "Ground floor room"

    def test_booked_slot_disappears_from_availability(self, booking_service, availability):
        _book(booking_service)

        result = availability.get_slots("2026-11-03", "individual")

        assert "09:00" not in result.available_slots
        assert result.booked_slots == ["09:00"]

    def test_second_booking_for_slot_conflicts(self, booking_service):
        _book(booking_service)

        with pytest.raises(SlotUnavailableError) as exc_info:
            _book(booking_service, customer_email="max@example.com")

        assert exc_info.value.status_code == 409

    def test_start_time_must_be_generated_slot(self, booking_service):
        """Test times off the slot grid are rejected."""
        with pytest.raises(InvalidTimeError, match="not a bookable start time"):
            _book(booking_service, start_time="09:30")

    def test_rest_day_has_no_bookable_times(self, booking_service):
        with pytest.raises(InvalidTimeError):
            _book(booking_service, date_str="2026-11-08")

    def test_malformed_time_rejected(self, booking_service):
        with pytest.raises(InvalidTimeError, match="HH:MM"):
            _book(booking_service, start_time="9am")

    def test_past_date_rejected(self, booking_service):
        with pytest.raises(PastDateError):
            _book(booking_service, date_str="2026-10-30")

    def test_invalid_email_rejected(self, booking_service):
        with pytest.raises(BookingValidationError, match="email"):
            _book(booking_service, customer_email="jane")

    def test_invalid_session_type_rejected(self, booking_service):
        with pytest.raises(BookingValidationError, match="session type"):
            _book(booking_service, session_type="carrier-pigeon")


class TestRescheduleBooking:
    """Tests for BookingService.reschedule_booking."""

    def test_moves_booking_and_resets_status(self, booking_service, store):
        booking = _book(booking_service)
        booking.status = BookingStatus.CONFIRMED
        store.save(booking)

        moved = booking_service.reschedule_booking(booking.id, "2026-11-04", "10:00")

        assert moved.booking_date == pendulum.date(2026, 11, 4)
        assert moved.start_time == "10:00"
        assert moved.end_time == "10:50"
        assert moved.status == BookingStatus.PENDING
        assert moved.updated_at is not None
        assert store.occupied_start_times(pendulum.date(2026, 11, 3)) == set()
        assert store.occupied_start_times(pendulum.date(2026, 11, 4)) == {"10:00"}

    def test_conflicting_slot_rejected(self, booking_service):
        first = _book(booking_service)
        _book(booking_service, start_time="10:00", customer_email="max@example.com")

        with pytest.raises(SlotUnavailableError):
            booking_service.reschedule_booking(first.id, "2026-11-03", "10:00")

    def test_booking_on_today_cannot_be_moved(self, booking_service):
        """Test bookings are frozen once their day has come."""
        booking = _book(booking_service, date_str="2026-11-02")

        with pytest.raises(BookingStateError):
            booking_service.reschedule_booking(booking.id, "2026-11-04", "10:00")

    def test_cancelled_booking_cannot_be_moved(self, booking_service):
        booking = _book(booking_service)
        booking_service.cancel_booking(booking.id)

        with pytest.raises(BookingStateError):
            booking_service.reschedule_booking(booking.id, "2026-11-04", "10:00")

    def test_unknown_booking(self, booking_service):
        with pytest.raises(BookingNotFoundError):
            booking_service.reschedule_booking("missing", "2026-11-04", "10:00")

    def test_failed_write_leaves_booking_untouched(self, booking_service, store, monkeypatch):
        """Test a reschedule that cannot be stored changes neither slot nor status."""
        booking = _book(booking_service)
        booking.status = BookingStatus.CONFIRMED
        store.save(booking)

        def fail():
            raise BookingStoreError("disk full")

        monkeypatch.setattr(store, "_persist", fail)

        with pytest.raises(BookingStoreError):
            booking_service.reschedule_booking(booking.id, "2026-11-04", "10:00")

        current = store.get(booking.id)
        assert current.start_time == "09:00"
        assert current.status == BookingStatus.CONFIRMED
        assert store.occupied_start_times(pendulum.date(2026, 11, 4)) == set()


class TestCancelBooking:
    """Tests for BookingService.cancel_booking."""

    def test_cancel_frees_slot(self, booking_service, store):
        booking = _book(booking_service)

        cancelled = booking_service.cancel_booking(booking.id)

        assert cancelled.status == BookingStatus.CANCELLED
        assert cancelled.cancellation_reason == "Customer requested cancellation"
        assert cancelled.cancelled_at is not None
        assert store.get(booking.id).status == BookingStatus.CANCELLED
        assert store.occupied_start_times(pendulum.date(2026, 11, 3)) == set()

    def test_cancel_with_reason(self, booking_service):
        booking = _book(booking_service)

        cancelled = booking_service.cancel_booking(booking.id, reason="Feeling unwell")

        assert cancelled.cancellation_reason == "Feeling unwell"

    def test_cancel_twice_rejected(self, booking_service):
        booking = _book(booking_service)
        booking_service.cancel_booking(booking.id)

        with pytest.raises(BookingStateError) as exc_info:
            booking_service.cancel_booking(booking.id)

        assert exc_info.value.code == "INVALID_BOOKING_STATE"

    def test_slot_can_be_rebooked_after_cancel(self, booking_service):
        booking = _book(booking_service)
        booking_service.cancel_booking(booking.id)

        again = _book(booking_service, customer_email="max@example.com")

        assert again.start_time == "09:00"


class TestQueries:
    """Tests for listing and fetching bookings."""

    def test_list_by_status(self, booking_service):
        kept = _book(booking_service)
        dropped = _book(booking_service, start_time="10:00")
        booking_service.cancel_booking(dropped.id)

        assert [b.id for b in booking_service.list_bookings("pending")] == [kept.id]
        assert len(booking_service.list_bookings()) == 2

    def test_invalid_status_filter(self, booking_service):
        with pytest.raises(BookingValidationError, match="booking status"):
            booking_service.list_bookings("lost")

    def test_get_booking(self, booking_service):
        booking = _book(booking_service)

        assert booking_service.get_booking(booking.id) is booking
