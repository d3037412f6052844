from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from uuid import uuid4

import pytest

from app.core.errors import BookingValidationError
from app.utils.availability import build_request, check_availability, resolve_seat_statuses
from app.utils.booking_store import ActiveBooking

MARCH = datetime(2024, 3, 1, tzinfo=timezone.utc)
APRIL = datetime(2024, 4, 1, tzinfo=timezone.utc)


def _seats(numbers):
    return [SimpleNamespace(id=uuid4(), seat_number=n) for n in numbers]


def _booking(seat, duration_type="12hr", slot="day", start=MARCH, end=APRIL, occupant="Meera"):
    return ActiveBooking(
        seat_id=seat.id,
        duration_type=duration_type,
        slot=slot,
        start_time=start,
        end_time=end,
        occupant=occupant,
    )


class TestBuildRequest:

    def test_requires_both_dates(self):
        with pytest.raises(BookingValidationError, match="Please select both dates"):
            build_request(MARCH, None, "12hr", "day")

    def test_rejects_reversed_window(self):
        with pytest.raises(BookingValidationError, match="before the start date"):
            build_request(APRIL, MARCH, "12hr", "day")

    def test_requires_category(self):
        with pytest.raises(BookingValidationError):
            build_request(MARCH, APRIL, None)

    def test_requires_slot_for_hourly(self):
        with pytest.raises(BookingValidationError, match="Please select a slot"):
            build_request(MARCH, APRIL, "6hr")

    def test_rejects_seatless_memberships(self):
        with pytest.raises(BookingValidationError, match="not assigned a specific seat"):
            build_request(MARCH, APRIL, "floating")

    def test_naive_datetimes_are_taken_as_utc(self):
        request = build_request(datetime(2024, 3, 1), datetime(2024, 4, 1), "24hr")
        assert request.start == MARCH
        assert request.end == APRIL


class TestResolveSeatStatuses:

    def test_pool_isolation(self):
        seats = _seats(range(1, 51))
        hourly = resolve_seat_statuses(build_request(MARCH, APRIL, "12hr", "day"), seats, [], {})
        full_day = resolve_seat_statuses(build_request(MARCH, APRIL, "24hr"), seats, [], {})
        assert [s.seat_number for s in hourly] == list(range(14, 51))
        assert [s.seat_number for s in full_day] == list(range(1, 14))

    def test_sorted_by_seat_number(self):
        seats = _seats([30, 14, 22])
        statuses = resolve_seat_statuses(build_request(MARCH, APRIL, "6hr", "morning"), seats, [], {})
        assert [s.seat_number for s in statuses] == [14, 22, 30]

    def test_empty_pool(self):
        assert resolve_seat_statuses(build_request(MARCH, APRIL, "24hr"), _seats([20, 21]), [], {}) == []

    @pytest.mark.parametrize("requested_slot", ["morning", "afternoon", "evening"])
    def test_full_day_booking_blocks_every_slot(self, requested_slot):
        (seat,) = _seats([20])
        booking = _booking(seat, duration_type="24hr", slot="full")
        (status,) = resolve_seat_statuses(
            build_request(MARCH, APRIL, "6hr", requested_slot), [seat], [booking], {}
        )
        assert not status.available

    def test_non_colliding_slots_share_a_seat(self):
        (seat,) = _seats([20])
        booking = _booking(seat, duration_type="6hr", slot="morning")
        (status,) = resolve_seat_statuses(
            build_request(MARCH, APRIL, "6hr", "afternoon"), [seat], [booking], {}
        )
        assert status.available
        assert status.occupant is None

    def test_back_to_back_booking_does_not_conflict(self):
        (seat,) = _seats([20])
        earlier = _booking(seat, start=MARCH - timedelta(days=31), end=MARCH)
        (status,) = resolve_seat_statuses(build_request(MARCH, APRIL, "12hr", "day"), [seat], [earlier], {})
        assert status.available

    def test_single_shared_instant_conflicts(self):
        (seat,) = _seats([20])
        overlapping = _booking(seat, start=MARCH - timedelta(days=31), end=MARCH + timedelta(seconds=1))
        (status,) = resolve_seat_statuses(build_request(MARCH, APRIL, "12hr", "day"), [seat], [overlapping], {})
        assert not status.available

    def test_first_conflict_names_the_occupant(self):
        (seat,) = _seats([20])
        bookings = [
            _booking(seat, slot="morning", duration_type="6hr", occupant="First"),
            _booking(seat, slot="afternoon", duration_type="6hr", occupant="Second"),
        ]
        (status,) = resolve_seat_statuses(build_request(MARCH, APRIL, "12hr", "day"), [seat], bookings, {})
        assert status.occupant == "First"

    def test_waitlisted_does_not_imply_unavailable(self):
        (seat,) = _seats([21])
        (status,) = resolve_seat_statuses(
            build_request(MARCH, APRIL, "12hr", "day"), [seat], [], {seat.id: 2}
        )
        assert status.available
        assert status.waitlisted

    def test_idempotent(self):
        seats = _seats(range(14, 51))
        bookings = [_booking(seats[3], slot="morning", duration_type="6hr"), _booking(seats[9], slot="night")]
        request = build_request(MARCH, APRIL, "12hr", "day")
        first = resolve_seat_statuses(request, seats, bookings, {seats[5].id: 1})
        second = resolve_seat_statuses(request, seats, bookings, {seats[5].id: 1})
        assert first == second


class TestCheckAvailability:

    def test_twelve_hour_day_against_morning_booking(self, db, seats, other_member, make_booking):
        make_booking(seats[20], other_member, duration_type="6hr", slot="morning")
        statuses = {s.seat_number: s for s in check_availability(db, build_request(MARCH, APRIL, "12hr", "day"))}
        assert statuses[20].available is False
        assert statuses[20].occupant == "Ravi Kumar"
        assert statuses[19].available is True

    def test_waitlist_only_seat(self, db, seats, other_member, make_waitlist_entry):
        make_waitlist_entry(seats[21], other_member)
        statuses = {s.seat_number: s for s in check_availability(db, build_request(MARCH, APRIL, "12hr", "day"))}
        assert statuses[21].available is True
        assert statuses[21].waitlisted is True

    def test_full_day_request_against_night_booking(self, db, seats, other_member, make_booking):
        make_booking(seats[5], other_member, duration_type="12hr", slot="night")
        statuses = {s.seat_number: s for s in check_availability(db, build_request(MARCH, APRIL, "24hr"))}
        assert statuses[5].available is False
        assert set(statuses) == set(range(1, 14))

    def test_only_active_statuses_hold_a_seat(self, db, seats, other_member, make_booking):
        make_booking(seats[20], other_member, status="cancelled")
        statuses = {s.seat_number: s for s in check_availability(db, build_request(MARCH, APRIL, "12hr", "day"))}
        assert statuses[20].available is True

    def test_pending_bookings_hold_a_seat(self, db, seats, other_member, make_booking):
        make_booking(seats[20], other_member, status="pending", payment_status="pending")
        statuses = {s.seat_number: s for s in check_availability(db, build_request(MARCH, APRIL, "12hr", "day"))}
        assert statuses[20].available is False
