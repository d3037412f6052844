from datetime import datetime, timedelta, timezone

import pytest

from app.models.transaction import Transaction

ADMIN_BOOKINGS_URL = "/api/v1/admin/bookings"


@pytest.fixture
def running(make_booking):
    """Book a seat over a window that includes the current moment."""
    now = datetime.now(timezone.utc)

    def _make(seat, user, **fields):
        return make_booking(seat, user, start=now - timedelta(days=1), end=now + timedelta(days=30), **fields)
    return _make


class TestAdminAccess:

    def test_members_are_forbidden(self, client, member_headers):
        response = client.get(f"{ADMIN_BOOKINGS_URL}/", headers=member_headers)
        assert response.status_code == 403


class TestApprovalAndPayment:

    def test_list_and_filter(self, client, seats, member, make_booking, admin_headers):
        make_booking(seats[20], member, status="pending", payment_status="pending")
        make_booking(seats[21], member)
        response = client.get(f"{ADMIN_BOOKINGS_URL}/", params={"status": "pending"}, headers=admin_headers)
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 1
        assert body["data"][0]["seat_number"] == 20
        assert body["data"][0]["user"]["full_name"] == "Asha Verma"

    def test_approve_then_pay(self, client, db, seats, member, make_booking, admin_headers):
        booking = make_booking(seats[20], member, status="pending", payment_status="pending")

        approved = client.patch(
            f"{ADMIN_BOOKINGS_URL}/{booking.id}", json={"status": "confirmed"}, headers=admin_headers
        )
        assert approved.status_code == 200
        assert approved.json()["status"] == "confirmed"
        assert approved.json()["payment_status"] == "pending"

        paid = client.post(
            f"{ADMIN_BOOKINGS_URL}/{booking.id}/payments",
            json={"amount": "2300", "admin_notes": "cash"},
            headers=admin_headers,
        )
        assert paid.status_code == 201
        assert paid.json()["status"] == "completed"

        db.refresh(booking)
        assert booking.payment_status == "paid"

        txns = client.get(f"{ADMIN_BOOKINGS_URL}/{booking.id}/transactions", headers=admin_headers).json()
        assert len(txns) == 1
        assert float(txns[0]["amount"]) == 2300

    def test_empty_update(self, client, seats, member, make_booking, admin_headers):
        booking = make_booking(seats[20], member)
        response = client.patch(f"{ADMIN_BOOKINGS_URL}/{booking.id}", json={}, headers=admin_headers)
        assert response.status_code == 400

    def test_payment_must_be_positive(self, client, seats, member, make_booking, admin_headers):
        booking = make_booking(seats[20], member)
        response = client.post(
            f"{ADMIN_BOOKINGS_URL}/{booking.id}/payments", json={"amount": "0"}, headers=admin_headers
        )
        assert response.status_code == 422


class TestReleaseAndMove:

    def test_release_truncates_the_booking(self, client, seats, member, make_booking, admin_headers):
        booking = make_booking(seats[20], member)
        response = client.post(
            f"{ADMIN_BOOKINGS_URL}/{booking.id}/release",
            json={"end_date": "2024-03-15"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["membership_end_date"] == "2024-03-15"
        assert body["end_time"].startswith("2024-03-16T00:00:00")
        assert body["status"] == "confirmed"

    def test_release_cannot_extend(self, client, seats, member, make_booking, admin_headers):
        booking = make_booking(seats[20], member)
        response = client.post(
            f"{ADMIN_BOOKINGS_URL}/{booking.id}/release",
            json={"end_date": "2024-05-01"},
            headers=admin_headers,
        )
        assert response.status_code == 422

    def test_released_seat_is_free_again(self, client, seats, member, make_booking, admin_headers):
        booking = make_booking(seats[20], member)
        client.post(
            f"{ADMIN_BOOKINGS_URL}/{booking.id}/release",
            json={"end_date": "2024-03-15"},
            headers=admin_headers,
        )
        response = client.get(
            "/api/v1/seats/availability",
            params={"from_time": "2024-03-16T00:00:00Z", "to_time": "2024-04-01T00:00:00Z", "category": "12hr", "slot": "day"},
        )
        seat_20 = next(s for s in response.json()["seats"] if s["seat_number"] == 20)
        assert seat_20["available"] is True

    def test_move_to_free_seat(self, client, db, seats, member, make_booking, admin_headers):
        booking = make_booking(seats[20], member)
        response = client.post(
            f"{ADMIN_BOOKINGS_URL}/{booking.id}/move",
            json={
                "new_seat_id": str(seats[22].id),
                "old_end_date": "2024-03-10",
                "new_start_date": "2024-03-11",
            },
            headers=admin_headers,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["released"]["membership_end_date"] == "2024-03-10"
        moved = body["moved_to"]
        assert moved["seat_number"] == 22
        assert (moved["status"], moved["payment_status"]) == ("confirmed", "paid")
        assert moved["membership_start_date"] == "2024-03-11"
        assert moved["membership_end_date"] == "2024-04-01"
        assert moved["slot"] == "day"

        amounts = [float(t.amount) for t in db.query(Transaction).all()]
        assert amounts == [0, 0]

    def test_move_to_taken_seat(self, client, db, seats, member, other_member, make_booking, admin_headers):
        booking = make_booking(seats[20], member)
        make_booking(seats[22], other_member, duration_type="6hr", slot="afternoon")
        response = client.post(
            f"{ADMIN_BOOKINGS_URL}/{booking.id}/move",
            json={
                "new_seat_id": str(seats[22].id),
                "old_end_date": "2024-03-10",
                "new_start_date": "2024-03-11",
            },
            headers=admin_headers,
        )
        assert response.status_code == 409
        assert "Ravi Kumar" in response.json()["message"]
        assert db.query(Transaction).count() == 0

    def test_move_across_pools(self, client, seats, member, make_booking, admin_headers):
        booking = make_booking(seats[20], member)
        response = client.post(
            f"{ADMIN_BOOKINGS_URL}/{booking.id}/move",
            json={
                "new_seat_id": str(seats[5].id),
                "old_end_date": "2024-03-10",
                "new_start_date": "2024-03-11",
            },
            headers=admin_headers,
        )
        assert response.status_code == 422


class TestWaitlist:

    def test_lists_entries_with_seat_and_name(self, client, seats, member, other_member, make_waitlist_entry, admin_headers):
        make_waitlist_entry(seats[21], member)
        make_waitlist_entry(seats[30], other_member, slot="night")
        response = client.get("/api/v1/admin/waitlist/", headers=admin_headers)
        assert response.status_code == 200
        assert {(e["seat_number"], e["user_name"]) for e in response.json()} == {
            (21, "Asha Verma"),
            (30, "Ravi Kumar"),
        }

        filtered = client.get("/api/v1/admin/waitlist/", params={"seat_number": 30}, headers=admin_headers)
        assert [e["slot"] for e in filtered.json()] == ["night"]


class TestSeatInventory:

    def test_bulk_create_skips_existing(self, client, db, admin_headers):
        first = client.post("/api/v1/admin/seats/bulk", json={"first_number": 1, "last_number": 5}, headers=admin_headers)
        assert first.status_code == 201
        assert first.json() == {"created_count": 5, "skipped_numbers": []}

        second = client.post("/api/v1/admin/seats/bulk", json={"first_number": 3, "last_number": 8}, headers=admin_headers)
        assert second.json() == {"created_count": 3, "skipped_numbers": [3, 4, 5]}

    def test_reversed_range(self, client, db, admin_headers):
        response = client.post("/api/v1/admin/seats/bulk", json={"first_number": 9, "last_number": 2}, headers=admin_headers)
        assert response.status_code == 422

    def test_create_and_list(self, client, db, admin_headers):
        created = client.post("/api/v1/admin/seats/", json={"seat_number": 14}, headers=admin_headers)
        assert created.status_code == 201
        assert created.json()["pool"] == "hourly"

        duplicate = client.post("/api/v1/admin/seats/", json={"seat_number": 14}, headers=admin_headers)
        assert duplicate.status_code == 409

        client.post("/api/v1/admin/seats/", json={"seat_number": 2}, headers=admin_headers)
        listed = client.get("/api/v1/admin/seats/", headers=admin_headers).json()
        assert [(s["seat_number"], s["pool"]) for s in listed] == [(2, "full_day"), (14, "hourly")]

    def test_seat_number_range(self, client, db, admin_headers):
        response = client.post("/api/v1/admin/seats/", json={"seat_number": 51}, headers=admin_headers)
        assert response.status_code == 422

    def test_delete_refused_while_booked(self, client, seats, member, running, admin_headers):
        running(seats[20], member)
        response = client.delete(f"/api/v1/admin/seats/{seats[20].id}", headers=admin_headers)
        assert response.status_code == 409

    def test_delete_free_seat(self, client, seats, member, make_booking, admin_headers):
        # bookings that have already ended don't block deletion
        make_booking(seats[20], member)
        response = client.delete(f"/api/v1/admin/seats/{seats[20].id}", headers=admin_headers)
        assert response.status_code == 200
        listed = client.get("/api/v1/admin/seats/", headers=admin_headers).json()
        assert 20 not in [s["seat_number"] for s in listed]


class TestDashboardAndMembers:

    def test_dashboard(self, client, seats, member, other_member, running, make_booking, make_waitlist_entry, admin_headers):
        fixed = running(seats[3], member, duration_type="membership", slot=None, category="fixed")
        running(seats[20], other_member)
        running(None, other_member, duration_type="membership", slot=None, category="floating")
        running(seats[21], member, status="pending", payment_status="pending")
        make_waitlist_entry(seats[21], other_member)
        client.post(f"{ADMIN_BOOKINGS_URL}/{fixed.id}/payments", json={"amount": "3500"}, headers=admin_headers)

        response = client.get("/api/v1/admin/dashboard/", headers=admin_headers)
        assert response.status_code == 200
        stats = response.json()
        assert float(stats["month_revenue"]) == 3500
        assert stats["booked_seats"] == 2
        assert stats["fixed_members"] == 1
        assert stats["floating_members"] == 1
        assert stats["limited_members"] == 1
        assert stats["pending_approvals"] == 1
        assert stats["waitlist_entries"] == 1
        assert stats["total_users"] == 3

    def test_members_with_active_bookings(self, client, seats, member, other_member, running, make_booking, admin_headers):
        running(seats[3], member, duration_type="membership", slot=None, category="fixed")
        make_booking(seats[20], other_member)
        response = client.get("/api/v1/admin/users/", headers=admin_headers)
        assert response.status_code == 200
        overview = {m["user"]["full_name"]: m["active_bookings"] for m in response.json()}
        assert [b["seat_number"] for b in overview["Asha Verma"]] == [3]
        assert overview["Ravi Kumar"] == []
        assert overview["Front Desk"] == []

    def test_seat_layout_and_my_seat(self, client, seats, member, running, member_headers):
        booking = running(seats[3], member, duration_type="membership", slot=None, category="fixed")
        layout = client.get("/api/v1/seats/layout").json()
        by_number = {s["seat_number"]: s for s in layout["seats"]}
        assert by_number[3]["status"] == "booked"
        assert by_number[3]["booked_until"] == booking.membership_end_date.isoformat()
        assert by_number[4]["status"] == "available"

        mine = client.get("/api/v1/me/seat", headers=member_headers).json()
        assert [b["seat_number"] for b in mine] == [3]
