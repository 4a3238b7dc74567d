"""
Integration tests for booking endpoints
"""

from datetime import date

import pytest

from swiftwash.auth import create_customer_token
from swiftwash.domain.bookings.repository import BookingRepository
from swiftwash.domain.bookings.schemas import BookingCreate
from swiftwash.domain.bookings.service import BookingService
from swiftwash.models import Booking, Customer, Feedback


@pytest.mark.integration
class TestCreateBooking:
    def test_price_comes_from_price_list(self, client, dispatcher, booking_payload):
        response = client.post("/bookings", json=booking_payload(price=1))

        assert response.status_code == 201
        data = response.json()
        assert data["price"] == 1500
        assert data["status"] == "pending"
        assert data["phone"] == "254712345678"
        assert data["loyaltyPointsEarned"] == 10
        assert data["estimatedDuration"] == 90

        phone, message = dispatcher.sent[-1]
        assert phone == "254712345678"
        assert data["id"] in message

    def test_customer_is_reused_and_points_accumulate(self, client, db_session, booking_payload):
        client.post("/bookings", json=booking_payload())
        client.post("/bookings", json=booking_payload(phone="+254 712 345 678", serviceType="vacuum"))

        customers = db_session.query(Customer).all()
        assert len(customers) == 1
        assert customers[0].loyalty_points == 20

    def test_rejects_unknown_time_slot(self, client, booking_payload):
        response = client.post("/bookings", json=booking_payload(scheduledTime="07:30"))
        assert response.status_code == 422
        assert response.json()["error"] == "validation_error"

    def test_rejects_unknown_vehicle_class(self, client, booking_payload):
        response = client.post("/bookings", json=booking_payload(vehicleClass="motorbike"))
        assert response.status_code == 422

    def test_rejects_short_phone(self, client, booking_payload):
        response = client.post("/bookings", json=booking_payload(phone="0712"))
        assert response.status_code == 422

    def test_failed_insert_leaves_no_customer(self, monkeypatch, db_session, session_factory, booking_payload):
        def broken_insert(db, **booking_data):
            raise RuntimeError("disk full")

        monkeypatch.setattr(BookingRepository, "create_booking", staticmethod(broken_insert))

        with pytest.raises(RuntimeError):
            BookingService(db_session).create_booking(BookingCreate(**booking_payload()))

        other = session_factory()
        try:
            assert other.query(Customer).count() == 0
        finally:
            other.close()


@pytest.mark.integration
class TestLookup:
    def test_phone_formats_find_legacy_records(self, client, make_booking):
        make_booking(phone="0712345678")
        make_booking(phone="254712345678")
        make_booking(phone="254799999999")

        response = client.get("/bookings", params={"phone": "+254 712 345 678"})

        assert response.status_code == 200
        assert len(response.json()) == 2

    def test_month_and_status_filters(self, client, make_booking):
        make_booking(scheduled_date=date(2025, 3, 10))
        make_booking(scheduled_date=date(2025, 3, 31), status="confirmed")
        make_booking(scheduled_date=date(2025, 4, 1))

        march = client.get("/bookings", params={"phone": "0712345678", "month": "2025-03"}).json()
        assert len(march) == 2
        assert march[0]["scheduledDate"] == "2025-03-31"

        confirmed = client.get("/bookings", params={"phone": "0712345678", "status": "confirmed"}).json()
        assert [b["status"] for b in confirmed] == ["confirmed"]

    def test_bad_month(self, client):
        response = client.get("/bookings", params={"phone": "0712345678", "month": "March"})
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    def test_track_limits_results(self, client, make_booking):
        for _ in range(12):
            make_booking()
        response = client.get("/bookings/track/0712345678")
        assert response.status_code == 200
        assert len(response.json()) == 10

    def test_get_unknown_booking(self, client):
        response = client.get("/bookings/does-not-exist")
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_pricing_endpoint(self, client):
        response = client.get("/bookings/pricing")
        assert response.json()["pricing"]["truck"]["full_service"] == 1800


@pytest.mark.integration
class TestStatusEndpoints:
    def test_admin_confirms_and_repeat_is_noop(self, client, admin_headers, dispatcher, make_booking):
        booking = make_booking()

        first = client.patch(f"/bookings/{booking.id}/status", json={"status": "confirmed"}, headers=admin_headers)
        assert first.status_code == 200
        assert first.json()["changed"] is True
        assert first.json()["booking"]["status"] == "confirmed"
        assert "confirmed" in dispatcher.sent[-1][1]
        sent_after_first = len(dispatcher.sent)

        second = client.patch(f"/bookings/{booking.id}/status", json={"status": "confirmed"}, headers=admin_headers)
        assert second.status_code == 200
        assert second.json()["changed"] is False
        assert len(dispatcher.sent) == sent_after_first

    def test_illegal_transition_conflict(self, client, admin_headers, make_booking):
        booking = make_booking()
        response = client.patch(f"/bookings/{booking.id}/status", json={"status": "delivered"}, headers=admin_headers)
        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "invalid_transition"
        assert body["currentStatus"] == "pending"

    def test_status_requires_auth(self, client, make_booking):
        booking = make_booking()
        response = client.patch(f"/bookings/{booking.id}/status", json={"status": "confirmed"})
        assert response.status_code == 401
        assert response.json()["error"] == "not_authenticated"

    def test_worker_cannot_confirm(self, client, worker, worker_headers, make_booking):
        booking = make_booking(assigned_worker_id=worker.id)
        response = client.patch(f"/bookings/{booking.id}/status", json={"status": "confirmed"}, headers=worker_headers)
        assert response.status_code == 403

    def test_worker_cannot_touch_unassigned_booking(self, client, worker_headers, make_booking):
        booking = make_booking(status="confirmed")
        response = client.patch(
            f"/bookings/{booking.id}/status", json={"status": "started_cleaning"}, headers=worker_headers
        )
        assert response.status_code == 403

    def test_reject_with_reason(self, client, admin_headers, dispatcher, make_booking):
        booking = make_booking()
        response = client.post(f"/bookings/{booking.id}/reject", json={"reason": "Fully booked"}, headers=admin_headers)

        assert response.status_code == 200
        data = response.json()["booking"]
        assert data["status"] == "rejected"
        assert data["rejectionReason"] == "Fully booked"
        assert data["rejectedBy"] == "admin"
        assert data["modifications"][0]["type"] == "reject"
        assert "Fully booked" in dispatcher.sent[-1][1]

    def test_reject_without_reason(self, client, admin_headers, make_booking):
        booking = make_booking()
        response = client.post(f"/bookings/{booking.id}/reject", json={"reason": ""}, headers=admin_headers)
        assert response.status_code == 422

    def test_rejected_booking_cannot_be_confirmed(self, client, admin_headers, make_booking):
        booking = make_booking(status="rejected")
        response = client.patch(f"/bookings/{booking.id}/status", json={"status": "confirmed"}, headers=admin_headers)
        assert response.status_code == 409


@pytest.mark.integration
class TestModifyBooking:
    def test_customer_reschedules(self, client, customer_headers, dispatcher, make_booking):
        booking = make_booking(status="confirmed")

        response = client.patch(
            f"/bookings/{booking.id}/modify",
            json={"modificationType": "reschedule", "newDate": "2030-01-15", "newTime": "14:00"},
            headers=customer_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["scheduledDate"] == "2030-01-15"
        assert data["scheduledTime"] == "14:00"
        assert data["status"] == "confirmed"
        entry = data["modifications"][-1]
        assert entry["type"] == "reschedule"
        assert entry["actor"] == "customer"
        assert entry["newValue"] == "2030-01-15 at 14:00"
        assert "modified" in dispatcher.sent[-1][1]

    def test_location_change_requires_location(self, client, customer_headers, make_booking):
        booking = make_booking()
        response = client.patch(
            f"/bookings/{booking.id}/modify",
            json={"modificationType": "location_change", "newLocation": "  "},
            headers=customer_headers,
        )
        assert response.status_code == 400

    def test_cancel_through_modify(self, client, customer_headers, make_booking):
        booking = make_booking()
        response = client.patch(
            f"/bookings/{booking.id}/modify",
            json={"modificationType": "cancel", "reason": "Car sold"},
            headers=customer_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "cancelled"
        assert data["cancellationReason"] == "Car sold"
        assert data["cancelledBy"] == "customer"

    def test_other_customer_forbidden(self, client, db_session, make_booking):
        stranger = Customer(name="Someone Else", phone="254711111111")
        db_session.add(stranger)
        db_session.commit()
        headers = {"Authorization": f"Bearer {create_customer_token(stranger)}"}
        booking = make_booking()

        response = client.patch(
            f"/bookings/{booking.id}/modify",
            json={"modificationType": "cancel", "reason": "Not mine"},
            headers=headers,
        )
        assert response.status_code == 403

    def test_started_booking_cannot_be_modified(self, client, customer_headers, make_booking):
        booking = make_booking(status="started_cleaning")
        response = client.patch(
            f"/bookings/{booking.id}/modify",
            json={"modificationType": "location_change", "newLocation": "Kilimani"},
            headers=customer_headers,
        )
        assert response.status_code == 409

    def test_admin_may_modify(self, client, admin_headers, make_booking):
        booking = make_booking()
        response = client.patch(
            f"/bookings/{booking.id}/modify",
            json={"modificationType": "location_change", "newLocation": "Kilimani"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["location"] == "Kilimani"


@pytest.mark.integration
class TestFeedback:
    def test_feedback_only_after_completion(self, client, make_booking):
        booking = make_booking(status="confirmed")
        response = client.post(f"/bookings/{booking.id}/feedback", json={"rating": 5})
        assert response.status_code == 400

    def test_low_rating_alerts_admin_and_is_single_shot(self, client, db_session, worker, make_booking):
        booking = make_booking(status="delivered", assigned_worker_id=worker.id)

        first = client.post(f"/bookings/{booking.id}/feedback", json={"rating": 2, "comment": "Streaks left"})
        assert first.status_code == 201
        assert first.json()["adminAlerted"] is True
        assert first.json()["workerId"] == worker.id

        second = client.post(f"/bookings/{booking.id}/feedback", json={"rating": 5})
        assert second.status_code == 409
        assert second.json()["error"] == "feedback_already_submitted"

        assert db_session.query(Feedback).count() == 1
        stored = db_session.get(Booking, booking.id)
        db_session.refresh(stored)
        assert stored.feedback_rating == 2

    def test_rating_out_of_range(self, client, make_booking):
        booking = make_booking(status="done")
        response = client.post(f"/bookings/{booking.id}/feedback", json={"rating": 6})
        assert response.status_code == 422
