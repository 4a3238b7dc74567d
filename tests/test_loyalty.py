"""
Tests for loyalty points and redemption
"""

import pytest

from swiftwash.domain.errors import ValidationError
from swiftwash.domain.loyalty.service import LoyaltyService
from swiftwash.models import Customer


def _set_points(db_session, customer, points):
    customer.loyalty_points = points
    db_session.commit()


@pytest.mark.integration
class TestMyPoints:
    def test_progress_towards_next_reward(self, client, customer_headers):
        response = client.get("/loyalty/my-points", headers=customer_headers)

        assert response.status_code == 200
        assert response.json() == {
            "loyaltyPoints": 10,
            "walletBalance": 0,
            "pointsNeeded": 90,
            "rewardsEarned": 0,
            "canRedeem": False,
        }

    def test_booking_earns_points(self, client, customer, customer_headers, booking_payload):
        assert client.post("/bookings", json=booking_payload()).status_code == 201

        data = client.get("/loyalty/my-points", headers=customer_headers).json()
        assert data["loyaltyPoints"] == 20

    def test_admin_names_customer(self, client, admin_headers, customer):
        missing = client.get("/loyalty/my-points", headers=admin_headers)
        assert missing.status_code == 400

        response = client.get("/loyalty/my-points", params={"customerId": customer.id}, headers=admin_headers)
        assert response.json()["loyaltyPoints"] == 10

    def test_workers_not_allowed(self, client, worker_headers):
        assert client.get("/loyalty/my-points", headers=worker_headers).status_code == 403

    def test_requires_token(self, client):
        assert client.get("/loyalty/my-points").status_code == 401


@pytest.mark.integration
class TestRedeem:
    def test_whole_rewards_only(self, client, db_session, customer, customer_headers):
        _set_points(db_session, customer, 260)

        response = client.post("/loyalty/redeem", json={"pointsToRedeem": 250}, headers=customer_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["pointsRedeemed"] == 200
        assert data["rewardAmount"] == 600
        assert data["newBalance"] == 60
        assert data["newWalletBalance"] == 600

    def test_below_minimum(self, client, db_session, customer, customer_headers):
        _set_points(db_session, customer, 500)
        response = client.post("/loyalty/redeem", json={"pointsToRedeem": 50}, headers=customer_headers)
        assert response.status_code == 400
        assert "Minimum 100 points" in response.json()["detail"]

    def test_insufficient_points(self, client, db_session, customer, customer_headers):
        response = client.post("/loyalty/redeem", json={"pointsToRedeem": 100}, headers=customer_headers)

        assert response.status_code == 400
        assert response.json()["detail"] == "Insufficient loyalty points"
        db_session.expire_all()
        assert db_session.get(Customer, customer.id).wallet_balance == 0

    def test_stale_balance_cannot_overdraw(self, db_session, session_factory, customer):
        _set_points(db_session, customer, 100)

        other = session_factory()
        try:
            stale = other.get(Customer, customer.id)
            LoyaltyService(db_session).redeem(customer, 100)

            with pytest.raises(ValidationError):
                LoyaltyService(other).redeem(stale, 100)
        finally:
            other.close()

        db_session.expire_all()
        refreshed = db_session.get(Customer, customer.id)
        assert refreshed.loyalty_points == 0
        assert refreshed.wallet_balance == 300


@pytest.mark.integration
class TestHistory:
    def test_counts_completed_washes(self, client, customer, customer_headers, make_booking):
        make_booking(status="delivered")
        make_booking(status="done")
        make_booking(status="pending")
        make_booking(status="done", phone="254799999999")

        response = client.get("/loyalty/history", headers=customer_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["totalPoints"] == 10
        assert data["totalWashes"] == 3
        assert data["completedWashes"] == 2
        assert {b["status"] for b in data["bookings"]} == {"delivered", "done", "pending"}
