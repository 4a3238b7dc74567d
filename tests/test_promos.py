"""
Tests for promo banners
"""

from datetime import datetime, timedelta

import pytest


def _window(start_days, end_days):
    now = datetime.utcnow()
    return {
        "startDate": (now + timedelta(days=start_days)).isoformat(),
        "endDate": (now + timedelta(days=end_days)).isoformat(),
    }


@pytest.fixture
def create_banner(client, admin_headers):
    def _create(title="Weekend Shine", priority=1, start_days=-1, end_days=7, **extra):
        payload = {"title": title, "description": "20% off body wash", "priority": priority}
        payload.update(_window(start_days, end_days))
        payload.update(extra)
        response = client.post("/promos", json=payload, headers=admin_headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _create


@pytest.mark.integration
class TestPromoBanners:
    def test_active_banners_ordered_by_priority(self, client, create_banner):
        create_banner(title="Low", priority=1)
        create_banner(title="High", priority=5)
        create_banner(title="Expired", priority=9, start_days=-10, end_days=-1)
        create_banner(title="Upcoming", priority=9, start_days=2, end_days=5)

        response = client.get("/promos/active")

        assert response.status_code == 200
        assert [b["title"] for b in response.json()] == ["High", "Low"]

    def test_defaults(self, create_banner):
        banner = create_banner()
        assert banner["actionText"] == "Learn More"
        assert banner["isActive"] is True
        assert banner["targetAudience"] == ["all"]

    def test_toggle_hides_banner(self, client, admin_headers, create_banner):
        banner = create_banner()

        toggled = client.patch(f"/promos/{banner['id']}/toggle", headers=admin_headers)

        assert toggled.json()["isActive"] is False
        assert client.get("/promos/active").json() == []
        assert len(client.get("/promos/admin", headers=admin_headers).json()) == 1

    def test_update_checks_date_order(self, client, admin_headers, create_banner):
        banner = create_banner()
        past = (datetime.utcnow() - timedelta(days=30)).isoformat()

        response = client.put(f"/promos/{banner['id']}", json={"endDate": past}, headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    def test_create_rejects_inverted_window(self, client, admin_headers):
        payload = {"title": "Broken", "description": "Ends before it starts", **_window(5, 1)}
        response = client.post("/promos", json=payload, headers=admin_headers)
        assert response.status_code == 422

    def test_delete(self, client, admin_headers, create_banner):
        banner = create_banner()
        assert client.delete(f"/promos/{banner['id']}", headers=admin_headers).status_code == 200
        missing = client.delete(f"/promos/{banner['id']}", headers=admin_headers)
        assert missing.status_code == 404

    def test_management_requires_admin(self, client):
        payload = {"title": "Sneaky", "description": "No token", **_window(-1, 1)}
        assert client.post("/promos", json=payload).status_code == 401
