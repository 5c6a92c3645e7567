"""
Integration tests for platform administration routes.
"""

import pytest

from barberbook.db.base import Business, Role, User
from tests.conftest import BOOKING_DAY


@pytest.mark.integration
@pytest.mark.api
class TestAdminAccess:
    @pytest.mark.parametrize(
        "method,path",
        [
            ("get", "/api/admin/businesses"),
            ("post", "/api/admin/businesses"),
            ("get", "/api/admin/stats"),
            ("delete", "/api/admin/businesses/1"),
        ],
    )
    def test_non_admins_get_401(self, owner_client, method, path):
        response = getattr(owner_client, method)(path, json={})
        assert response.status_code == 401
        assert response.get_json() == {"message": "Unauthorized"}

    def test_anonymous_gets_401(self, client):
        assert client.get("/api/admin/stats").status_code == 401


@pytest.mark.integration
@pytest.mark.api
class TestAdminBusinesses:
    def test_list_includes_owner_summary(self, admin_client, business, owner):
        data = admin_client.get("/api/admin/businesses").get_json()
        assert data[0]["id"] == business.id
        assert data[0]["owner"] == {"id": owner.id, "name": owner.name, "email": owner.email}

    def test_create_business_promotes_owner(self, admin_client, customer, db_session):
        response = admin_client.post(
            "/api/admin/businesses",
            json={"name": "Fresh Fades", "description": "New shop", "ownerId": customer.id},
        )

        assert response.status_code == 201
        data = response.get_json()
        assert data["ownerId"] == customer.id
        promoted = db_session.get(User, customer.id)
        assert promoted.role == Role.BUSINESS_OWNER
        assert promoted.business_id == data["id"]

    def test_create_requires_name_and_owner(self, admin_client):
        response = admin_client.post("/api/admin/businesses", json={"name": "No Owner"})
        assert response.status_code == 400
        assert response.get_json() == {"message": "Name and owner ID are required"}

    def test_create_unknown_owner(self, admin_client):
        response = admin_client.post(
            "/api/admin/businesses", json={"name": "Ghost", "ownerId": 999}
        )
        assert response.status_code == 404
        assert response.get_json() == {"message": "Owner not found"}

    def test_owner_cannot_own_two_businesses(self, admin_client, owner, business):
        response = admin_client.post(
            "/api/admin/businesses", json={"name": "Second", "ownerId": owner.id}
        )
        assert response.status_code == 400
        assert response.get_json() == {"message": "User already owns a business"}

    def test_patch_business(self, admin_client, business):
        response = admin_client.patch(
            f"/api/admin/businesses/{business.id}",
            json={"name": "Renamed", "phone": "555-0000"},
        )
        assert response.status_code == 200
        assert response.get_json()["name"] == "Renamed"
        assert response.get_json()["phone"] == "555-0000"

    def test_patch_rejects_blank_name(self, admin_client, business):
        response = admin_client.patch(
            f"/api/admin/businesses/{business.id}", json={"name": "  "}
        )
        assert response.status_code == 400

    def test_delete_business_cascades(
        self, admin_client, make_booking, business, service, worker, customer, db_session
    ):
        make_booking(business, service, worker, customer, f"{BOOKING_DAY}T10:00")

        response = admin_client.delete(f"/api/admin/businesses/{business.id}")

        assert response.status_code == 200
        assert db_session.get(Business, business.id) is None
        assert db_session.get(User, worker.id).business_id is None

    def test_unknown_business(self, admin_client):
        assert admin_client.get("/api/admin/businesses/999").status_code == 404


@pytest.mark.integration
@pytest.mark.api
def test_platform_stats(admin_client, make_booking, business, service, worker, customer):
    make_booking(business, service, worker, customer, f"{BOOKING_DAY}T10:00")

    data = admin_client.get("/api/admin/stats").get_json()

    assert data["totalBusinesses"] == 1
    # admin, owner, worker and client
    assert data["totalUsers"] == 4
    assert data["totalBookings"] == 1
    assert data["totalRevenue"] == 0
    assert len(data["recentActivities"]) == 1
