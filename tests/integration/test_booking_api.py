"""
Integration tests for staff booking management and the no-overlap rule.
"""

import pytest

from barberbook.db.base import Booking, BookingStatus, Role
from tests.conftest import BOOKING_DAY

CONFLICT_MESSAGE = "Worker is not available at this time. Please choose another time."


def booking_payload(service, worker, customer, start="10:00", **extra):
    payload = {
        "date": BOOKING_DAY,
        "startTime": start,
        "clientId": customer.id,
        "workerId": worker.id,
        "serviceId": service.id,
    }
    payload.update(extra)
    return payload


@pytest.mark.integration
@pytest.mark.api
class TestCreateBooking:
    def test_owner_creates_confirmed_booking(self, owner_client, service, worker, customer):
        response = owner_client.post(
            "/api/bookings", json=booking_payload(service, worker, customer)
        )

        assert response.status_code == 201
        data = response.get_json()
        assert data["status"] == BookingStatus.CONFIRMED
        assert data["startTime"] == f"{BOOKING_DAY}T10:00:00"
        assert data["endTime"] == f"{BOOKING_DAY}T10:30:00"
        assert data["service"]["name"] == "Haircut"
        assert data["worker"]["id"] == worker.id
        assert data["isPaid"] is False

    def test_booking_links_client_to_business(self, owner_client, service, worker, customer):
        owner_client.post("/api/bookings", json=booking_payload(service, worker, customer))

        clients = owner_client.get("/api/clients").get_json()
        assert [c["id"] for c in clients] == [customer.id]

    def test_overlapping_slot_is_rejected(self, owner_client, service, worker, customer):
        owner_client.post("/api/bookings", json=booking_payload(service, worker, customer))

        response = owner_client.post(
            "/api/bookings", json=booking_payload(service, worker, customer, start="10:15")
        )

        assert response.status_code == 400
        assert response.get_json() == {"message": CONFLICT_MESSAGE}

    def test_slot_enclosing_existing_booking_is_rejected(
        self, owner_client, make_service, business, service, worker, customer
    ):
        owner_client.post(
            "/api/bookings", json=booking_payload(service, worker, customer, start="10:15")
        )
        long_service = make_service(business, name="Full Works", duration=90)

        response = owner_client.post(
            "/api/bookings", json=booking_payload(long_service, worker, customer, start="09:30")
        )
        assert response.status_code == 400

    def test_back_to_back_slots_are_allowed(self, owner_client, service, worker, customer):
        first = owner_client.post(
            "/api/bookings", json=booking_payload(service, worker, customer, start="10:00")
        )
        second = owner_client.post(
            "/api/bookings", json=booking_payload(service, worker, customer, start="10:30")
        )
        assert first.status_code == 201
        assert second.status_code == 201

    def test_other_worker_is_free(
        self, owner_client, make_user, business, service, worker, customer
    ):
        other = make_user(Role.WORKER, business_id=business.id)
        owner_client.post("/api/bookings", json=booking_payload(service, worker, customer))

        response = owner_client.post(
            "/api/bookings", json=booking_payload(service, other, customer)
        )
        assert response.status_code == 201

    def test_cancelled_booking_frees_slot(
        self, owner_client, make_booking, business, service, worker, customer
    ):
        make_booking(
            business, service, worker, customer, f"{BOOKING_DAY}T10:00",
            status=BookingStatus.CANCELLED,
        )

        response = owner_client.post(
            "/api/bookings", json=booking_payload(service, worker, customer)
        )
        assert response.status_code == 201

    def test_worker_from_other_business_is_not_found(
        self, owner_client, make_user, make_business, service, customer
    ):
        rival_owner = make_user(Role.BUSINESS_OWNER)
        rival = make_business(rival_owner, name="Rival Cuts")
        outsider = make_user(Role.WORKER, business_id=rival.id)

        response = owner_client.post(
            "/api/bookings", json=booking_payload(service, outsider, customer)
        )
        assert response.status_code == 404
        assert response.get_json() == {"message": "Worker not found"}

    def test_missing_fields(self, owner_client):
        response = owner_client.post("/api/bookings", json={"date": BOOKING_DAY})
        assert response.status_code == 400
        assert response.get_json() == {"message": "Missing required fields"}

    def test_admin_needs_business_id(self, admin_client, service, worker, customer):
        response = admin_client.post(
            "/api/bookings", json=booking_payload(service, worker, customer)
        )
        assert response.status_code == 400
        assert response.get_json() == {"message": "Business ID is required"}

    def test_admin_books_for_named_business(
        self, admin_client, business, service, worker, customer
    ):
        response = admin_client.post(
            "/api/bookings",
            json=booking_payload(service, worker, customer, businessId=business.id),
        )
        assert response.status_code == 201

    def test_worker_cannot_create(self, worker_client, service, worker, customer):
        response = worker_client.post(
            "/api/bookings", json=booking_payload(service, worker, customer)
        )
        assert response.status_code == 403

    def test_anonymous_gets_401(self, client, service, worker, customer):
        response = client.post("/api/bookings", json=booking_payload(service, worker, customer))
        assert response.status_code == 401
        assert response.get_json() == {"message": "Unauthorized"}


@pytest.mark.integration
@pytest.mark.api
class TestListAndView:
    @pytest.fixture
    def bookings(self, make_booking, make_user, business, service, worker, customer):
        other_client = make_user(Role.CLIENT)
        return [
            make_booking(business, service, worker, customer, f"{BOOKING_DAY}T11:00"),
            make_booking(business, service, worker, other_client, f"{BOOKING_DAY}T09:00"),
            make_booking(
                business, service, worker, customer, "2030-01-16T09:00",
                status=BookingStatus.PENDING,
            ),
        ]

    def test_owner_sees_business_bookings_in_start_order(self, owner_client, bookings):
        data = owner_client.get("/api/bookings").get_json()
        assert [b["startTime"] for b in data] == [
            f"{BOOKING_DAY}T09:00:00",
            f"{BOOKING_DAY}T11:00:00",
            "2030-01-16T09:00:00",
        ]

    def test_filters_by_status_and_date(self, owner_client, bookings):
        pending = owner_client.get("/api/bookings?status=pending").get_json()
        assert [b["id"] for b in pending] == [bookings[2].id]

        day = owner_client.get(f"/api/bookings?date={BOOKING_DAY}").get_json()
        assert len(day) == 2

    def test_invalid_status_filter(self, owner_client, bookings):
        response = owner_client.get("/api/bookings?status=LATE")
        assert response.status_code == 400

    def test_client_sees_only_own_bookings(self, customer_client, bookings, customer):
        data = customer_client.get("/api/bookings").get_json()
        assert {b["clientId"] for b in data} == {customer.id}
        assert len(data) == 2

    def test_worker_sees_assignments(self, worker_client, bookings):
        assert len(worker_client.get("/api/bookings").get_json()) == 3

    def test_client_cannot_view_someone_elses_booking(self, customer_client, bookings):
        response = customer_client.get(f"/api/bookings/{bookings[1].id}")
        assert response.status_code == 403

    def test_unknown_booking(self, owner_client):
        response = owner_client.get("/api/bookings/9999")
        assert response.status_code == 404
        assert response.get_json() == {"message": "Booking not found"}


@pytest.mark.integration
@pytest.mark.api
class TestUpdateBooking:
    @pytest.fixture
    def booking(self, make_booking, business, service, worker, customer):
        return make_booking(business, service, worker, customer, f"{BOOKING_DAY}T10:00")

    def test_reschedule_keeps_own_slot_free(
        self, owner_client, booking, service, worker, customer
    ):
        response = owner_client.put(
            f"/api/bookings/{booking.id}",
            json=booking_payload(service, worker, customer, start="10:15", status="CONFIRMED"),
        )
        assert response.status_code == 200
        assert response.get_json()["startTime"] == f"{BOOKING_DAY}T10:15:00"

    def test_reschedule_into_other_booking_is_rejected(
        self, owner_client, make_booking, booking, business, service, worker, customer
    ):
        make_booking(business, service, worker, customer, f"{BOOKING_DAY}T11:00")

        response = owner_client.put(
            f"/api/bookings/{booking.id}",
            json=booking_payload(service, worker, customer, start="10:45", status="CONFIRMED"),
        )
        assert response.status_code == 400
        assert response.get_json() == {"message": CONFLICT_MESSAGE}

    def test_update_requires_status(self, owner_client, booking, service, worker, customer):
        response = owner_client.put(
            f"/api/bookings/{booking.id}", json=booking_payload(service, worker, customer)
        )
        assert response.status_code == 400

    def test_other_owner_is_forbidden(
        self, login_as, make_user, make_business, booking, service, worker, customer
    ):
        rival_owner = make_user(Role.BUSINESS_OWNER)
        make_business(rival_owner, name="Rival Cuts")
        rival_client = login_as(rival_owner)

        response = rival_client.put(
            f"/api/bookings/{booking.id}",
            json=booking_payload(service, worker, customer, status="CONFIRMED"),
        )
        assert response.status_code == 403
        assert response.get_json() == {"message": "Forbidden"}

    def test_worker_completes_booking(self, worker_client, booking):
        response = worker_client.patch(
            f"/api/bookings/{booking.id}", json={"status": "COMPLETED"}
        )
        assert response.status_code == 200
        assert response.get_json()["status"] == BookingStatus.COMPLETED

    def test_worker_cannot_confirm(self, worker_client, booking):
        response = worker_client.patch(
            f"/api/bookings/{booking.id}", json={"status": "PENDING"}
        )
        assert response.status_code == 403

    def test_client_cannot_change_status(self, customer_client, booking):
        response = customer_client.patch(
            f"/api/bookings/{booking.id}", json={"status": "CANCELLED"}
        )
        assert response.status_code == 403

    def test_delete_cancels_but_keeps_booking(self, owner_client, booking, db_session):
        response = owner_client.delete(f"/api/bookings/{booking.id}")

        assert response.status_code == 200
        assert response.get_json() == {"message": "Booking cancelled successfully"}
        assert db_session.get(Booking, booking.id).status == BookingStatus.CANCELLED

    def test_mark_paid(self, owner_client, booking):
        response = owner_client.put(
            f"/api/bookings/{booking.id}/payment", json={"isPaid": True}
        )
        assert response.status_code == 200
        assert response.get_json()["isPaid"] is True

    def test_mark_paid_requires_boolean(self, owner_client, booking):
        response = owner_client.put(
            f"/api/bookings/{booking.id}/payment", json={"isPaid": "yes"}
        )
        assert response.status_code == 400
