"""
Integration tests for the owner's business profile, settings, stats and
payout bank accounts.
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from barberbook.core.config import local_now
from barberbook.db.base import BookingStatus, Payment, PaymentStatus, Role


@pytest.mark.integration
@pytest.mark.api
class TestBusinessProfile:
    def test_owner_without_business_gets_one_created(self, login_as, make_user):
        owner = make_user(Role.BUSINESS_OWNER, name="Nina")
        owner_client = login_as(owner)

        response = owner_client.get("/api/business")

        assert response.status_code == 200
        data = response.get_json()
        assert data["name"] == "Nina's Business"
        assert data["ownerId"] == owner.id
        assert owner_client.get("/api/business/id").get_json() == {"businessId": data["id"]}

    def test_owner_reads_own_business(self, owner_client, business):
        assert owner_client.get("/api/business").get_json()["id"] == business.id

    def test_owner_cannot_name_another_business(
        self, owner_client, make_user, make_business
    ):
        rival = make_business(make_user(Role.BUSINESS_OWNER), name="Rival")
        response = owner_client.get(f"/api/business?businessId={rival.id}")
        assert response.status_code == 403

    def test_admin_must_name_business(self, admin_client, business):
        assert admin_client.get("/api/business").status_code == 400
        response = admin_client.get(f"/api/business?businessId={business.id}")
        assert response.get_json()["name"] == "Sharp Cuts"

    def test_admin_unknown_business(self, admin_client):
        response = admin_client.get("/api/business?businessId=999")
        assert response.status_code == 404

    def test_client_is_forbidden(self, customer_client):
        response = customer_client.get("/api/business")
        assert response.status_code == 403
        assert response.get_json() == {"message": "Forbidden"}


@pytest.mark.integration
@pytest.mark.api
class TestSettings:
    def test_get_settings_defaults(self, owner_client):
        data = owner_client.get("/api/business/settings").get_json()
        assert data["name"] == "Sharp Cuts"
        assert data["currency"] == "usd"
        assert data["payoutsEnabled"] is False

    def test_update_settings(self, owner_client):
        response = owner_client.put(
            "/api/business/settings",
            json={
                "name": "Sharper Cuts",
                "address": "2 Low Road",
                "email": "hi@sharper.example",
                "currency": "GBP",
                "payoutsEnabled": True,
                "stripeConnectId": "acct_123",
                "openingHours": "Mon-Fri 9-5",
            },
        )

        assert response.status_code == 200
        data = response.get_json()
        assert data["name"] == "Sharper Cuts"
        assert data["currency"] == "gbp"
        assert data["payoutsEnabled"] is True
        assert data["stripeConnectId"] == "acct_123"

    def test_post_is_accepted_too(self, owner_client):
        response = owner_client.post("/api/business/settings", json={"name": "Posted"})
        assert response.status_code == 200

    def test_name_required(self, owner_client):
        response = owner_client.put("/api/business/settings", json={"name": ""})
        assert response.status_code == 400
        assert response.get_json() == {"message": "Business name is required"}


@pytest.mark.integration
@pytest.mark.api
class TestStats:
    def test_stats_counts(
        self, owner_client, make_booking, business, service, worker, customer
    ):
        now = local_now().replace(second=0, microsecond=0)
        today = now.replace(hour=0, minute=0)
        make_booking(
            business, service, worker, customer, today + timedelta(hours=9),
            status=BookingStatus.COMPLETED, is_paid=True,
        )
        make_booking(business, service, worker, customer, today + timedelta(hours=12))

        data = owner_client.get("/api/business/stats").get_json()

        assert data["totalBookings"] == 2
        assert data["todayBookings"] == 2
        assert data["activeClients"] == 1
        assert data["activeWorkers"] == 1
        assert data["activeServices"] == 1
        assert data["monthlyRevenue"] == 25.0
        assert data["avgBookingValue"] == 25.0
        assert data["pendingPayments"] == 1

    def test_empty_business(self, owner_client):
        data = owner_client.get("/api/business/stats").get_json()
        assert data["totalBookings"] == 0
        assert data["monthlyRevenue"] == 0
        assert data["avgBookingValue"] == 0


@pytest.mark.integration
@pytest.mark.api
@pytest.mark.payments
def test_payment_history_newest_first(owner_client, business, db_session):
    for intent_id in ("pi_first", "pi_second"):
        db_session.add(
            Payment(
                amount=Decimal("25.00"),
                platform_fee_amount=Decimal("0.50"),
                stripe_fee_amount=Decimal("1.03"),
                business_amount=Decimal("23.47"),
                currency="usd",
                status=PaymentStatus.COMPLETED,
                stripe_payment_id=intent_id,
                business_id=business.id,
            )
        )
        db_session.commit()

    data = owner_client.get("/api/business/payment-history").get_json()

    assert [p["stripePaymentId"] for p in data["payments"]] == ["pi_second", "pi_first"]
    assert data["payments"][0]["businessAmount"] == 23.47


@pytest.mark.integration
@pytest.mark.api
class TestBankAccounts:
    ACCOUNT = {"accountName": "Main", "accountNumber": "12345678", "sortCode": "12-34-56"}

    def test_first_account_becomes_default(self, owner_client):
        response = owner_client.post("/api/business/bank-accounts", json=self.ACCOUNT)

        assert response.status_code == 201
        data = response.get_json()
        assert data["isDefault"] is True
        assert data["accountNumberLast4"] == "5678"
        assert "accountNumber" not in data

    def test_new_default_replaces_old(self, owner_client):
        first = owner_client.post("/api/business/bank-accounts", json=self.ACCOUNT).get_json()
        owner_client.post(
            "/api/business/bank-accounts",
            json=dict(self.ACCOUNT, accountName="Savings", isDefault=True),
        )

        accounts = owner_client.get("/api/business/bank-accounts").get_json()["bankAccounts"]
        defaults = [a["accountName"] for a in accounts if a["isDefault"]]
        assert defaults == ["Savings"]
        assert any(a["id"] == first["id"] and not a["isDefault"] for a in accounts)

    def test_deleting_default_promotes_another(self, owner_client):
        first = owner_client.post("/api/business/bank-accounts", json=self.ACCOUNT).get_json()
        owner_client.post(
            "/api/business/bank-accounts", json=dict(self.ACCOUNT, accountName="Savings")
        )

        response = owner_client.delete(f"/api/business/bank-accounts/{first['id']}")

        assert response.status_code == 200
        accounts = owner_client.get("/api/business/bank-accounts").get_json()["bankAccounts"]
        assert [(a["accountName"], a["isDefault"]) for a in accounts] == [("Savings", True)]

    def test_update_account(self, owner_client):
        account = owner_client.post("/api/business/bank-accounts", json=self.ACCOUNT).get_json()
        response = owner_client.put(
            f"/api/business/bank-accounts/{account['id']}",
            json=dict(self.ACCOUNT, accountNumber="87654321"),
        )
        assert response.get_json()["accountNumberLast4"] == "4321"

    def test_invalid_sort_code(self, owner_client):
        response = owner_client.post(
            "/api/business/bank-accounts", json=dict(self.ACCOUNT, sortCode="123456")
        )
        assert response.status_code == 400

    def test_unknown_account(self, owner_client):
        response = owner_client.delete("/api/business/bank-accounts/999")
        assert response.status_code == 404
