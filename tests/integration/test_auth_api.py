"""
Integration tests for sign-up, credential login and token authentication.
"""

import pytest

from barberbook.core.security import create_user_token
from barberbook.db.base import Role, User
from tests.conftest import TEST_PASSWORD, login


@pytest.mark.integration
@pytest.mark.auth
class TestRegister:
    def test_register_returns_user_without_hash(self, client):
        response = client.post(
            "/api/register",
            json={"name": "Jane", "email": "Jane@Example.com", "password": "secret1"},
        )

        assert response.status_code == 201
        data = response.get_json()
        assert data["email"] == "jane@example.com"
        assert data["role"] == Role.CLIENT
        assert "password" not in data and "passwordHash" not in data

    def test_owner_role_can_be_chosen(self, client):
        response = client.post(
            "/api/register",
            json={
                "name": "Bob",
                "email": "bob@example.com",
                "password": "secret1",
                "role": "BUSINESS_OWNER",
            },
        )
        assert response.get_json()["role"] == Role.BUSINESS_OWNER

    @pytest.mark.parametrize("role", ["ADMIN", "WORKER", "SUPERUSER"])
    def test_privileged_roles_fall_back_to_client(self, client, role):
        response = client.post(
            "/api/register",
            json={"name": "Eve", "email": "eve@example.com", "password": "secret1", "role": role},
        )
        assert response.status_code == 201
        assert response.get_json()["role"] == Role.CLIENT

    def test_duplicate_email(self, client, customer):
        response = client.post(
            "/api/register",
            json={"name": "Carl", "email": customer.email, "password": "secret1"},
        )
        assert response.status_code == 400
        assert response.get_json() == {"message": "Email already in use"}

    def test_missing_fields(self, client):
        response = client.post("/api/register", json={"email": "x@example.com"})
        assert response.status_code == 400
        assert response.get_json()["message"] == "Name, email and password are required"

    def test_non_json_body(self, client):
        response = client.post("/api/register", data="name=x")
        assert response.status_code == 400


@pytest.mark.integration
@pytest.mark.auth
class TestLogin:
    def test_login_starts_session_and_returns_token(self, client, customer):
        response = login(client, customer.email)
        data = response.get_json()
        assert data["user"]["id"] == customer.id
        assert data["token"]

        session = client.get("/api/auth/session").get_json()
        assert session["user"]["email"] == customer.email

    def test_login_is_case_insensitive_on_email(self, client, customer):
        login(client, customer.email.upper())

    def test_wrong_password(self, client, customer):
        response = client.post(
            "/api/auth/login", json={"email": customer.email, "password": "nope"}
        )
        assert response.status_code == 401
        assert response.get_json() == {"message": "Invalid credentials"}

    def test_missing_credentials(self, client):
        response = client.post("/api/auth/login", json={"email": "a@example.com"})
        assert response.status_code == 400

    def test_json_list_body_is_rejected(self, client):
        response = client.post("/api/auth/login", json=["a@example.com", "secret"])
        assert response.status_code == 400
        assert response.get_json() == {"message": "Request body must be a JSON object"}

    def test_non_string_credentials_are_rejected(self, client):
        response = client.post("/api/auth/login", json={"email": 42, "password": ["x"]})
        assert response.status_code == 400
        assert response.get_json() == {"message": "Email and password are required"}

    def test_inactive_user_cannot_login(self, client, customer, db_session):
        db_session.get(User, customer.id).is_active = False
        db_session.commit()

        response = client.post(
            "/api/auth/login", json={"email": customer.email, "password": TEST_PASSWORD}
        )
        assert response.status_code == 401

    def test_guest_without_password_cannot_login(self, client, db_session):
        db_session.add(User(name="Guest", email="guest@example.com", role=Role.CLIENT))
        db_session.commit()

        response = client.post(
            "/api/auth/login", json={"email": "guest@example.com", "password": "anything"}
        )
        assert response.status_code == 401

    def test_logout_clears_session(self, customer_client):
        assert customer_client.post("/api/auth/logout").status_code == 200
        assert customer_client.get("/api/auth/session").get_json() == {"user": None}


@pytest.mark.integration
@pytest.mark.auth
class TestAdminBootstrap:
    def test_env_admin_is_created_on_login(self, client, monkeypatch, db_session):
        monkeypatch.setenv("ADMIN_USERNAME", "Boss@Example.com")
        monkeypatch.setenv("ADMIN_PASSWORD", "Sup3r!secret")

        response = client.post(
            "/api/auth/login",
            json={"email": "boss@example.com", "password": "Sup3r!secret"},
        )

        assert response.status_code == 200
        assert response.get_json()["user"]["role"] == Role.ADMIN
        admin = db_session.query(User).filter_by(email="boss@example.com").one()
        assert admin.role == Role.ADMIN

    def test_env_admin_with_wrong_password(self, client, monkeypatch):
        monkeypatch.setenv("ADMIN_USERNAME", "boss@example.com")
        monkeypatch.setenv("ADMIN_PASSWORD", "Sup3r!secret")

        response = client.post(
            "/api/auth/login",
            json={"email": "boss@example.com", "password": "guess"},
        )
        assert response.status_code == 401


@pytest.mark.integration
@pytest.mark.auth
class TestBearerToken:
    def test_bearer_token_authenticates_api_calls(self, client, owner, business):
        token = create_user_token(owner.id, owner.email, owner.role)

        response = client.get(
            "/api/business", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 200
        assert response.get_json()["id"] == business.id

    def test_invalid_bearer_token_is_anonymous(self, client):
        response = client.get(
            "/api/business", headers={"Authorization": "Bearer garbage"}
        )
        assert response.status_code == 401
        assert response.get_json() == {"message": "Unauthorized"}
