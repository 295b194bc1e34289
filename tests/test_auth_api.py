import pytest
from fastapi import status

PASSWORD = "Password123!"

def test_register_creates_customer(client):
    """Self-registration always yields a customer without a company."""
    response = client.post("/api/auth/register", json={
        "email": "new@example.com",
        "password": "Password123!",
        "full_name": "New Person",
    })
    assert response.status_code == status.HTTP_201_CREATED
    body = response.json()
    assert body["success"] is True
    assert body["data"]["role"] == "user"
    assert body["data"]["company_id"] is None

def test_register_duplicate_email(client, customer):
    """Registering an existing email is a conflict."""
    response = client.post("/api/auth/register", json={"email": customer.email, "password": "Password123!"})
    assert response.status_code == status.HTTP_409_CONFLICT
    body = response.json()
    assert body["success"] is False
    assert body["errors"][0]["code"] == "CONFLICT"

def test_register_short_password_is_validation_error(client):
    response = client.post("/api/auth/register", json={"email": "short@example.com", "password": "short"})
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    body = response.json()
    assert body["success"] is False
    assert body["errors"][0]["field"] == "password"

def test_login_success(client, admin_user):
    """Test successful login with valid credentials."""
    response = client.post("/api/auth/login", json={"email": admin_user.email, "password": PASSWORD})
    assert response.status_code == status.HTTP_200_OK
    data = response.json()["data"]
    assert "access_token" in data
    assert "refresh_token" in data
    assert data["token_type"] == "bearer"
    assert data["user"]["company_id"] == admin_user.company_id

def test_login_invalid_credentials(client):
    """Test login failure with wrong password."""
    response = client.post("/api/auth/login", json={"email": "nonexistent@example.com", "password": "wrong"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["success"] is False

def test_refresh_rotates_session(client, customer):
    """A refresh token can be used once; the old one is revoked."""
    login = client.post("/api/auth/login", json={"email": customer.email, "password": PASSWORD}).json()["data"]

    refreshed = client.post("/api/auth/refresh", json={"refresh_token": login["refresh_token"]})
    assert refreshed.status_code == status.HTTP_200_OK
    assert refreshed.json()["data"]["refresh_token"] != login["refresh_token"]

    reused = client.post("/api/auth/refresh", json={"refresh_token": login["refresh_token"]})
    assert reused.status_code == status.HTTP_401_UNAUTHORIZED

def test_me_requires_token(client):
    response = client.get("/api/auth/me")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED

def test_me_returns_profile(client, staff_user, auth_headers):
    response = client.get("/api/auth/me", headers=auth_headers(staff_user))
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["data"]["email"] == staff_user.email
    assert response.json()["data"]["role"] == "staff"

def test_change_password(client, customer, auth_headers):
    """The new password works for login after a change."""
    response = client.post(
        "/api/auth/change-password",
        json={"current_password": PASSWORD, "new_password": "BrandNew456!"},
        headers=auth_headers(customer),
    )
    assert response.status_code == status.HTTP_200_OK

    login = client.post("/api/auth/login", json={"email": customer.email, "password": "BrandNew456!"})
    assert login.status_code == status.HTTP_200_OK

def test_logout_revokes_refresh_session(client, customer):
    login = client.post("/api/auth/login", json={"email": customer.email, "password": PASSWORD}).json()["data"]

    logged_out = client.post("/api/auth/logout", json={"refresh_token": login["refresh_token"]})
    assert logged_out.status_code == status.HTTP_200_OK

    refreshed = client.post("/api/auth/refresh", json={"refresh_token": login["refresh_token"]})
    assert refreshed.status_code == status.HTTP_401_UNAUTHORIZED

def test_token_survives_email_change(client, customer, auth_headers):
    headers = auth_headers(customer)
    updated = client.put("/api/auth/me", json={"email": "renamed@example.com"}, headers=headers)
    assert updated.status_code == status.HTTP_200_OK

    me = client.get("/api/auth/me", headers=headers)
    assert me.status_code == status.HTTP_200_OK
    assert me.json()["data"]["email"] == "renamed@example.com"
