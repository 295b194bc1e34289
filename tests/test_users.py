import pytest
from fastapi import status


def test_admin_adds_staff_member(client, company, admin_user, auth_headers):
    response = client.post(
        "/api/users",
        json={"email": "new.staff@alpha.example.com", "password": "Password123!", "full_name": "New Staff"},
        headers=auth_headers(admin_user),
    )
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()["data"]
    assert data["role"] == "staff"
    assert data["company_id"] == company.id

    login = client.post("/api/auth/login", json={"email": "new.staff@alpha.example.com", "password": "Password123!"})
    assert login.status_code == status.HTTP_200_OK

def test_cannot_create_super_admin_through_company(client, admin_user, auth_headers):
    response = client.post(
        "/api/users",
        json={"email": "sneaky@alpha.example.com", "password": "Password123!", "role": "super_admin"},
        headers=auth_headers(admin_user),
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN

def test_user_limit_follows_plan(client, db_session, company, admin_user, staff_user, auth_headers):
    """The free trial allows three users."""
    company.plan = "free_trial"
    db_session.commit()
    headers = auth_headers(admin_user)

    third = client.post("/api/users", json={"email": "third@alpha.example.com", "password": "Password123!"}, headers=headers)
    assert third.status_code == status.HTTP_201_CREATED

    fourth = client.post("/api/users", json={"email": "fourth@alpha.example.com", "password": "Password123!"}, headers=headers)
    assert fourth.status_code == status.HTTP_403_FORBIDDEN
    assert fourth.json()["errors"][0]["code"] == "PLAN_LIMIT_REACHED"

def test_staff_lists_company_users(client, admin_user, staff_user, other_admin, auth_headers):
    listing = client.get("/api/users", headers=auth_headers(staff_user)).json()
    emails = [u["email"] for u in listing["data"]]
    assert set(emails) == {admin_user.email, staff_user.email}

def test_deactivated_user_is_locked_out(client, admin_user, staff_user, auth_headers):
    response = client.patch(
        f"/api/users/{staff_user.id}/status", json={"is_active": False}, headers=auth_headers(admin_user)
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["data"]["is_active"] is False

    blocked = client.get("/api/auth/me", headers=auth_headers(staff_user))
    assert blocked.status_code == status.HTTP_403_FORBIDDEN

def test_cannot_change_other_company_user(client, admin_user, other_admin, auth_headers):
    response = client.patch(
        f"/api/users/{other_admin.id}/status", json={"is_active": False}, headers=auth_headers(admin_user)
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND

def test_super_admin_sets_payout_config(client, db_session, company, super_admin, auth_headers):
    response = client.put(
        f"/api/companies/{company.id}/payout-config",
        json={"subaccount_code": "ACCT_manual", "fee_percent": 3.5},
        headers=auth_headers(super_admin),
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["data"]["fee_percent"] == 3.5
    assert response.json()["data"]["paystack_subaccount_code"] == "ACCT_manual"
