import pytest
from fastapi import status
from facilityhub.core.clock import utcnow
from facilityhub.models.transaction import Transaction


@pytest.fixture
def paid_income(db_session, company):
    db_session.add(Transaction(
        company_id=company.id, type="income", category="booking", amount=200.0,
        status="completed", currency="GHS", paid_at=utcnow(),
    ))
    db_session.commit()


def test_company_summary(client, facility, paid_income, staff_user, auth_headers):
    response = client.get("/api/admin/summary", headers=auth_headers(staff_user))
    assert response.status_code == status.HTTP_200_OK
    data = response.json()["data"]
    assert data["facilities"] == 1
    assert data["open_tickets"] == 0
    assert data["bookings"]["total"] == 0
    assert data["rentals"]["total_rentals"] == 0
    assert data["available_balance"] == 190.0
    assert data["revenue"] == {"current_month": 200.0, "previous_month": 0.0, "growth": 100.0}

def test_customer_has_no_dashboard(client, customer, auth_headers):
    response = client.get("/api/admin/summary", headers=auth_headers(customer))
    assert response.status_code == status.HTTP_403_FORBIDDEN

def test_audit_logs_are_company_scoped(client, admin_user, other_admin, auth_headers):
    client.post("/api/facilities", json={"name": "Garden"}, headers=auth_headers(admin_user))
    client.post("/api/facilities", json={"name": "Rooftop"}, headers=auth_headers(other_admin))

    logs = client.get(
        "/api/admin/audit-logs", params={"entity_type": "facility"}, headers=auth_headers(admin_user)
    ).json()
    assert logs["pagination"]["total"] == 1
    entry = logs["data"][0]
    assert entry["action"] == "create_facility"
    assert entry["user_id"] == admin_user.id
    assert entry["user_role"] == "admin"
    assert entry["details"] == {"name": "Garden"}

def test_staff_cannot_read_audit_logs(client, staff_user, auth_headers):
    response = client.get("/api/admin/audit-logs", headers=auth_headers(staff_user))
    assert response.status_code == status.HTTP_403_FORBIDDEN

def test_platform_stats(client, db_session, company, other_company, admin_user, customer, super_admin, auth_headers):
    db_session.add_all([
        Transaction(
            company_id=company.id, type="income", category="facility", amount=100.0,
            status="completed", platform_fee=5.0,
        ),
        Transaction(
            company_id=company.id, type="income", category="subscription", amount=99.0,
            status="completed", is_platform_revenue=True, plan_id="monthly",
        ),
    ])
    db_session.commit()

    response = client.get("/api/super-admin/stats", headers=auth_headers(super_admin))
    assert response.status_code == status.HTTP_200_OK
    data = response.json()["data"]
    assert data["companies"] == {"total": 2, "active": 2}
    assert data["users"] == 3
    assert data["transaction_volume"] == 199.0
    assert data["platform_fee_revenue"] == 5.0
    assert data["subscription_revenue"] == 99.0
    assert data["companies_by_plan"] == {"monthly": 2}

def test_platform_stats_need_super_admin(client, admin_user, auth_headers):
    response = client.get("/api/super-admin/stats", headers=auth_headers(admin_user))
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_notifications_read_flow(client, facility, admin_user, customer, auth_headers):
    client.post(
        "/api/bookings",
        json={"facility_id": facility.id, "start_date": "2030-01-10T10:00:00Z", "end_date": "2030-01-10T11:00:00Z"},
        headers=auth_headers(customer),
    )
    headers = auth_headers(admin_user)
    unread = client.get("/api/notifications", params={"unread_only": True}, headers=headers).json()["data"]
    assert len(unread) == 1

    marked = client.patch(f"/api/notifications/{unread[0]['id']}/read", headers=headers)
    assert marked.json()["data"]["is_read"] is True
    assert client.get("/api/notifications", params={"unread_only": True}, headers=headers).json()["data"] == []

def test_cannot_mark_someone_elses_notification(client, facility, admin_user, customer, auth_headers):
    client.post(
        "/api/bookings",
        json={"facility_id": facility.id, "start_date": "2030-01-10T10:00:00Z", "end_date": "2030-01-10T11:00:00Z"},
        headers=auth_headers(customer),
    )
    note_id = client.get("/api/notifications", headers=auth_headers(admin_user)).json()["data"][0]["id"]
    response = client.patch(f"/api/notifications/{note_id}/read", headers=auth_headers(customer))
    assert response.status_code == status.HTTP_404_NOT_FOUND
