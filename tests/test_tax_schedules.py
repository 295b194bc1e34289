import pytest
from fastapi import status

LEVIES = ["VAT", "NHIL", "GETFund", "COVID-19 Levy"]


def _schedule(client, headers, **overrides):
    payload = {
        "name": "2024 Levy Schedule",
        "components": LEVIES,
        "value": 21,
        "start_date": "2024-01-01",
    }
    payload.update(overrides)
    return client.post("/api/tax-schedules", json=payload, headers=headers)


def test_super_admin_creates_schedule(client, super_admin, auth_headers):
    response = _schedule(client, auth_headers(super_admin), sunset_date="2099-12-31")
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()["data"]
    assert data["components"] == LEVIES
    assert data["type"] == "percentage"
    assert data["applies_to"] == "all"

def test_schedule_needs_four_components(client, super_admin, auth_headers):
    response = _schedule(client, auth_headers(super_admin), components=["VAT", "NHIL"])
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

def test_sunset_must_follow_start(client, super_admin, auth_headers):
    response = _schedule(client, auth_headers(super_admin), sunset_date="2023-12-31")
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

def test_only_super_admin_manages_schedules(client, admin_user, auth_headers):
    response = _schedule(client, auth_headers(admin_user))
    assert response.status_code == status.HTTP_403_FORBIDDEN

def test_current_schedules_exclude_expired_and_future(client, super_admin, customer, auth_headers):
    headers = auth_headers(super_admin)
    _schedule(client, headers, name="Current")
    _schedule(client, headers, name="Expired", start_date="2010-01-01", sunset_date="2011-01-01")
    _schedule(client, headers, name="Future", start_date="2099-01-01")
    _schedule(client, headers, name="Inventory Only", applies_to="inventory")

    current = client.get("/api/tax-schedules/current", headers=auth_headers(customer)).json()["data"]
    assert {s["name"] for s in current} == {"Current", "Inventory Only"}

    facilities = client.get(
        "/api/tax-schedules/current", params={"applies_to": "facilities"}, headers=auth_headers(customer)
    ).json()["data"]
    assert [s["name"] for s in facilities] == ["Current"]

    on_date = client.get(
        "/api/tax-schedules", params={"active_on": "2010-06-01"}, headers=headers
    ).json()["data"]
    assert [s["name"] for s in on_date] == ["Expired"]

def test_update_and_delete_schedule(client, super_admin, auth_headers):
    headers = auth_headers(super_admin)
    schedule_id = _schedule(client, headers).json()["data"]["id"]

    updated = client.put(f"/api/tax-schedules/{schedule_id}", json={"is_active": False, "value": 20}, headers=headers)
    assert updated.status_code == status.HTTP_200_OK
    assert updated.json()["data"]["is_active"] is False
    assert updated.json()["data"]["value"] == 20.0

    assert client.delete(f"/api/tax-schedules/{schedule_id}", headers=headers).status_code == status.HTTP_200_OK
    missing = client.put(f"/api/tax-schedules/{schedule_id}", json={"value": 1}, headers=headers)
    assert missing.status_code == status.HTTP_404_NOT_FOUND

def test_null_update_clears_only_optional_fields(client, super_admin, auth_headers):
    headers = auth_headers(super_admin)
    schedule_id = _schedule(client, headers, sunset_date="2099-12-31").json()["data"]["id"]

    response = client.put(
        f"/api/tax-schedules/{schedule_id}",
        json={"value": None, "start_date": None, "components": None, "sunset_date": None},
        headers=headers,
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()["data"]
    assert data["value"] == 21.0
    assert data["start_date"] == "2024-01-01"
    assert data["components"] == LEVIES
    assert data["sunset_date"] is None
