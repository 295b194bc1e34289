import pytest
from fastapi import status

def test_staff_creates_facility_with_default_pricing(client, staff_user, auth_headers):
    """The first pricing entry becomes the default when none is marked."""
    response = client.post(
        "/api/facilities",
        json={
            "name": "Conference Room",
            "capacity_maximum": 40,
            "capacity_recommended": 30,
            "opening_time": "08:00",
            "closing_time": "20:00",
            "pricing": [{"unit": "hour", "amount": 25}, {"unit": "day", "amount": 150}],
        },
        headers=auth_headers(staff_user),
    )
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()["data"]
    assert data["company_id"] == staff_user.company_id
    assert data["pricing"][0]["is_default"] is True
    assert data["pricing"][1]["is_default"] is False

def test_recommended_capacity_cannot_exceed_maximum(client, staff_user, auth_headers):
    response = client.post(
        "/api/facilities",
        json={"name": "Tiny Room", "capacity_maximum": 10, "capacity_recommended": 20},
        headers=auth_headers(staff_user),
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

def test_invalid_opening_time_rejected(client, staff_user, auth_headers):
    response = client.post(
        "/api/facilities",
        json={"name": "Night Club", "opening_time": "25:00"},
        headers=auth_headers(staff_user),
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

def test_customer_cannot_create_facility(client, customer, auth_headers):
    response = client.post("/api/facilities", json={"name": "Mine"}, headers=auth_headers(customer))
    assert response.status_code == status.HTTP_403_FORBIDDEN

def test_public_listing_hides_inactive(client, db_session, facility, company, admin_user):
    """Anonymous callers only see active, non-deleted facilities."""
    from facilityhub.models.facility import Facility
    hidden = Facility(company_id=company.id, name="Closed Annex", is_active=False, pricing=[])
    db_session.add(hidden)
    db_session.commit()

    response = client.get("/api/facilities")
    assert response.status_code == status.HTTP_200_OK
    names = [f["name"] for f in response.json()["data"]]
    assert "Main Hall" in names
    assert "Closed Annex" not in names

def test_pagination_clamps_limit(client, facility):
    response = client.get("/api/facilities?page=0&limit=1000")
    assert response.status_code == status.HTTP_200_OK
    meta = response.json()["pagination"]
    assert meta["page"] == 1
    assert meta["limit"] == 100

def test_other_company_sees_facility_as_missing(client, facility, other_admin, auth_headers):
    """Cross-tenant ids behave as not found."""
    response = client.get(f"/api/facilities/{facility.id}", headers=auth_headers(other_admin))
    assert response.status_code == status.HTTP_404_NOT_FOUND

    update = client.put(
        f"/api/facilities/{facility.id}", json={"name": "Stolen"}, headers=auth_headers(other_admin)
    )
    assert update.status_code == status.HTTP_404_NOT_FOUND

def test_soft_delete_hides_facility(client, db_session, facility, admin_user, auth_headers):
    response = client.delete(f"/api/facilities/{facility.id}", headers=auth_headers(admin_user))
    assert response.status_code == status.HTTP_200_OK

    db_session.refresh(facility)
    assert facility.is_deleted is True
    assert client.get(f"/api/facilities/{facility.id}").status_code == status.HTTP_404_NOT_FOUND

def test_blocked_dates_make_window_unavailable(client, facility, staff_user, auth_headers):
    block = client.post(
        f"/api/facilities/{facility.id}/block",
        json={"start_date": "2030-03-01T00:00:00Z", "end_date": "2030-03-03T00:00:00Z", "reason": "renovation"},
        headers=auth_headers(staff_user),
    )
    assert block.status_code == status.HTTP_200_OK
    assert len(block.json()["data"]["blocked_dates"]) == 1

    inside = client.get(
        f"/api/facilities/{facility.id}/availability",
        params={"start": "2030-03-02T10:00:00Z", "end": "2030-03-02T12:00:00Z"},
    )
    assert inside.json()["data"]["available"] is False
    assert "renovation" in inside.json()["data"]["reason"]

    after = client.get(
        f"/api/facilities/{facility.id}/availability",
        params={"start": "2030-03-03T00:00:00Z", "end": "2030-03-03T02:00:00Z"},
    )
    assert after.json()["data"]["available"] is True

def test_plan_limit_blocks_extra_facilities(client, db_session, company, staff_user, facility, auth_headers):
    """The free trial allows two facilities."""
    company.plan = "free_trial"
    db_session.commit()

    second = client.post("/api/facilities", json={"name": "Second Hall"}, headers=auth_headers(staff_user))
    assert second.status_code == status.HTTP_201_CREATED

    third = client.post("/api/facilities", json={"name": "Third Hall"}, headers=auth_headers(staff_user))
    assert third.status_code == status.HTTP_403_FORBIDDEN
    assert third.json()["errors"][0]["code"] == "PLAN_LIMIT_REACHED"

def test_review_requires_completed_booking(client, facility, customer, auth_headers):
    response = client.post(
        f"/api/facilities/{facility.id}/reviews",
        json={"rating": 5, "comment": "Great"},
        headers=auth_headers(customer),
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN

def test_null_update_keeps_name_and_lists(client, facility, staff_user, auth_headers):
    response = client.put(
        f"/api/facilities/{facility.id}",
        json={"name": None, "amenities": None, "is_active": None, "description": None},
        headers=auth_headers(staff_user),
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()["data"]
    assert data["name"] == "Main Hall"
    assert data["amenities"] == ["projector"]
    assert data["is_active"] is True
    assert data["description"] is None
