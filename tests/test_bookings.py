import pytest
from fastapi import status

START = "2030-01-10T10:00:00Z"
END = "2030-01-10T13:00:00Z"


def _book(client, headers, facility_id, start=START, end=END, **extra):
    payload = {"facility_id": facility_id, "start_date": start, "end_date": end}
    payload.update(extra)
    return client.post("/api/bookings", json=payload, headers=headers)


def test_create_booking_prices_from_default_unit(client, facility, customer, auth_headers):
    """Three hours at 50/hour."""
    response = _book(client, auth_headers(customer), facility.id)
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()["data"]
    assert data["total_price"] == 150.0
    assert data["status"] == "pending"
    assert data["payment_status"] == "pending"
    assert data["duration"] == "3 hours"
    assert data["company_id"] == facility.company_id

def test_partial_unit_rounds_up(client, facility, customer, auth_headers):
    response = _book(client, auth_headers(customer), facility.id, end="2030-01-10T11:30:00Z")
    assert response.json()["data"]["total_price"] == 100.0

def test_percentage_discount(client, facility, customer, auth_headers):
    response = _book(
        client, auth_headers(customer), facility.id,
        discount={"type": "percentage", "value": 10, "reason": "loyalty"},
    )
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["data"]["total_price"] == 135.0
    assert response.json()["data"]["discount_type"] == "percentage"

def test_end_before_start_is_rejected(client, facility, customer, auth_headers):
    response = _book(client, auth_headers(customer), facility.id, start=END, end=START)
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

def test_overlapping_booking_conflicts(client, facility, customer, other_customer, auth_headers):
    assert _book(client, auth_headers(customer), facility.id).status_code == status.HTTP_201_CREATED

    clash = _book(
        client, auth_headers(other_customer), facility.id,
        start="2030-01-10T12:00:00Z", end="2030-01-10T14:00:00Z",
    )
    assert clash.status_code == status.HTTP_409_CONFLICT
    assert clash.json()["errors"][0]["code"] == "CONFLICT"

def test_touching_bookings_do_not_overlap(client, facility, customer, other_customer, auth_headers):
    assert _book(client, auth_headers(customer), facility.id).status_code == status.HTTP_201_CREATED
    adjacent = _book(
        client, auth_headers(other_customer), facility.id,
        start=END, end="2030-01-10T15:00:00Z",
    )
    assert adjacent.status_code == status.HTTP_201_CREATED

def test_cancelled_booking_frees_the_window(client, facility, customer, other_customer, auth_headers):
    booking_id = _book(client, auth_headers(customer), facility.id).json()["data"]["id"]
    cancel = client.post(f"/api/bookings/{booking_id}/cancel", json={"reason": "plans changed"}, headers=auth_headers(customer))
    assert cancel.status_code == status.HTTP_200_OK
    assert cancel.json()["data"]["status"] == "cancelled"

    again = _book(client, auth_headers(other_customer), facility.id)
    assert again.status_code == status.HTTP_201_CREATED

def test_booking_notifies_company_owner(client, db_session, facility, admin_user, customer, auth_headers):
    _book(client, auth_headers(customer), facility.id)
    notifications = client.get("/api/notifications", headers=auth_headers(admin_user)).json()["data"]
    assert notifications[0]["title"] == "New booking"

def test_customer_cannot_read_someone_elses_booking(client, facility, customer, other_customer, auth_headers):
    booking_id = _book(client, auth_headers(customer), facility.id).json()["data"]["id"]
    response = client.get(f"/api/bookings/{booking_id}", headers=auth_headers(other_customer))
    assert response.status_code == status.HTTP_403_FORBIDDEN

def test_other_company_admin_gets_not_found(client, facility, customer, other_admin, auth_headers):
    booking_id = _book(client, auth_headers(customer), facility.id).json()["data"]["id"]
    response = client.get(f"/api/bookings/{booking_id}", headers=auth_headers(other_admin))
    assert response.status_code == status.HTTP_404_NOT_FOUND

def test_staff_lifecycle_confirm_check_in_out(client, facility, customer, staff_user, auth_headers):
    booking_id = _book(client, auth_headers(customer), facility.id).json()["data"]["id"]
    headers = auth_headers(staff_user)

    early = client.post(f"/api/bookings/{booking_id}/check-in", json={}, headers=headers)
    assert early.status_code == status.HTTP_400_BAD_REQUEST
    assert early.json()["errors"][0]["code"] == "INVALID_STATE"

    confirmed = client.put(f"/api/bookings/{booking_id}", json={"status": "confirmed"}, headers=headers)
    assert confirmed.json()["data"]["status"] == "confirmed"

    checked_in = client.post(f"/api/bookings/{booking_id}/check-in", json={"notes": "on time"}, headers=headers)
    assert checked_in.status_code == status.HTTP_200_OK
    assert checked_in.json()["data"]["check_in_time"] is not None

    checked_out = client.post(f"/api/bookings/{booking_id}/check-out", json={"condition": "good"}, headers=headers)
    assert checked_out.json()["data"]["status"] == "completed"

    customer_notes = client.get("/api/notifications", headers=auth_headers(customer)).json()["data"]
    assert any(n["title"] == "Booking confirmed" for n in customer_notes)

def test_customer_cannot_set_refund(client, facility, customer, auth_headers):
    booking_id = _book(client, auth_headers(customer), facility.id).json()["data"]["id"]
    response = client.post(
        f"/api/bookings/{booking_id}/cancel",
        json={"reason": "x", "refund_amount": 10},
        headers=auth_headers(customer),
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN

def test_soft_deleted_booking_visible_to_staff_only_on_request(client, facility, customer, staff_user, auth_headers):
    booking_id = _book(client, auth_headers(customer), facility.id).json()["data"]["id"]
    assert client.delete(f"/api/bookings/{booking_id}", headers=auth_headers(customer)).status_code == status.HTTP_200_OK

    headers = auth_headers(staff_user)
    assert client.get(f"/api/bookings/{booking_id}", headers=headers).status_code == status.HTTP_404_NOT_FOUND
    shown = client.get(f"/api/bookings/{booking_id}?show_deleted=true", headers=headers)
    assert shown.status_code == status.HTTP_200_OK

    listing = client.get("/api/bookings", headers=headers).json()
    assert listing["pagination"]["total"] == 0

def test_statistics_counts_by_status(client, facility, customer, staff_user, auth_headers):
    _book(client, auth_headers(customer), facility.id)
    second = _book(client, auth_headers(customer), facility.id, start="2030-02-01T10:00:00Z", end="2030-02-01T11:00:00Z")
    client.put(f"/api/bookings/{second.json()['data']['id']}", json={"status": "confirmed"}, headers=auth_headers(staff_user))

    stats = client.get("/api/bookings/statistics", headers=auth_headers(staff_user)).json()["data"]
    assert stats["total"] == 2
    assert stats["pending"] == 1
    assert stats["confirmed"] == 1
    assert stats["revenue"] == 0.0

def test_deleting_twice_is_not_found(client, facility, customer, auth_headers):
    headers = auth_headers(customer)
    booking_id = _book(client, headers, facility.id).json()["data"]["id"]
    assert client.delete(f"/api/bookings/{booking_id}", headers=headers).status_code == status.HTTP_200_OK
    assert client.delete(f"/api/bookings/{booking_id}", headers=headers).status_code == status.HTTP_404_NOT_FOUND
