import os
import pytest
from fastapi import status


def _open_ticket(client, headers, company_id=None, files=None, **fields):
    data = {"title": "Projector not working", "description": "The hall projector shows no signal.", **fields}
    if company_id is not None:
        data["company_id"] = str(company_id)
    return client.post("/api/support/tickets", data=data, files=files, headers=headers)


def test_customer_opens_ticket_with_system_message(client, company, customer, auth_headers):
    response = _open_ticket(client, auth_headers(customer), company_id=company.id, priority="high")
    assert response.status_code == status.HTTP_201_CREATED
    ticket = response.json()["data"]
    assert ticket["ticket_number"] == f"TICKET-{ticket['id']:06d}"
    assert ticket["status"] == "open"
    assert ticket["priority"] == "high"
    assert ticket["company_id"] == company.id
    assert ticket["messages"][0]["sender_type"] == "system"

def test_staff_ticket_is_scoped_to_their_company(client, staff_user, auth_headers):
    ticket = _open_ticket(client, auth_headers(staff_user)).json()["data"]
    assert ticket["company_id"] == staff_user.company_id

def test_attachments_are_stored(client, upload_dir, customer, auth_headers):
    response = _open_ticket(
        client, auth_headers(customer),
        files=[("files", ("notes.txt", b"steps to reproduce", "text/plain"))],
    )
    assert response.status_code == status.HTTP_201_CREATED
    file_message = response.json()["data"]["messages"][-1]
    assert file_message["message_type"] == "file"
    stored = file_message["attachments"][0]
    assert stored.startswith(str(upload_dir))
    assert os.path.exists(stored)

def test_disallowed_attachment_type(client, customer, auth_headers):
    response = _open_ticket(
        client, auth_headers(customer),
        files=[("files", ("setup.exe", b"MZ", "application/x-msdownload"))],
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["errors"][0]["code"] == "INVALID_FILE_TYPE"

def test_staff_reply_notifies_customer(client, company, customer, staff_user, auth_headers):
    ticket = _open_ticket(client, auth_headers(customer), company_id=company.id).json()["data"]

    listing = client.get("/api/support/tickets/staff", headers=auth_headers(staff_user)).json()
    assert listing["pagination"]["total"] == 1

    reply = client.post(
        f"/api/support/tickets/{ticket['id']}/messages",
        data={"message": "We are sending a technician."},
        headers=auth_headers(staff_user),
    )
    assert reply.status_code == status.HTTP_201_CREATED
    assert reply.json()["data"]["sender_type"] == "staff"

    notes = client.get("/api/notifications", headers=auth_headers(customer)).json()["data"]
    assert notes[0]["title"] == f"New reply on {ticket['ticket_number']}"

def test_opening_ticket_marks_messages_read(client, company, customer, staff_user, auth_headers):
    ticket_id = _open_ticket(client, auth_headers(customer), company_id=company.id).json()["data"]["id"]
    opened = client.get(f"/api/support/tickets/{ticket_id}", headers=auth_headers(staff_user)).json()["data"]
    assert all(staff_user.id in m["read_by"] for m in opened["messages"])

def test_outsider_cannot_view_ticket(client, company, customer, other_customer, other_admin, auth_headers):
    ticket_id = _open_ticket(client, auth_headers(customer), company_id=company.id).json()["data"]["id"]
    assert client.get(f"/api/support/tickets/{ticket_id}", headers=auth_headers(other_customer)).status_code == status.HTTP_403_FORBIDDEN
    assert client.get(f"/api/support/tickets/{ticket_id}", headers=auth_headers(other_admin)).status_code == status.HTTP_403_FORBIDDEN

def test_staff_resolves_and_reply_reopens(client, company, customer, staff_user, auth_headers):
    ticket_id = _open_ticket(client, auth_headers(customer), company_id=company.id).json()["data"]["id"]

    closed = client.patch(
        f"/api/support/tickets/{ticket_id}", json={"status": "closed"}, headers=auth_headers(staff_user)
    )
    assert closed.status_code == status.HTTP_200_OK
    assert closed.json()["data"]["closed_at"] is not None

    client.post(
        f"/api/support/tickets/{ticket_id}/messages",
        data={"message": "Still broken."},
        headers=auth_headers(customer),
    )
    reopened = client.get(f"/api/support/tickets/{ticket_id}", headers=auth_headers(customer)).json()["data"]
    assert reopened["status"] == "open"
    assert reopened["closed_at"] is None

def test_customer_cannot_update_ticket(client, company, customer, auth_headers):
    ticket_id = _open_ticket(client, auth_headers(customer), company_id=company.id).json()["data"]["id"]
    response = client.patch(
        f"/api/support/tickets/{ticket_id}", json={"status": "resolved"}, headers=auth_headers(customer)
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN

def test_assign_ticket_to_staff(client, company, customer, admin_user, staff_user, auth_headers):
    ticket_id = _open_ticket(client, auth_headers(customer), company_id=company.id).json()["data"]["id"]

    refused = client.patch(
        f"/api/support/tickets/{ticket_id}", json={"assigned_to_id": customer.id}, headers=auth_headers(admin_user)
    )
    assert refused.status_code == status.HTTP_403_FORBIDDEN

    assigned = client.patch(
        f"/api/support/tickets/{ticket_id}", json={"assigned_to_id": staff_user.id}, headers=auth_headers(admin_user)
    )
    assert assigned.json()["data"]["assigned_to_id"] == staff_user.id
    notes = client.get("/api/notifications", headers=auth_headers(staff_user)).json()["data"]
    assert any("assigned to you" in n["title"] for n in notes)

def test_only_admin_deletes_ticket(client, company, customer, staff_user, admin_user, auth_headers):
    ticket_id = _open_ticket(client, auth_headers(customer), company_id=company.id).json()["data"]["id"]
    assert client.delete(f"/api/support/tickets/{ticket_id}", headers=auth_headers(staff_user)).status_code == status.HTTP_403_FORBIDDEN
    assert client.delete(f"/api/support/tickets/{ticket_id}", headers=auth_headers(admin_user)).status_code == status.HTTP_200_OK
    assert client.get(f"/api/support/tickets/{ticket_id}", headers=auth_headers(customer)).status_code == status.HTTP_404_NOT_FOUND

def test_super_admin_sees_all_tickets(client, company, customer, staff_user, super_admin, auth_headers):
    _open_ticket(client, auth_headers(customer))
    _open_ticket(client, auth_headers(staff_user))
    listing = client.get("/api/support/tickets/all", headers=auth_headers(super_admin)).json()
    assert listing["pagination"]["total"] == 2

    mine = client.get("/api/support/tickets/mine", headers=auth_headers(customer)).json()
    assert mine["pagination"]["total"] == 1
