import json
import pytest
from fastapi import status
from facilityhub.core.config import settings
from facilityhub.core.security import compute_hmac_sha512
from facilityhub.models.transaction import Transaction

WEBHOOK_SECRET = "sk_test_webhook_secret"


@pytest.fixture
def booking_id(client, facility, customer, auth_headers):
    response = client.post(
        "/api/bookings",
        json={"facility_id": facility.id, "start_date": "2030-01-10T10:00:00Z", "end_date": "2030-01-10T13:00:00Z"},
        headers=auth_headers(customer),
    )
    return response.json()["data"]["id"]


@pytest.fixture
def webhook_secret(monkeypatch):
    monkeypatch.setattr(settings.payments, "paystack_secret_key", WEBHOOK_SECRET)
    return WEBHOOK_SECRET


def _post_webhook(client, payload, secret=WEBHOOK_SECRET):
    body = json.dumps(payload).encode()
    return client.post(
        "/api/payments/webhook",
        content=body,
        headers={"x-paystack-signature": compute_hmac_sha512(secret, body), "content-type": "application/json"},
    )


def test_initialize_booking_payment(client, db_session, fake_paystack, booking_id, customer, auth_headers):
    """Gateway amounts are sent in minor units; the ledger row starts pending."""
    response = client.post(
        "/api/payments/initialize",
        json={"email": customer.email, "amount": 150, "category": "booking", "booking_id": booking_id},
        headers=auth_headers(customer),
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()["data"]
    assert data["amount"] == 15000
    assert data["access_code"] == "ACCESS_123"
    assert data["reference"].startswith("FH-")

    name, payload = fake_paystack.calls[0]
    assert name == "initialize_transaction"
    assert payload["amount"] == 15000
    assert "subaccount" not in payload

    transaction = db_session.query(Transaction).filter(Transaction.reference == data["reference"]).one()
    assert transaction.status == "pending"
    assert transaction.amount == 150.0

def test_discount_applies_before_conversion(client, fake_paystack, facility, customer, auth_headers):
    response = client.post(
        "/api/payments/initialize",
        json={
            "email": customer.email, "amount": 100, "category": "facility", "facility_id": facility.id,
            "discount": {"type": "percentage", "value": 10},
        },
        headers=auth_headers(customer),
    )
    assert response.json()["data"]["amount"] == 9000

def test_subaccount_split_sets_platform_fee(client, db_session, fake_paystack, company, facility, customer, auth_headers):
    company.paystack_subaccount_code = "ACCT_alpha"
    db_session.commit()

    reference = client.post(
        "/api/payments/initialize",
        json={"email": customer.email, "amount": 100, "category": "facility", "facility_id": facility.id},
        headers=auth_headers(customer),
    ).json()["data"]["reference"]

    payload = fake_paystack.calls[0][1]
    assert payload["subaccount"] == "ACCT_alpha"
    assert payload["transaction_charge"] == 500

    transaction = db_session.query(Transaction).filter(Transaction.reference == reference).one()
    assert transaction.platform_fee == 5.0

def test_subscription_payment_requires_plan(client, fake_paystack, admin_user, auth_headers):
    response = client.post(
        "/api/payments/initialize",
        json={"email": admin_user.email, "amount": 899, "category": "subscription"},
        headers=auth_headers(admin_user),
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["errors"][0]["code"] == "VALIDATION_ERROR"
    assert fake_paystack.calls == []

def test_verify_confirms_booking(client, db_session, fake_paystack, booking_id, customer, auth_headers):
    headers = auth_headers(customer)
    reference = client.post(
        "/api/payments/initialize",
        json={"email": customer.email, "amount": 150, "category": "booking", "booking_id": booking_id},
        headers=headers,
    ).json()["data"]["reference"]

    verified = client.get(f"/api/payments/verify/{reference}", headers=headers)
    assert verified.status_code == status.HTTP_200_OK
    assert verified.json()["data"]["status"] == "completed"
    assert verified.json()["data"]["method"] == "card"

    booking = client.get(f"/api/bookings/{booking_id}", headers=headers).json()["data"]
    assert booking["status"] == "confirmed"
    assert booking["payment_status"] == "completed"

    mine = client.get("/api/transactions/me", headers=headers).json()
    assert mine["pagination"]["total"] == 1

def test_failed_verification_marks_booking_failed(client, fake_paystack, booking_id, customer, auth_headers):
    fake_paystack.verify_status = "failed"
    headers = auth_headers(customer)
    reference = client.post(
        "/api/payments/initialize",
        json={"email": customer.email, "amount": 150, "category": "booking", "booking_id": booking_id},
        headers=headers,
    ).json()["data"]["reference"]

    verified = client.get(f"/api/payments/verify/{reference}", headers=headers)
    assert verified.json()["data"]["status"] == "failed"
    booking = client.get(f"/api/bookings/{booking_id}", headers=headers).json()["data"]
    assert booking["payment_status"] == "failed"
    assert booking["status"] == "pending"

def test_subscription_payment_activates_plan(client, db_session, fake_paystack, company, admin_user, auth_headers):
    headers = auth_headers(admin_user)
    reference = client.post(
        "/api/payments/initialize",
        json={"email": admin_user.email, "amount": 899, "category": "subscription", "plan_id": "annual"},
        headers=headers,
    ).json()["data"]["reference"]

    verified = client.get(f"/api/payments/verify/{reference}", headers=headers).json()["data"]
    assert verified["is_platform_revenue"] is True

    db_session.refresh(company)
    assert company.plan == "annual"
    assert company.payment_reference == reference

def test_webhook_rejects_bad_signature(client, webhook_secret):
    response = _post_webhook(client, {"event": "charge.success", "data": {}}, secret="wrong-secret")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["errors"][0]["code"] == "AUTH_FAILED"

def test_webhook_charge_success_completes_transaction(
    client, db_session, fake_paystack, webhook_secret, booking_id, customer, auth_headers
):
    reference = client.post(
        "/api/payments/initialize",
        json={"email": customer.email, "amount": 150, "category": "booking", "booking_id": booking_id},
        headers=auth_headers(customer),
    ).json()["data"]["reference"]

    response = _post_webhook(client, {"event": "charge.success", "data": {"reference": reference}})
    assert response.status_code == status.HTTP_200_OK

    transaction = db_session.query(Transaction).filter(Transaction.reference == reference).one()
    db_session.refresh(transaction)
    assert transaction.status == "completed"

def test_webhook_unknown_reference_is_acknowledged(client, fake_paystack, webhook_secret):
    response = _post_webhook(client, {"event": "charge.success", "data": {"reference": "FH-unknown"}})
    assert response.status_code == status.HTTP_200_OK
    assert fake_paystack.calls == []

def test_admin_reconciles_transaction(client, db_session, fake_paystack, booking_id, customer, admin_user, auth_headers):
    client.post(
        "/api/payments/initialize",
        json={"email": customer.email, "amount": 150, "category": "booking", "booking_id": booking_id},
        headers=auth_headers(customer),
    )
    listing = client.get("/api/transactions", headers=auth_headers(admin_user)).json()
    assert listing["pagination"]["total"] == 1
    transaction_id = listing["data"][0]["id"]

    updated = client.patch(
        f"/api/transactions/{transaction_id}",
        json={"reconciled": True, "tags": ["checked"]},
        headers=auth_headers(admin_user),
    )
    assert updated.status_code == status.HTTP_200_OK
    assert updated.json()["data"]["reconciled"] is True
    assert updated.json()["data"]["reconciled_at"] is not None
    assert updated.json()["data"]["tags"] == ["checked"]

def test_other_company_cannot_reconcile(client, fake_paystack, booking_id, customer, other_admin, auth_headers):
    client.post(
        "/api/payments/initialize",
        json={"email": customer.email, "amount": 150, "category": "booking", "booking_id": booking_id},
        headers=auth_headers(customer),
    )
    mine = client.get("/api/transactions/me", headers=auth_headers(customer)).json()["data"]
    response = client.patch(
        f"/api/transactions/{mine[0]['id']}", json={"reconciled": True}, headers=auth_headers(other_admin)
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND

def test_verify_is_limited_to_payer_and_company(
    client, fake_paystack, booking_id, customer, other_customer, staff_user, other_admin, auth_headers
):
    reference = client.post(
        "/api/payments/initialize",
        json={"email": customer.email, "amount": 150, "category": "booking", "booking_id": booking_id},
        headers=auth_headers(customer),
    ).json()["data"]["reference"]

    for outsider in (other_customer, other_admin):
        response = client.get(f"/api/payments/verify/{reference}", headers=auth_headers(outsider))
        assert response.status_code == status.HTTP_404_NOT_FOUND
    assert [c for c in fake_paystack.calls if c[0] == "verify_transaction"] == []

    verified = client.get(f"/api/payments/verify/{reference}", headers=auth_headers(staff_user))
    assert verified.status_code == status.HTTP_200_OK
    assert verified.json()["data"]["status"] == "completed"
