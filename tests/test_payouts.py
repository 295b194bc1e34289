import json
import pytest
from fastapi import status
from facilityhub.core.config import settings
from facilityhub.core.security import compute_hmac_sha512
from facilityhub.models.payout import Payout
from facilityhub.models.transaction import Transaction


@pytest.fixture
def income(db_session, company):
    """1000 of completed income plus platform revenue that must not count."""
    db_session.add_all([
        Transaction(
            company_id=company.id, type="income", category="booking", amount=1000.0,
            status="completed", currency="GHS",
        ),
        Transaction(
            company_id=company.id, type="income", category="subscription", amount=899.0,
            status="completed", currency="GHS", is_platform_revenue=True,
        ),
        Transaction(
            company_id=company.id, type="income", category="booking", amount=400.0,
            status="pending", currency="GHS",
        ),
    ])
    db_session.commit()


def _create_subaccount(client, headers):
    return client.post(
        "/api/subaccounts",
        json={
            "business_name": "Alpha Venues",
            "settlement_bank": "GCB",
            "account_number": "0123456789",
            "percentage_charge": 5,
        },
        headers=headers,
    )


def test_list_banks_and_resolve(client, fake_paystack, admin_user, auth_headers):
    headers = auth_headers(admin_user)
    banks = client.get("/api/subaccounts/banks", headers=headers)
    assert banks.json()["data"][0]["code"] == "GCB"

    resolved = client.get(
        "/api/subaccounts/resolve", params={"account_number": "0123456789", "bank_code": "GCB"}, headers=headers
    )
    assert resolved.json()["data"]["account_name"] == "ALPHA VENUES LTD"

def test_create_subaccount_masks_and_encrypts(client, db_session, fake_paystack, company, admin_user, auth_headers):
    response = _create_subaccount(client, auth_headers(admin_user))
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["data"]["account_number"] == "******6789"

    db_session.refresh(company)
    assert company.paystack_subaccount_code == "ACCT_alpha"
    assert company.settlement_bank_code == "GCB"
    assert company.settlement_account_number != "0123456789"

    from facilityhub.services.subaccount_service import settlement_account_number
    assert settlement_account_number(company) == "0123456789"

def test_second_subaccount_conflicts(client, fake_paystack, admin_user, auth_headers):
    headers = auth_headers(admin_user)
    _create_subaccount(client, headers)
    again = _create_subaccount(client, headers)
    assert again.status_code == status.HTTP_409_CONFLICT

def test_get_and_update_subaccount(client, db_session, fake_paystack, company, admin_user, auth_headers):
    headers = auth_headers(admin_user)
    assert client.get("/api/subaccounts/me", headers=headers).status_code == status.HTTP_404_NOT_FOUND
    _create_subaccount(client, headers)

    fetched = client.get("/api/subaccounts/me", headers=headers)
    assert fetched.json()["data"]["account_number"] == "******6789"

    updated = client.put("/api/subaccounts/me", json={"percentage_charge": 7.5}, headers=headers)
    assert updated.status_code == status.HTTP_200_OK
    db_session.refresh(company)
    assert company.fee_percent == 7.5

def test_staff_cannot_manage_subaccount(client, fake_paystack, staff_user, auth_headers):
    response = _create_subaccount(client, auth_headers(staff_user))
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_balance_excludes_platform_revenue(client, income, admin_user, auth_headers):
    balance = client.get("/api/payouts/balance", headers=auth_headers(admin_user)).json()["data"]
    assert balance["total_income"] == 1000.0
    assert balance["platform_fee"] == 50.0
    assert balance["committed_payouts"] == 0.0
    assert balance["available"] == 950.0
    assert balance["currency"] == "GHS"

def test_payout_over_balance_is_refused(client, fake_paystack, income, admin_user, auth_headers):
    response = client.post("/api/payouts", json={"amount": 2000}, headers=auth_headers(admin_user))
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["errors"][0]["code"] == "INSUFFICIENT_BALANCE"

def test_payout_needs_settlement_account(client, fake_paystack, income, admin_user, auth_headers):
    response = client.post("/api/payouts", json={"amount": 100}, headers=auth_headers(admin_user))
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["errors"][0]["code"] == "NO_SETTLEMENT_ACCOUNT"

def test_payout_lifecycle(client, fake_paystack, income, admin_user, super_admin, auth_headers, monkeypatch):
    """Request, approve, transfer, then settle from the transfer webhook."""
    headers = auth_headers(admin_user)
    root = auth_headers(super_admin)
    _create_subaccount(client, headers)

    requested = client.post("/api/payouts", json={"amount": 500, "reason": "weekly"}, headers=headers)
    assert requested.status_code == status.HTTP_201_CREATED
    payout = requested.json()["data"]
    assert payout["status"] == "pending"
    assert payout["recipient_code"] == "RCP_alpha"

    recipient = [c for c in fake_paystack.calls if c[0] == "create_transfer_recipient"][0][1]
    assert recipient["type"] == "ghipss"
    assert recipient["account_number"] == "0123456789"

    notes = client.get("/api/notifications", headers=root).json()["data"]
    assert notes[0]["title"] == "Payout requested"

    early = client.post(f"/api/payouts/{payout['id']}/process", headers=root)
    assert early.status_code == status.HTTP_400_BAD_REQUEST
    assert early.json()["errors"][0]["code"] == "INVALID_STATE"

    approved = client.post(f"/api/payouts/{payout['id']}/approve", headers=root)
    assert approved.json()["data"]["status"] == "approved"
    balance = client.get("/api/payouts/balance", headers=headers).json()["data"]
    assert balance["committed_payouts"] == 500.0
    assert balance["available"] == 450.0

    processed = client.post(f"/api/payouts/{payout['id']}/process", headers=root)
    assert processed.json()["data"]["status"] == "processing"
    assert processed.json()["data"]["transfer_code"] == "TRF_123"
    transfer = [c for c in fake_paystack.calls if c[0] == "initiate_transfer"][0][1]
    assert transfer["amount"] == 50000
    assert transfer["reference"].startswith(f"PO-{payout['id']}-")

    monkeypatch.setattr(settings.payments, "paystack_secret_key", "sk_test_webhook_secret")
    body = json.dumps({"event": "transfer.success", "data": {"transfer_code": "TRF_123"}}).encode()
    webhook = client.post(
        "/api/payments/webhook",
        content=body,
        headers={"x-paystack-signature": compute_hmac_sha512("sk_test_webhook_secret", body)},
    )
    assert webhook.status_code == status.HTTP_200_OK

    listing = client.get("/api/payouts", headers=headers).json()["data"]
    assert listing[0]["status"] == "paid"

def test_rejected_payout_is_not_committed(client, fake_paystack, income, admin_user, super_admin, auth_headers):
    headers = auth_headers(admin_user)
    _create_subaccount(client, headers)
    payout_id = client.post("/api/payouts", json={"amount": 300}, headers=headers).json()["data"]["id"]

    rejected = client.post(
        f"/api/payouts/{payout_id}/reject", json={"reason": "duplicate"}, headers=auth_headers(super_admin)
    )
    assert rejected.json()["data"]["status"] == "rejected"
    assert rejected.json()["data"]["failure_reason"] == "duplicate"

    balance = client.get("/api/payouts/balance", headers=headers).json()["data"]
    assert balance["available"] == 950.0

def test_admin_cannot_approve_payouts(client, admin_user, auth_headers):
    response = client.post("/api/payouts/1/approve", headers=auth_headers(admin_user))
    assert response.status_code == status.HTTP_403_FORBIDDEN

def test_pending_requests_cannot_both_be_approved(client, fake_paystack, income, admin_user, super_admin, auth_headers):
    """Each request fits the 950 balance on its own, but not together."""
    headers = auth_headers(admin_user)
    root = auth_headers(super_admin)
    _create_subaccount(client, headers)
    first = client.post("/api/payouts", json={"amount": 600}, headers=headers).json()["data"]["id"]
    second = client.post("/api/payouts", json={"amount": 600}, headers=headers).json()["data"]["id"]

    assert client.post(f"/api/payouts/{first}/approve", headers=root).status_code == status.HTTP_200_OK

    refused = client.post(f"/api/payouts/{second}/approve", headers=root)
    assert refused.status_code == status.HTTP_400_BAD_REQUEST
    assert refused.json()["errors"][0]["code"] == "INSUFFICIENT_BALANCE"

def test_processing_rechecks_balance(client, db_session, fake_paystack, company, income, admin_user, super_admin, auth_headers):
    headers = auth_headers(admin_user)
    root = auth_headers(super_admin)
    _create_subaccount(client, headers)
    payout_id = client.post("/api/payouts", json={"amount": 600}, headers=headers).json()["data"]["id"]
    client.post(f"/api/payouts/{payout_id}/approve", headers=root)

    db_session.add(Payout(
        company_id=company.id, amount=600.0, currency="GHS", status="approved", requested_by=admin_user.id,
    ))
    db_session.commit()

    refused = client.post(f"/api/payouts/{payout_id}/process", headers=root)
    assert refused.status_code == status.HTTP_400_BAD_REQUEST
    assert refused.json()["errors"][0]["code"] == "INSUFFICIENT_BALANCE"
    assert [c for c in fake_paystack.calls if c[0] == "initiate_transfer"] == []
