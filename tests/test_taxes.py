import pytest
from fastapi import status
from facilityhub.models.tax import Tax
from facilityhub.services.tax_calculator import applicable_taxes, calculate_taxes, round_half_up


def _tax(id, name, rate, applies_to="both", company_id=None, active=True):
    return Tax(
        id=id, name=name, rate=rate, type="Levy", applies_to=applies_to,
        is_super_admin_tax=company_id is None, company_id=company_id, active=active,
    )


@pytest.fixture
def ghana_taxes():
    return [
        _tax(1, "NHIL", 2.5),
        _tax(2, "VAT", 15.0),
        _tax(3, "Service Fee", 5.0),
    ]


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(2.49) == 2
    assert round_half_up(26.25) == 26

def test_vat_is_ordered_first(ghana_taxes):
    names = [t.name for t in applicable_taxes(ghana_taxes, "both", None)]
    assert names == ["VAT", "NHIL", "Service Fee"]

def test_scope_and_ownership_filtering(ghana_taxes):
    taxes = ghana_taxes + [
        _tax(4, "Facility Levy", 1.0, applies_to="facility"),
        _tax(5, "Own Levy", 3.0, company_id=7),
        _tax(6, "Foreign Levy", 3.0, company_id=8),
        _tax(7, "Retired Levy", 9.0, active=False),
    ]
    names = {t.name for t in applicable_taxes(taxes, "inventory_item", 7)}
    assert names == {"VAT", "NHIL", "Service Fee", "Own Levy"}

def test_exclusive_calculation(ghana_taxes):
    """Service fee is separate; regular taxes apply to the subtotal."""
    result = calculate_taxes(1000, ghana_taxes)
    assert result["service_fee"] == 50
    assert result["service_fee_rate"] == 5.0
    assert result["tax"] == 175
    assert result["total_tax_rate"] == 17.5
    assert result["total"] == 1225
    assert [line["name"] for line in result["breakdown"]] == ["VAT", "NHIL"]

def test_tax_on_tax_includes_service_fee_in_base(ghana_taxes):
    result = calculate_taxes(1000, ghana_taxes, is_tax_on_tax=True)
    assert [line["amount"] for line in result["breakdown"]] == [158, 26]
    assert result["total"] == 1000 + 50 + 184

def test_inclusive_total_is_subtotal(ghana_taxes):
    result = calculate_taxes(1000, ghana_taxes, is_tax_inclusive=True)
    assert result["tax"] == 175
    assert result["total"] == 1000

def test_non_taxable_short_circuits(ghana_taxes):
    result = calculate_taxes(500, ghana_taxes, is_taxable=False)
    assert result["tax"] == 0
    assert result["total"] == 500
    assert result["breakdown"] == []


def test_super_admin_seeds_defaults_idempotently(client, super_admin, auth_headers):
    headers = auth_headers(super_admin)
    first = client.post("/api/taxes/defaults", headers=headers)
    assert first.status_code == status.HTTP_200_OK
    assert len(first.json()["data"]) == 5

    second = client.post("/api/taxes/defaults", headers=headers)
    assert len(second.json()["data"]) == 5

    listing = client.get("/api/taxes/global", headers=headers).json()
    assert listing["pagination"]["total"] == 5

def test_admin_cannot_seed_global_taxes(client, admin_user, auth_headers):
    response = client.post("/api/taxes/defaults", headers=auth_headers(admin_user))
    assert response.status_code == status.HTTP_403_FORBIDDEN

def test_company_tax_crud_and_calculation(client, company, admin_user, super_admin, auth_headers):
    client.post(
        "/api/taxes/global",
        json={"name": "VAT", "rate": 15, "type": "VAT"},
        headers=auth_headers(super_admin),
    )
    headers = auth_headers(admin_user)
    created = client.post(
        "/api/taxes",
        json={"name": "Tourism Levy", "rate": 1, "type": "Levy", "applies_to": "facility"},
        headers=headers,
    )
    assert created.status_code == status.HTTP_201_CREATED
    tax_id = created.json()["data"]["id"]
    assert created.json()["data"]["company_id"] == company.id
    assert created.json()["data"]["is_super_admin_tax"] is False

    calc = client.post(
        "/api/taxes/calculate", json={"subtotal": 200, "applies_to": "facility"}, headers=headers
    ).json()["data"]
    assert calc["tax"] == 32
    assert calc["total"] == 232

    combined = client.get("/api/taxes/combined", headers=headers).json()
    assert [t["name"] for t in combined["data"]] == ["VAT", "Tourism Levy"]

    updated = client.put(f"/api/taxes/{tax_id}", json={"active": False}, headers=headers)
    assert updated.json()["data"]["active"] is False

    assert client.delete(f"/api/taxes/{tax_id}", headers=headers).status_code == status.HTTP_200_OK
    assert client.get(f"/api/taxes/{tax_id}", headers=headers).status_code == status.HTTP_404_NOT_FOUND

def test_other_company_cannot_touch_tax(client, admin_user, other_admin, auth_headers):
    tax_id = client.post(
        "/api/taxes", json={"name": "Local Levy", "rate": 2, "type": "Levy"}, headers=auth_headers(admin_user)
    ).json()["data"]["id"]
    response = client.get(f"/api/taxes/{tax_id}", headers=auth_headers(other_admin))
    assert response.status_code == status.HTTP_404_NOT_FOUND

def test_rate_above_hundred_is_rejected(client, admin_user, auth_headers):
    response = client.post(
        "/api/taxes", json={"name": "Silly", "rate": 150, "type": "Levy"}, headers=auth_headers(admin_user)
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

def test_null_in_update_keeps_required_fields(client, admin_user, auth_headers):
    headers = auth_headers(admin_user)
    tax_id = client.post(
        "/api/taxes", json={"name": "Tourism Levy", "rate": 1, "type": "Levy"}, headers=headers
    ).json()["data"]["id"]

    response = client.put(f"/api/taxes/{tax_id}", json={"rate": None, "active": None, "name": "Visitor Levy"}, headers=headers)
    assert response.status_code == status.HTTP_200_OK
    data = response.json()["data"]
    assert data["rate"] == 1.0
    assert data["active"] is True
    assert data["name"] == "Visitor Levy"
